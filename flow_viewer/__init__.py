"""
Flow Viewer - Real-time options order-flow viewer.

Architecture:
- datafeed/: WebSocket connection, subscription handshake, message decoding
- engine/: In-memory session state (ledgers, quotes, enrichment, stats)
- ui/: Trade / print / quote / stats tabs (Textual TUI)
"""

__version__ = "0.1.0"
