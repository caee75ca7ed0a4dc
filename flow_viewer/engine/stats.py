"""Holder for the current aggregate trading statistics."""

from __future__ import annotations

from ..types import StatsSnapshot


class StatsHolder:
    """Single snapshot, replaced wholesale. No history, no merging."""

    __slots__ = ('_snapshot',)

    def __init__(self) -> None:
        self._snapshot: StatsSnapshot | None = None

    def replace(self, snapshot: StatsSnapshot) -> None:
        self._snapshot = snapshot

    def current(self) -> StatsSnapshot | None:
        """Latest snapshot, or None before the first TRADING_STATS event."""
        return self._snapshot
