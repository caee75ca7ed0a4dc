"""
In-memory session state and message dispatch.

HOT PATH: handle_raw() is called for every inbound frame.

Each message is decoded, routed by its `type` to exactly one handler and
applied to completion before the next one; unknown types are ignored.
"""

from __future__ import annotations

import dataclasses
from typing import Callable

from loguru import logger

from ..datafeed import codec
from ..errors import MalformedMessage
from ..types import (
    InstrumentId,
    InstrumentMapping,
    MessageType,
    Print,
    StatsSnapshot,
    TradeSummary,
)
from .directory import InstrumentDirectory
from .enrichment import propagate_quote
from .filters import TradeFilter
from .ledger import AUTO_TRADE_CAPACITY, PRINT_CAPACITY, TRADE_CAPACITY, BoundedLedger
from .overlay import PriceOverlay
from .stats import StatsHolder


class FlowSession:
    """
    Everything the viewer knows about the current stream.

    Owned by one FlowClient; the UI reads it between dispatches.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    def __init__(
        self,
        trade_capacity: int = TRADE_CAPACITY,
        print_capacity: int = PRINT_CAPACITY,
        auto_trade_capacity: int = AUTO_TRADE_CAPACITY,
    ) -> None:
        self.directory = InstrumentDirectory()
        self.trades: BoundedLedger[TradeSummary] = BoundedLedger(trade_capacity)
        self.prints: BoundedLedger[Print] = BoundedLedger(print_capacity)
        self.auto_trades: BoundedLedger[TradeSummary] = BoundedLedger(auto_trade_capacity)
        self.overlay = PriceOverlay()
        self.stats = StatsHolder()

        self.connected: bool = False
        self.revision: int = 0   # bumped on every applied message
        self.dropped: int = 0    # malformed
        self.ignored: int = 0    # unknown type

        self._handlers: dict[str, Callable[[dict], None]] = {
            MessageType.CONID_MAPPING.value: self._on_mapping,
            MessageType.CALL.value: self._on_trade,
            MessageType.PUT.value: self._on_trade,
            MessageType.PRINT.value: self._on_print,
            MessageType.LIVE_QUOTE.value: self._on_option_quote,
            MessageType.UL_LIVE_QUOTE.value: self._on_underlying_quote,
            MessageType.TRADING_STATS.value: self._on_stats,
        }

    # ------------------------------------------------------------------ dispatch

    def handle_raw(self, raw: bytes | str) -> bool:
        """
        Decode and dispatch one frame.

        Returns True if the message changed state. Malformed frames are
        logged and dropped; they never raise.
        """
        try:
            data = codec.decode(raw)
        except MalformedMessage as e:
            self.dropped += 1
            logger.warning(f"Dropping malformed message: {e}")
            return False
        return self.handle_message(data)

    def handle_message(self, data: dict) -> bool:
        msg_type = data.get("type")
        handler = self._handlers.get(msg_type) if isinstance(msg_type, str) else None
        if handler is None:
            self.ignored += 1
            logger.debug(f"Ignoring message type {msg_type!r}")
            return False

        try:
            handler(data)
        except MalformedMessage as e:
            self.dropped += 1
            logger.warning(f"Dropping malformed {msg_type} message: {e}")
            return False

        self.revision += 1
        return True

    # ------------------------------------------------------------------ handlers

    def _on_mapping(self, data: dict) -> None:
        conid, mapping = codec.parse_mapping(data)
        self.directory.upsert(conid, mapping)

    def _on_trade(self, data: dict) -> None:
        trade = codec.parse_trade(data)
        self.trades.push(trade)
        if trade.is_auto_trade:
            # Independent copy: each ledger evicts and enriches on its own
            self.auto_trades.push(dataclasses.replace(trade))

    def _on_print(self, data: dict) -> None:
        self.prints.push(codec.parse_print(data))

    def _on_option_quote(self, data: dict) -> None:
        quote = codec.parse_quote(data)
        self.overlay.set_option_quote(quote.conid, quote)
        updated = propagate_quote(quote, self.trades, self.auto_trades)
        if updated:
            logger.debug(f"Quote {quote.conid} last={quote.last} enriched {updated} trades")

    def _on_underlying_quote(self, data: dict) -> None:
        quote = codec.parse_quote(data)
        self.overlay.set_underlying_quote(quote.conid, quote)

    def _on_stats(self, data: dict) -> None:
        self.stats.replace(codec.parse_stats(data))

    # ------------------------------------------------------------------ queries

    def mapping(self, conid: InstrumentId | None) -> InstrumentMapping:
        return self.directory.lookup(conid)

    def underlying_last(self, conid: InstrumentId | None) -> float | None:
        return self.overlay.get_underlying_last(conid)

    def current_stats(self) -> StatsSnapshot | None:
        return self.stats.current()

    def filtered_trades(self, trade_filter: TradeFilter | None = None) -> list[TradeSummary]:
        if trade_filter is None:
            return self.trades.snapshot()
        return trade_filter.apply(self.trades)

    def counts(self) -> dict[str, int]:
        """Tab badge counts."""
        return {
            "stream": len(self.trades),
            "prints": len(self.prints),
            "quotes": len(self.overlay),
            "auto": len(self.auto_trades),
        }
