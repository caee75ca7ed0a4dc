"""Trade list filtering for the stream view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..types import TradeSummary

ALL = "all"

DIRECTIONS = (ALL, "BTO", "STO", "BTC", "STC")
CLASSIFICATIONS = (ALL, "SWEEP", "BLOCK", "NOTABLE")
STANCES = (ALL, "BULL", "BEAR", "NEUTRAL")


@dataclass
class TradeFilter:
    """User-selected filter over the trade ledger. Defaults match everything."""
    symbol: str = ""
    min_premium: float = 0.0
    direction: str = ALL
    classification: str = ALL
    stance: str = ALL

    def matches(self, trade: TradeSummary) -> bool:
        if self.symbol:
            if not trade.symbol or self.symbol.upper() not in str(trade.symbol).upper():
                return False
        if self.min_premium and (trade.premium or 0.0) < self.min_premium:
            return False
        if self.direction != ALL and trade.direction != self.direction:
            return False
        if self.classification != ALL and self.classification not in trade.classifications:
            return False
        if self.stance != ALL and trade.stance_label != self.stance:
            return False
        return True

    def apply(self, trades: Iterable[TradeSummary]) -> list[TradeSummary]:
        """Matching trades in ledger order (newest first)."""
        return [t for t in trades if self.matches(t)]


def cycle(options: tuple[str, ...], current: str) -> str:
    """Next value in `options` after `current`, wrapping around."""
    try:
        i = options.index(current)
    except ValueError:
        return options[0]
    return options[(i + 1) % len(options)]
