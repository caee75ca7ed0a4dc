"""
Data types for Flow Viewer.

Notes:
- NamedTuple for records that never change once received (prints, quotes, stats)
- TradeSummary is the one mutable record: live price fields are rewritten
  in place by the enrichment pass
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Union

# Opaque join key across all entities (numeric or string upstream)
InstrumentId = Union[int, str]

DEFAULT_MULTIPLIER = 100


class MessageType(str, Enum):
    """Discriminant carried in the `type` field of every inbound message."""
    CONID_MAPPING = "CONID_MAPPING"
    CALL = "CALL"
    PUT = "PUT"
    PRINT = "PRINT"
    LIVE_QUOTE = "LIVE_QUOTE"
    UL_LIVE_QUOTE = "UL_LIVE_QUOTE"
    TRADING_STATS = "TRADING_STATS"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"


class InstrumentMapping(NamedTuple):
    """Descriptive metadata for one instrument id."""
    symbol: str
    instrument_class: str = "OPTION"   # OPTION | UNDERLYING
    right: str | None = None           # C | P
    strike: float | None = None
    expiry: str | None = None

    @property
    def is_option(self) -> bool:
        return self.instrument_class != "UNDERLYING"


UNKNOWN_MAPPING = InstrumentMapping(symbol="Unknown", instrument_class="OPTION")


@dataclass(slots=True)
class TradeSummary:
    """
    One aggregated directional trade (CALL / PUT event).

    `current_price`, `price_change` and `price_change_pct` belong to the
    enrichment pass; nothing else writes them after construction.
    """
    conid: InstrumentId
    underlying_conid: InstrumentId | None
    right: str                        # CALL | PUT
    option_price: float
    size: int
    premium: float
    direction: str | None             # BTO | STO | BTC | STC
    classifications: tuple[str, ...]  # subset of SWEEP, BLOCK, NOTABLE
    stance_label: str                 # BULL | BEAR | NEUTRAL
    confidence: float
    timestamp: int | None
    received_at: int
    is_auto_trade: bool = False
    stance_score: float | None = None
    stance_reasons: tuple[str, ...] = ()
    greeks: dict[str, Any] = field(default_factory=dict)
    symbol: str | None = None
    strike: float | None = None
    expiry: str | None = None
    multiplier: float | None = None
    underlying_price: float | None = None
    asset_class: str | None = None
    aggressor: bool | None = None
    vol_oi_ratio: float | None = None
    open_interest: int | None = None
    # Live fields (enrichment)
    initial_price: float = 0.0
    current_price: float = 0.0
    price_change: float = 0.0
    price_change_pct: float = 0.0

    def __post_init__(self) -> None:
        self.initial_price = self.option_price
        self.current_price = self.option_price
        self.price_change = 0.0
        self.price_change_pct = 0.0


class Print(NamedTuple):
    """One discrete execution record."""
    conid: InstrumentId
    symbol: str | None
    right: str | None
    strike: float | None
    expiry: str | None
    trade_size: int
    trade_price: float | None
    premium: float
    aggressor: bool | None    # True = buy aggressor, None = unknown
    stance: str | None
    stance_score: float | None
    vol_oi_ratio: float | None
    timestamp: int | None


class Quote(NamedTuple):
    """Latest quote for an option or an underlying."""
    conid: InstrumentId
    last: float | None
    bid: float | None
    ask: float | None
    volume: int
    delta: float | None
    timestamp: int | None


class DailyStats(NamedTuple):
    date: str | None = None
    pnl: float = 0.0
    trades: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        """Win rate in percent; 0 when no trades closed today."""
        return (self.wins / self.trades) * 100 if self.trades > 0 else 0.0


class StatsSnapshot(NamedTuple):
    """Aggregate trading statistics, replaced wholesale on each update."""
    daily: DailyStats
    total_pnl: float
    open_positions_count: int
    open_pnl: float
    total_trades: int
    simulation: bool


class PnL(NamedTuple):
    dollar: float
    percent: float
