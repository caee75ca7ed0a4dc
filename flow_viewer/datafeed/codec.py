"""
Wire codec for the options-flow stream.

Inbound: one JSON object per text frame, discriminated by `type`.
Outbound: a single subscription message per connection.

Performance notes:
- orjson for parsing and serialization
- Parsers read fields with dict.get() so optional fields never raise
"""

from __future__ import annotations

import time
from typing import Any, Iterable

import orjson

from ..errors import MalformedMessage
from ..types import (
    DailyStats,
    InstrumentId,
    InstrumentMapping,
    Print,
    Quote,
    StatsSnapshot,
    TradeSummary,
)

DEFAULT_FUTURES_SYMBOLS = ("/ES", "/NQ")
DEFAULT_EQUITY_SYMBOLS = ("SPY", "QQQ", "AAPL", "TSLA")


def decode(raw: bytes | str) -> dict:
    """Parse one inbound frame. Raises MalformedMessage on anything but a JSON object."""
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedMessage(f"undecodable payload: {e}") from e
    if not isinstance(data, dict):
        raise MalformedMessage(f"expected object, got {type(data).__name__}")
    return data


def subscribe_message(
    futures_symbols: Iterable[str] = DEFAULT_FUTURES_SYMBOLS,
    equity_symbols: Iterable[str] = DEFAULT_EQUITY_SYMBOLS,
) -> str:
    """Build the handshake sent once after every successful connect."""
    return orjson.dumps({
        "action": "subscribe",
        "futuresSymbols": list(futures_symbols),
        "equitySymbols": list(equity_symbols),
    }).decode()


def _require(data: dict, key: str) -> Any:
    value = data.get(key)
    if value is None:
        raise MalformedMessage(f"{data.get('type', '?')} message missing '{key}'")
    return value


def _float(value: Any, default: float | None = None) -> float | None:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _timestamp(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_id(value: Any) -> InstrumentId | None:
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return value
    return None


def _strs(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return ()


def _conid(data: dict, key: str = "conid") -> InstrumentId:
    value = _require(data, key)
    if not isinstance(value, (int, str)) or isinstance(value, bool):
        raise MalformedMessage(f"'{key}' must be a number or string, got {value!r}")
    return value


def parse_mapping(data: dict) -> tuple[InstrumentId, InstrumentMapping]:
    """
    CONID_MAPPING -> (conid, mapping).

    Accepts `instrumentClass` or the legacy `type` key for the class;
    only "UNDERLYING" is kept distinct, everything else is an option.
    """
    conid = _conid(data)
    mapping = _require(data, "mapping")
    if not isinstance(mapping, dict):
        raise MalformedMessage("CONID_MAPPING 'mapping' must be an object")

    raw_class = mapping.get("instrumentClass") or mapping.get("type")
    instrument_class = "UNDERLYING" if raw_class == "UNDERLYING" else "OPTION"

    return conid, InstrumentMapping(
        symbol=str(mapping.get("symbol") or "Unknown"),
        instrument_class=instrument_class,
        right=mapping.get("right"),
        strike=_float(mapping.get("strike")),
        expiry=mapping.get("expiry"),
    )


def parse_trade(data: dict, received_at: int | None = None) -> TradeSummary:
    """CALL / PUT -> TradeSummary with live fields seeded from the entry price."""
    greeks = data.get("greeks")
    aggressor = data.get("aggressor")

    return TradeSummary(
        conid=_conid(data),
        underlying_conid=_optional_id(data.get("underlyingConid")),
        right=data["type"],
        option_price=_float(data.get("optionPrice"), 0.0),
        size=_int(data.get("size")),
        premium=_float(data.get("premium"), 0.0),
        direction=data.get("direction"),
        classifications=_strs(data.get("classifications")),
        stance_label=data.get("stanceLabel") or "NEUTRAL",
        confidence=_float(data.get("confidence"), 0.0),
        timestamp=_timestamp(data.get("timestamp")),
        received_at=received_at if received_at is not None else int(time.time() * 1000),
        is_auto_trade=bool(data.get("isAutoTrade")),
        stance_score=_float(data.get("stanceScore")),
        stance_reasons=_strs(data.get("stanceReasons")),
        greeks=dict(greeks) if isinstance(greeks, dict) else {},
        symbol=data.get("symbol"),
        strike=_float(data.get("strike")),
        expiry=data.get("expiry"),
        multiplier=_float(data.get("multiplier")),
        underlying_price=_float(data.get("underlyingPrice")),
        asset_class=data.get("assetClass"),
        aggressor=aggressor if isinstance(aggressor, bool) else None,
        vol_oi_ratio=_float(data.get("volOiRatio")),
        open_interest=data.get("openInterest"),
    )


def parse_print(data: dict) -> Print:
    aggressor = data.get("aggressor")
    return Print(
        conid=_conid(data),
        symbol=data.get("symbol"),
        right=data.get("right"),
        strike=_float(data.get("strike")),
        expiry=data.get("expiry"),
        trade_size=_int(data.get("tradeSize")),
        trade_price=_float(data.get("tradePrice")),
        premium=_float(data.get("premium"), 0.0),
        aggressor=aggressor if isinstance(aggressor, bool) else None,
        stance=data.get("stance") or data.get("stanceLabel"),
        stance_score=_float(data.get("stanceScore")),
        vol_oi_ratio=_float(data.get("volOiRatio")),
        timestamp=_timestamp(data.get("timestamp")),
    )


def parse_quote(data: dict) -> Quote:
    """LIVE_QUOTE / UL_LIVE_QUOTE -> Quote."""
    return Quote(
        conid=_conid(data),
        last=_float(data.get("last")),
        bid=_float(data.get("bid")),
        ask=_float(data.get("ask")),
        volume=_int(data.get("volume")),
        delta=_float(data.get("delta")),
        timestamp=_timestamp(data.get("timestamp")),
    )


def parse_stats(data: dict) -> StatsSnapshot:
    stats = _require(data, "stats")
    if not isinstance(stats, dict):
        raise MalformedMessage("TRADING_STATS 'stats' must be an object")
    daily = stats.get("daily")
    if not isinstance(daily, dict):
        daily = {}

    return StatsSnapshot(
        daily=DailyStats(
            date=daily.get("date"),
            pnl=_float(daily.get("pnl"), 0.0),
            trades=_int(daily.get("trades")),
            wins=_int(daily.get("wins")),
            losses=_int(daily.get("losses")),
        ),
        total_pnl=_float(stats.get("totalPnL"), 0.0),
        open_positions_count=_int(stats.get("openPositionsCount")),
        open_pnl=_float(stats.get("openPnL"), 0.0),
        total_trades=_int(stats.get("totalTrades")),
        simulation=bool(stats.get("simulation")),
    )
