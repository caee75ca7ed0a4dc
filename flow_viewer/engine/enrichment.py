"""
Live price enrichment for recorded trades.

HOT PATH: propagate_quote() runs once per LIVE_QUOTE (option quote) event.

Performance strategy:
1. Full scan of the trade and auto-trade ledgers per quote
2. Acceptable because both ledgers are capacity-bounded (<=200, <=50)
3. In-place mutation, no record reallocation

Future optimization targets:
- Index trades by conid if ledger capacities grow well beyond a few hundred
"""

from __future__ import annotations

from typing import Iterable

from ..types import DEFAULT_MULTIPLIER, InstrumentId, PnL, Quote, TradeSummary


def enrich_trade(trade: TradeSummary, last: float | None) -> None:
    """
    Recompute the live price fields of one trade from a quote's last price.

    Falls back to the trade's current price, then its entry price, when
    the quote carries no last price.
    """
    if last is None:
        last = trade.current_price if trade.current_price is not None else trade.option_price

    price_change = last - trade.initial_price
    trade.current_price = last
    trade.price_change = price_change
    trade.price_change_pct = (price_change / trade.initial_price) * 100 if trade.initial_price else 0.0


def propagate_quote(quote: Quote, *ledgers: Iterable[TradeSummary]) -> int:
    """
    Apply an option quote to every trade on `quote.conid` in each ledger.

    Returns the number of trade records updated.
    """
    conid: InstrumentId = quote.conid
    updated = 0

    for ledger in ledgers:
        for trade in ledger:
            if trade.conid != conid:
                continue
            enrich_trade(trade, quote.last)
            updated += 1

    return updated


def compute_pnl(trade: TradeSummary) -> PnL:
    """
    Dollar and percent P&L of a trade from entry to current price.

    Derived on demand, never stored. Missing entry price yields zero P&L;
    missing size counts as one contract; missing multiplier is 100.
    """
    entry = trade.option_price if trade.option_price is not None else (trade.initial_price or 0.0)
    current = trade.current_price if trade.current_price is not None else entry
    contracts = trade.size or 1
    multiplier = trade.multiplier or DEFAULT_MULTIPLIER

    if not entry:
        return PnL(dollar=0.0, percent=0.0)

    price_diff = current - entry
    return PnL(
        dollar=price_diff * contracts * multiplier,
        percent=(price_diff / entry) * 100,
    )
