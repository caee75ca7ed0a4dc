"""Tests for live price enrichment and P&L."""

import pytest

from flow_viewer.datafeed.codec import parse_trade
from flow_viewer.engine.enrichment import compute_pnl, enrich_trade, propagate_quote
from flow_viewer.engine.ledger import BoundedLedger
from flow_viewer.types import Quote
from tests.helpers import call_msg


def _trade(conid=100, option_price=2.00, size=5, **extra):
    return parse_trade(call_msg(conid=conid, option_price=option_price, size=size, **extra), received_at=0)


def _quote(conid=100, last=3.00):
    return Quote(conid=conid, last=last, bid=None, ask=None, volume=0, delta=None, timestamp=None)


class TestEnrichTrade:

    def test_new_trade_starts_at_entry_price(self):
        trade = _trade(option_price=1.50)

        assert trade.initial_price == 1.50
        assert trade.current_price == 1.50
        assert trade.price_change == 0
        assert trade.price_change_pct == 0

    def test_recomputes_change_from_initial_price(self):
        trade = _trade(option_price=1.50)

        enrich_trade(trade, 2.00)

        assert trade.current_price == 2.00
        assert trade.price_change == pytest.approx(0.50)
        assert trade.price_change_pct == pytest.approx(33.333, rel=1e-3)

    def test_missing_last_falls_back_to_current_price(self):
        trade = _trade(option_price=1.00)
        enrich_trade(trade, 1.40)

        enrich_trade(trade, None)

        assert trade.current_price == 1.40
        assert trade.price_change_pct == pytest.approx(40.0)

    def test_zero_entry_price_gives_zero_pct(self):
        trade = _trade(option_price=0.0)

        enrich_trade(trade, 0.25)

        assert trade.price_change == pytest.approx(0.25)
        assert trade.price_change_pct == 0.0


class TestPropagateQuote:

    def test_updates_matching_trades_in_every_ledger(self):
        trades, autos = BoundedLedger(10), BoundedLedger(10)
        trades.push(_trade(conid=100))
        autos.push(_trade(conid=100))

        updated = propagate_quote(_quote(100, 3.00), trades, autos)

        assert updated == 2
        assert trades[0].current_price == 3.00
        assert autos[0].current_price == 3.00

    def test_leaves_other_instruments_untouched(self):
        ledger = BoundedLedger(10)
        ledger.push(_trade(conid=100, option_price=2.00))
        ledger.push(_trade(conid=200, option_price=5.00))

        propagate_quote(_quote(100, 3.00), ledger)

        other = ledger[0]
        assert other.conid == 200
        assert other.current_price == 5.00
        assert other.price_change == 0
        assert other.price_change_pct == 0

    def test_is_idempotent(self):
        ledger = BoundedLedger(10)
        ledger.push(_trade(conid=100, option_price=2.00))

        propagate_quote(_quote(100, 2.60), ledger)
        once = (ledger[0].current_price, ledger[0].price_change, ledger[0].price_change_pct)
        propagate_quote(_quote(100, 2.60), ledger)
        twice = (ledger[0].current_price, ledger[0].price_change, ledger[0].price_change_pct)

        assert once == twice


class TestComputePnl:

    def test_sign_convention(self):
        trade = _trade(option_price=2.00, size=5)
        enrich_trade(trade, 3.00)

        pnl = compute_pnl(trade)

        assert pnl.dollar == pytest.approx(500.0)
        assert pnl.percent == pytest.approx(50.0)

    def test_loss_is_negative(self):
        trade = _trade(option_price=2.00, size=2)
        enrich_trade(trade, 1.50)

        pnl = compute_pnl(trade)

        assert pnl.dollar == pytest.approx(-100.0)
        assert pnl.percent == pytest.approx(-25.0)

    def test_custom_multiplier(self):
        trade = _trade(option_price=2.00, size=1, multiplier=50)
        enrich_trade(trade, 3.00)

        assert compute_pnl(trade).dollar == pytest.approx(50.0)

    def test_missing_size_counts_as_one_contract(self):
        trade = _trade(option_price=2.00, size=None)
        enrich_trade(trade, 2.50)

        assert compute_pnl(trade).dollar == pytest.approx(50.0)

    def test_missing_entry_price_gives_zero(self):
        trade = _trade(option_price=None)
        enrich_trade(trade, 1.00)

        assert compute_pnl(trade) == (0.0, 0.0)
