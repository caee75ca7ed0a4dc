"""Tests for the instrument directory, price overlay and stats holder."""

from flow_viewer.engine.directory import InstrumentDirectory
from flow_viewer.engine.overlay import PriceOverlay
from flow_viewer.engine.stats import StatsHolder
from flow_viewer.types import UNKNOWN_MAPPING, DailyStats, InstrumentMapping, Quote, StatsSnapshot


def _quote(conid, last):
    return Quote(conid=conid, last=last, bid=None, ask=None, volume=0, delta=None, timestamp=None)


class TestInstrumentDirectory:

    def test_unknown_id_returns_placeholder(self):
        directory = InstrumentDirectory()

        mapping = directory.lookup(999)

        assert mapping is UNKNOWN_MAPPING
        assert mapping.symbol == "Unknown"
        assert mapping.instrument_class == "OPTION"

    def test_none_id_returns_placeholder(self):
        assert InstrumentDirectory().lookup(None) is UNKNOWN_MAPPING

    def test_upsert_overwrites(self):
        directory = InstrumentDirectory()
        directory.upsert(1, InstrumentMapping(symbol="SPY", instrument_class="UNDERLYING"))
        directory.upsert(1, InstrumentMapping(symbol="SPY", instrument_class="OPTION", right="C"))

        assert directory.lookup(1).right == "C"
        assert len(directory) == 1
        assert 1 in directory

    def test_string_and_int_ids_name_the_same_instrument(self):
        directory = InstrumentDirectory()
        directory.upsert("42", InstrumentMapping(symbol="QQQ"))

        assert directory.lookup(42).symbol == "QQQ"
        assert 42 in directory

        directory.upsert(42, InstrumentMapping(symbol="SPY"))

        assert directory.lookup("42").symbol == "SPY"
        assert len(directory) == 1


class TestPriceOverlay:

    def test_last_write_wins_in_full(self):
        overlay = PriceOverlay()
        overlay.set_option_quote(5, Quote(5, 1.0, 0.9, 1.1, 10, 0.5, 1))
        overlay.set_option_quote(5, Quote(5, 1.2, None, None, 0, None, 2))

        quote = overlay.get_option_quote(5)
        assert quote.last == 1.2
        assert quote.bid is None
        assert quote.delta is None

    def test_underlying_last(self):
        overlay = PriceOverlay()
        overlay.set_underlying_quote(1, _quote(1, 450.25))

        assert overlay.get_underlying_last(1) == 450.25
        assert overlay.get_underlying_last(2) is None
        assert overlay.get_underlying_last(None) is None

    def test_string_and_int_ids_share_one_entry(self):
        overlay = PriceOverlay()
        overlay.set_option_quote(42, _quote(42, 1.0))
        overlay.set_option_quote("42", _quote("42", 1.5))
        overlay.set_underlying_quote("7", _quote("7", 450.0))

        assert len(overlay) == 2
        assert overlay.get_option_quote(42).last == 1.5
        assert overlay.get_underlying_last(7) == 450.0

    def test_option_and_underlying_tables_are_separate(self):
        overlay = PriceOverlay()
        overlay.set_option_quote(1, _quote(1, 2.0))

        assert overlay.get_underlying_last(1) is None
        assert len(overlay) == 1


class TestStatsHolder:

    def test_none_before_first_update(self):
        assert StatsHolder().current() is None

    def test_replace_is_wholesale(self):
        holder = StatsHolder()
        first = StatsSnapshot(DailyStats(pnl=100.0, trades=2, wins=1, losses=1), 500.0, 3, 20.0, 10, True)
        second = StatsSnapshot(DailyStats(), 0.0, 0, 0.0, 0, False)

        holder.replace(first)
        holder.replace(second)

        assert holder.current() is second

    def test_win_rate(self):
        assert DailyStats(trades=4, wins=3, losses=1).win_rate == 75.0
        assert DailyStats().win_rate == 0.0
