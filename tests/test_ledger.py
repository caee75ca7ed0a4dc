"""Tests for the capacity-bounded, newest-first ledger."""

import pytest

from flow_viewer.engine.ledger import BoundedLedger


class TestBoundedLedger:

    def test_push_puts_newest_first(self):
        ledger = BoundedLedger(5)
        for i in range(3):
            ledger.push(i)
            assert ledger[0] == i

        assert ledger.snapshot() == [2, 1, 0]

    def test_length_never_exceeds_capacity(self):
        ledger = BoundedLedger(10)
        for i in range(57):
            ledger.push(i)
            assert len(ledger) <= 10

        assert len(ledger) == 10

    def test_overflow_evicts_exactly_the_oldest(self):
        ledger = BoundedLedger(4)
        for i in range(4):
            ledger.push(i)
        before = ledger.snapshot()

        ledger.push(4)

        assert 0 not in ledger.snapshot()
        assert ledger.snapshot() == [4] + before[:-1]

    def test_keeps_arrival_order_not_record_order(self):
        ledger = BoundedLedger(3)
        ledger.push({"timestamp": 300})
        ledger.push({"timestamp": 100})

        assert [r["timestamp"] for r in ledger] == [100, 300]

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            BoundedLedger(capacity)
