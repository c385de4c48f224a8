"""
Tests for AllocationEngine.

Covers:
- allocate_fifo(): oldest first, partial last target, untouched tail,
  undated targets first, unallocated surplus
- allocate_equal(): conservation and rounding target
"""

from datetime import date
from decimal import Decimal

import pytest

from fieldops_engines.allocation import AllocationEngine, AllocationTarget
from fieldops_kernel.domain.values import Money


def target(tid, amount, day=None, sequence=0):
    return AllocationTarget(
        target_id=tid,
        target_type="payment",
        eligible_amount=Money.of(amount, "BRL"),
        date=day,
        sequence=sequence,
    )


class TestAllocateFifo:

    def setup_method(self):
        self.engine = AllocationEngine()
        self.targets = [
            target("p3", "30.00", date(2024, 3, 1)),
            target("p1", "100.00", date(2024, 1, 1)),
            target("p2", "50.00", date(2024, 2, 1)),
        ]

    def test_oldest_first_with_partial(self):
        result = self.engine.allocate_fifo(Money.of("120.00", "BRL"), self.targets)
        lines = {line.target_id: line for line in result.lines}

        assert [line.target_id for line in result.lines] == ["p1", "p2", "p3"]
        assert lines["p1"].is_fully_allocated
        assert lines["p2"].allocated.amount == Decimal("20.00")
        assert lines["p2"].remaining.amount == Decimal("30.00")
        assert lines["p3"].allocated.is_zero
        assert result.is_fully_allocated

    def test_exact_total_funds_every_target(self):
        result = self.engine.allocate_fifo(Money.of("180.00", "BRL"), self.targets)
        assert all(line.is_fully_allocated for line in result.lines)
        assert result.unallocated.is_zero

    def test_surplus_is_reported_unallocated(self):
        result = self.engine.allocate_fifo(Money.of("200.00", "BRL"), self.targets)
        assert result.unallocated.amount == Decimal("20.00")

    def test_sequence_breaks_date_ties(self):
        same_day = date(2024, 1, 1)
        result = self.engine.allocate_fifo(
            Money.of("10.00", "BRL"),
            [target("b", "10.00", same_day, 1), target("a", "10.00", same_day, 0)],
        )
        assert result.lines[0].target_id == "a"
        assert result.lines[0].is_fully_allocated

    def test_currency_mismatch_raises(self):
        with pytest.raises(ValueError):
            self.engine.allocate_fifo(
                Money.of("10.00", "BRL"),
                [AllocationTarget("x", eligible_amount=Money.of("10.00", "USD"))],
            )


class TestAllocateEqual:

    def test_rounding_target_receives_remainder(self):
        result = AllocationEngine().allocate_equal(
            Money.of("10.00", "BRL"),
            [AllocationTarget("a"), AllocationTarget("b"), AllocationTarget("c")],
            rounding_target_index=2,
        )
        assert [line.allocated.amount for line in result.lines] == [
            Decimal("3.33"), Decimal("3.33"), Decimal("3.34"),
        ]
        assert result.rounding_adjustment.amount == Decimal("0.01")

    def test_no_targets_leaves_amount_unallocated(self):
        result = AllocationEngine().allocate_equal(Money.of("5.00", "BRL"), [])
        assert result.lines == ()
        assert result.unallocated.amount == Decimal("5.00")
