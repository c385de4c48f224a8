"""
Module: fieldops_engines.allocation
Responsibility:
    Allocate monetary amounts across multiple targets: an equal split with
    the rounding remainder given to one designated target, and a FIFO
    allocation that fills targets in order up to their eligible amounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fieldops_kernel/domain/values and logging.

Invariants enforced:
    - total_allocated + unallocated == source_amount.
    - Equal split: every line is rounded to currency precision and the
      remainder lands on exactly one designated target, so line totals
      always equal the source amount.
    - Currency consistency across targets and source.

Failure modes:
    - ValueError on currency mismatch between source and targets.
    - ValueError on a rounding target index outside the target list.

Usage:
    from fieldops_engines.allocation import AllocationEngine, AllocationTarget
    from fieldops_kernel.domain.values import Money

    engine = AllocationEngine()
    result = engine.allocate_equal(
        amount=Money.of("100.00", "BRL"),
        targets=[AllocationTarget("p1"), AllocationTarget("p2"), AllocationTarget("p3")],
        rounding_target_index=0,
    )
    # p1=33.34, p2=33.33, p3=33.33
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from uuid import UUID

from fieldops_engines.tracer import traced_engine
from fieldops_kernel.domain.values import Money
from fieldops_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


class AllocationMethod(str, Enum):
    """Method for allocating amounts."""

    EQUAL = "equal"  # Split evenly
    FIFO = "fifo"  # Oldest first by date


@dataclass(frozen=True)
class AllocationTarget:
    """
    A target that can receive an allocation.

    Contract:
        Frozen dataclass representing one potential allocation recipient.
        ``eligible_amount`` caps what a FIFO allocation may give it; ``date``
        and ``sequence`` order FIFO targets.
    """

    target_id: str | UUID
    target_type: str = "provider"
    eligible_amount: Money | None = None
    date: date | None = None
    sequence: int = 0


@dataclass(frozen=True)
class AllocationLine:
    """
    Result of allocation to a single target.

    Guarantees:
        - ``allocated + remaining == eligible_amount`` (when eligible is set).
    """

    target_id: str | UUID
    target_type: str
    allocated: Money
    remaining: Money
    is_fully_allocated: bool


@dataclass(frozen=True)
class AllocationResult:
    """
    Complete allocation result.

    Guarantees:
        - ``total_allocated + unallocated == source_amount``.
        - ``rounding_adjustment`` is what the designated target received on
          top of the truncated equal share.
    """

    source_amount: Money
    method: AllocationMethod
    lines: tuple[AllocationLine, ...]
    total_allocated: Money
    unallocated: Money
    rounding_adjustment: Money

    @property
    def is_fully_allocated(self) -> bool:
        return self.unallocated.is_zero


class AllocationEngine:
    """
    Allocate amounts across multiple targets.

    Contract:
        Pure functions with deterministic rounding.  No I/O, no database access.
    Non-goals:
        - Does not decide *which* method to use; callers select the method.
    """

    @traced_engine("allocation", "1.0", fingerprint_fields=("amount", "rounding_target_index"))
    def allocate_equal(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
        rounding_target_index: int = 0,
    ) -> AllocationResult:
        """
        Split ``amount`` equally across ``targets``.

        Each target receives the equal share truncated to currency precision;
        the designated rounding target additionally receives whatever is left.

        Postconditions:
            - Sum of all ``allocated`` amounts == ``amount``.
            - Shares differ by at most (n - 1) minor units, all on one target.
        """
        currency = amount.currency
        if not targets:
            logger.warning("allocation_no_targets", extra={
                "amount": str(amount.amount),
                "method": AllocationMethod.EQUAL.value,
            })
            return AllocationResult(
                source_amount=amount,
                method=AllocationMethod.EQUAL,
                lines=(),
                total_allocated=Money.zero(currency),
                unallocated=amount,
                rounding_adjustment=Money.zero(currency),
            )

        if not 0 <= rounding_target_index < len(targets):
            raise ValueError(
                f"rounding_target_index {rounding_target_index} out of range "
                f"for {len(targets)} targets"
            )

        count = Decimal(len(targets))
        share = (amount.amount / count).quantize(currency.quantum, rounding=ROUND_DOWN)
        remainder = amount.amount - share * count

        lines = tuple(
            AllocationLine(
                target_id=t.target_id,
                target_type=t.target_type,
                allocated=Money.of(
                    share + remainder if i == rounding_target_index else share,
                    currency,
                ),
                remaining=Money.zero(currency),
                is_fully_allocated=True,
            )
            for i, t in enumerate(targets)
        )

        total_allocated = Money.of(
            sum((line.allocated.amount for line in lines), Decimal("0")),
            currency,
        )
        unallocated = amount - total_allocated

        assert unallocated.is_zero, (
            f"Allocation conservation violated: "
            f"{total_allocated.amount} != {amount.amount}"
        )

        logger.debug("allocation_equal_completed", extra={
            "source_amount": str(amount.amount),
            "share": str(share),
            "rounding_adjustment": str(remainder),
            "line_count": len(lines),
        })

        return AllocationResult(
            source_amount=amount,
            method=AllocationMethod.EQUAL,
            lines=lines,
            total_allocated=total_allocated,
            unallocated=unallocated,
            rounding_adjustment=Money.of(remainder, currency),
        )

    @traced_engine("allocation", "1.0", fingerprint_fields=("amount",))
    def allocate_fifo(
        self,
        amount: Money,
        targets: Sequence[AllocationTarget],
    ) -> AllocationResult:
        """
        Allocate to oldest first, each target up to its eligible amount.

        Ordering is (date, sequence); targets without a date sort first.
        Targets after the amount runs out get zero.
        """
        sorted_targets = sorted(
            targets,
            key=lambda t: (t.date or date.min, t.sequence),
        )
        currency = amount.currency
        remaining_to_allocate = amount.amount
        lines: list[AllocationLine] = []

        for target in sorted_targets:
            if target.eligible_amount is not None and target.eligible_amount.currency != currency:
                raise ValueError(
                    f"Currency mismatch: {target.eligible_amount.currency} vs {currency}"
                )
            eligible = (
                target.eligible_amount.amount
                if target.eligible_amount is not None
                else remaining_to_allocate
            )

            to_allocate = min(max(remaining_to_allocate, Decimal("0")), eligible)
            remaining_to_allocate -= to_allocate

            target_remaining = Money.of(eligible - to_allocate, currency)
            lines.append(
                AllocationLine(
                    target_id=target.target_id,
                    target_type=target.target_type,
                    allocated=Money.of(to_allocate, currency),
                    remaining=target_remaining,
                    is_fully_allocated=target_remaining.is_zero,
                )
            )

        total_allocated = Money.of(amount.amount - remaining_to_allocate, currency)

        logger.debug("allocation_fifo_completed", extra={
            "source_amount": str(amount.amount),
            "total_allocated": str(total_allocated.amount),
            "unallocated": str(remaining_to_allocate),
            "targets_funded": sum(1 for line in lines if not line.allocated.is_zero),
            "line_count": len(lines),
        })

        return AllocationResult(
            source_amount=amount,
            method=AllocationMethod.FIFO,
            lines=tuple(lines),
            total_allocated=total_allocated,
            unallocated=Money.of(remaining_to_allocate, currency),
            rounding_adjustment=Money.zero(currency),
        )
