"""
Module: fieldops_engines.revenue_split
Responsibility:
    The two revenue split rules of the system:
      1. service value -> (company value, provider value) by company percentage;
      2. provider value -> per-provider shares, equal split with the rounding
         remainder given to the FIRST provider in the mission's stable order.
    Both the confirm procedure (which creates payments) and the balance
    engine (which derives earnings) use rule 2, so earned amounts always
    reconcile with generated payments.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - company_value + provider_value == service_value exactly.
    - sum(provider shares) == provider_amount exactly.

Failure modes:
    - ValueError when company_percentage is outside [0, 100].
    - ValueError when a positive provider amount has no provider to receive it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from fieldops_engines.allocation import AllocationEngine, AllocationTarget
from fieldops_kernel.domain.values import Money

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ServiceValueSplit:
    """Company/provider halves of a mission's service value."""

    service_value: Money
    company_percentage: Decimal
    company_value: Money
    provider_value: Money


def split_service_value(service_value: Money, company_percentage: Decimal) -> ServiceValueSplit:
    """
    Split a service value by the company's percentage.

    company_value is rounded half-up to currency precision; provider_value
    is the exact complement.
    """
    pct = Decimal(str(company_percentage))
    if pct < 0 or pct > _HUNDRED:
        raise ValueError(f"company_percentage must be within [0, 100], got {pct}")
    if service_value.is_negative:
        raise ValueError(f"service_value must not be negative, got {service_value}")

    company_value = (service_value * pct * (Decimal("1") / _HUNDRED)).round(ROUND_HALF_UP)
    provider_value = service_value - company_value
    return ServiceValueSplit(
        service_value=service_value,
        company_percentage=pct,
        company_value=company_value,
        provider_value=provider_value,
    )


def ordered_providers(
    assigned_providers: Sequence[UUID | str] | None,
    provider_id: UUID | str | None,
) -> tuple[UUID, ...]:
    """
    The stable provider order of a mission.

    assigned_providers in stored order (duplicates dropped, first wins);
    when empty, the single provider_id; otherwise no providers.
    """
    if assigned_providers:
        seen: dict[UUID, None] = {}
        for p in assigned_providers:
            seen.setdefault(UUID(str(p)), None)
        return tuple(seen)
    if provider_id is not None:
        return (UUID(str(provider_id)),)
    return ()


def provider_shares(
    provider_amount: Money,
    providers: Sequence[UUID],
) -> tuple[tuple[UUID, Money], ...]:
    """
    Split ``provider_amount`` equally across ``providers``.

    The rounding remainder goes to ``providers[0]``.  Returns (provider,
    share) pairs in provider order.
    """
    if not providers:
        if provider_amount.is_zero:
            return ()
        raise ValueError("provider amount is positive but no provider is assigned")

    result = AllocationEngine().allocate_equal(
        amount=provider_amount,
        targets=[AllocationTarget(target_id=p) for p in providers],
        rounding_target_index=0,
    )
    return tuple((line.target_id, line.allocated) for line in result.lines)


def share_for(
    provider_id: UUID,
    provider_amount: Money,
    providers: Sequence[UUID],
) -> Money:
    """One provider's share under the equal split (zero when not a member)."""
    if provider_id not in providers:
        return Money.zero(provider_amount.currency)
    for pid, share in provider_shares(provider_amount, providers):
        if pid == provider_id:
            return share
    return Money.zero(provider_amount.currency)
