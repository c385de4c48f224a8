"""
Module: fieldops_engines.balance
Responsibility:
    Derive a provider's balance from authoritative history: the missions
    the provider works on and the payments made to them.  The cached
    ``current_balance`` column on the provider row is never an input.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Callers load snapshots
    through selectors and pass them in.

Invariants enforced:
    - Purity: identical inputs give identical outputs; no hidden state.
    - A provider's share of a mission uses the same split rule as revenue
      confirmation (equal split, remainder to the first provider).
    - current_balance == total_earned - total_paid.

Failure modes:
    - ValueError on snapshots in a currency other than the requested one
      (raised by Money arithmetic).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from fieldops_engines.revenue_split import share_for
from fieldops_engines.tracer import traced_engine
from fieldops_kernel.domain.values import Money


@dataclass(frozen=True)
class MissionShareInput:
    """What the balance engine needs to know about one mission."""

    mission_id: UUID
    providers: tuple[UUID, ...]
    provider_value: Decimal
    is_approved: bool


@dataclass(frozen=True)
class PaymentInput:
    """What the balance engine needs to know about one payment."""

    payment_id: UUID
    amount: Decimal
    paid_amount: Decimal
    status: str


@dataclass(frozen=True)
class ProviderBalance:
    """Derived balance of one provider."""

    provider_id: UUID
    current_balance: Money
    pending_balance: Money
    total_earned: Money
    total_paid: Money
    missions_count: int
    pending_missions_count: int


@traced_engine("provider_balance", "1.0", fingerprint_fields=("provider_id", "currency"))
def compute_provider_balance(
    provider_id: UUID,
    missions: Iterable[MissionShareInput],
    payments: Iterable[PaymentInput],
    currency: str,
) -> ProviderBalance:
    """
    Compute a provider's balance.

    total_earned: provider's share over approved missions.
    pending_balance: provider's share over missions not yet approved.
    total_paid: amount of completed payments plus paid_amount of partial
    payments.
    """
    total_earned = Money.zero(currency)
    pending_balance = Money.zero(currency)
    missions_count = 0
    pending_missions_count = 0

    for mission in missions:
        if provider_id not in mission.providers:
            continue
        share = share_for(
            provider_id,
            Money.of(mission.provider_value, currency),
            mission.providers,
        )
        if mission.is_approved:
            total_earned = total_earned + share
            missions_count += 1
        else:
            pending_balance = pending_balance + share
            pending_missions_count += 1

    total_paid = Money.zero(currency)
    for payment in payments:
        if payment.status == "completed":
            total_paid = total_paid + Money.of(payment.amount, currency)
        elif payment.status == "partial":
            total_paid = total_paid + Money.of(payment.paid_amount, currency)

    return ProviderBalance(
        provider_id=provider_id,
        current_balance=total_earned - total_paid,
        pending_balance=pending_balance,
        total_earned=total_earned,
        total_paid=total_paid,
        missions_count=missions_count,
        pending_missions_count=pending_missions_count,
    )
