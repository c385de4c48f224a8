"""
Module: fieldops_kernel.selectors.provider_selector
Responsibility: Read the history a provider balance is derived from: the
    company's missions (with their provider assignments) and the provider's
    payments.
Architecture position: Kernel > Selectors.  Read-only.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from fieldops_kernel.models.mission import Mission
from fieldops_kernel.models.payment import OUTSTANDING_STATUSES, Payment, PaymentType
from fieldops_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class MissionSnapshot:
    mission_id: UUID
    provider_id: UUID | None
    assigned_providers: tuple[str, ...]
    provider_value: Decimal
    is_approved: bool


@dataclass(frozen=True)
class PaymentSnapshot:
    payment_id: UUID
    amount: Decimal
    paid_amount: Decimal
    status: str
    type: str


class ProviderSelector(BaseSelector):
    """Balance inputs for one provider."""

    def missions(self, company_id: UUID) -> list[MissionSnapshot]:
        """All missions of the provider's company, oldest first.

        Membership is decided by the caller's split rule, not by SQL, so that
        the JSON assignment list behaves the same on every backend.
        """
        rows = self.session.execute(
            select(
                Mission.id,
                Mission.provider_id,
                Mission.assigned_providers,
                Mission.provider_value,
                Mission.is_approved,
            )
            .where(Mission.company_id == company_id)
            .order_by(Mission.created_at, Mission.id)
        ).all()
        return [
            MissionSnapshot(
                mission_id=r.id,
                provider_id=r.provider_id,
                assigned_providers=tuple(str(p) for p in (r.assigned_providers or ())),
                provider_value=r.provider_value,
                is_approved=bool(r.is_approved),
            )
            for r in rows
        ]

    def payments(self, provider_id: UUID) -> list[PaymentSnapshot]:
        rows = self.session.execute(
            select(Payment)
            .where(Payment.provider_id == provider_id)
            .order_by(Payment.due_date, Payment.created_at, Payment.id)
        ).scalars()
        return [
            PaymentSnapshot(
                payment_id=p.id,
                amount=p.amount,
                paid_amount=p.paid_amount or Decimal("0"),
                status=p.status,
                type=p.type,
            )
            for p in rows
        ]

    def outstanding_total(self, provider_id: UUID) -> Decimal:
        """Unpaid amount of pending/partial payments, balance payments excluded."""
        total = self.session.execute(
            select(func.coalesce(func.sum(Payment.amount - Payment.paid_amount), 0))
            .where(Payment.provider_id == provider_id)
            .where(Payment.status.in_(OUTSTANDING_STATUSES))
            .where(Payment.type != PaymentType.BALANCE_PAYMENT.value)
        ).scalar_one()
        return Decimal(str(total)).quantize(Decimal("0.01"))
