"""Provider and payment DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.account import PaymentMethod
from fieldops_kernel.models.payment import Payment, PaymentStatus, PaymentType
from fieldops_kernel.models.provider import ServiceProvider


@dataclass(frozen=True)
class ProviderInfo:
    provider_id: UUID
    company_id: UUID
    name: str
    email: str | None
    phone: str | None
    service: str | None
    payment_method: PaymentMethod | None
    is_active: bool
    current_balance: Decimal

    @classmethod
    def from_row(cls, row: ServiceProvider) -> ProviderInfo:
        return cls(
            provider_id=row.id,
            company_id=row.company_id,
            name=row.name,
            email=row.email,
            phone=row.phone,
            service=row.service,
            payment_method=(
                coerce_enum(
                    PaymentMethod, row.payment_method, PaymentMethod.TRANSFER,
                    entity="service_provider", field="payment_method", entity_id=row.id,
                )
                if row.payment_method
                else None
            ),
            is_active=bool(row.is_active),
            current_balance=row.current_balance,
        )


@dataclass(frozen=True)
class PaymentInfo:
    payment_id: UUID
    provider_id: UUID
    company_id: UUID | None
    confirmed_revenue_id: UUID | None
    amount: Decimal
    paid_amount: Decimal
    status: PaymentStatus
    type: PaymentType
    description: str | None
    due_date: date | None
    payment_date: date | None

    @property
    def outstanding(self) -> Decimal:
        if self.status in (PaymentStatus.COMPLETED, PaymentStatus.CANCELLED):
            return Decimal("0.00")
        return self.amount - self.paid_amount

    @classmethod
    def from_row(cls, row: Payment) -> PaymentInfo:
        return cls(
            payment_id=row.id,
            provider_id=row.provider_id,
            company_id=row.company_id,
            confirmed_revenue_id=row.confirmed_revenue_id,
            amount=row.amount,
            paid_amount=row.paid_amount or Decimal("0"),
            status=coerce_enum(
                PaymentStatus, row.status, PaymentStatus.PENDING,
                entity="payment", field="status", entity_id=row.id,
            ),
            type=coerce_enum(
                PaymentType, row.type, PaymentType.FULL,
                entity="payment", field="type", entity_id=row.id,
            ),
            description=row.description,
            due_date=row.due_date,
            payment_date=row.payment_date,
        )


@dataclass(frozen=True)
class SettlementOutcome:
    """Result of a manual settlement against a provider's payments."""

    settlement_id: UUID
    provider_id: UUID
    amount: Decimal
    settled_count: int
    payment_date: date
    replayed: bool = False
