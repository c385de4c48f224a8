"""Revenue ledger DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.account import AccountType, PaymentMethod
from fieldops_kernel.models.revenue import (
    ConfirmedRevenue,
    PendingRevenue,
    PendingRevenueStatus,
)


@dataclass(frozen=True)
class PendingRevenueInfo:
    pending_revenue_id: UUID
    mission_id: UUID
    company_id: UUID | None
    client_name: str | None
    description: str | None
    total_amount: Decimal
    company_amount: Decimal
    provider_amount: Decimal
    due_date: date | None
    status: PendingRevenueStatus
    received_at: datetime | None = None
    account_id: UUID | None = None
    account_type: AccountType | None = None

    @classmethod
    def from_row(cls, row: PendingRevenue) -> PendingRevenueInfo:
        return cls(
            pending_revenue_id=row.id,
            mission_id=row.mission_id,
            company_id=row.company_id,
            client_name=row.client_name,
            description=row.description,
            total_amount=row.total_amount,
            company_amount=row.company_amount,
            provider_amount=row.provider_amount,
            due_date=row.due_date,
            # Unknown statuses fall back to cancelled so they are never confirmed.
            status=coerce_enum(
                PendingRevenueStatus, row.status, PendingRevenueStatus.CANCELLED,
                entity="pending_revenue", field="status", entity_id=row.id,
            ),
            received_at=row.received_at,
            account_id=row.account_id,
            account_type=(
                coerce_enum(
                    AccountType, row.account_type, AccountType.BANK_ACCOUNT,
                    entity="pending_revenue", field="account_type", entity_id=row.id,
                )
                if row.account_type
                else None
            ),
        )


@dataclass(frozen=True)
class ConfirmedRevenueInfo:
    confirmed_revenue_id: UUID
    pending_revenue_id: UUID
    mission_id: UUID
    company_id: UUID | None
    total_amount: Decimal
    company_amount: Decimal
    provider_amount: Decimal
    received_date: date
    payment_method: PaymentMethod
    account_id: UUID
    account_type: AccountType
    transaction_id: UUID | None

    @classmethod
    def from_row(cls, row: ConfirmedRevenue) -> ConfirmedRevenueInfo:
        return cls(
            confirmed_revenue_id=row.id,
            pending_revenue_id=row.pending_revenue_id,
            mission_id=row.mission_id,
            company_id=row.company_id,
            total_amount=row.total_amount,
            company_amount=row.company_amount,
            provider_amount=row.provider_amount,
            received_date=row.received_date,
            payment_method=coerce_enum(
                PaymentMethod, row.payment_method, PaymentMethod.TRANSFER,
                entity="confirmed_revenue", field="payment_method", entity_id=row.id,
            ),
            account_id=row.account_id,
            account_type=coerce_enum(
                AccountType, row.account_type, AccountType.BANK_ACCOUNT,
                entity="confirmed_revenue", field="account_type", entity_id=row.id,
            ),
            transaction_id=row.transaction_id,
        )
