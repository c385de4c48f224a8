"""Transaction DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.account import PaymentMethod
from fieldops_kernel.models.transaction import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)


@dataclass(frozen=True)
class TransactionInfo:
    transaction_id: UUID
    company_id: UUID | None
    type: TransactionType
    category: TransactionCategory
    amount: Decimal
    description: str | None
    date: date
    method: PaymentMethod
    status: TransactionStatus
    user_id: UUID | None
    user_name: str | None
    mission_id: UUID | None
    account_id: UUID | None

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it moves the company's cash: negative for expenses."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount

    @classmethod
    def from_row(cls, row: Transaction) -> TransactionInfo:
        return cls(
            transaction_id=row.id,
            company_id=row.company_id,
            type=coerce_enum(
                TransactionType, row.type, TransactionType.EXPENSE,
                entity="transaction", field="type", entity_id=row.id,
            ),
            category=coerce_enum(
                TransactionCategory, row.category, TransactionCategory.OTHER,
                entity="transaction", field="category", entity_id=row.id,
            ),
            amount=row.amount,
            description=row.description,
            date=row.date,
            method=coerce_enum(
                PaymentMethod, row.method, PaymentMethod.TRANSFER,
                entity="transaction", field="method", entity_id=row.id,
            ),
            status=coerce_enum(
                TransactionStatus, row.status, TransactionStatus.PENDING,
                entity="transaction", field="status", entity_id=row.id,
            ),
            user_id=row.user_id,
            user_name=row.user_name,
            mission_id=row.mission_id,
            account_id=row.account_id,
        )
