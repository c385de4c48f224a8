"""
Module: fieldops_kernel.models.transaction
Responsibility: ORM persistence for the company cash-flow ledger (income and
    expense transactions).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: amount, type, category and date never change after insert.
      Only status moves, pending -> completed or pending -> cancelled.
    - Income and expense are exclusive types; aggregates partition on type.
"""

import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class TransactionType(str, Enum):
    """Direction of the cash flow."""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, Enum):
    """Transaction categories."""

    SERVICE_PAYMENT = "service_payment"
    CLIENT_PAYMENT = "client_payment"
    FUEL = "fuel"
    ACCOMMODATION = "accommodation"
    MEALS = "meals"
    MATERIALS = "materials"
    MAINTENANCE = "maintenance"
    OFFICE_EXPENSE = "office_expense"
    OTHER = "other"


class TransactionStatus(str, Enum):
    """Transaction lifecycle."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transaction(TrackedBase):
    """A single income or expense movement of a company."""

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transaction_company_date", "company_id", "date"),
        Index("idx_transaction_type_status", "type", "status"),
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)

    category: Mapped[str] = mapped_column(String(30), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    date: Mapped[datetime.date] = mapped_column(nullable=False)

    method: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value,
    )

    user_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("profiles.id"),
        nullable=True,
    )

    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    mission_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("missions.id"),
        nullable=True,
    )

    account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("settlement_accounts.id"),
        nullable=True,
    )

    account_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction {self.type} {self.amount} {self.status}>"
