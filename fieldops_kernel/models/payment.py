"""
Module: fieldops_kernel.models.payment
Responsibility: ORM persistence for amounts owed to providers and their
    settlement progress.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - 0 <= paid_amount <= amount.
    - status completed implies paid_amount == amount; status partial implies
      0 < paid_amount < amount.
    - Payments generated from a confirmed revenue reference it through
      confirmed_revenue_id; their amounts sum to its provider_amount.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class PaymentStatus(str, Enum):
    """Payment settlement status."""

    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentType(str, Enum):
    """Why the payment exists."""

    FULL = "full"
    INSTALLMENT = "installment"
    ADVANCE = "advance"
    BALANCE_PAYMENT = "balance_payment"
    ADVANCE_PAYMENT = "advance_payment"


# Statuses that still owe money to the provider
OUTSTANDING_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value)


class Payment(TrackedBase):
    """An amount owed to (and eventually paid to) one provider."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payment_provider_status", "provider_id", "status"),
        Index("idx_payment_company", "company_id"),
    )

    provider_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("service_providers.id"),
        nullable=False,
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    confirmed_revenue_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("confirmed_revenues.id"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    paid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
    )

    type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=PaymentType.FULL.value,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    due_date: Mapped[date | None] = mapped_column(nullable=True)

    payment_date: Mapped[date | None] = mapped_column(nullable=True)

    @property
    def outstanding(self) -> Decimal:
        return self.amount - (self.paid_amount or Decimal("0"))

    def __repr__(self) -> str:
        return f"<Payment {self.amount} {self.status} provider={self.provider_id}>"
