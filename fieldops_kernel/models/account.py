"""
Module: fieldops_kernel.models.account
Responsibility: ORM persistence for settlement accounts (bank accounts and
    credit cards) that receive confirmed revenue, plus the money-movement
    enums shared by revenues and transactions.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Bank accounts carry ``balance``; credit cards carry ``credit_limit`` and
      ``available_limit`` with 0 <= available_limit <= credit_limit.
    - After creation, balances and available limits change only inside
      trusted procedures.  A limit change keeps the used amount.
    - Inactive accounts receive nothing and are left out of totals.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class AccountType(str, Enum):
    """Kind of settlement account."""

    BANK_ACCOUNT = "bank_account"
    CREDIT_CARD = "credit_card"


class PaymentMethod(str, Enum):
    """How money moved."""

    PIX = "pix"
    TRANSFER = "transfer"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    CASH = "cash"


class SettlementAccount(TrackedBase):
    """A bank account or credit card owned by a company."""

    __tablename__ = "settlement_accounts"

    __table_args__ = (
        Index("idx_settlement_account_company", "company_id"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    bank: Mapped[str | None] = mapped_column(String(255), nullable=True)

    account_type: Mapped[str] = mapped_column(String(20), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    balance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    credit_limit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    available_limit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Day of month, cards only.
    closing_day: Mapped[int | None] = mapped_column(nullable=True)

    due_day: Mapped[int | None] = mapped_column(nullable=True)

    @property
    def used_limit(self) -> Decimal:
        return self.credit_limit - self.available_limit

    def __repr__(self) -> str:
        return f"<SettlementAccount {self.name} ({self.account_type})>"
