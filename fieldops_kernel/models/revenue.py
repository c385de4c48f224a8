"""
Module: fieldops_kernel.models.revenue
Responsibility: ORM persistence for the two-stage revenue lifecycle: a
    PendingRevenue expected from a mission and the ConfirmedRevenue recorded
    once the money is received.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - company_amount + provider_amount == total_amount on both tables.
    - A pending revenue is confirmed at most once: ConfirmedRevenue
      .pending_revenue_id is unique (uq_confirmed_revenue_pending).
    - status moves pending -> received or pending -> cancelled only.

Failure modes:
    - IntegrityError on a second ConfirmedRevenue for the same pending row.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class PendingRevenueStatus(str, Enum):
    """Pending revenue lifecycle."""

    PENDING = "pending"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PendingRevenue(TrackedBase):
    """Revenue expected from an approved mission."""

    __tablename__ = "pending_revenues"

    __table_args__ = (
        Index("idx_pending_revenue_company", "company_id"),
        Index("idx_pending_revenue_status", "status"),
    )

    mission_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("missions.id"),
        nullable=False,
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    company_amount: Mapped[Decimal] = mapped_column(nullable=False)

    provider_amount: Mapped[Decimal] = mapped_column(nullable=False)

    due_date: Mapped[date | None] = mapped_column(nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PendingRevenueStatus.PENDING.value,
    )

    received_at: Mapped[datetime | None] = mapped_column(nullable=True)

    account_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    account_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<PendingRevenue {self.total_amount} {self.status}>"


class ConfirmedRevenue(TrackedBase):
    """Revenue received into a settlement account."""

    __tablename__ = "confirmed_revenues"

    __table_args__ = (
        UniqueConstraint("pending_revenue_id", name="uq_confirmed_revenue_pending"),
        Index("idx_confirmed_revenue_company", "company_id"),
    )

    mission_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("missions.id"),
        nullable=False,
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    pending_revenue_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("pending_revenues.id"),
        nullable=False,
    )

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    company_amount: Mapped[Decimal] = mapped_column(nullable=False)

    provider_amount: Mapped[Decimal] = mapped_column(nullable=False)

    received_date: Mapped[date] = mapped_column(nullable=False)

    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("settlement_accounts.id"),
        nullable=False,
    )

    account_type: Mapped[str] = mapped_column(String(20), nullable=False)

    transaction_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("transactions.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ConfirmedRevenue {self.total_amount} from {self.pending_revenue_id}>"
