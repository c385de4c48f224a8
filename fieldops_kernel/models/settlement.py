"""
Module: fieldops_kernel.models.settlement
Responsibility: ORM persistence for manual provider settlements.  One row per
    applied settlement request; its request_id makes retries idempotent.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (company_id, request_id) is unique (uq_provider_settlement_request).
      A second request of the same company with the same id returns this
      row's outcome instead of settling again; other companies may reuse
      the id.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class ProviderSettlement(TrackedBase):
    """Record of one manual settlement applied to a provider's payments."""

    __tablename__ = "provider_settlements"

    __table_args__ = (
        UniqueConstraint("company_id", "request_id", name="uq_provider_settlement_request"),
        Index("idx_provider_settlement_provider", "provider_id"),
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    provider_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("service_providers.id"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    payment_date: Mapped[date] = mapped_column(nullable=False)

    settled_count: Mapped[int] = mapped_column(nullable=False, default=0)

    request_id: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<ProviderSettlement {self.amount} settled={self.settled_count}>"
