"""
Module: fieldops_kernel.models.provider
Responsibility: ORM persistence for external service providers (technicians
    and contractors) who are paid a share of mission revenue.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - current_balance is a denormalized cache.  It is written only by the
      recalculate_provider_balance procedure and is never the source of
      truth for a balance; the balance engine derives balances from
      missions and payments.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class ServiceProvider(TrackedBase):
    """An external provider working for one company."""

    __tablename__ = "service_providers"

    __table_args__ = (
        Index("idx_provider_company", "company_id"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    service: Mapped[str | None] = mapped_column(String(255), nullable=True)

    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    current_balance: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    def __repr__(self) -> str:
        return f"<ServiceProvider {self.name}>"
