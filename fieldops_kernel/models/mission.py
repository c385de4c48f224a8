"""
Module: fieldops_kernel.models.mission
Responsibility: ORM persistence for missions (service dispatch jobs) and
    their company/provider revenue split.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - company_value + provider_value == service_value exactly.  The split is
      computed by the missions service and both halves are written together.
    - assigned_providers is an ordered list of provider ids.  Its stored order
      is the stable order the revenue split uses.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class MissionStatus(str, Enum):
    """Mission execution status."""

    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    NO_SHOW_CLIENT = "no-show-client"
    NO_SHOW_TECHNICIAN = "no-show-technician"
    PENDING = "pending"


class Mission(TrackedBase):
    """A service job performed for a client by one or more providers."""

    __tablename__ = "missions"

    __table_args__ = (
        Index("idx_mission_company", "company_id"),
        Index("idx_mission_provider", "provider_id"),
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    scheduled_date: Mapped[date | None] = mapped_column(nullable=True)

    provider_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("service_providers.id"),
        nullable=True,
    )

    # Provider ids as strings, in assignment order
    assigned_providers: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    service_value: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    company_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )

    company_value: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    provider_value: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=MissionStatus.PLANNING.value,
    )

    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    approved_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("profiles.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Mission {self.title} {self.status}>"
