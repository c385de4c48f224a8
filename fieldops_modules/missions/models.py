"""Mission DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fieldops_engines.revenue_split import ordered_providers
from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.mission import Mission, MissionStatus
from fieldops_modules.revenue.models import PendingRevenueInfo


@dataclass(frozen=True)
class MissionInfo:
    mission_id: UUID
    company_id: UUID | None
    title: str
    client_name: str | None
    location: str | None
    scheduled_date: date | None
    provider_id: UUID | None
    providers: tuple[UUID, ...]
    service_value: Decimal
    company_percentage: Decimal
    company_value: Decimal
    provider_value: Decimal
    status: MissionStatus
    is_approved: bool
    approved_at: datetime | None = None
    approved_by_id: UUID | None = None

    @classmethod
    def from_row(cls, row: Mission) -> MissionInfo:
        return cls(
            mission_id=row.id,
            company_id=row.company_id,
            title=row.title,
            client_name=row.client_name,
            location=row.location,
            scheduled_date=row.scheduled_date,
            provider_id=row.provider_id,
            providers=ordered_providers(row.assigned_providers, row.provider_id),
            service_value=row.service_value,
            company_percentage=row.company_percentage,
            company_value=row.company_value,
            provider_value=row.provider_value,
            status=coerce_enum(
                MissionStatus, row.status, MissionStatus.PENDING,
                entity="mission", field="status", entity_id=row.id,
            ),
            is_approved=bool(row.is_approved),
            approved_at=row.approved_at,
            approved_by_id=row.approved_by_id,
        )


@dataclass(frozen=True)
class SplitPreview:
    """How a service value would be distributed, before saving anything."""

    service_value: Decimal
    company_percentage: Decimal
    company_value: Decimal
    provider_value: Decimal
    shares: tuple[tuple[UUID, Decimal], ...] = ()


@dataclass(frozen=True)
class MissionApproval:
    mission: MissionInfo
    pending_revenue: PendingRevenueInfo
