"""Access code DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.access_code import AccessCode, AccessCodeType


@dataclass(frozen=True)
class AccessCodeInfo:
    code_id: UUID
    code: str
    code_type: AccessCodeType
    employee_name: str
    employee_email: str
    company_id: UUID
    provider_id: UUID | None
    is_used: bool
    expires_at: datetime
    used_at: datetime | None = None
    used_by_id: UUID | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: AccessCode) -> AccessCodeInfo:
        return cls(
            code_id=row.id,
            code=row.code,
            code_type=coerce_enum(
                AccessCodeType, row.code_type, AccessCodeType.EMPLOYEE,
                entity="access_code", field="code_type", entity_id=row.id,
            ),
            employee_name=row.employee_name,
            employee_email=row.employee_email,
            company_id=row.company_id,
            provider_id=row.provider_id,
            is_used=bool(row.is_used),
            expires_at=row.expires_at,
            used_at=row.used_at,
            used_by_id=row.used_by_id,
            created_at=row.created_at,
        )


@dataclass(frozen=True)
class Redemption:
    """Outcome of a successful code redemption."""

    company_id: UUID
    company_name: str | None
    employee_name: str
    code: str
    code_type: AccessCodeType
    provider_id: UUID | None = None
