"""
Isolation DTOs.

Frozen views of the caller's profile and company as held in the profile
cache, plus the result of a tenant isolation audit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.company import Company
from fieldops_kernel.models.profile import Profile, ProfileRole, UserType


class AccessLevel(str, Enum):
    """What a profile may do inside its company."""

    OWNER = "owner"
    EMPLOYEE = "employee"
    PROVIDER = "provider"
    NONE = "none"


@dataclass(frozen=True)
class ProfileInfo:
    profile_id: UUID
    email: str
    name: str
    role: ProfileRole
    user_type: UserType
    company_id: UUID | None
    provider_id: UUID | None
    is_active: bool

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN

    @classmethod
    def from_row(cls, row: Profile) -> ProfileInfo:
        return cls(
            profile_id=row.id,
            email=row.email,
            name=row.name,
            role=coerce_enum(
                ProfileRole, row.role, ProfileRole.USER,
                entity="profile", field="role", entity_id=row.id,
            ),
            user_type=coerce_enum(
                UserType, row.user_type, UserType.USER,
                entity="profile", field="user_type", entity_id=row.id,
            ),
            company_id=row.company_id,
            provider_id=row.provider_id,
            is_active=bool(row.is_active),
        )


@dataclass(frozen=True)
class CompanyInfo:
    company_id: UUID
    name: str

    @classmethod
    def from_row(cls, row: Company) -> CompanyInfo:
        return cls(company_id=row.id, name=row.name)


@dataclass(frozen=True)
class TableAudit:
    """Record counts of one tenant-scoped table, seen from one company."""

    table: str
    total: int
    company: int
    orphan: int
    foreign: int


@dataclass(frozen=True)
class IsolationAudit:
    """
    Outcome of ``audit_isolation``.

    ``foreign`` counts are rows of other companies that a company-scoped
    read returned; any of them means isolation is broken.
    """

    company_id: UUID
    tables: tuple[TableAudit, ...] = field(default_factory=tuple)

    @property
    def is_isolated(self) -> bool:
        return all(t.foreign == 0 for t in self.tables)

    @property
    def violations(self) -> dict[str, int]:
        return {t.table: t.foreign for t in self.tables if t.foreign}

    def for_table(self, table: str) -> TableAudit | None:
        for t in self.tables:
            if t.table == table:
                return t
        return None


@dataclass(frozen=True)
class OrphanRepair:
    """Rows without a company that ``repair_orphans`` stamped, per table."""

    company_id: UUID
    adopted: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.adopted.values())
