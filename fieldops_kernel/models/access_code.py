"""
Module: fieldops_kernel.models.access_code
Responsibility: ORM persistence for one-time onboarding codes that bind an
    employee or provider email to a company.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - code is unique across the whole system (uq_access_code).  The
      constraint is the authority for uniqueness; issuance retries on
      collision rather than checking first.
    - code is stored uppercase; employee_email is stored lowercase.
    - is_used flips false -> true exactly once, inside the redemption
      procedure, together with used_at and used_by_id.

Failure modes:
    - IntegrityError on duplicate code.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class AccessCodeType(str, Enum):
    """Whom the code onboards."""

    EMPLOYEE = "employee"
    PROVIDER = "provider"


class AccessCode(TrackedBase):
    """A single-use code that lets one email join one company."""

    __tablename__ = "access_codes"

    __table_args__ = (
        UniqueConstraint("code", name="uq_access_code"),
        Index("idx_access_code_company", "company_id"),
    )

    code: Mapped[str] = mapped_column(String(32), nullable=False)

    code_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AccessCodeType.EMPLOYEE.value,
    )

    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)

    employee_email: Mapped[str] = mapped_column(String(255), nullable=False)

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    provider_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("service_providers.id"),
        nullable=True,
    )

    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    expires_at: Mapped[datetime] = mapped_column(nullable=False)

    used_at: Mapped[datetime | None] = mapped_column(nullable=True)

    used_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("profiles.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<AccessCode {self.code} used={self.is_used}>"
