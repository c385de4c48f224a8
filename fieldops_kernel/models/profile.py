"""
Module: fieldops_kernel.models.profile
Responsibility: ORM persistence for user profiles.  A profile is the only
    record that may exist without a company: it is created at sign-up and
    joins a tenant when an access code is redeemed.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - email is unique and stored lowercase (uq_profile_email).
    - company_id is written only by the redeem_access_code procedure or by
      an administrator's onboarding path.

Failure modes:
    - IntegrityError on duplicate email.
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class ProfileRole(str, Enum):
    """Authorization role inside a company."""

    ADMIN = "admin"
    USER = "user"


class UserType(str, Enum):
    """Kind of account: company staff or an external service provider."""

    ADMIN = "admin"
    USER = "user"
    PROVIDER = "provider"


class Profile(TrackedBase):
    """
    An authenticated user's profile.

    Contract:
        ``company_id`` is None until onboarding.  ``provider_id`` is set only
        for provider accounts (user_type == provider).
    """

    __tablename__ = "profiles"

    __table_args__ = (
        UniqueConstraint("email", name="uq_profile_email"),
        Index("idx_profile_company", "company_id"),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProfileRole.USER.value,
    )

    user_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserType.USER.value,
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    provider_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("service_providers.id"),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN.value

    def __repr__(self) -> str:
        return f"<Profile {self.email} ({self.role})>"
