"""
Module: fieldops_kernel.models.company
Responsibility: ORM persistence for tenants.  Every tenant-scoped row in the
    system carries a company_id that references this table.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase


class Company(TrackedBase):
    """A tenant: the unit of data isolation."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Company {self.name}>"
