"""
Module: fieldops_kernel.models.expense
Responsibility: ORM persistence for employee expenses, including the optional
    accommodation detail (outsourced lodging that is reimbursed at a
    different amount than it cost).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - employee_id/employee_name are the recording caller's identity.
    - When accommodation detail is present,
      accommodation_net_amount == reimbursement_amount - actual_cost.
"""

import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldops_kernel.db.base import TrackedBase, UUIDString


class ExpenseCategory(str, Enum):
    """Expense categories."""

    FUEL = "fuel"
    ACCOMMODATION = "accommodation"
    MEALS = "meals"
    TRANSPORTATION = "transportation"
    MATERIALS = "materials"
    OTHER = "other"


class ExpenseStatus(str, Enum):
    """Expense approval lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REIMBURSED = "reimbursed"
    REJECTED = "rejected"


class Expense(TrackedBase):
    """An expense incurred by an employee, optionally for a mission."""

    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_company", "company_id"),
        Index("idx_expense_mission", "mission_id"),
        Index("idx_expense_employee", "employee_id"),
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    mission_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("missions.id"),
        nullable=True,
    )

    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("profiles.id"),
        nullable=False,
    )

    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[str] = mapped_column(String(30), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    date: Mapped[datetime.date] = mapped_column(nullable=False)

    is_advanced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ExpenseStatus.PENDING.value,
    )

    # Accommodation detail (all null unless category is accommodation)
    accommodation_actual_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    accommodation_reimbursement_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    accommodation_net_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    accommodation_outsourcing_company: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    accommodation_invoice_number: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Expense {self.category} {self.amount} {self.status}>"
