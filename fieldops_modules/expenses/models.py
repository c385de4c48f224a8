"""Expense DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.expense import Expense, ExpenseCategory, ExpenseStatus


@dataclass(frozen=True)
class AccommodationDetail:
    """Outsourced lodging reimbursed at a different amount than it cost."""

    actual_cost: Decimal
    reimbursement_amount: Decimal
    net_amount: Decimal
    outsourcing_company: str | None = None
    invoice_number: str | None = None


@dataclass(frozen=True)
class ExpenseInfo:
    expense_id: UUID
    company_id: UUID | None
    mission_id: UUID | None
    employee_id: UUID
    employee_name: str
    category: ExpenseCategory
    description: str | None
    amount: Decimal
    date: date
    is_advanced: bool
    status: ExpenseStatus
    accommodation: AccommodationDetail | None

    @classmethod
    def from_row(cls, row: Expense) -> ExpenseInfo:
        accommodation = None
        if row.accommodation_actual_cost is not None:
            accommodation = AccommodationDetail(
                actual_cost=row.accommodation_actual_cost,
                reimbursement_amount=row.accommodation_reimbursement_amount,
                net_amount=row.accommodation_net_amount,
                outsourcing_company=row.accommodation_outsourcing_company,
                invoice_number=row.accommodation_invoice_number,
            )
        return cls(
            expense_id=row.id,
            company_id=row.company_id,
            mission_id=row.mission_id,
            employee_id=row.employee_id,
            employee_name=row.employee_name,
            category=coerce_enum(
                ExpenseCategory, row.category, ExpenseCategory.OTHER,
                entity="expense", field="category", entity_id=row.id,
            ),
            description=row.description,
            amount=row.amount,
            date=row.date,
            is_advanced=bool(row.is_advanced),
            status=coerce_enum(
                ExpenseStatus, row.status, ExpenseStatus.PENDING,
                entity="expense", field="status", entity_id=row.id,
            ),
            accommodation=accommodation,
        )
