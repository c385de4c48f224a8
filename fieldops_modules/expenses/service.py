"""
Expense Service (``fieldops_modules.expenses.service``).

Responsibility
--------------
Records employee expenses, moves them through approval and reimbursement,
and reports expense totals per mission and per employee.

Architecture position
---------------------
**Modules layer** -- sole public entry point for expenses.  Totals are
computed by ``fieldops_engines.aggregates.totals_by``.

Invariants enforced
-------------------
* employee_id and employee_name are always the caller's own profile; any
  values supplied in the payload are ignored.
* An expense's mission, when given, belongs to the caller's company.
* accommodation net amount == reimbursement amount - actual cost.
* pending -> approved -> reimbursed, pending -> rejected; admin only.

Failure modes
-------------
* ``ValidationError`` -- bad amount, category, date or accommodation detail.
* ``ForbiddenError`` -- caller without company; non-admin approvals.
* ``NotFoundError`` -- unknown or foreign mission / expense.
* ``ConflictError`` -- transition not allowed from the current status.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_engines.aggregates import totals_by
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.domain.values import Money
from fieldops_kernel.exceptions import ValidationError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.expense import Expense, ExpenseCategory, ExpenseStatus
from fieldops_kernel.models.mission import Mission
from fieldops_modules._service_helpers import (
    apply_transition,
    get_owned,
    parse_amount,
    parse_enum,
    parse_uuid,
    run_in_transaction,
)
from fieldops_modules.expenses.models import AccommodationDetail, ExpenseInfo
from fieldops_modules.expenses.workflows import EXPENSE_WORKFLOW
from fieldops_modules.isolation.guard import ensure_company_data
from fieldops_modules.isolation.session import UserSession

logger = get_logger("modules.expenses.service")

# Statuses that count toward expense totals.
_COUNTED = (ExpenseStatus.PENDING.value, ExpenseStatus.APPROVED.value, ExpenseStatus.REIMBURSED.value)


def parse_accommodation(raw: Mapping[str, Any] | None) -> AccommodationDetail | None:
    """Validate accommodation detail and derive its net amount."""
    if raw is None:
        return None
    actual = parse_amount(raw.get("actual_cost"), "accommodation.actual_cost", allow_zero=True)
    reimbursement = parse_amount(
        raw.get("reimbursement_amount"), "accommodation.reimbursement_amount", allow_zero=True
    )
    net = reimbursement - actual
    supplied = raw.get("net_amount")
    if supplied is not None:
        if isinstance(supplied, (float, bool)):
            raise ValidationError("accommodation.net_amount", "expected a decimal amount")
        if Decimal(str(supplied)) != net:
            raise ValidationError(
                "accommodation.net_amount",
                f"must equal reimbursement - actual cost ({net})",
            )
    return AccommodationDetail(
        actual_cost=actual,
        reimbursement_amount=reimbursement,
        net_amount=net,
        outsourcing_company=raw.get("outsourcing_company"),
        invoice_number=raw.get("invoice_number"),
    )


class ExpenseService:
    """Orchestrates employee expenses for the caller's company."""

    def __init__(
        self,
        session: Session,
        user_session: UserSession,
        *,
        clock: Clock | None = None,
        config: AppConfig | None = None,
    ):
        self._session = session
        self._user = user_session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    def record_expense(self, data: Mapping[str, Any]) -> OperationResult[ExpenseInfo]:
        """
        Record an expense incurred by the caller.

        ``data`` keys: category, amount, date (defaults to today),
        description, mission_id, is_advanced and ``accommodation`` (a
        mapping with actual_cost, reimbursement_amount, optional net_amount,
        outsourcing_company, invoice_number).
        """

        def _record() -> ExpenseInfo:
            company_id = self._user.require_company_id(fresh=True)
            payload = ensure_company_data(data, company_id)
            profile = self._user.profile()

            category = parse_enum(ExpenseCategory, payload.get("category"), "category")
            amount = parse_amount(payload.get("amount"), "amount")
            spent_on = payload.get("date") or self._clock.today()
            if not isinstance(spent_on, date):
                raise ValidationError("date", "expected a date")

            mission_id = None
            if payload.get("mission_id") is not None:
                mission = get_owned(
                    self._session,
                    Mission,
                    parse_uuid(payload["mission_id"], "mission_id"),
                    company_id,
                    "mission",
                )
                mission_id = mission.id

            accommodation = parse_accommodation(payload.get("accommodation"))
            if accommodation is not None and category != ExpenseCategory.ACCOMMODATION:
                raise ValidationError("accommodation", "only accommodation expenses carry lodging detail")

            expense = Expense(
                company_id=company_id,
                mission_id=mission_id,
                employee_id=profile.profile_id,
                employee_name=profile.name,
                category=category.value,
                description=payload.get("description"),
                amount=amount,
                date=spent_on,
                is_advanced=bool(payload.get("is_advanced", False)),
                status=ExpenseStatus.PENDING.value,
            )
            if accommodation is not None:
                expense.accommodation_actual_cost = accommodation.actual_cost
                expense.accommodation_reimbursement_amount = accommodation.reimbursement_amount
                expense.accommodation_net_amount = accommodation.net_amount
                expense.accommodation_outsourcing_company = accommodation.outsourcing_company
                expense.accommodation_invoice_number = accommodation.invoice_number
            self._session.add(expense)
            self._session.flush()
            logger.info(
                "expense_recorded",
                extra={
                    "expense_id": str(expense.id),
                    "category": category.value,
                    "amount": str(amount),
                    "mission_id": str(mission_id) if mission_id else None,
                },
            )
            return ExpenseInfo.from_row(expense)

        return run_in_transaction(self._session, "record_expense", _record, locale=self._config.locale)

    def _transition(self, operation: str, expense_id: UUID | str, action: str) -> OperationResult[ExpenseInfo]:
        def _apply() -> ExpenseInfo:
            company_id = self._user.require_company_id(fresh=True)
            expense = get_owned(
                self._session,
                Expense,
                parse_uuid(expense_id, "expense_id"),
                company_id,
                "expense",
                for_update=True,
            )
            expense.status = apply_transition(
                EXPENSE_WORKFLOW,
                "expense",
                expense.id,
                expense.status,
                action,
                is_admin=self._user.is_admin,
            )
            self._session.flush()
            logger.info("expense_transitioned", extra={"expense_id": str(expense.id), "status": expense.status})
            return ExpenseInfo.from_row(expense)

        return run_in_transaction(
            self._session, operation, _apply, locale=self._config.locale, entity_id=expense_id
        )

    def approve_expense(self, expense_id: UUID | str) -> OperationResult[ExpenseInfo]:
        return self._transition("approve_expense", expense_id, "approve")

    def reject_expense(self, expense_id: UUID | str) -> OperationResult[ExpenseInfo]:
        return self._transition("reject_expense", expense_id, "reject")

    def reimburse_expense(self, expense_id: UUID | str) -> OperationResult[ExpenseInfo]:
        return self._transition("reimburse_expense", expense_id, "reimburse")

    def _query(self, company_id: UUID):
        return select(Expense).where(Expense.company_id == company_id)

    def list_expenses(
        self,
        mission_id: UUID | str | None = None,
        employee_id: UUID | str | None = None,
    ) -> OperationResult[list[ExpenseInfo]]:
        """Company expenses, most recent first."""

        def _list() -> list[ExpenseInfo]:
            query = self._query(self._user.require_company_id())
            if mission_id is not None:
                query = query.where(Expense.mission_id == parse_uuid(mission_id, "mission_id"))
            if employee_id is not None:
                query = query.where(Expense.employee_id == parse_uuid(employee_id, "employee_id"))
            rows = self._session.execute(
                query.order_by(Expense.date.desc(), Expense.created_at.desc())
            ).scalars()
            return [ExpenseInfo.from_row(r) for r in rows]

        return run_operation("list_expenses", _list, locale=self._config.locale)

    def _totals(self, operation: str, key) -> OperationResult[dict[Any, Money]]:
        def _compute() -> dict[Any, Money]:
            query = self._query(self._user.require_company_id()).where(Expense.status.in_(_COUNTED))
            rows = self._session.execute(query).scalars().all()
            return totals_by(rows, key, lambda e: e.amount, self._config.currency)

        return run_operation(operation, _compute, locale=self._config.locale)

    def totals_by_mission(self) -> OperationResult[dict[UUID | None, Money]]:
        """Non-rejected expense totals keyed by mission id (None for unassigned)."""
        return self._totals("totals_by_mission", lambda e: e.mission_id)

    def totals_by_employee(self) -> OperationResult[dict[UUID, Money]]:
        """Non-rejected expense totals keyed by employee profile id."""
        return self._totals("totals_by_employee", lambda e: e.employee_id)
