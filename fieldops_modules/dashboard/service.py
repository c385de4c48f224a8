"""
Dashboard Service (``fieldops_modules.dashboard.service``).

Responsibility
--------------
The company financial snapshot for a month, and the tenant isolation audit
and orphan repair an owner runs from the same screen.

Architecture position
---------------------
**Modules layer**.  Reads through ``DashboardSelector``; all arithmetic is
in ``fieldops_engines.aggregates.summarize``.  Only ``repair_orphans``
writes, and it owns its transaction.

Invariants enforced
-------------------
* Only the caller's company rows are read.
* Income and expense are exclusive by transaction type; only completed
  transactions dated within the month count.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_engines.aggregates import (
    AccountInput,
    DashboardSummary,
    TransactionInput,
    month_bounds,
    summarize,
)
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.exceptions import ValidationError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.selectors.dashboard_selector import DashboardSelector
from fieldops_modules._service_helpers import run_in_transaction
from fieldops_modules.isolation.guard import audit_isolation, repair_orphans
from fieldops_modules.isolation.models import IsolationAudit, OrphanRepair
from fieldops_modules.isolation.session import UserSession

logger = get_logger("modules.dashboard.service")


class DashboardService:

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

    def summary(self, month: date | None = None) -> OperationResult[DashboardSummary]:
        """Snapshot for the month containing ``month`` (default: this month)."""

        def _summary() -> DashboardSummary:
            target = month or self._clock.today()
            if not isinstance(target, date):
                raise ValidationError("month", "expected a date")
            company_id = self._user.require_company_id()
            selector = DashboardSelector(self._session)
            start, end = month_bounds(target)

            result = summarize(
                target,
                [
                    TransactionInput(r.type, r.status, r.amount, r.date)
                    for r in selector.transactions_between(company_id, start, end)
                ],
                [
                    AccountInput(a.account_type, a.balance, a.credit_limit, a.available_limit)
                    for a in selector.accounts(company_id)
                ],
                selector.outstanding_payment_amounts(company_id),
                selector.pending_revenue_amounts(company_id),
                selector.approved_expense_amounts(company_id),
                self._config.currency,
            )
            logger.debug(
                "dashboard_summarized",
                extra={"month_start": start.isoformat(), "net_result": str(result.net_result.amount)},
            )
            return result

        return run_operation("dashboard_summary", _summary, locale=self._config.locale)

    def isolation_audit(self) -> OperationResult[IsolationAudit]:
        """Count own, orphan and foreign rows linked to the caller's company."""

        def _audit() -> IsolationAudit:
            company_id = self._user.require_admin()
            return audit_isolation(self._session, company_id)

        return run_operation("isolation_audit", _audit, locale=self._config.locale)

    def repair_orphans(self) -> OperationResult[OrphanRepair]:
        """Adopt orphan rows whose links prove they are the caller's company's."""

        def _repair() -> OrphanRepair:
            company_id = self._user.require_admin()
            return repair_orphans(self._session, company_id)

        return run_in_transaction(
            self._session, "repair_orphans", _repair, locale=self._config.locale
        )
