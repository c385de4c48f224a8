"""
Revenue Ledger Service (``fieldops_modules.revenue.service``).

Responsibility
--------------
Tracks revenue from a mission's approval to its receipt: creates pending
revenues from a mission's split, confirms them through the
``convert_pending_to_confirmed_revenue`` trusted procedure, cancels them,
and checks that confirmed revenue and the provider payments it generated
reconcile.

Architecture position
---------------------
**Modules layer** -- ``RevenueService`` is the sole public entry point for
the revenue ledger.  The confirm write is delegated to
``fieldops_services``; this service validates inputs first so malformed
requests never reach the procedure.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* pending --confirm--> received and pending --cancel--> cancelled only;
  both targets are terminal.
* company_amount + provider_amount == total_amount on every pending
  revenue; the sum of a confirmed revenue's payments equals its
  provider_amount.
* At most one open (pending) revenue per mission.

Failure modes
-------------
* ``ValidationError`` -- malformed ids, unknown account type or method.
* ``NotFoundError`` -- absent or foreign pending revenue / account.
* ``ConflictError`` -- not pending, or a duplicate submission in flight.

Usage::

    service = RevenueService(session, user_session, clock=clock)
    result = service.confirm(pending_id, account_id, "bank_account", "pix")
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.exceptions import ConflictError, ValidationError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.account import AccountType, PaymentMethod
from fieldops_kernel.models.mission import Mission
from fieldops_kernel.models.payment import Payment
from fieldops_kernel.models.revenue import (
    ConfirmedRevenue,
    PendingRevenue,
    PendingRevenueStatus,
)
from fieldops_modules._service_helpers import (
    apply_transition,
    get_owned,
    parse_enum,
    parse_uuid,
    raise_for_procedure,
    run_in_transaction,
)
from fieldops_modules.isolation.session import UserSession
from fieldops_modules.revenue.models import ConfirmedRevenueInfo, PendingRevenueInfo
from fieldops_modules.revenue.workflows import PENDING_REVENUE_WORKFLOW
from fieldops_services import ProcedureDispatcher, build_dispatcher

logger = get_logger("modules.revenue.service")


def build_pending_revenue(
    session: Session,
    mission: Mission,
    company_id: UUID,
    due_date: date,
    description: str | None = None,
) -> PendingRevenue:
    """
    Add a pending revenue carrying ``mission``'s split to the session.

    Raises ConflictError when the mission already has an open pending
    revenue.
    """
    open_count = session.execute(
        select(func.count())
        .select_from(PendingRevenue)
        .where(PendingRevenue.mission_id == mission.id)
        .where(PendingRevenue.status == PendingRevenueStatus.PENDING.value)
    ).scalar_one()
    if open_count:
        raise ConflictError("mission", str(mission.id), "already has a pending revenue")
    if mission.company_value + mission.provider_value != mission.service_value:
        raise ValidationError("mission", "company and provider values do not add up")

    pending = PendingRevenue(
        mission_id=mission.id,
        company_id=mission.company_id or company_id,
        client_name=mission.client_name,
        description=description or mission.title,
        total_amount=mission.service_value,
        company_amount=mission.company_value,
        provider_amount=mission.provider_value,
        due_date=due_date,
        status=PendingRevenueStatus.PENDING.value,
    )
    session.add(pending)
    session.flush()
    logger.info(
        "pending_revenue_created",
        extra={
            "pending_revenue_id": str(pending.id),
            "mission_id": str(mission.id),
            "total_amount": str(pending.total_amount),
        },
    )
    return pending


class RevenueService:
    """
    Orchestrates the pending -> confirmed revenue ledger.

    Contract:
        Every public method returns an ``OperationResult``.
    """

    def __init__(
        self,
        session: Session,
        user_session: UserSession,
        *,
        clock: Clock | None = None,
        config: AppConfig | None = None,
        dispatcher: ProcedureDispatcher | None = None,
    ):
        self._session = session
        self._user = user_session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._dispatcher = dispatcher or build_dispatcher(
            session,
            user_session.user_id,
            clock=self._clock,
            currency=self._config.currency,
            locale=self._config.locale,
        )

    # =========================================================================
    # Pending revenue
    # =========================================================================

    def create_pending(
        self,
        mission_id: UUID | str,
        due_date: date | None = None,
        description: str | None = None,
    ) -> OperationResult[PendingRevenueInfo]:
        """Open a pending revenue for a mission, copying its split."""

        def _create() -> PendingRevenueInfo:
            company_id = self._user.require_company_id(fresh=True)
            mission = get_owned(
                self._session,
                Mission,
                parse_uuid(mission_id, "mission_id"),
                company_id,
                "mission",
            )
            due = due_date or self._clock.today() + timedelta(days=self._config.revenue.due_days)
            pending = build_pending_revenue(self._session, mission, company_id, due, description)
            return PendingRevenueInfo.from_row(pending)

        return run_in_transaction(
            self._session,
            "create_pending_revenue",
            _create,
            locale=self._config.locale,
            entity_id=mission_id,
        )

    def confirm(
        self,
        pending_revenue_id: UUID | str,
        account_id: UUID | str,
        account_type: str,
        payment_method: str,
    ) -> OperationResult[ConfirmedRevenueInfo]:
        """
        Record receipt of a pending revenue.

        Inputs and the pending -> received transition are checked here, then
        the trusted procedure re-checks under lock and performs all writes
        atomically.
        """

        def _confirm() -> ConfirmedRevenueInfo:
            pending_id = parse_uuid(pending_revenue_id, "pending_revenue_id")
            account_uuid = parse_uuid(account_id, "account_id")
            kind = parse_enum(AccountType, account_type, "account_type")
            method = parse_enum(PaymentMethod, payment_method, "payment_method")
            company_id = self._user.require_company_id(fresh=True)
            pending = get_owned(
                self._session, PendingRevenue, pending_id, company_id, "pending_revenue"
            )
            apply_transition(
                PENDING_REVENUE_WORKFLOW,
                "pending_revenue",
                pending.id,
                pending.status,
                "confirm",
                is_admin=self._user.is_admin,
            )

            with self._user.in_flight(f"confirm_revenue:{pending_id}"):
                result = raise_for_procedure(
                    self._dispatcher.call(
                        "convert_pending_to_confirmed_revenue",
                        pending_revenue_id=pending_id,
                        account_id=account_uuid,
                        account_type=kind.value,
                        payment_method=method.value,
                    ),
                    "convert_pending_to_confirmed_revenue",
                )
            confirmed = self._session.get(ConfirmedRevenue, UUID(result["confirmed_revenue_id"]))
            return ConfirmedRevenueInfo.from_row(confirmed)

        return run_in_transaction(
            self._session,
            "confirm_revenue",
            _confirm,
            locale=self._config.locale,
            entity_id=pending_revenue_id,
        )

    def cancel(self, pending_revenue_id: UUID | str) -> OperationResult[PendingRevenueInfo]:
        """pending -> cancelled."""

        def _cancel() -> PendingRevenueInfo:
            company_id = self._user.require_company_id(fresh=True)
            pending = get_owned(
                self._session,
                PendingRevenue,
                parse_uuid(pending_revenue_id, "pending_revenue_id"),
                company_id,
                "pending_revenue",
                for_update=True,
            )
            pending.status = apply_transition(
                PENDING_REVENUE_WORKFLOW,
                "pending_revenue",
                pending.id,
                pending.status,
                "cancel",
                is_admin=self._user.is_admin,
            )
            self._session.flush()
            logger.info("pending_revenue_cancelled", extra={"pending_revenue_id": str(pending.id)})
            return PendingRevenueInfo.from_row(pending)

        return run_in_transaction(
            self._session,
            "cancel_revenue",
            _cancel,
            locale=self._config.locale,
            entity_id=pending_revenue_id,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def list_pending(
        self, status: str | None = None
    ) -> OperationResult[list[PendingRevenueInfo]]:
        """Pending revenues of the company, earliest due date first."""

        def _list() -> list[PendingRevenueInfo]:
            company_id = self._user.require_company_id()
            query = select(PendingRevenue).where(PendingRevenue.company_id == company_id)
            if status is not None:
                wanted = parse_enum(PendingRevenueStatus, status, "status")
                query = query.where(PendingRevenue.status == wanted.value)
            rows = self._session.execute(
                query.order_by(PendingRevenue.due_date, PendingRevenue.id)
            ).scalars()
            return [PendingRevenueInfo.from_row(r) for r in rows]

        return run_operation("list_pending_revenue", _list, locale=self._config.locale)

    def list_confirmed(self) -> OperationResult[list[ConfirmedRevenueInfo]]:
        def _list() -> list[ConfirmedRevenueInfo]:
            company_id = self._user.require_company_id()
            rows = self._session.execute(
                select(ConfirmedRevenue)
                .where(ConfirmedRevenue.company_id == company_id)
                .order_by(ConfirmedRevenue.received_date.desc(), ConfirmedRevenue.id)
            ).scalars()
            return [ConfirmedRevenueInfo.from_row(r) for r in rows]

        return run_operation("list_confirmed_revenue", _list, locale=self._config.locale)

    def verify_conservation(self, confirmed_revenue_id: UUID | str) -> OperationResult[bool]:
        """True when the revenue's payments add up to its provider amount."""

        def _verify() -> bool:
            company_id = self._user.require_company_id()
            confirmed = get_owned(
                self._session,
                ConfirmedRevenue,
                parse_uuid(confirmed_revenue_id, "confirmed_revenue_id"),
                company_id,
                "confirmed_revenue",
            )
            paid_out = self._session.execute(
                select(func.coalesce(func.sum(Payment.amount), 0))
                .where(Payment.confirmed_revenue_id == confirmed.id)
            ).scalar_one()
            balanced = Decimal(str(paid_out)).quantize(Decimal("0.01")) == confirmed.provider_amount
            if not balanced:
                logger.error(
                    "revenue_conservation_violated",
                    extra={
                        "confirmed_revenue_id": str(confirmed.id),
                        "provider_amount": str(confirmed.provider_amount),
                        "payments_total": str(paid_out),
                    },
                )
            return balanced

        return run_operation(
            "verify_conservation",
            _verify,
            locale=self._config.locale,
            entity_id=confirmed_revenue_id,
        )
