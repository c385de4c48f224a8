"""
Provider Service (``fieldops_modules.providers.service``).

Responsibility
--------------
Provider registry, manual provider payments, derived provider balances and
manual settlement of outstanding payments.

Architecture position
---------------------
**Modules layer** -- ``ProviderService`` composes the pure balance engine
(through ``fieldops_services.provider_balance``), the provider selector,
and the ``recalculate_provider_balance`` /
``manually_settle_pending_payments`` trusted procedures.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* ``compute_balance`` never writes; the cached ``current_balance`` changes
  only through ``recalculate_balance``.
* Settlement never exceeds the outstanding total, and a request id is
  applied at most once.
* Payment status changes follow ``PAYMENT_WORKFLOW``.

Failure modes
-------------
* ``ValidationError`` -- bad amount, unknown status/type/method.
* ``NotFoundError`` -- unknown or foreign provider / payment.
* ``ForbiddenError`` -- non-admin writes.
* ``ConflictError`` -- invalid payment transition, reused request id.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_engines.balance import ProviderBalance
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.exceptions import ValidationError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.account import PaymentMethod
from fieldops_kernel.models.payment import Payment, PaymentStatus, PaymentType
from fieldops_kernel.models.provider import ServiceProvider
from fieldops_kernel.selectors.provider_selector import ProviderSelector
from fieldops_modules._service_helpers import (
    apply_transition,
    get_owned,
    parse_amount,
    parse_enum,
    parse_uuid,
    raise_for_procedure,
    require_text,
    run_in_transaction,
)
from fieldops_modules.isolation.session import UserSession
from fieldops_modules.providers.models import PaymentInfo, ProviderInfo, SettlementOutcome
from fieldops_modules.providers.workflows import CREATABLE_STATUSES, PAYMENT_WORKFLOW
from fieldops_services import ProcedureDispatcher, build_dispatcher, provider_balance

logger = get_logger("modules.providers.service")


class ProviderService:
    """
    Orchestrates providers, their payments and balances.

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

    def _admin_company(self) -> UUID:
        return self._user.require_admin()

    def _provider(self, company_id: UUID, provider_id: UUID | str) -> ServiceProvider:
        return get_owned(
            self._session,
            ServiceProvider,
            parse_uuid(provider_id, "provider_id"),
            company_id,
            "service_provider",
        )

    # =========================================================================
    # Registry
    # =========================================================================

    def create_provider(
        self,
        name: str,
        *,
        email: str | None = None,
        phone: str | None = None,
        service: str | None = None,
        payment_method: str | None = None,
    ) -> OperationResult[ProviderInfo]:
        def _create() -> ProviderInfo:
            company_id = self._admin_company()
            provider = ServiceProvider(
                company_id=company_id,
                name=require_text(name, "name"),
                email=email.strip().lower() if email else None,
                phone=phone,
                service=service,
                payment_method=(
                    parse_enum(PaymentMethod, payment_method, "payment_method").value
                    if payment_method
                    else None
                ),
                is_active=True,
                current_balance=Decimal("0"),
                created_by_id=self._user.user_id,
            )
            self._session.add(provider)
            self._session.flush()
            logger.info("provider_created", extra={"provider_id": str(provider.id)})
            return ProviderInfo.from_row(provider)

        return run_in_transaction(self._session, "create_provider", _create, locale=self._config.locale)

    def list_providers(self, active_only: bool = True) -> OperationResult[list[ProviderInfo]]:
        def _list() -> list[ProviderInfo]:
            company_id = self._user.require_company_id()
            query = select(ServiceProvider).where(ServiceProvider.company_id == company_id)
            if active_only:
                query = query.where(ServiceProvider.is_active.is_(True))
            rows = self._session.execute(
                query.order_by(ServiceProvider.name, ServiceProvider.id)
            ).scalars()
            return [ProviderInfo.from_row(r) for r in rows]

        return run_operation("list_providers", _list, locale=self._config.locale)

    # =========================================================================
    # Balances
    # =========================================================================

    def compute_balance(self, provider_id: UUID | str) -> OperationResult[ProviderBalance]:
        """Derive the provider's balance from missions and payments.  No writes."""

        def _compute() -> ProviderBalance:
            company_id = self._user.require_company_id()
            provider = self._provider(company_id, provider_id)
            return provider_balance(self._session, provider, self._config.currency)

        return run_operation(
            "compute_balance", _compute, locale=self._config.locale, entity_id=provider_id
        )

    def recalculate_balance(self, provider_id: UUID | str) -> OperationResult[Decimal]:
        """Recompute and store the provider's cached current_balance."""

        def _recalculate() -> Decimal:
            self._user.require_company_id(fresh=True)
            result = raise_for_procedure(
                self._dispatcher.call(
                    "recalculate_provider_balance",
                    provider_id=parse_uuid(provider_id, "provider_id"),
                ),
                "recalculate_provider_balance",
            )
            return Decimal(result["balance"])

        return run_in_transaction(
            self._session, "recalculate_balance", _recalculate,
            locale=self._config.locale, entity_id=provider_id,
        )

    def check_pending_total(self, provider_id: UUID | str) -> OperationResult[Decimal]:
        """Amount still owed on the provider's pending and partial payments."""

        def _check() -> Decimal:
            company_id = self._user.require_company_id()
            provider = self._provider(company_id, provider_id)
            return ProviderSelector(self._session).outstanding_total(provider.id)

        return run_operation(
            "check_pending_total", _check, locale=self._config.locale, entity_id=provider_id
        )

    # =========================================================================
    # Settlement
    # =========================================================================

    def settle_pending(
        self,
        provider_id: UUID | str,
        settlement_amount: Decimal | str,
        payment_date: date,
        request_id: str | None = None,
    ) -> OperationResult[SettlementOutcome]:
        """
        Apply a manual payment to the provider's outstanding payments,
        oldest due date first.
        """

        def _settle() -> SettlementOutcome:
            pid = parse_uuid(provider_id, "provider_id")
            amount = parse_amount(settlement_amount, "settlement_amount")
            if not isinstance(payment_date, date):
                raise ValidationError("payment_date", "expected a date")
            self._user.require_company_id(fresh=True)

            with self._user.in_flight(f"settle_provider:{pid}"):
                result = raise_for_procedure(
                    self._dispatcher.call(
                        "manually_settle_pending_payments",
                        provider_id=pid,
                        amount=amount,
                        date=payment_date,
                        request_id=request_id,
                    ),
                    "manually_settle_pending_payments",
                )
            return SettlementOutcome(
                settlement_id=UUID(result["settlement_id"]),
                provider_id=pid,
                amount=Decimal(result["amount"]),
                settled_count=result["settled_count"],
                payment_date=payment_date,
                replayed=result["replayed"],
            )

        return run_in_transaction(
            self._session, "settle_pending", _settle,
            locale=self._config.locale, entity_id=provider_id,
        )

    # =========================================================================
    # Payments
    # =========================================================================

    def create_payment(
        self,
        provider_id: UUID | str,
        amount: Decimal | str,
        *,
        type: str = PaymentType.FULL.value,
        status: str = PaymentStatus.PENDING.value,
        due_date: date | None = None,
        description: str | None = None,
    ) -> OperationResult[PaymentInfo]:
        """Record a manual payment owed to (or already paid to) a provider."""

        def _create() -> PaymentInfo:
            company_id = self._admin_company()
            provider = self._provider(company_id, provider_id)
            value = parse_amount(amount, "amount")
            kind = parse_enum(PaymentType, type, "type")
            state = parse_enum(PaymentStatus, status, "status")
            if state.value not in CREATABLE_STATUSES:
                raise ValidationError("status", f"payments cannot be created as {state.value}")

            completed = state == PaymentStatus.COMPLETED
            payment = Payment(
                provider_id=provider.id,
                company_id=company_id,
                amount=value,
                paid_amount=value if completed else Decimal("0"),
                status=state.value,
                type=kind.value,
                description=description,
                due_date=due_date,
                payment_date=self._clock.today() if completed else None,
                created_by_id=self._user.user_id,
            )
            self._session.add(payment)
            self._session.flush()
            logger.info(
                "provider_payment_created",
                extra={
                    "payment_id": str(payment.id),
                    "provider_id": str(provider.id),
                    "amount": str(value),
                    "payment_type": kind.value,
                    "status": state.value,
                },
            )
            return PaymentInfo.from_row(payment)

        return run_in_transaction(self._session, "create_payment", _create, locale=self._config.locale)

    def _transition_payment(
        self,
        operation: str,
        payment_id: UUID | str,
        action: str,
        payment_date: date | None = None,
    ) -> OperationResult[PaymentInfo]:
        def _apply() -> PaymentInfo:
            company_id = self._user.require_company_id(fresh=True)
            payment = get_owned(
                self._session,
                Payment,
                parse_uuid(payment_id, "payment_id"),
                company_id,
                "payment",
                for_update=True,
            )
            payment.status = apply_transition(
                PAYMENT_WORKFLOW,
                "payment",
                payment.id,
                payment.status,
                action,
                is_admin=self._user.is_admin,
            )
            if payment.status == PaymentStatus.COMPLETED.value:
                payment.paid_amount = payment.amount
                payment.payment_date = payment_date or self._clock.today()
            self._session.flush()
            logger.info(
                "provider_payment_transitioned",
                extra={"payment_id": str(payment.id), "action": action, "status": payment.status},
            )
            return PaymentInfo.from_row(payment)

        return run_in_transaction(
            self._session, operation, _apply, locale=self._config.locale, entity_id=payment_id
        )

    def mark_payment_paid(
        self, payment_id: UUID | str, payment_date: date | None = None
    ) -> OperationResult[PaymentInfo]:
        return self._transition_payment("mark_payment_paid", payment_id, "mark_paid", payment_date)

    def mark_payment_overdue(self, payment_id: UUID | str) -> OperationResult[PaymentInfo]:
        return self._transition_payment("mark_payment_overdue", payment_id, "mark_overdue")

    def cancel_payment(self, payment_id: UUID | str) -> OperationResult[PaymentInfo]:
        return self._transition_payment("cancel_payment", payment_id, "cancel")

    def list_payments(
        self,
        provider_id: UUID | str | None = None,
        status: str | None = None,
    ) -> OperationResult[list[PaymentInfo]]:
        """Payments of the company, earliest due date first."""

        def _list() -> list[PaymentInfo]:
            company_id = self._user.require_company_id()
            query = select(Payment).where(Payment.company_id == company_id)
            if provider_id is not None:
                query = query.where(Payment.provider_id == parse_uuid(provider_id, "provider_id"))
            if status is not None:
                query = query.where(
                    Payment.status == parse_enum(PaymentStatus, status, "status").value
                )
            rows = self._session.execute(
                query.order_by(Payment.due_date, Payment.created_at, Payment.id)
            ).scalars()
            return [PaymentInfo.from_row(r) for r in rows]

        return run_operation("list_payments", _list, locale=self._config.locale)
