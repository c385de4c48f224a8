"""
Transaction Service (``fieldops_modules.transactions.service``).

Responsibility
--------------
Appends income and expense transactions to the company ledger and settles
or cancels pending ones.

Architecture position
---------------------
**Modules layer**.  Revenue confirmations write their own ledger
transaction inside the trusted procedure; this service covers everything
recorded by hand.

Invariants enforced
-------------------
* Append-only: no method changes amount, type, category or date.
* Status moves pending -> completed or pending -> cancelled only.
* user_id / user_name are the caller's own profile.
* Referenced mission and settlement account belong to the caller's company.

Failure modes
-------------
* ``ValidationError`` -- bad type, category, method, amount or status.
* ``NotFoundError`` -- unknown or foreign transaction / mission / account.
* ``ConflictError`` -- transaction already completed or cancelled.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.exceptions import ValidationError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.account import AccountType, PaymentMethod, SettlementAccount
from fieldops_kernel.models.mission import Mission
from fieldops_kernel.models.transaction import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)
from fieldops_modules._service_helpers import (
    apply_transition,
    get_owned,
    parse_amount,
    parse_enum,
    parse_uuid,
    run_in_transaction,
)
from fieldops_modules.isolation.guard import ensure_company_data
from fieldops_modules.isolation.session import UserSession
from fieldops_modules.transactions.models import TransactionInfo
from fieldops_modules.transactions.workflows import TRANSACTION_WORKFLOW

logger = get_logger("modules.transactions.service")

_INITIAL_STATUSES = (TransactionStatus.PENDING, TransactionStatus.COMPLETED)


class TransactionService:

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

    def record_transaction(self, data: Mapping[str, Any]) -> OperationResult[TransactionInfo]:
        """
        Append a transaction to the ledger.

        ``data`` keys: type, category, amount, method, date (defaults to
        today), status (pending or completed, default pending), description,
        mission_id, account_id and account_type.
        """

        def _record() -> TransactionInfo:
            company_id = self._user.require_company_id(fresh=True)
            payload = ensure_company_data(data, company_id)
            profile = self._user.profile()

            kind = parse_enum(TransactionType, payload.get("type"), "type")
            category = parse_enum(TransactionCategory, payload.get("category"), "category")
            method = parse_enum(PaymentMethod, payload.get("method"), "method")
            amount = parse_amount(payload.get("amount"), "amount")
            status = parse_enum(
                TransactionStatus,
                payload.get("status", TransactionStatus.PENDING.value),
                "status",
            )
            if status not in _INITIAL_STATUSES:
                raise ValidationError("status", f"transactions cannot be recorded as {status.value}")
            moved_on = payload.get("date") or self._clock.today()
            if not isinstance(moved_on, date):
                raise ValidationError("date", "expected a date")

            mission_id = None
            if payload.get("mission_id") is not None:
                mission_id = get_owned(
                    self._session, Mission,
                    parse_uuid(payload["mission_id"], "mission_id"),
                    company_id, "mission",
                ).id

            account_id = account_type = None
            if payload.get("account_id") is not None:
                account = get_owned(
                    self._session, SettlementAccount,
                    parse_uuid(payload["account_id"], "account_id"),
                    company_id, "settlement_account",
                )
                account_type = parse_enum(
                    AccountType, payload.get("account_type", account.account_type), "account_type"
                ).value
                if account_type != account.account_type:
                    raise ValidationError("account_type", "does not match the settlement account")
                account_id = account.id

            transaction = Transaction(
                company_id=company_id,
                type=kind.value,
                category=category.value,
                amount=amount,
                description=payload.get("description"),
                date=moved_on,
                method=method.value,
                status=status.value,
                user_id=profile.profile_id,
                user_name=profile.name,
                mission_id=mission_id,
                account_id=account_id,
                account_type=account_type,
            )
            self._session.add(transaction)
            self._session.flush()
            logger.info(
                "transaction_recorded",
                extra={
                    "transaction_id": str(transaction.id),
                    "transaction_type": kind.value,
                    "category": category.value,
                    "amount": str(amount),
                    "status": status.value,
                },
            )
            return TransactionInfo.from_row(transaction)

        return run_in_transaction(
            self._session, "record_transaction", _record, locale=self._config.locale
        )

    def _transition(
        self, operation: str, transaction_id: UUID | str, action: str
    ) -> OperationResult[TransactionInfo]:
        def _apply() -> TransactionInfo:
            company_id = self._user.require_company_id(fresh=True)
            transaction = get_owned(
                self._session,
                Transaction,
                parse_uuid(transaction_id, "transaction_id"),
                company_id,
                "transaction",
                for_update=True,
            )
            transaction.status = apply_transition(
                TRANSACTION_WORKFLOW,
                "transaction",
                transaction.id,
                transaction.status,
                action,
                is_admin=self._user.is_admin,
            )
            self._session.flush()
            logger.info(
                "transaction_transitioned",
                extra={"transaction_id": str(transaction.id), "status": transaction.status},
            )
            return TransactionInfo.from_row(transaction)

        return run_in_transaction(
            self._session, operation, _apply, locale=self._config.locale, entity_id=transaction_id
        )

    def complete_transaction(self, transaction_id: UUID | str) -> OperationResult[TransactionInfo]:
        return self._transition("complete_transaction", transaction_id, "complete")

    def cancel_transaction(self, transaction_id: UUID | str) -> OperationResult[TransactionInfo]:
        return self._transition("cancel_transaction", transaction_id, "cancel")

    def list_transactions(
        self,
        start: date | None = None,
        end: date | None = None,
        type: str | None = None,
    ) -> OperationResult[list[TransactionInfo]]:
        """Company transactions dated in [start, end), most recent first."""

        def _list() -> list[TransactionInfo]:
            company_id = self._user.require_company_id()
            query = select(Transaction).where(Transaction.company_id == company_id)
            if start is not None:
                query = query.where(Transaction.date >= start)
            if end is not None:
                query = query.where(Transaction.date < end)
            if type is not None:
                query = query.where(
                    Transaction.type == parse_enum(TransactionType, type, "type").value
                )
            rows = self._session.execute(
                query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
            ).scalars()
            return [TransactionInfo.from_row(r) for r in rows]

        return run_operation("list_transactions", _list, locale=self._config.locale)
