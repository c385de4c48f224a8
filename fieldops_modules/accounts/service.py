"""
Account Service (``fieldops_modules.accounts.service``).

Responsibility
--------------
Registry of the company's settlement accounts: bank accounts that receive
confirmed revenue into their balance and credit cards whose available
limit is restored by it.

Architecture position
---------------------
**Modules layer** -- plain CRUD over ``SettlementAccount``; the balance
movements themselves belong to the ``convert_pending_to_confirmed_revenue``
procedure.

Invariants enforced
-------------------
* Each public method owns the transaction boundary.
* Writes are admin only and read the caller's role fresh.
* 0 <= available_limit <= credit_limit on every card write.
* A bank balance is set once, at creation.  A new credit limit keeps the
  used amount, so the available limit moves by the same delta.

Failure modes
-------------
* ``ValidationError`` -- bad amount or day, card field on a bank account,
  limit below the amount already used.
* ``NotFoundError`` -- unknown or foreign account.
* ``ForbiddenError`` -- non-admin writes.
"""

from __future__ import annotations

from decimal import Decimal
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
from fieldops_kernel.models.account import AccountType, SettlementAccount
from fieldops_modules._service_helpers import (
    get_owned,
    parse_amount,
    parse_enum,
    parse_uuid,
    require_text,
    run_in_transaction,
)
from fieldops_modules.accounts.models import AccountInfo
from fieldops_modules.isolation.session import UserSession

logger = get_logger("modules.accounts.service")

_CARD_FIELDS = ("credit_limit", "closing_day", "due_day")


def _day_of_month(raw: Any, field: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int) or not 1 <= raw <= 31:
        raise ValidationError(field, f"expected a day of month 1-31, got {raw!r}")
    return raw


class AccountService:
    """
    Orchestrates the company's bank accounts and credit cards.

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
    ):
        self._session = session
        self._user = user_session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    def create_bank_account(
        self,
        name: str,
        *,
        bank: str | None = None,
        opening_balance: Decimal | str = "0.00",
    ) -> OperationResult[AccountInfo]:
        def _create() -> AccountInfo:
            company_id = self._user.require_admin()
            account = SettlementAccount(
                company_id=company_id,
                name=require_text(name, "name"),
                bank=bank,
                account_type=AccountType.BANK_ACCOUNT.value,
                is_active=True,
                balance=parse_amount(opening_balance, "opening_balance", allow_zero=True),
                credit_limit=Decimal("0.00"),
                available_limit=Decimal("0.00"),
                created_by_id=self._user.user_id,
            )
            return self._added(account)

        return run_in_transaction(
            self._session, "create_bank_account", _create, locale=self._config.locale
        )

    def create_credit_card(
        self,
        name: str,
        credit_limit: Decimal | str,
        *,
        bank: str | None = None,
        closing_day: int | None = None,
        due_day: int | None = None,
    ) -> OperationResult[AccountInfo]:
        """A new card starts with its whole limit available."""

        def _create() -> AccountInfo:
            company_id = self._user.require_admin()
            limit = parse_amount(credit_limit, "credit_limit", allow_zero=True)
            account = SettlementAccount(
                company_id=company_id,
                name=require_text(name, "name"),
                bank=bank,
                account_type=AccountType.CREDIT_CARD.value,
                is_active=True,
                balance=Decimal("0.00"),
                credit_limit=limit,
                available_limit=limit,
                closing_day=_day_of_month(closing_day, "closing_day"),
                due_day=_day_of_month(due_day, "due_day"),
                created_by_id=self._user.user_id,
            )
            return self._added(account)

        return run_in_transaction(
            self._session, "create_credit_card", _create, locale=self._config.locale
        )

    def update_account(self, account_id: UUID | str, **changes: Any) -> OperationResult[AccountInfo]:
        """
        Change an account's descriptive fields, its active flag, or a card's
        limit and billing days.

        Accepted keys: name, bank, is_active, and for cards credit_limit,
        closing_day, due_day.
        """

        def _update() -> AccountInfo:
            company_id = self._user.require_admin()
            account = get_owned(
                self._session,
                SettlementAccount,
                parse_uuid(account_id, "account_id"),
                company_id,
                "settlement_account",
                for_update=True,
            )
            unknown = set(changes) - {"name", "bank", "is_active", *_CARD_FIELDS}
            if unknown:
                raise ValidationError(sorted(unknown)[0], "field cannot be updated")
            is_card = account.account_type == AccountType.CREDIT_CARD.value
            if not is_card and any(f in changes for f in _CARD_FIELDS):
                raise ValidationError(
                    next(f for f in _CARD_FIELDS if f in changes),
                    "only credit cards have this field",
                )

            if "name" in changes:
                account.name = require_text(changes["name"], "name")
            if "bank" in changes:
                account.bank = changes["bank"]
            if "is_active" in changes:
                if not isinstance(changes["is_active"], bool):
                    raise ValidationError("is_active", "expected true or false")
                account.is_active = changes["is_active"]
            if "closing_day" in changes:
                account.closing_day = _day_of_month(changes["closing_day"], "closing_day")
            if "due_day" in changes:
                account.due_day = _day_of_month(changes["due_day"], "due_day")
            if "credit_limit" in changes:
                new_limit = parse_amount(changes["credit_limit"], "credit_limit", allow_zero=True)
                used = account.credit_limit - account.available_limit
                if new_limit < used:
                    raise ValidationError(
                        "credit_limit", f"limit {new_limit} is below the {used} already used"
                    )
                account.credit_limit = new_limit
                account.available_limit = new_limit - used

            self._session.flush()
            logger.info(
                "settlement_account_updated",
                extra={"account_id": str(account.id), "fields": sorted(changes)},
            )
            return AccountInfo.from_row(account)

        return run_in_transaction(
            self._session, "update_account", _update,
            locale=self._config.locale, entity_id=account_id,
        )

    def list_accounts(
        self,
        account_type: str | None = None,
        *,
        active_only: bool = True,
    ) -> OperationResult[list[AccountInfo]]:
        def _list() -> list[AccountInfo]:
            company_id = self._user.require_company_id()
            query = select(SettlementAccount).where(SettlementAccount.company_id == company_id)
            if account_type is not None:
                kind = parse_enum(AccountType, account_type, "account_type")
                query = query.where(SettlementAccount.account_type == kind.value)
            if active_only:
                query = query.where(SettlementAccount.is_active.is_(True))
            rows = self._session.execute(
                query.order_by(SettlementAccount.name, SettlementAccount.id)
            ).scalars()
            return [AccountInfo.from_row(r) for r in rows]

        return run_operation("list_accounts", _list, locale=self._config.locale)

    # -------------------------------------------------------------------------

    def _added(self, account: SettlementAccount) -> AccountInfo:
        self._session.add(account)
        self._session.flush()
        logger.info(
            "settlement_account_created",
            extra={"account_id": str(account.id), "account_type": account.account_type},
        )
        return AccountInfo.from_row(account)
