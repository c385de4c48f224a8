"""
fieldops_services.procedures -- The trusted procedures.

Responsibility:
    The multi-row financial writes of the system, each executed atomically
    by the ProcedureDispatcher:
      - redeem_access_code
      - convert_pending_to_confirmed_revenue
      - recalculate_provider_balance
      - manually_settle_pending_payments
    Every procedure re-derives the caller's company from the stored profile
    and locks the rows it mutates (SELECT ... FOR UPDATE where the dialect
    supports it).

Architecture position:
    Services -- stateful orchestration over engines + kernel.  This module
    is the single location that couples the dispatcher to concrete
    procedure implementations.  Adding a procedure means one new function
    and one register call in ``register_standard_procedures``.

Invariants enforced:
    - Confirm: sum(created payment amounts) == provider_amount exactly, with
      the rounding remainder on the first provider of the mission.
    - Confirm: the pending revenue is received exactly once.
    - Redeem: a code flips to used exactly once; a wrong email looks exactly
      like an unknown code.
    - Settle: oldest due date first; fully covered payments complete, the
      payment where the amount runs out becomes partial, later payments are
      untouched.  A request_id is applied at most once per company.
    - Decimal safety: amounts are handled as Money in the configured
      currency; floats never enter.

Failure modes:
    - FieldOpsError subclasses for business failures; the dispatcher turns
      them into failure dicts and rolls the savepoint back.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops_engines.allocation import AllocationEngine, AllocationTarget
from fieldops_engines.balance import (
    MissionShareInput,
    PaymentInput,
    ProviderBalance,
    compute_provider_balance,
)
from fieldops_engines.revenue_split import ordered_providers, provider_shares
from fieldops_kernel.domain.values import Currency, Money
from fieldops_kernel.exceptions import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.access_code import AccessCode, AccessCodeType
from fieldops_kernel.models.account import AccountType, PaymentMethod, SettlementAccount
from fieldops_kernel.models.company import Company
from fieldops_kernel.models.mission import Mission
from fieldops_kernel.models.payment import (
    OUTSTANDING_STATUSES,
    Payment,
    PaymentStatus,
    PaymentType,
)
from fieldops_kernel.models.profile import Profile, UserType
from fieldops_kernel.models.provider import ServiceProvider
from fieldops_kernel.models.revenue import (
    ConfirmedRevenue,
    PendingRevenue,
    PendingRevenueStatus,
)
from fieldops_kernel.models.settlement import ProviderSettlement
from fieldops_kernel.models.transaction import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)
from fieldops_kernel.selectors.provider_selector import ProviderSelector
from fieldops_services.procedure_dispatcher import (
    ProcedureContext,
    ProcedureDispatcher,
    TrustedProcedure,
)

logger = get_logger("services.procedures")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(field, f"not a valid id: {value!r}") from None


def _amount(value: Any, field: str, currency: str) -> Decimal:
    """A finite amount with no more decimal places than the currency allows."""
    if value is None or isinstance(value, (float, bool)):
        raise ValidationError(field, f"expected a decimal amount, got {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(field, f"expected a decimal amount, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(field, "amount must be finite")
    quantum = Currency(currency).quantum
    if amount != amount.quantize(quantum):
        raise ValidationError(field, f"amount has more precision than {currency} allows")
    return amount.quantize(quantum)


def _caller(ctx: ProcedureContext, *, for_update: bool = False) -> Profile:
    caller = ctx.session.get(Profile, ctx.caller_id, with_for_update=for_update)
    if caller is None or not caller.is_active:
        raise ForbiddenError("caller has no active profile")
    return caller


def _caller_company(ctx: ProcedureContext) -> tuple[Profile, UUID]:
    caller = _caller(ctx)
    if caller.company_id is None:
        raise ForbiddenError("caller has no company")
    return caller, caller.company_id


def _owned(ctx: ProcedureContext, model: type, record_id: UUID, company_id: UUID, entity_type: str):
    """Locked row of the caller's company; foreign rows look absent."""
    row = ctx.session.get(model, record_id, with_for_update=True)
    if row is None or (row.company_id is not None and row.company_id != company_id):
        raise NotFoundError(entity_type, str(record_id))
    return row


# ---------------------------------------------------------------------------
# redeem_access_code
# ---------------------------------------------------------------------------


def redeem_access_code(ctx: ProcedureContext, code: str, email: str) -> dict[str, Any]:
    """
    Attach the caller to the company an access code belongs to.

    Lookup is by exact normalized (uppercase) code.  The caller's profile
    email must equal both the supplied email and the code's target email.
    """
    normalized_code = (code or "").strip().upper()
    normalized_email = (email or "").strip().lower()
    not_found = NotFoundError("access_code", normalized_code)

    caller = _caller(ctx, for_update=True)
    if not normalized_code or not normalized_email:
        raise not_found

    row = ctx.session.execute(
        select(AccessCode).where(AccessCode.code == normalized_code).with_for_update()
    ).scalar_one_or_none()

    if (
        row is None
        or row.employee_email.strip().lower() != normalized_email
        or caller.email.strip().lower() != normalized_email
    ):
        raise not_found

    if row.is_used:
        raise AlreadyUsedError(normalized_code)

    now = ctx.clock.now()
    if row.expires_at <= now:
        raise ExpiredError(normalized_code, row.expires_at.isoformat())

    row.is_used = True
    row.used_at = now
    row.used_by_id = caller.id

    caller.company_id = row.company_id
    if row.code_type == AccessCodeType.PROVIDER.value:
        caller.user_type = UserType.PROVIDER.value
        caller.provider_id = row.provider_id
    if not caller.name:
        caller.name = row.employee_name

    company = ctx.session.get(Company, row.company_id)
    ctx.session.flush()

    logger.info(
        "access_code_redeemed",
        extra={
            "access_code_id": str(row.id),
            "code_type": row.code_type,
            "joined_company_id": str(row.company_id),
        },
    )
    return {
        "company_id": str(row.company_id),
        "company_name": company.name if company is not None else None,
        "employee_name": row.employee_name,
        "code": row.code,
        "code_type": row.code_type,
        "provider_id": str(row.provider_id) if row.provider_id else None,
    }


# ---------------------------------------------------------------------------
# convert_pending_to_confirmed_revenue
# ---------------------------------------------------------------------------


def _credit_account(account: SettlementAccount, amount: Decimal) -> None:
    """Bank accounts gain balance; cards regain limit, capped at the credit limit."""
    if account.account_type == AccountType.BANK_ACCOUNT.value:
        account.balance = account.balance + amount
    else:
        account.available_limit = min(account.credit_limit, account.available_limit + amount)


def convert_pending_to_confirmed_revenue(
    ctx: ProcedureContext,
    pending_revenue_id: Any,
    account_id: Any,
    account_type: str,
    payment_method: str,
) -> dict[str, Any]:
    """
    Confirm receipt of a pending revenue.

    In one transaction: marks the pending revenue received, inserts the
    confirmed revenue and its income transaction, credits the settlement
    account, and creates one pending payment per provider of the mission.
    """
    caller, company_id = _caller_company(ctx)
    pending_id = _uuid(pending_revenue_id, "pending_revenue_id")
    account_uuid = _uuid(account_id, "account_id")
    try:
        account_kind = AccountType(account_type)
    except ValueError:
        raise ValidationError("account_type", f"unknown account type {account_type!r}") from None
    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError("payment_method", f"unknown method {payment_method!r}") from None

    pending = _owned(ctx, PendingRevenue, pending_id, company_id, "pending_revenue")
    if pending.status != PendingRevenueStatus.PENDING.value:
        raise ConflictError("pending_revenue", str(pending.id), f"status is {pending.status}")

    account = _owned(ctx, SettlementAccount, account_uuid, company_id, "settlement_account")
    if account.account_type != account_kind.value:
        raise ValidationError("account_type", "does not match the settlement account")
    if not account.is_active:
        raise ValidationError("account_id", "settlement account is inactive")

    currency = ctx.currency
    total = Money.of(pending.total_amount, currency)
    company_part = Money.of(pending.company_amount, currency)
    provider_part = Money.of(pending.provider_amount, currency)
    if company_part + provider_part != total:
        raise ValidationError("pending_revenue", "company and provider amounts do not add up")

    mission = ctx.session.get(Mission, pending.mission_id)
    providers = (
        ordered_providers(mission.assigned_providers, mission.provider_id)
        if mission is not None
        else ()
    )
    try:
        shares = provider_shares(provider_part, providers)
    except ValueError as exc:
        raise ValidationError("providers", str(exc)) from None

    now = ctx.clock.now()
    today = now.date()
    client = pending.client_name or (mission.title if mission is not None else "")
    row_company = pending.company_id or company_id

    transaction = Transaction(
        id=uuid4(),
        company_id=row_company,
        type=TransactionType.INCOME.value,
        category=TransactionCategory.CLIENT_PAYMENT.value,
        amount=total.amount,
        description=f"Revenue received: {client}",
        date=today,
        method=method.value,
        status=TransactionStatus.COMPLETED.value,
        user_id=caller.id,
        user_name=caller.name,
        mission_id=pending.mission_id,
        account_id=account.id,
        account_type=account.account_type,
    )
    confirmed = ConfirmedRevenue(
        id=uuid4(),
        mission_id=pending.mission_id,
        company_id=row_company,
        pending_revenue_id=pending.id,
        total_amount=total.amount,
        company_amount=company_part.amount,
        provider_amount=provider_part.amount,
        received_date=today,
        payment_method=method.value,
        account_id=account.id,
        account_type=account.account_type,
        transaction_id=transaction.id,
    )
    ctx.session.add(transaction)
    ctx.session.add(confirmed)

    payment_ids: list[str] = []
    for provider_id, share in shares:
        if share.is_zero:
            continue
        payment = Payment(
            id=uuid4(),
            provider_id=provider_id,
            company_id=row_company,
            confirmed_revenue_id=confirmed.id,
            amount=share.amount,
            paid_amount=Decimal("0"),
            status=PaymentStatus.PENDING.value,
            type=PaymentType.FULL.value,
            description=f"Service share: {client}",
            due_date=today,
        )
        ctx.session.add(payment)
        payment_ids.append(str(payment.id))

    _credit_account(account, total.amount)

    pending.status = PendingRevenueStatus.RECEIVED.value
    pending.received_at = now
    pending.account_id = account.id
    pending.account_type = account.account_type

    ctx.session.flush()

    logger.info(
        "pending_revenue_confirmed",
        extra={
            "pending_revenue_id": str(pending.id),
            "confirmed_revenue_id": str(confirmed.id),
            "total_amount": str(total.amount),
            "provider_amount": str(provider_part.amount),
            "payment_count": len(payment_ids),
        },
    )
    return {
        "confirmed_revenue_id": str(confirmed.id),
        "transaction_id": str(transaction.id),
        "total_amount": str(total.amount),
        "payment_ids": payment_ids,
    }


# ---------------------------------------------------------------------------
# recalculate_provider_balance
# ---------------------------------------------------------------------------


def provider_balance(
    session: Session,
    provider: ServiceProvider,
    currency: str,
) -> ProviderBalance:
    """Derive a provider's balance from its company's missions and its payments."""
    selector = ProviderSelector(session)
    missions = [
        MissionShareInput(
            mission_id=m.mission_id,
            providers=ordered_providers(m.assigned_providers, m.provider_id),
            provider_value=m.provider_value,
            is_approved=m.is_approved,
        )
        for m in selector.missions(provider.company_id)
    ]
    payments = [
        PaymentInput(
            payment_id=p.payment_id,
            amount=p.amount,
            paid_amount=p.paid_amount,
            status=p.status,
        )
        for p in selector.payments(provider.id)
    ]
    return compute_provider_balance(provider.id, missions, payments, currency)


def recalculate_provider_balance(ctx: ProcedureContext, provider_id: Any) -> dict[str, Any]:
    """Recompute a provider's balance and store it on the provider row."""
    _, company_id = _caller_company(ctx)
    provider = _owned(
        ctx, ServiceProvider, _uuid(provider_id, "provider_id"), company_id, "service_provider"
    )
    balance = provider_balance(ctx.session, provider, ctx.currency)
    previous = provider.current_balance
    provider.current_balance = balance.current_balance.amount
    ctx.session.flush()

    logger.info(
        "provider_balance_recalculated",
        extra={
            "provider_id": str(provider.id),
            "previous_balance": str(previous),
            "current_balance": str(balance.current_balance.amount),
        },
    )
    return {"provider_id": str(provider.id), "balance": str(balance.current_balance.amount)}


# ---------------------------------------------------------------------------
# manually_settle_pending_payments
# ---------------------------------------------------------------------------


def _settlement_order(payment: Payment) -> tuple:
    """Oldest due date first, payments without a due date last."""
    return (
        payment.due_date is None,
        payment.due_date or date.min,
        payment.created_at,
        str(payment.id),
    )


def manually_settle_pending_payments(
    ctx: ProcedureContext,
    provider_id: Any,
    amount: Any,
    date: date,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Apply a manual payment to a provider's outstanding payments.

    Admin only.  The amount must be positive and may not exceed the total
    outstanding.  A repeated request_id returns the first outcome.
    """
    caller, company_id = _caller_company(ctx)
    if not caller.is_admin:
        raise ForbiddenError("admin role required", str(company_id))

    provider = _owned(
        ctx, ServiceProvider, _uuid(provider_id, "provider_id"), company_id, "service_provider"
    )
    settlement_amount = _amount(amount, "amount", ctx.currency)
    if settlement_amount <= 0:
        raise ValidationError("amount", "settlement amount must be positive")

    if request_id:
        existing = ctx.session.execute(
            select(ProviderSettlement)
            .where(ProviderSettlement.company_id == company_id)
            .where(ProviderSettlement.request_id == request_id)
        ).scalar_one_or_none()
        if existing is not None:
            if existing.provider_id != provider.id or existing.amount != settlement_amount:
                raise ConflictError(
                    "provider_settlement", request_id, "request id reused with other inputs"
                )
            logger.info(
                "settlement_request_replayed",
                extra={"request_id": request_id, "settlement_id": str(existing.id)},
            )
            return {
                "settlement_id": str(existing.id),
                "settled_count": existing.settled_count,
                "amount": str(existing.amount),
                "replayed": True,
            }

    payments = sorted(
        ctx.session.execute(
            select(Payment)
            .where(Payment.provider_id == provider.id)
            .where(Payment.status.in_(OUTSTANDING_STATUSES))
            .where(Payment.type != PaymentType.BALANCE_PAYMENT.value)
            .with_for_update()
        ).scalars(),
        key=_settlement_order,
    )

    currency = ctx.currency
    outstanding = sum((p.amount - (p.paid_amount or Decimal("0")) for p in payments), Decimal("0"))
    if settlement_amount > outstanding:
        raise ValidationError(
            "amount",
            f"settlement of {settlement_amount} exceeds outstanding {outstanding}",
        )

    by_id = {p.id: p for p in payments}
    allocation = AllocationEngine().allocate_fifo(
        Money.of(settlement_amount, currency),
        [
            AllocationTarget(
                target_id=p.id,
                target_type="payment",
                eligible_amount=Money.of(p.amount - (p.paid_amount or Decimal("0")), currency),
                sequence=index,
            )
            for index, p in enumerate(payments)
        ],
    )

    settled_count = 0
    for line in allocation.lines:
        if line.allocated.is_zero:
            continue
        payment = by_id[line.target_id]
        if line.is_fully_allocated:
            payment.paid_amount = payment.amount
            payment.status = PaymentStatus.COMPLETED.value
            payment.payment_date = date
            settled_count += 1
        else:
            payment.paid_amount = (payment.paid_amount or Decimal("0")) + line.allocated.amount
            payment.status = PaymentStatus.PARTIAL.value

    settlement = ProviderSettlement(
        id=uuid4(),
        company_id=company_id,
        provider_id=provider.id,
        amount=settlement_amount,
        payment_date=date,
        settled_count=settled_count,
        request_id=request_id or str(uuid4()),
    )
    ctx.session.add(settlement)
    ctx.session.flush()

    logger.info(
        "provider_payments_settled",
        extra={
            "provider_id": str(provider.id),
            "settlement_amount": str(settlement_amount),
            "settled_count": settled_count,
            "outstanding_before": str(outstanding),
        },
    )
    return {
        "settlement_id": str(settlement.id),
        "settled_count": settled_count,
        "amount": str(settlement_amount),
        "replayed": False,
    }


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_standard_procedures(dispatcher: ProcedureDispatcher) -> None:
    """Register all trusted procedures with a dispatcher."""
    for name, handler in (
        ("redeem_access_code", redeem_access_code),
        ("convert_pending_to_confirmed_revenue", convert_pending_to_confirmed_revenue),
        ("recalculate_provider_balance", recalculate_provider_balance),
        ("manually_settle_pending_payments", manually_settle_pending_payments),
    ):
        dispatcher.register(name, TrustedProcedure(name=name, handler=handler))
