"""
Shared helpers for module services.

Used by fieldops_modules/*/service.py to reduce duplication around the
transaction boundary, tenant-scoped lookups, strict input parsing and
trusted procedure results.

Architecture: Modules layer. Imports from fieldops_kernel and the isolation
guard only.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.domain.workflow import Workflow
from fieldops_kernel.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
    ValidationError,
    error_from_code,
)
from fieldops_kernel.logging_config import get_logger
from fieldops_modules.isolation.guard import assert_access

logger = get_logger("modules.helpers")

T = TypeVar("T")
E = TypeVar("E", bound=Enum)

_CENT = Decimal("0.01")


def commit_or_rollback(session: Session, result: OperationResult[Any]) -> OperationResult[Any]:
    """Commit the session if the operation succeeded, otherwise rollback."""
    if not result.is_success:
        session.rollback()
        return result
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(
            "commit_failed",
            exc_info=True,
            extra={"error_code": RemoteError.code},
        )
        return OperationResult.fail(RemoteError("commit", type(exc).__name__))
    return result


def run_in_transaction(
    session: Session,
    operation: str,
    func: Callable[[], T],
    *,
    locale: str = "en",
    entity_id: Any = None,
) -> OperationResult[T]:
    """Run a mutating operation and commit on success, rollback otherwise."""
    result = run_operation(operation, func, locale=locale, entity_id=entity_id)
    return commit_or_rollback(session, result)


def get_owned(
    session: Session,
    model: type[T],
    record_id: UUID,
    company_id: UUID | None,
    entity_type: str,
    *,
    for_update: bool = False,
) -> T:
    """
    Load a record the caller's company may see.

    Absent records and records of another company both raise NotFoundError,
    so a foreign id is indistinguishable from an unknown one.
    """
    row = session.get(model, record_id, with_for_update=for_update)
    if row is None:
        raise NotFoundError(entity_type, str(record_id))
    try:
        assert_access(company_id, row.company_id)
    except ForbiddenError:
        raise NotFoundError(entity_type, str(record_id)) from None
    return row


def raise_for_procedure(result: dict[str, Any], operation: str) -> dict[str, Any]:
    """Return a successful procedure result, or raise the typed error it carries."""
    if result.get("success"):
        return result
    raise error_from_code(result.get("code"), result.get("details"), operation)


def parse_enum(enum_cls: type[E], raw: Any, field: str) -> E:
    """Strict parse of a caller-supplied enum value."""
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field, f"{raw!r} is not one of: {allowed}") from None


def parse_amount(raw: Any, field: str, *, allow_zero: bool = False) -> Decimal:
    """Parse a money amount to two decimal places; floats are rejected."""
    if raw is None or isinstance(raw, (float, bool)):
        raise ValidationError(field, f"expected a decimal amount, got {raw!r}")
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        raise ValidationError(field, f"expected a decimal amount, got {raw!r}") from None
    if not amount.is_finite():
        raise ValidationError(field, "amount must be finite")
    if amount != amount.quantize(_CENT):
        raise ValidationError(field, "amount has more than two decimal places")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(field, "amount must be positive")
    return amount.quantize(_CENT)


def parse_uuid(raw: Any, field: str) -> UUID:
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except (TypeError, ValueError):
        raise ValidationError(field, f"not a valid id: {raw!r}") from None


def require_text(raw: Any, field: str) -> str:
    text = (raw or "").strip() if isinstance(raw, str) or raw is None else str(raw).strip()
    if not text:
        raise ValidationError(field, "must not be empty")
    return text


def apply_transition(
    workflow: Workflow,
    entity_type: str,
    entity_id: Any,
    current_state: str,
    action: str,
    *,
    is_admin: bool,
) -> str:
    """
    Resolve ``action`` from ``current_state`` and return the target state.

    Raises ConflictError when the workflow has no such transition and
    ForbiddenError when an admin-only transition is attempted by a member.
    """
    transition = workflow.find_transition(current_state, action)
    if transition is None:
        raise ConflictError(
            entity_type,
            str(entity_id),
            f"cannot {action} from {current_state}",
        )
    if transition.admin_only and not is_admin:
        raise ForbiddenError(f"only administrators may {action} a {entity_type}")
    logger.debug(
        "workflow_transition",
        extra={
            "workflow": workflow.name,
            "entity_id": str(entity_id),
            "from_state": current_state,
            "to_state": transition.to_state,
        },
    )
    return transition.to_state
