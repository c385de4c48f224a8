"""
Operation results returned by every public module service method.

Responsibility:
    ``OperationResult`` is the single shape handed back to callers: either a
    value or a machine-readable error code plus a localized user message.
    ``run_operation`` is the one boundary helper that turns typed
    exceptions into results.

Architecture position:
    Kernel > Domain.  Imports only kernel exceptions, messages and logging.

Failure modes:
    - FieldOpsError raised by the operation -> result with that error's code,
      logged at WARNING.
    - Any other exception -> REMOTE_ERROR result; the diagnostic (operation,
      entity id, traceback) is logged at ERROR and never surfaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from fieldops_kernel.exceptions import FieldOpsError, RemoteError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.messages import user_message

logger = get_logger("domain.results")

T = TypeVar("T")


class OperationStatus(str, Enum):
    """Outcome category of a service operation."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    REMOTE_ERROR = "remote_error"


_STATUS_BY_CODE: dict[str, OperationStatus] = {
    "VALIDATION_ERROR": OperationStatus.VALIDATION_ERROR,
    "NOT_FOUND": OperationStatus.NOT_FOUND,
    "CONFLICT": OperationStatus.CONFLICT,
    "FORBIDDEN": OperationStatus.FORBIDDEN,
    "ACCESS_CODE_USED": OperationStatus.ALREADY_USED,
    "ACCESS_CODE_EXPIRED": OperationStatus.EXPIRED,
    "REMOTE_ERROR": OperationStatus.REMOTE_ERROR,
}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Result of a module service operation."""

    status: OperationStatus
    value: T | None = None
    error_code: str | None = None
    message: str | None = None
    error: FieldOpsError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @classmethod
    def ok(cls, value: T | None = None, message: str | None = None) -> OperationResult[T]:
        return cls(status=OperationStatus.SUCCESS, value=value, message=message)

    @classmethod
    def fail(
        cls,
        error: FieldOpsError,
        locale: str = "en",
        message: str | None = None,
    ) -> OperationResult[T]:
        return cls(
            status=_STATUS_BY_CODE.get(error.code, OperationStatus.REMOTE_ERROR),
            error_code=error.code,
            message=message or user_message(error.code, locale),
            error=error,
        )

    def unwrap(self) -> T:
        """Return the value, or raise the error this result carries."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def run_operation(
    operation: str,
    func: Callable[[], T],
    *,
    locale: str = "en",
    entity_id: Any = None,
) -> OperationResult[T]:
    """
    Execute ``func`` and convert its outcome into an OperationResult.

    Callers own the session; this helper only classifies the outcome.
    """
    try:
        return OperationResult.ok(func())
    except FieldOpsError as exc:
        logger.warning(
            "operation_failed",
            extra={
                "operation": operation,
                "entity_id": str(entity_id) if entity_id is not None else None,
                "error_code": exc.code,
                "reason": str(exc),
            },
        )
        return OperationResult.fail(exc, locale)
    except Exception as exc:
        logger.error(
            "operation_unexpected_error",
            exc_info=True,
            extra={
                "operation": operation,
                "entity_id": str(entity_id) if entity_id is not None else None,
                "error_code": RemoteError.code,
            },
        )
        return OperationResult.fail(RemoteError(operation, type(exc).__name__), locale)
