"""
fieldops_services.procedure_dispatcher -- Invocation of trusted procedures by name.

Responsibility:
    Holds the registry of trusted procedures and runs one of them, bound to
    the authenticated caller, inside a single database transaction
    (SAVEPOINT in the caller's session).  Converts the outcome into the
    plain result dict every procedure returns:
    ``{"success": True, ...fields}`` or
    ``{"success": False, "code", "message", "details"}``.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Module services call procedures through the dispatcher only; they never
    perform the multi-row financial writes themselves.

Invariants enforced:
    - Atomicity: every write of a procedure commits or rolls back together
      (the savepoint is rolled back on any failure).  Sub-steps are never
      retried independently.
    - Procedure name consistency: TrustedProcedure.name must match the
      registration key (asserted at register-time).
    - The caller identity is fixed when the dispatcher is built; procedures
      cannot be invoked on behalf of another user.

Failure modes:
    - Unknown procedure name: NOT_FOUND failure dict.
    - FieldOpsError raised by the procedure: failure dict with its code and
      structured details (the calling module re-raises the typed error).
    - SQLAlchemyError: logged with traceback, REMOTE_ERROR failure dict.
    - Any other exception propagates after the savepoint rolls back.

Audit relevance:
    Every invocation logs ``procedure_started`` and either
    ``procedure_completed`` (with duration_ms) or ``procedure_failed``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.exceptions import FieldOpsError, NotFoundError, RemoteError
from fieldops_kernel.logging_config import LogContext, get_logger
from fieldops_kernel.messages import user_message

logger = get_logger("services.procedure_dispatcher")


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProcedureContext:
    """What a procedure may use: the session, the caller, time and currency."""

    session: Session
    caller_id: UUID
    clock: Clock
    currency: str


@dataclass(frozen=True)
class TrustedProcedure:
    """A registered procedure.

    Contract:
        ``handler(ctx, **params)`` performs its reads and writes through
        ``ctx.session``, raises FieldOpsError subclasses for business
        failures, and returns the success fields as a dict.
    """

    name: str
    handler: Callable[..., dict[str, Any]]


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class ProcedureDispatcher:
    """Runs trusted procedures for one authenticated caller.

    Usage:
        dispatcher = ProcedureDispatcher(session, caller_id, clock=clock)
        register_standard_procedures(dispatcher)
        result = dispatcher.call("redeem_access_code", code=code, email=email)
    """

    def __init__(
        self,
        session: Session,
        caller_id: UUID,
        clock: Clock | None = None,
        currency: str = "BRL",
        locale: str = "en",
    ) -> None:
        self._session = session
        self._context = ProcedureContext(
            session=session,
            caller_id=caller_id,
            clock=clock or SystemClock(),
            currency=currency,
        )
        self._locale = locale
        self._registry: dict[str, TrustedProcedure] = {}

    @property
    def caller_id(self) -> UUID:
        return self._context.caller_id

    @property
    def procedure_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._registry))

    def register(self, name: str, procedure: TrustedProcedure) -> None:
        """Register a procedure, replacing any previous one under ``name``.

        Raises:
            ValueError: If procedure.name does not match name.
        """
        if procedure.name != name:
            raise ValueError(
                f"Procedure name '{procedure.name}' "
                f"does not match registration key '{name}'"
            )
        self._registry[name] = procedure

    def call(self, name: str, **params: Any) -> dict[str, Any]:
        """Run procedure ``name`` atomically and return its result dict."""
        procedure = self._registry.get(name)
        if procedure is None:
            logger.warning("procedure_not_registered", extra={"procedure": name})
            return self._failure(NotFoundError("procedure", name))

        with LogContext.bind(actor_id=self._context.caller_id, operation=name):
            logger.info("procedure_started", extra={"procedure": name})
            start = time.monotonic()
            try:
                with self._session.begin_nested():
                    payload = procedure.handler(self._context, **params)
            except FieldOpsError as exc:
                logger.warning(
                    "procedure_failed",
                    extra={
                        "procedure": name,
                        "error_code": exc.code,
                        "reason": str(exc),
                    },
                )
                return self._failure(exc)
            except SQLAlchemyError as exc:
                logger.error(
                    "procedure_store_error",
                    exc_info=True,
                    extra={"procedure": name, "error_code": RemoteError.code},
                )
                return self._failure(RemoteError(name, type(exc).__name__))

            duration_ms = round((time.monotonic() - start) * 1000, 2)
            logger.info(
                "procedure_completed",
                extra={"procedure": name, "duration_ms": duration_ms},
            )
            return {"success": True, **payload}

    def _failure(self, exc: FieldOpsError) -> dict[str, Any]:
        return {
            "success": False,
            "code": exc.code,
            "message": user_message(exc.code, self._locale),
            "details": exc.details,
        }
