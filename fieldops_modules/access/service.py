"""
Access Code Registry Service (``fieldops_modules.access.service``).

Responsibility
--------------
Issues one-time onboarding codes for employees and providers, redeems them
through the ``redeem_access_code`` trusted procedure, and manages the
company's employee directory.

Architecture position
---------------------
**Modules layer** -- ``AccessCodeService`` is the sole public entry point
for access codes and employees.  Redemption is delegated to
``fieldops_services``; issuance is a single-row insert and runs here.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on success,
  ``rollback`` on failure).
* Code uniqueness is decided by the UNIQUE constraint; a collision retries
  with the next suffix inside a savepoint.
* Every failed redemption shows the same generic message, whatever the
  cause.
* The employee directory has one data source; failures surface as
  ``REMOTE_ERROR`` results.

Failure modes
-------------
* ``ValidationError`` -- missing company, empty name, malformed email.
* ``ForbiddenError`` -- non-admin caller issuing codes or deactivating.
* ``ConflictError`` -- code space exhausted for the current instant.
* ``NotFoundError`` / ``AlreadyUsedError`` / ``ExpiredError`` -- redemption.

Usage::

    service = AccessCodeService(session, user_session, clock=clock)
    result = service.issue_code("Ana Souza", "ana@example.com")
    code = result.unwrap().code
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.messages import access_code_message
from fieldops_kernel.models.access_code import AccessCode, AccessCodeType
from fieldops_kernel.models.profile import Profile
from fieldops_kernel.models.provider import ServiceProvider
from fieldops_modules._service_helpers import (
    get_owned,
    parse_enum,
    parse_uuid,
    raise_for_procedure,
    require_text,
    run_in_transaction,
)
from fieldops_modules.access.models import AccessCodeInfo, Redemption
from fieldops_modules.isolation.models import ProfileInfo
from fieldops_modules.isolation.session import UserSession
from fieldops_services import ProcedureDispatcher, build_dispatcher

logger = get_logger("modules.access.service")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_SUFFIX_SPACE = 1_000_000


class AccessCodeService:
    """
    Orchestrates access code issuance, redemption and the employee directory.

    Contract:
        Every public method returns an ``OperationResult``; typed errors
        never escape.
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
    # Issuance
    # =========================================================================

    def issue_code(
        self,
        employee_name: str,
        employee_email: str,
        code_type: str = AccessCodeType.EMPLOYEE.value,
        provider_id: UUID | str | None = None,
    ) -> OperationResult[AccessCodeInfo]:
        """
        Issue a one-time code binding ``employee_email`` to the caller's company.

        Code format: prefix + four-digit year + six-digit suffix derived from
        the current time in milliseconds.
        """

        def _issue() -> AccessCodeInfo:
            company_id = self._user.fresh_profile().company_id
            if company_id is None:
                raise ValidationError("company_id", "caller has no company")
            if not self._user.is_admin:
                raise ForbiddenError("only administrators issue access codes", str(company_id))

            name = require_text(employee_name, "employee_name")
            email = (employee_email or "").strip().lower()
            if not _EMAIL_RE.match(email):
                raise ValidationError("employee_email", "malformed email address")
            kind = parse_enum(AccessCodeType, code_type, "code_type")

            provider_uuid = None
            if kind == AccessCodeType.PROVIDER:
                if provider_id is None:
                    raise ValidationError("provider_id", "provider codes need a provider")
                provider = get_owned(
                    self._session,
                    ServiceProvider,
                    parse_uuid(provider_id, "provider_id"),
                    company_id,
                    "service_provider",
                )
                provider_uuid = provider.id

            return self._insert_code(company_id, kind, name, email, provider_uuid)

        return run_in_transaction(
            self._session, "issue_code", _issue, locale=self._config.locale
        )

    def _insert_code(
        self,
        company_id: UUID,
        kind: AccessCodeType,
        name: str,
        email: str,
        provider_id: UUID | None,
    ) -> AccessCodeInfo:
        settings = self._config.access_codes
        prefix = (
            settings.provider_prefix
            if kind == AccessCodeType.PROVIDER
            else settings.employee_prefix
        ).upper()
        now = self._clock.now()
        expires_at = now + timedelta(days=settings.ttl_days)
        base_suffix = self._clock.epoch_millis() % _SUFFIX_SPACE

        for attempt in range(settings.issue_attempts):
            code = f"{prefix}{now.year:04d}{(base_suffix + attempt) % _SUFFIX_SPACE:06d}"
            row = AccessCode(
                code=code,
                code_type=kind.value,
                employee_name=name,
                employee_email=email,
                company_id=company_id,
                provider_id=provider_id,
                is_used=False,
                expires_at=expires_at,
                created_by_id=self._user.user_id,
            )
            try:
                with self._session.begin_nested():
                    self._session.add(row)
                    self._session.flush()
            except IntegrityError:
                logger.info(
                    "access_code_collision",
                    extra={"attempt": attempt + 1, "code_prefix": prefix},
                )
                continue

            logger.info(
                "access_code_issued",
                extra={
                    "access_code_id": str(row.id),
                    "code_type": kind.value,
                    "expires_at": expires_at,
                    "attempts": attempt + 1,
                },
            )
            return AccessCodeInfo.from_row(row)

        raise ConflictError(
            "access_code",
            prefix,
            f"no free code after {settings.issue_attempts} attempts",
        )

    # =========================================================================
    # Redemption
    # =========================================================================

    def redeem_code(self, code: str, caller_email: str) -> OperationResult[Redemption]:
        """
        Join the company an access code belongs to.

        On success the profile cache is invalidated and the profile
        refetched, so the new company is visible immediately.
        """
        locale = self._config.locale

        def _redeem() -> Redemption:
            with self._user.in_flight("redeem_access_code"):
                result = raise_for_procedure(
                    self._dispatcher.call(
                        "redeem_access_code", code=code, email=caller_email
                    ),
                    "redeem_access_code",
                )
            return Redemption(
                company_id=UUID(result["company_id"]),
                company_name=result.get("company_name"),
                employee_name=result["employee_name"],
                code=result["code"],
                code_type=AccessCodeType(result["code_type"]),
                provider_id=UUID(result["provider_id"]) if result.get("provider_id") else None,
            )

        outcome = run_in_transaction(self._session, "redeem_code", _redeem, locale=locale)
        if not outcome.is_success:
            return replace(outcome, message=access_code_message(locale))

        self._user.invalidate()
        self._user.profile()
        return outcome

    # =========================================================================
    # Queries
    # =========================================================================

    def list_codes(self) -> OperationResult[list[AccessCodeInfo]]:
        """Codes of the caller's company, newest first."""

        def _list() -> list[AccessCodeInfo]:
            company_id = self._user.require_company_id()
            rows = self._session.execute(
                select(AccessCode)
                .where(AccessCode.company_id == company_id)
                .order_by(AccessCode.created_at.desc(), AccessCode.code.desc())
            ).scalars()
            return [AccessCodeInfo.from_row(r) for r in rows]

        return run_operation("list_codes", _list, locale=self._config.locale)

    def list_employees(self) -> OperationResult[list[ProfileInfo]]:
        """Active profiles of the caller's company."""

        def _list() -> list[ProfileInfo]:
            company_id = self._user.require_company_id()
            rows = self._session.execute(
                select(Profile)
                .where(Profile.company_id == company_id)
                .where(Profile.is_active.is_(True))
                .order_by(Profile.name, Profile.email)
            ).scalars()
            return [ProfileInfo.from_row(r) for r in rows]

        return run_operation("list_employees", _list, locale=self._config.locale)

    def deactivate_employee(self, profile_id: UUID | str) -> OperationResult[ProfileInfo]:
        """Deactivate a member of the caller's company.  Admin only."""
        target_id = profile_id

        def _deactivate() -> ProfileInfo:
            company_id = self._user.require_company_id(fresh=True)
            if not self._user.is_admin:
                raise ForbiddenError("only administrators manage employees", str(company_id))
            pid = parse_uuid(target_id, "profile_id")
            if pid == self._user.user_id:
                raise ValidationError("profile_id", "cannot deactivate yourself")
            row = self._session.get(Profile, pid, with_for_update=True)
            if row is None or row.company_id != company_id:
                raise NotFoundError("profile", str(pid))
            row.is_active = False
            self._session.flush()
            logger.info("employee_deactivated", extra={"profile_id": str(pid)})
            return ProfileInfo.from_row(row)

        return run_in_transaction(
            self._session,
            "deactivate_employee",
            _deactivate,
            locale=self._config.locale,
            entity_id=target_id,
        )
