"""
Mission Service (``fieldops_modules.missions.service``).

Responsibility
--------------
Creates and maintains missions (service dispatch jobs) with their provider
assignment and service value split, and approves them.  Approval opens the
mission's pending revenue.

Architecture position
---------------------
**Modules layer** -- ``MissionService`` composes the pure split engine
(``fieldops_engines.revenue_split``) and the revenue ledger's
``build_pending_revenue``.

Invariants enforced
-------------------
* company_value + provider_value == service_value exactly, for every
  percentage in [0, 100].
* Assigned providers belong to the mission's company; their stored order
  is the order the split remainder follows.
* An approved mission's split and providers are frozen.
* Approval is admin only and happens once.

Failure modes
-------------
* ``ValidationError`` -- empty title, bad amount or percentage, no provider
  for a positive provider value at approval.
* ``NotFoundError`` -- unknown or foreign mission / provider.
* ``ConflictError`` -- editing or re-approving an approved mission.
* ``ForbiddenError`` -- non-admin approval.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops_config import get_active_config
from fieldops_config.schema import AppConfig
from fieldops_engines.revenue_split import (
    ServiceValueSplit,
    ordered_providers,
    provider_shares,
    split_service_value,
)
from fieldops_kernel.domain.clock import Clock, SystemClock
from fieldops_kernel.domain.results import OperationResult, run_operation
from fieldops_kernel.domain.values import Money
from fieldops_kernel.exceptions import (
    ConflictError,
    ForbiddenError,
    ValidationError,
)
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.mission import Mission, MissionStatus
from fieldops_kernel.models.provider import ServiceProvider
from fieldops_modules._service_helpers import (
    get_owned,
    parse_amount,
    parse_enum,
    parse_uuid,
    require_text,
    run_in_transaction,
)
from fieldops_modules.isolation.session import UserSession
from fieldops_modules.missions.models import MissionApproval, MissionInfo, SplitPreview
from fieldops_modules.revenue.models import PendingRevenueInfo
from fieldops_modules.revenue.service import build_pending_revenue

logger = get_logger("modules.missions.service")


def _percentage(raw: Any) -> Decimal:
    if raw is None or isinstance(raw, (float, bool)):
        raise ValidationError("company_percentage", f"expected a decimal, got {raw!r}")
    try:
        pct = Decimal(str(raw))
    except InvalidOperation:
        raise ValidationError("company_percentage", f"expected a decimal, got {raw!r}") from None
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError("company_percentage", "must be within [0, 100]")
    return pct


class MissionService:
    """
    Orchestrates missions and their revenue split.

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

    # =========================================================================
    # Split
    # =========================================================================

    def _split(self, service_value: Any, company_percentage: Any) -> ServiceValueSplit:
        value = parse_amount(service_value, "service_value", allow_zero=True)
        pct = _percentage(company_percentage)
        return split_service_value(Money.of(value, self._config.currency), pct)

    def preview_split(
        self,
        service_value: Decimal | str,
        company_percentage: Decimal | str,
        provider_ids: Sequence[UUID | str] = (),
    ) -> OperationResult[SplitPreview]:
        """Company value, provider value and per-provider shares, without saving."""

        def _preview() -> SplitPreview:
            split = self._split(service_value, company_percentage)
            try:
                providers = ordered_providers(list(provider_ids), None)
                shares = provider_shares(split.provider_value, providers)
            except ValueError as exc:
                raise ValidationError("provider_ids", str(exc)) from None
            return SplitPreview(
                service_value=split.service_value.amount,
                company_percentage=split.company_percentage,
                company_value=split.company_value.amount,
                provider_value=split.provider_value.amount,
                shares=tuple((pid, share.amount) for pid, share in shares),
            )

        return run_operation("preview_split", _preview, locale=self._config.locale)

    def _checked_providers(
        self,
        company_id: UUID,
        assigned_providers: Sequence[UUID | str] | None,
        provider_id: UUID | str | None,
    ) -> tuple[UUID | None, list[str]]:
        """Validate provider ids against the company; returns (lead, ordered ids)."""
        try:
            order = ordered_providers(
                list(assigned_providers or ()),
                provider_id,
            )
        except ValueError:
            raise ValidationError("assigned_providers", "contains a malformed id") from None
        for pid in order:
            provider = get_owned(self._session, ServiceProvider, pid, company_id, "service_provider")
            if not provider.is_active:
                raise ValidationError("assigned_providers", f"provider {pid} is inactive")
        lead = order[0] if order else None
        return lead, [str(p) for p in order]

    # =========================================================================
    # Commands
    # =========================================================================

    def create_mission(
        self,
        title: str,
        service_value: Decimal | str,
        company_percentage: Decimal | str,
        *,
        client_name: str | None = None,
        location: str | None = None,
        scheduled_date: date | None = None,
        provider_id: UUID | str | None = None,
        assigned_providers: Sequence[UUID | str] | None = None,
        status: str = MissionStatus.PLANNING.value,
    ) -> OperationResult[MissionInfo]:
        """Create a mission of the caller's company with its split computed."""

        def _create() -> MissionInfo:
            company_id = self._user.require_company_id(fresh=True)
            split = self._split(service_value, company_percentage)
            lead, providers = self._checked_providers(company_id, assigned_providers, provider_id)
            mission = Mission(
                company_id=company_id,
                title=require_text(title, "title"),
                client_name=client_name,
                location=location,
                scheduled_date=scheduled_date,
                provider_id=lead,
                assigned_providers=providers,
                service_value=split.service_value.amount,
                company_percentage=split.company_percentage,
                company_value=split.company_value.amount,
                provider_value=split.provider_value.amount,
                status=parse_enum(MissionStatus, status, "status").value,
                is_approved=False,
                created_by_id=self._user.user_id,
            )
            self._session.add(mission)
            self._session.flush()
            logger.info(
                "mission_created",
                extra={
                    "mission_id": str(mission.id),
                    "service_value": str(mission.service_value),
                    "company_value": str(mission.company_value),
                    "provider_value": str(mission.provider_value),
                    "provider_count": len(providers),
                },
            )
            return MissionInfo.from_row(mission)

        return run_in_transaction(self._session, "create_mission", _create, locale=self._config.locale)

    def update_split(
        self,
        mission_id: UUID | str,
        *,
        service_value: Decimal | str | None = None,
        company_percentage: Decimal | str | None = None,
        assigned_providers: Sequence[UUID | str] | None = None,
        provider_id: UUID | str | None = None,
    ) -> OperationResult[MissionInfo]:
        """Change value, percentage or providers of a mission not yet approved."""

        def _update() -> MissionInfo:
            company_id = self._user.require_company_id(fresh=True)
            mission = self._owned_mission(company_id, mission_id)
            if mission.is_approved:
                raise ConflictError("mission", str(mission.id), "approved missions are frozen")

            split = self._split(
                mission.service_value if service_value is None else service_value,
                mission.company_percentage if company_percentage is None else company_percentage,
            )
            mission.service_value = split.service_value.amount
            mission.company_percentage = split.company_percentage
            mission.company_value = split.company_value.amount
            mission.provider_value = split.provider_value.amount

            if assigned_providers is not None or provider_id is not None:
                lead, providers = self._checked_providers(
                    company_id, assigned_providers, provider_id
                )
                mission.provider_id = lead
                mission.assigned_providers = providers

            self._session.flush()
            logger.info(
                "mission_split_updated",
                extra={
                    "mission_id": str(mission.id),
                    "company_value": str(mission.company_value),
                    "provider_value": str(mission.provider_value),
                },
            )
            return MissionInfo.from_row(mission)

        return run_in_transaction(
            self._session, "update_mission_split", _update,
            locale=self._config.locale, entity_id=mission_id,
        )

    def set_status(self, mission_id: UUID | str, status: str) -> OperationResult[MissionInfo]:
        def _set() -> MissionInfo:
            company_id = self._user.require_company_id(fresh=True)
            mission = self._owned_mission(company_id, mission_id)
            mission.status = parse_enum(MissionStatus, status, "status").value
            self._session.flush()
            logger.info(
                "mission_status_changed",
                extra={"mission_id": str(mission.id), "status": mission.status},
            )
            return MissionInfo.from_row(mission)

        return run_in_transaction(
            self._session, "set_mission_status", _set,
            locale=self._config.locale, entity_id=mission_id,
        )

    def approve_mission(
        self,
        mission_id: UUID | str,
        due_date: date | None = None,
        description: str | None = None,
    ) -> OperationResult[MissionApproval]:
        """Approve a mission and open its pending revenue.  Admin only."""

        def _approve() -> MissionApproval:
            company_id = self._user.require_company_id(fresh=True)
            if not self._user.is_admin:
                raise ForbiddenError("only administrators approve missions", str(company_id))
            mission = self._owned_mission(company_id, mission_id)
            if mission.is_approved:
                raise ConflictError("mission", str(mission.id), "already approved")
            if mission.provider_value > 0 and not ordered_providers(
                mission.assigned_providers, mission.provider_id
            ):
                raise ValidationError("assigned_providers", "provider value has no provider")

            mission.is_approved = True
            mission.approved_at = self._clock.now()
            mission.approved_by_id = self._user.user_id

            due = due_date or self._clock.today() + timedelta(days=self._config.revenue.due_days)
            pending = build_pending_revenue(self._session, mission, company_id, due, description)
            logger.info(
                "mission_approved",
                extra={"mission_id": str(mission.id), "pending_revenue_id": str(pending.id)},
            )
            return MissionApproval(
                mission=MissionInfo.from_row(mission),
                pending_revenue=PendingRevenueInfo.from_row(pending),
            )

        return run_in_transaction(
            self._session, "approve_mission", _approve,
            locale=self._config.locale, entity_id=mission_id,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_mission(self, mission_id: UUID | str) -> OperationResult[MissionInfo]:
        def _get() -> MissionInfo:
            company_id = self._user.require_company_id()
            mission = get_owned(
                self._session,
                Mission,
                parse_uuid(mission_id, "mission_id"),
                company_id,
                "mission",
            )
            return MissionInfo.from_row(mission)

        return run_operation("get_mission", _get, locale=self._config.locale, entity_id=mission_id)

    def list_missions(
        self,
        status: str | None = None,
        provider_id: UUID | str | None = None,
    ) -> OperationResult[list[MissionInfo]]:
        """Missions of the company, optionally filtered by status or provider."""

        def _list() -> list[MissionInfo]:
            company_id = self._user.require_company_id()
            query = select(Mission).where(Mission.company_id == company_id)
            if status is not None:
                query = query.where(
                    Mission.status == parse_enum(MissionStatus, status, "status").value
                )
            missions = [
                MissionInfo.from_row(m)
                for m in self._session.execute(
                    query.order_by(Mission.scheduled_date, Mission.title, Mission.id)
                ).scalars()
            ]
            if provider_id is not None:
                wanted = parse_uuid(provider_id, "provider_id")
                missions = [m for m in missions if wanted in m.providers]
            return missions

        return run_operation("list_missions", _list, locale=self._config.locale)

    def _owned_mission(self, company_id: UUID, mission_id: UUID | str) -> Mission:
        return get_owned(
            self._session,
            Mission,
            parse_uuid(mission_id, "mission_id"),
            company_id,
            "mission",
            for_update=True,
        )
