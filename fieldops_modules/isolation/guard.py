"""
Module: fieldops_modules.isolation.guard
Responsibility:
    Tenant isolation checks shared by every module service:
      - resolve_tenant: authoritative fresh read of the caller's company;
      - assert_access: may a caller of company A touch a record of company B;
      - ensure_company_data: stamp the caller's company on a write payload;
      - access_level / can_manage_company: role view of a profile;
      - audit_isolation: count what a company's scope reaches, table by table.
      - repair_orphans: adopt orphan rows linked to the company.

Architecture position:
    Modules layer.  Imports kernel models and logging only; services of
    every other module depend on it.

Invariants enforced:
    - A caller without a company can touch nothing.
    - A record of another company is never accessible.
    - A record with no company (legacy orphan) is accessible to any member;
      the audit reports orphans so they can be repaired.

Failure modes:
    - ForbiddenError from assert_access and ensure_company_data.
    - Foreign rows found by audit_isolation are returned in the result and
      logged at ERROR.  They are never dropped or re-stamped.  Only orphans
      are repaired, and each adopted row is logged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from fieldops_kernel.exceptions import ForbiddenError
from fieldops_kernel.logging_config import get_logger
from fieldops_kernel.models.expense import Expense
from fieldops_kernel.models.mission import Mission
from fieldops_kernel.models.payment import Payment
from fieldops_kernel.models.profile import Profile, UserType
from fieldops_kernel.models.provider import ServiceProvider
from fieldops_kernel.models.revenue import ConfirmedRevenue, PendingRevenue
from fieldops_kernel.models.transaction import Transaction
from fieldops_modules.isolation.models import (
    AccessLevel,
    IsolationAudit,
    OrphanRepair,
    ProfileInfo,
    TableAudit,
)

logger = get_logger("modules.isolation.guard")


def resolve_tenant(session: Session, user_id: UUID) -> UUID | None:
    """The caller's company as stored right now, bypassing any cache."""
    return session.execute(
        select(Profile.company_id).where(Profile.id == user_id)
    ).scalar_one_or_none()


def assert_access(caller_company_id: UUID | None, record_company_id: UUID | None) -> None:
    """
    Raise ForbiddenError unless the caller's company may touch the record.

    Passes when the record has no company.
    """
    if caller_company_id is None:
        raise ForbiddenError("caller has no company")
    if record_company_id is not None and record_company_id != caller_company_id:
        logger.warning(
            "cross_company_access_denied",
            extra={
                "caller_company_id": str(caller_company_id),
                "record_company_id": str(record_company_id),
            },
        )
        raise ForbiddenError("record belongs to another company", str(caller_company_id))


def ensure_company_data(data: Mapping[str, Any], company_id: UUID | None) -> dict[str, Any]:
    """Return a copy of a write payload stamped with the caller's company."""
    if company_id is None:
        raise ForbiddenError("caller has no company")
    supplied = data.get("company_id")
    if supplied is not None and str(supplied) != str(company_id):
        raise ForbiddenError("payload names another company", str(company_id))
    stamped = dict(data)
    stamped["company_id"] = company_id
    return stamped


def access_level(profile: ProfileInfo | None) -> AccessLevel:
    """owner / employee / provider for members of a company, else none."""
    if profile is None or profile.company_id is None or not profile.is_active:
        return AccessLevel.NONE
    if profile.is_admin:
        return AccessLevel.OWNER
    if profile.user_type == UserType.PROVIDER:
        return AccessLevel.PROVIDER
    return AccessLevel.EMPLOYEE


def can_manage_company(profile: ProfileInfo | None) -> bool:
    return access_level(profile) == AccessLevel.OWNER


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


def _scopes(company_id: UUID) -> list[tuple[str, Any, list[Any]]]:
    """
    Per table: the model and the conditions that link a row to the company
    other than its own company_id column.
    """
    missions = select(Mission.id).where(Mission.company_id == company_id)
    providers = select(ServiceProvider.id).where(ServiceProvider.company_id == company_id)
    members = select(Profile.id).where(Profile.company_id == company_id)
    pending = select(PendingRevenue.id).where(PendingRevenue.company_id == company_id)
    confirmed = select(ConfirmedRevenue.id).where(ConfirmedRevenue.company_id == company_id)

    return [
        ("missions", Mission, [Mission.provider_id.in_(providers)]),
        (
            "payments",
            Payment,
            [
                Payment.provider_id.in_(providers),
                Payment.confirmed_revenue_id.in_(confirmed),
            ],
        ),
        (
            "expenses",
            Expense,
            [Expense.mission_id.in_(missions), Expense.employee_id.in_(members)],
        ),
        (
            "transactions",
            Transaction,
            [Transaction.mission_id.in_(missions), Transaction.user_id.in_(members)],
        ),
        ("pending_revenues", PendingRevenue, [PendingRevenue.mission_id.in_(missions)]),
        (
            "confirmed_revenues",
            ConfirmedRevenue,
            [
                ConfirmedRevenue.mission_id.in_(missions),
                ConfirmedRevenue.pending_revenue_id.in_(pending),
            ],
        ),
    ]


def audit_isolation(session: Session, company_id: UUID) -> IsolationAudit:
    """
    Count, per tenant-scoped table, the rows the company's scope reaches.

    The scope of a company is its own rows, rows with no company, and rows
    linked to its missions, providers, members or revenues.  Linked rows
    stamped with another company are ``foreign``.
    """
    tables: list[TableAudit] = []
    for table, model, links in _scopes(company_id):
        rows = session.execute(
            select(model.company_id, func.count())
            .where(or_(model.company_id == company_id, model.company_id.is_(None), *links))
            .group_by(model.company_id)
        ).all()

        own = orphan = foreign = 0
        for row_company, count in rows:
            if row_company is None:
                orphan += count
            elif row_company == company_id:
                own += count
            else:
                foreign += count

        audit = TableAudit(
            table=table,
            total=own + orphan + foreign,
            company=own,
            orphan=orphan,
            foreign=foreign,
        )
        tables.append(audit)

        if foreign:
            logger.error(
                "isolation_violation_detected",
                extra={
                    "table": table,
                    "audited_company_id": str(company_id),
                    "foreign_count": foreign,
                },
            )
        elif orphan:
            logger.warning(
                "orphan_records_detected",
                extra={"table": table, "orphan_count": orphan},
            )

    result = IsolationAudit(company_id=company_id, tables=tuple(tables))
    logger.info(
        "isolation_audit_completed",
        extra={
            "audited_company_id": str(company_id),
            "is_isolated": result.is_isolated,
            "table_count": len(tables),
        },
    )
    return result


def repair_orphans(session: Session, company_id: UUID) -> OrphanRepair:
    """
    Stamp ``company_id`` on orphan rows whose links prove they belong to it.

    A row is adopted when it has no company and one of its audit links
    (mission, provider, member or revenue of the company) matches.  Passes
    repeat until nothing changes, since an adopted mission can prove the
    ownership of its expenses.  Orphans with no such link are left alone.
    """
    adopted: dict[str, int] = {}
    changed = True
    while changed:
        changed = False
        for table, model, links in _scopes(company_id):
            rows = session.execute(
                select(model)
                .where(model.company_id.is_(None))
                .where(or_(*links))
                .with_for_update()
            ).scalars().all()
            for row in rows:
                row.company_id = company_id
                logger.info(
                    "orphan_record_adopted",
                    extra={
                        "table": table,
                        "record_id": str(row.id),
                        "audited_company_id": str(company_id),
                    },
                )
            if rows:
                session.flush()
                adopted[table] = adopted.get(table, 0) + len(rows)
                changed = True

    result = OrphanRepair(company_id=company_id, adopted=adopted)
    logger.info(
        "orphan_repair_completed",
        extra={"audited_company_id": str(company_id), "adopted_count": result.total},
    )
    return result
