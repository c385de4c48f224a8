"""
Company Isolation Module (``fieldops_modules.isolation``).

Responsibility
--------------
Everything that keeps one company's data away from another: the explicit
``UserSession`` (authenticated user plus profile cache), the tenant guard
functions every service calls before reading or writing, the isolation
audit and the repair of orphan rows it reports.

Architecture position
---------------------
**Modules layer** -- depended upon by every other module service.

Invariants enforced
-------------------
* A caller without a company can read or write nothing tenant-scoped.
* Records of another company are never returned or modified.
* Records without a company are visible to members and reported by the
  audit as orphans.
"""

from fieldops_modules.isolation.guard import (
    access_level,
    assert_access,
    audit_isolation,
    can_manage_company,
    ensure_company_data,
    repair_orphans,
    resolve_tenant,
)
from fieldops_modules.isolation.models import (
    AccessLevel,
    CompanyInfo,
    IsolationAudit,
    OrphanRepair,
    ProfileInfo,
    TableAudit,
)
from fieldops_modules.isolation.session import CachedProfile, ProfileCache, UserSession

__all__ = [
    "AccessLevel",
    "CachedProfile",
    "CompanyInfo",
    "IsolationAudit",
    "OrphanRepair",
    "ProfileCache",
    "ProfileInfo",
    "TableAudit",
    "UserSession",
    "access_level",
    "assert_access",
    "audit_isolation",
    "can_manage_company",
    "ensure_company_data",
    "repair_orphans",
    "resolve_tenant",
]
