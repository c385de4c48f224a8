"""
FieldOps Modules.

Thin orchestration layers over the FieldOps kernel, engines and trusted
procedures.  Each module contains:
- DTOs (frozen dataclasses mapped from ORM rows at the boundary)
- Workflows (state machines) where the records have a lifecycle
- A service facade that owns the transaction boundary

Modules:
- isolation: UserSession, profile cache, tenant guard, audit and repair
- access: access code issuance/redemption, employee directory
- accounts: bank accounts and credit cards receiving revenue
- missions: missions and the service value split
- revenue: pending -> confirmed revenue ledger
- providers: provider registry, payments, balances, settlement
- expenses: expense recording and approval lifecycle
- transactions: append-only cash transactions
- dashboard: monthly company figures
"""

from fieldops_modules import (
    access,
    accounts,
    dashboard,
    expenses,
    isolation,
    missions,
    providers,
    revenue,
    transactions,
)

__all__ = [
    "access",
    "accounts",
    "dashboard",
    "expenses",
    "isolation",
    "missions",
    "providers",
    "revenue",
    "transactions",
]
