"""
Module: fieldops_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (fieldops_services, fieldops_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fieldops_kernel domain values and logging.
    MUST NOT import fieldops_services or fieldops_modules.

Invariants enforced:
    - Purity: engines NEVER read the clock.  Dates are passed in.
    - Decimal-only arithmetic through Money; floats are rejected.
    - Determinism: identical inputs always produce identical outputs.
"""

from fieldops_engines.aggregates import (
    AccountInput,
    DashboardSummary,
    TransactionInput,
    month_bounds,
    summarize,
    totals_by,
)
from fieldops_engines.allocation import (
    AllocationEngine,
    AllocationLine,
    AllocationMethod,
    AllocationResult,
    AllocationTarget,
)
from fieldops_engines.balance import (
    MissionShareInput,
    PaymentInput,
    ProviderBalance,
    compute_provider_balance,
)
from fieldops_engines.revenue_split import (
    ServiceValueSplit,
    ordered_providers,
    provider_shares,
    share_for,
    split_service_value,
)

__all__ = [
    "AccountInput",
    "AllocationEngine",
    "AllocationLine",
    "AllocationMethod",
    "AllocationResult",
    "AllocationTarget",
    "DashboardSummary",
    "MissionShareInput",
    "PaymentInput",
    "ProviderBalance",
    "ServiceValueSplit",
    "TransactionInput",
    "compute_provider_balance",
    "month_bounds",
    "ordered_providers",
    "provider_shares",
    "share_for",
    "split_service_value",
    "summarize",
    "totals_by",
]
