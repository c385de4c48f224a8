"""Read-only selectors."""

from fieldops_kernel.selectors.base import BaseSelector
from fieldops_kernel.selectors.dashboard_selector import (
    AccountRow,
    DashboardSelector,
    TransactionRow,
)
from fieldops_kernel.selectors.provider_selector import (
    MissionSnapshot,
    PaymentSnapshot,
    ProviderSelector,
)

__all__ = [
    "AccountRow",
    "BaseSelector",
    "DashboardSelector",
    "MissionSnapshot",
    "PaymentSnapshot",
    "ProviderSelector",
    "TransactionRow",
]
