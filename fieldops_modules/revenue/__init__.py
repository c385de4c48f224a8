"""
Revenue Ledger Module (``fieldops_modules.revenue``).

Responsibility
--------------
Pending revenue created on mission approval, confirmed exactly once into a
confirmed revenue plus the provider payments it owes.

Invariants enforced
-------------------
* pending -> received | cancelled; both terminal.
* sum(payments of a confirmed revenue) == its provider_amount.
"""

from fieldops_modules.revenue.models import ConfirmedRevenueInfo, PendingRevenueInfo
from fieldops_modules.revenue.service import RevenueService, build_pending_revenue
from fieldops_modules.revenue.workflows import PENDING_REVENUE_WORKFLOW

__all__ = [
    "ConfirmedRevenueInfo",
    "PENDING_REVENUE_WORKFLOW",
    "PendingRevenueInfo",
    "RevenueService",
    "build_pending_revenue",
]
