"""
Dashboard Module (``fieldops_modules.dashboard``).

Monthly financial snapshot of a company.
"""

from fieldops_engines.aggregates import DashboardSummary
from fieldops_modules.dashboard.service import DashboardService

__all__ = ["DashboardService", "DashboardSummary"]
