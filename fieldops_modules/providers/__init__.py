"""
Providers Module (``fieldops_modules.providers``).

Responsibility
--------------
Service providers, the payments owed to them, their derived balance and
manual settlement.

Invariants enforced
-------------------
* Balances are derived from history; the cached column is reconciled only
  by explicit recalculation.
* Settlement is applied oldest due date first and never overpays.
"""

from fieldops_modules.providers.models import PaymentInfo, ProviderInfo, SettlementOutcome
from fieldops_modules.providers.service import ProviderService
from fieldops_modules.providers.workflows import PAYMENT_WORKFLOW

__all__ = [
    "PAYMENT_WORKFLOW",
    "PaymentInfo",
    "ProviderInfo",
    "ProviderService",
    "SettlementOutcome",
]
