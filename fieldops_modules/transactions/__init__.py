"""
Transactions Module (``fieldops_modules.transactions``).

The company's append-only cash-flow ledger.
"""

from fieldops_modules.transactions.models import TransactionInfo
from fieldops_modules.transactions.service import TransactionService
from fieldops_modules.transactions.workflows import TRANSACTION_WORKFLOW

__all__ = [
    "TRANSACTION_WORKFLOW",
    "TransactionInfo",
    "TransactionService",
]
