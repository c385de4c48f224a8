"""
Expenses Module (``fieldops_modules.expenses``).

Employee expenses with accommodation detail, approval and reimbursement.
"""

from fieldops_modules.expenses.models import AccommodationDetail, ExpenseInfo
from fieldops_modules.expenses.service import ExpenseService
from fieldops_modules.expenses.workflows import EXPENSE_WORKFLOW

__all__ = [
    "AccommodationDetail",
    "EXPENSE_WORKFLOW",
    "ExpenseInfo",
    "ExpenseService",
]
