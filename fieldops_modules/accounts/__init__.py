"""
Accounts Module (``fieldops_modules.accounts``).

Responsibility
--------------
The company's settlement accounts: bank accounts and credit cards that
confirmed revenue is received into.
"""

from fieldops_modules.accounts.models import AccountInfo
from fieldops_modules.accounts.service import AccountService

__all__ = [
    "AccountInfo",
    "AccountService",
]
