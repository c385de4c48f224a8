"""ORM models for FieldOps."""

from fieldops_kernel.models.access_code import AccessCode, AccessCodeType
from fieldops_kernel.models.account import AccountType, PaymentMethod, SettlementAccount
from fieldops_kernel.models.company import Company
from fieldops_kernel.models.expense import Expense, ExpenseCategory, ExpenseStatus
from fieldops_kernel.models.mission import Mission, MissionStatus
from fieldops_kernel.models.payment import (
    OUTSTANDING_STATUSES,
    Payment,
    PaymentStatus,
    PaymentType,
)
from fieldops_kernel.models.profile import Profile, ProfileRole, UserType
from fieldops_kernel.models.provider import ServiceProvider
from fieldops_kernel.models.revenue import (
    ConfirmedRevenue,
    PendingRevenue,
    PendingRevenueStatus,
)
from fieldops_kernel.models.settlement import ProviderSettlement
from fieldops_kernel.models.transaction import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)


def import_all_models() -> None:
    """Ensure every model is registered on Base.metadata (imports above do it)."""


__all__ = [
    "AccessCode",
    "AccessCodeType",
    "AccountType",
    "Company",
    "ConfirmedRevenue",
    "Expense",
    "ExpenseCategory",
    "ExpenseStatus",
    "Mission",
    "MissionStatus",
    "OUTSTANDING_STATUSES",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentType",
    "PendingRevenue",
    "PendingRevenueStatus",
    "Profile",
    "ProfileRole",
    "ProviderSettlement",
    "ServiceProvider",
    "SettlementAccount",
    "Transaction",
    "TransactionCategory",
    "TransactionStatus",
    "TransactionType",
    "UserType",
    "import_all_models",
]
