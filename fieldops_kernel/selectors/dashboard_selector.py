"""
Module: fieldops_kernel.selectors.dashboard_selector
Responsibility: Read the company figures the dashboard aggregates: the
    month's transactions, settlement accounts, outstanding provider payments,
    pending revenues and approved expenses.
Architecture position: Kernel > Selectors.  Read-only.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from fieldops_kernel.models.account import SettlementAccount
from fieldops_kernel.models.expense import Expense, ExpenseStatus
from fieldops_kernel.models.payment import OUTSTANDING_STATUSES, Payment, PaymentType
from fieldops_kernel.models.revenue import PendingRevenue, PendingRevenueStatus
from fieldops_kernel.models.transaction import Transaction
from fieldops_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class TransactionRow:
    type: str
    status: str
    amount: Decimal
    date: date


@dataclass(frozen=True)
class AccountRow:
    account_type: str
    balance: Decimal
    credit_limit: Decimal
    available_limit: Decimal


class DashboardSelector(BaseSelector):

    def transactions_between(self, company_id: UUID, start: date, end: date) -> list[TransactionRow]:
        """Transactions dated in [start, end)."""
        rows = self.session.execute(
            select(Transaction.type, Transaction.status, Transaction.amount, Transaction.date)
            .where(Transaction.company_id == company_id)
            .where(Transaction.date >= start)
            .where(Transaction.date < end)
        ).all()
        return [TransactionRow(r.type, r.status, r.amount, r.date) for r in rows]

    def accounts(self, company_id: UUID) -> list[AccountRow]:
        rows = self.session.execute(
            select(SettlementAccount)
            .where(SettlementAccount.company_id == company_id)
            .where(SettlementAccount.is_active.is_(True))
        ).scalars()
        return [
            AccountRow(a.account_type, a.balance, a.credit_limit, a.available_limit)
            for a in rows
        ]

    def outstanding_payment_amounts(self, company_id: UUID) -> list[Decimal]:
        rows = self.session.execute(
            select(Payment.amount, Payment.paid_amount)
            .where(Payment.company_id == company_id)
            .where(Payment.status.in_(OUTSTANDING_STATUSES))
            .where(Payment.type != PaymentType.BALANCE_PAYMENT.value)
        ).all()
        return [r.amount - (r.paid_amount or Decimal("0")) for r in rows]

    def pending_revenue_amounts(self, company_id: UUID) -> list[Decimal]:
        return list(
            self.session.execute(
                select(PendingRevenue.total_amount)
                .where(PendingRevenue.company_id == company_id)
                .where(PendingRevenue.status == PendingRevenueStatus.PENDING.value)
            ).scalars()
        )

    def approved_expense_amounts(self, company_id: UUID) -> list[Decimal]:
        return list(
            self.session.execute(
                select(Expense.amount)
                .where(Expense.company_id == company_id)
                .where(Expense.status == ExpenseStatus.APPROVED.value)
            ).scalars()
        )
