"""
Module: fieldops_engines.aggregates
Responsibility:
    Pure aggregations behind the company dashboard and the expense reports:
    monthly income/expense totals, account resources, outstanding amounts
    and grouped expense totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Income and expense are exclusive: a transaction counts toward exactly
      one of monthly_income / monthly_expenses, by its type.
    - Only completed transactions dated within the month are counted.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from fieldops_kernel.domain.values import Money


@dataclass(frozen=True)
class TransactionInput:
    type: str
    status: str
    amount: Decimal
    date: date


@dataclass(frozen=True)
class AccountInput:
    account_type: str
    balance: Decimal
    credit_limit: Decimal
    available_limit: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    """Company financial snapshot for one month."""

    month_start: date
    monthly_income: Money
    monthly_expenses: Money
    net_result: Money
    bank_balance: Money
    credit_available: Money
    credit_used: Money
    total_resources: Money
    pending_payments: Money
    pending_revenue: Money
    approved_expenses: Money


def month_bounds(month: date) -> tuple[date, date]:
    """First day of ``month`` and first day of the following month."""
    start = month.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def _sum(amounts: Iterable[Decimal], currency: str) -> Money:
    return Money.of(sum(amounts, Decimal("0")), currency)


def summarize(
    month: date,
    transactions: Iterable[TransactionInput],
    accounts: Iterable[AccountInput],
    outstanding_payments: Iterable[Decimal],
    pending_revenues: Iterable[Decimal],
    approved_expenses: Iterable[Decimal],
    currency: str,
) -> DashboardSummary:
    """Build the dashboard summary for the month containing ``month``."""
    start, end = month_bounds(month)

    income: list[Decimal] = []
    expenses: list[Decimal] = []
    for tx in transactions:
        if tx.status != "completed" or not (start <= tx.date < end):
            continue
        if tx.type == "income":
            income.append(tx.amount)
        elif tx.type == "expense":
            expenses.append(tx.amount)

    bank: list[Decimal] = []
    available: list[Decimal] = []
    used: list[Decimal] = []
    for account in accounts:
        if account.account_type == "bank_account":
            bank.append(account.balance)
        elif account.account_type == "credit_card":
            available.append(account.available_limit)
            used.append(account.credit_limit - account.available_limit)

    monthly_income = _sum(income, currency)
    monthly_expenses = _sum(expenses, currency)
    bank_balance = _sum(bank, currency)
    credit_available = _sum(available, currency)

    return DashboardSummary(
        month_start=start,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        net_result=monthly_income - monthly_expenses,
        bank_balance=bank_balance,
        credit_available=credit_available,
        credit_used=_sum(used, currency),
        total_resources=bank_balance + credit_available,
        pending_payments=_sum(outstanding_payments, currency),
        pending_revenue=_sum(pending_revenues, currency),
        approved_expenses=_sum(approved_expenses, currency),
    )


def totals_by(
    items: Iterable[Any],
    key: Callable[[Any], Hashable],
    amount: Callable[[Any], Decimal],
    currency: str,
) -> dict[Hashable, Money]:
    """Group ``items`` by ``key`` and total ``amount`` per group."""
    totals: dict[Hashable, Decimal] = {}
    for item in items:
        k = key(item)
        totals[k] = totals.get(k, Decimal("0")) + amount(item)
    return {k: Money.of(v, currency) for k, v in totals.items()}
