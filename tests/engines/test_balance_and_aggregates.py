"""
Tests for the provider balance and dashboard aggregate engines.

Covers:
- compute_provider_balance(): earned from approved missions only, pending
  share, paid from completed and partial payments, non-member missions
- summarize(): exclusive income/expense, month bounds, completed only,
  account resources
- totals_by(): grouping
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from fieldops_engines.aggregates import (
    AccountInput,
    TransactionInput,
    month_bounds,
    summarize,
    totals_by,
)
from fieldops_engines.balance import MissionShareInput, PaymentInput, compute_provider_balance


class TestComputeProviderBalance:

    def setup_method(self):
        self.p1 = uuid4()
        self.p2 = uuid4()

    def test_balance_from_missions_and_payments(self):
        missions = [
            MissionShareInput(uuid4(), (self.p1, self.p2), Decimal("700.00"), True),
            MissionShareInput(uuid4(), (self.p1,), Decimal("200.00"), False),
            MissionShareInput(uuid4(), (self.p2,), Decimal("999.00"), True),
        ]
        payments = [
            PaymentInput(uuid4(), Decimal("100.00"), Decimal("0"), "completed"),
            PaymentInput(uuid4(), Decimal("100.00"), Decimal("40.00"), "partial"),
            PaymentInput(uuid4(), Decimal("500.00"), Decimal("0"), "pending"),
            PaymentInput(uuid4(), Decimal("500.00"), Decimal("0"), "cancelled"),
        ]

        balance = compute_provider_balance(self.p1, missions, payments, "BRL")

        assert balance.total_earned.amount == Decimal("350.00")
        assert balance.pending_balance.amount == Decimal("200.00")
        assert balance.total_paid.amount == Decimal("140.00")
        assert balance.current_balance.amount == Decimal("210.00")
        assert balance.missions_count == 1
        assert balance.pending_missions_count == 1

    def test_no_history_is_zero(self):
        balance = compute_provider_balance(self.p1, [], [], "BRL")
        assert balance.current_balance.is_zero
        assert balance.missions_count == 0


class TestSummarize:

    def test_monthly_figures(self):
        month = date(2024, 6, 15)
        transactions = [
            TransactionInput("income", "completed", Decimal("1000.00"), date(2024, 6, 1)),
            TransactionInput("income", "pending", Decimal("500.00"), date(2024, 6, 2)),
            TransactionInput("expense", "completed", Decimal("300.00"), date(2024, 6, 30)),
            TransactionInput("expense", "completed", Decimal("50.00"), date(2024, 7, 1)),
        ]
        accounts = [
            AccountInput("bank_account", Decimal("2000.00"), Decimal("0"), Decimal("0")),
            AccountInput("credit_card", Decimal("0"), Decimal("5000.00"), Decimal("3500.00")),
        ]

        summary = summarize(
            month,
            transactions,
            accounts,
            [Decimal("100.00"), Decimal("20.00")],
            [Decimal("700.00")],
            [Decimal("45.50")],
            "BRL",
        )

        assert summary.month_start == date(2024, 6, 1)
        assert summary.monthly_income.amount == Decimal("1000.00")
        assert summary.monthly_expenses.amount == Decimal("300.00")
        assert summary.net_result.amount == Decimal("700.00")
        assert summary.bank_balance.amount == Decimal("2000.00")
        assert summary.credit_available.amount == Decimal("3500.00")
        assert summary.credit_used.amount == Decimal("1500.00")
        assert summary.total_resources.amount == Decimal("5500.00")
        assert summary.pending_payments.amount == Decimal("120.00")
        assert summary.pending_revenue.amount == Decimal("700.00")
        assert summary.approved_expenses.amount == Decimal("45.50")

    def test_december_bounds_roll_over(self):
        assert month_bounds(date(2024, 12, 31)) == (date(2024, 12, 1), date(2025, 1, 1))


class TestTotalsBy:

    def test_groups_and_sums(self):
        rows = [("a", Decimal("1.50")), ("b", Decimal("2.00")), ("a", Decimal("3.00"))]
        totals = totals_by(rows, lambda r: r[0], lambda r: r[1], "BRL")
        assert totals["a"].amount == Decimal("4.50")
        assert totals["b"].amount == Decimal("2.00")
