"""
Tests for DashboardService: monthly figures, the owner-only isolation
audit and orphan repair.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from fieldops_kernel.domain.results import OperationStatus
from fieldops_kernel.models import (
    AccountType,
    Expense,
    ExpenseStatus,
    PaymentStatus,
    PendingRevenue,
    PendingRevenueStatus,
    Transaction,
)
from fieldops_modules.dashboard import DashboardService


@pytest.fixture
def dashboard_service_for(session, deterministic_clock, app_config):
    def _make(user_session):
        return DashboardService(session, user_session, clock=deterministic_clock, config=app_config)

    return _make


class TestSummary:

    @pytest.fixture(autouse=True)
    def _setup(
        self, session, company, admin, admin_session, dashboard_service_for,
        make_account, make_provider, make_payment, make_mission,
    ):
        def tx(kind, amount, on, status="completed"):
            session.add(
                Transaction(
                    id=uuid4(), company_id=company.id, type=kind, category="other",
                    amount=Decimal(amount), date=on, method="pix", status=status,
                )
            )

        tx("income", "1000.00", date(2024, 6, 3))
        tx("income", "500.00", date(2024, 6, 20), status="pending")
        tx("expense", "300.00", date(2024, 6, 30))
        tx("expense", "999.00", date(2024, 7, 1))

        mission = make_mission(company)
        session.add(
            PendingRevenue(
                id=uuid4(), mission_id=mission.id, company_id=company.id, client_name="Client",
                total_amount=Decimal("800.00"), company_amount=Decimal("240.00"),
                provider_amount=Decimal("560.00"), status=PendingRevenueStatus.PENDING.value,
            )
        )
        session.add(
            Expense(
                id=uuid4(), company_id=company.id, employee_id=admin.id, employee_name="Owner",
                category="fuel", amount=Decimal("45.00"), date=date(2024, 6, 2),
                status=ExpenseStatus.APPROVED.value,
            )
        )
        session.commit()

        make_account(company, balance=Decimal("2000.00"))
        make_account(
            company,
            AccountType.CREDIT_CARD.value,
            credit_limit=Decimal("1500.00"),
            available_limit=Decimal("1200.00"),
        )
        provider = make_provider(company)
        make_payment(provider, Decimal("100.00"))
        make_payment(provider, Decimal("80.00"), status=PaymentStatus.PARTIAL.value, paid_amount=Decimal("30.00"))
        make_payment(provider, Decimal("70.00"), status=PaymentStatus.COMPLETED.value)

        self.service = dashboard_service_for(admin_session)

    def test_month_figures(self):
        summary = self.service.summary().unwrap()

        assert summary.month_start == date(2024, 6, 1)
        assert summary.monthly_income.amount == Decimal("1000.00")
        assert summary.monthly_expenses.amount == Decimal("300.00")
        assert summary.net_result.amount == Decimal("700.00")

    def test_resources(self):
        summary = self.service.summary().unwrap()

        assert summary.bank_balance.amount == Decimal("2000.00")
        assert summary.credit_available.amount == Decimal("1200.00")
        assert summary.credit_used.amount == Decimal("300.00")
        assert summary.total_resources.amount == Decimal("3200.00")

    def test_outstanding_figures(self):
        summary = self.service.summary().unwrap()

        assert summary.pending_payments.amount == Decimal("150.00")
        assert summary.pending_revenue.amount == Decimal("800.00")
        assert summary.approved_expenses.amount == Decimal("45.00")

    def test_other_month(self):
        summary = self.service.summary(date(2024, 7, 15)).unwrap()
        assert summary.monthly_expenses.amount == Decimal("999.00")
        assert summary.monthly_income.amount == Decimal("0")

    def test_other_company_sees_nothing(self, make_company, make_profile, user_session_for, dashboard_service_for):
        outsider = make_profile(make_company("Other Co"), role="admin", user_type="admin")
        summary = dashboard_service_for(user_session_for(outsider)).summary().unwrap()

        assert summary.monthly_income.amount == Decimal("0")
        assert summary.bank_balance.amount == Decimal("0")


class TestIsolationAudit:

    def test_admin_audit_is_clean(self, admin_session, dashboard_service_for, company, make_mission):
        make_mission(company)
        audit = dashboard_service_for(admin_session).isolation_audit().unwrap()
        assert audit.is_isolated

    def test_member_forbidden(self, member_session, dashboard_service_for):
        result = dashboard_service_for(member_session).isolation_audit()
        assert result.status == OperationStatus.FORBIDDEN


class TestRepairOrphans:

    def test_admin_repair_clears_linked_orphans(
        self, session, admin_session, dashboard_service_for, company, make_provider, make_mission
    ):
        provider = make_provider(company)
        orphan = make_mission(None, providers=(provider,))

        repair = dashboard_service_for(admin_session).repair_orphans().unwrap()

        assert repair.adopted == {"missions": 1}
        session.refresh(orphan)
        assert orphan.company_id == company.id
        audit = dashboard_service_for(admin_session).isolation_audit().unwrap()
        assert audit.for_table("missions").orphan == 0

    def test_member_forbidden(self, member_session, dashboard_service_for, make_mission):
        orphan = make_mission(None)
        result = dashboard_service_for(member_session).repair_orphans()

        assert result.status == OperationStatus.FORBIDDEN
        assert orphan.company_id is None
