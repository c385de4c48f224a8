"""
Tests for MissionService and RevenueService.

Covers:
- preview_split(): values and shares without writes
- create_mission(): split stored, provider ownership, percentage bounds
- update_split(): recomputes, frozen once approved
- approve_mission(): admin only, opens one pending revenue
- confirm(): end-to-end 1000 / 300 / 700 into P1 = 350, P2 = 350,
  validation before the procedure, conservation check
- cancel(): pending -> cancelled, confirm afterwards conflicts
- get_mission() / set_status() / list_missions() / list_confirmed()
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from fieldops_engines.balance import ProviderBalance
from fieldops_kernel.domain.results import OperationStatus
from fieldops_kernel.models import Payment
from fieldops_modules.missions import MissionService
from fieldops_modules.providers import ProviderService
from fieldops_modules.revenue import RevenueService


@pytest.fixture
def services(session, deterministic_clock, app_config):
    def _make(user_session):
        kwargs = {"clock": deterministic_clock, "config": app_config}
        return (
            MissionService(session, user_session, **kwargs),
            RevenueService(session, user_session, **kwargs),
            ProviderService(session, user_session, **kwargs),
        )

    return _make


class TestMissionSplit:

    @pytest.fixture(autouse=True)
    def _setup(self, admin_session, services, company, make_provider):
        self.missions, _, _ = services(admin_session)
        self.p1 = make_provider(company, "P1")
        self.p2 = make_provider(company, "P2")

    def test_preview_split(self):
        preview = self.missions.preview_split("100.00", "30", [self.p1.id, self.p2.id, self.p1.id]).unwrap()
        assert preview.company_value == Decimal("30.00")
        assert preview.provider_value == Decimal("70.00")
        assert preview.shares == ((self.p1.id, Decimal("35.00")), (self.p2.id, Decimal("35.00")))

    @pytest.mark.parametrize("pct", ["-1", "101", "abc"])
    def test_percentage_out_of_range(self, pct):
        assert self.missions.preview_split("100.00", pct).status == OperationStatus.VALIDATION_ERROR

    def test_create_mission_stores_split(self):
        info = self.missions.create_mission(
            "Install", "1000.00", "30", assigned_providers=[self.p1.id, self.p2.id]
        ).unwrap()
        assert info.company_value + info.provider_value == info.service_value
        assert info.providers == (self.p1.id, self.p2.id)
        assert info.provider_id == self.p1.id

    def test_foreign_provider_rejected(self, make_company, make_provider):
        foreign = make_provider(make_company("Other Co"))
        result = self.missions.create_mission("Install", "1000.00", "30", assigned_providers=[foreign.id])
        assert result.status == OperationStatus.NOT_FOUND

    def test_update_split_recomputes(self):
        info = self.missions.create_mission("Install", "1000.00", "30", provider_id=self.p1.id).unwrap()
        updated = self.missions.update_split(info.mission_id, company_percentage="50").unwrap()
        assert updated.company_value == Decimal("500.00")
        assert updated.provider_value == Decimal("500.00")


class TestMissionToRevenue:

    @pytest.fixture(autouse=True)
    def _setup(self, session, admin_session, member_session, services, company, make_provider, make_account):
        self.session = session
        self.missions, self.revenue, self.providers = services(admin_session)
        self.member_missions, self.member_revenue, _ = services(member_session)
        self.p1 = make_provider(company, "P1")
        self.p2 = make_provider(company, "P2")
        self.account = make_account(company)
        self.mission = self.missions.create_mission(
            "Install", "1000.00", "30", assigned_providers=[self.p1.id, self.p2.id]
        ).unwrap()

    def _approve(self):
        return self.missions.approve_mission(self.mission.mission_id).unwrap()

    def test_member_cannot_approve(self):
        result = self.member_missions.approve_mission(self.mission.mission_id)
        assert result.status == OperationStatus.FORBIDDEN

    def test_approval_opens_pending_revenue(self):
        approval = self._approve()
        pending = approval.pending_revenue

        assert approval.mission.is_approved
        assert pending.total_amount == Decimal("1000.00")
        assert pending.company_amount == Decimal("300.00")
        assert pending.provider_amount == Decimal("700.00")
        assert pending.due_date == date(2024, 7, 15)

    def test_second_approval_conflicts(self):
        self._approve()
        assert self.missions.approve_mission(self.mission.mission_id).status == OperationStatus.CONFLICT

    def test_approved_mission_split_is_frozen(self):
        self._approve()
        result = self.missions.update_split(self.mission.mission_id, company_percentage="10")
        assert result.status == OperationStatus.CONFLICT

    def test_one_open_pending_revenue_per_mission(self):
        self._approve()
        result = self.revenue.create_pending(self.mission.mission_id)
        assert result.status == OperationStatus.CONFLICT

    def test_confirm_end_to_end(self):
        pending = self._approve().pending_revenue

        confirmed = self.revenue.confirm(
            pending.pending_revenue_id, self.account.id, "bank_account", "pix"
        ).unwrap()

        assert confirmed.total_amount == Decimal("1000.00")
        payments = self.session.execute(
            select(Payment).where(Payment.confirmed_revenue_id == confirmed.confirmed_revenue_id)
        ).scalars().all()
        assert sorted(p.amount for p in payments) == [Decimal("350.00"), Decimal("350.00")]
        assert {p.provider_id for p in payments} == {self.p1.id, self.p2.id}
        assert self.revenue.verify_conservation(confirmed.confirmed_revenue_id).unwrap() is True
        assert self.revenue.list_pending("received").unwrap()[0].pending_revenue_id == pending.pending_revenue_id

        balance = self.providers.compute_balance(self.p1.id).unwrap()
        assert isinstance(balance, ProviderBalance)
        assert balance.total_earned.amount == Decimal("350.00")
        assert balance.current_balance.amount == Decimal("350.00")

    def test_confirm_validates_before_procedure(self, captured_logs):
        pending = self._approve().pending_revenue
        result = self.revenue.confirm(pending.pending_revenue_id, self.account.id, "wallet", "pix")

        assert result.status == OperationStatus.VALIDATION_ERROR
        assert not any(r["message"] == "procedure_started" for r in captured_logs())

    def test_confirm_unknown_pending_is_not_found(self):
        result = self.revenue.confirm(uuid4(), self.account.id, "bank_account", "pix")
        assert result.status == OperationStatus.NOT_FOUND

    def test_cancelled_revenue_cannot_be_confirmed(self, captured_logs):
        pending = self._approve().pending_revenue
        self.revenue.cancel(pending.pending_revenue_id).unwrap()

        result = self.revenue.confirm(pending.pending_revenue_id, self.account.id, "bank_account", "pix")
        assert result.status == OperationStatus.CONFLICT
        assert not any(r["message"] == "procedure_started" for r in captured_logs())

    def test_confirmed_revenue_is_listed(self):
        pending = self._approve().pending_revenue
        confirmed = self.revenue.confirm(
            pending.pending_revenue_id, self.account.id, "bank_account", "pix"
        ).unwrap()

        listed = self.revenue.list_confirmed().unwrap()
        assert [c.confirmed_revenue_id for c in listed] == [confirmed.confirmed_revenue_id]


class TestMissionQueries:

    @pytest.fixture(autouse=True)
    def _setup(self, admin_session, services, company, make_provider):
        self.missions, _, _ = services(admin_session)
        self.p1 = make_provider(company, "P1")
        self.first = self.missions.create_mission("Alpha", "100.00", "50", assigned_providers=[self.p1.id]).unwrap()
        self.second = self.missions.create_mission("Beta", "200.00", "50").unwrap()

    def test_get_mission(self):
        assert self.missions.get_mission(self.first.mission_id).unwrap().title == "Alpha"

    def test_get_foreign_mission_is_not_found(self, make_company, make_mission):
        foreign = make_mission(make_company("Other Co"))
        assert self.missions.get_mission(foreign.id).status == OperationStatus.NOT_FOUND

    def test_set_status(self):
        info = self.missions.set_status(self.first.mission_id, "in-progress").unwrap()
        assert info.status.value == "in-progress"
        assert self.missions.set_status(self.first.mission_id, "lost").status == OperationStatus.VALIDATION_ERROR

    def test_list_filters(self):
        self.missions.set_status(self.second.mission_id, "completed").unwrap()

        assert [m.title for m in self.missions.list_missions().unwrap()] == ["Alpha", "Beta"]
        assert [m.title for m in self.missions.list_missions(status="completed").unwrap()] == ["Beta"]
        assert [m.title for m in self.missions.list_missions(provider_id=self.p1.id).unwrap()] == ["Alpha"]
