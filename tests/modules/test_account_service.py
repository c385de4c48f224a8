"""
Tests for AccountService.

Covers:
- create_bank_account() / create_credit_card(): admin only, card starts
  fully available, bad amounts and days
- update_account(): card limit keeps the used amount, limit below used,
  card fields on a bank account, deactivation
- list_accounts(): company scoped, type and active filters
- inactive accounts cannot receive revenue and leave the dashboard
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from fieldops_kernel.domain.results import OperationStatus
from fieldops_kernel.models import AccountType
from fieldops_kernel.models.profile import ProfileRole
from fieldops_modules.accounts import AccountService
from fieldops_modules.dashboard.service import DashboardService


@pytest.fixture
def account_service_for(session, deterministic_clock, app_config):
    def _make(user_session):
        return AccountService(session, user_session, clock=deterministic_clock, config=app_config)

    return _make


class TestCreateAccounts:

    def test_create_bank_account(self, admin_session, account_service_for, company):
        info = account_service_for(admin_session).create_bank_account(
            "Operating", bank="Banco do Brasil", opening_balance="2500.00"
        ).unwrap()

        assert info.company_id == company.id
        assert info.account_type == AccountType.BANK_ACCOUNT
        assert info.balance == Decimal("2500.00")
        assert info.is_active

    def test_card_starts_fully_available(self, admin_session, account_service_for):
        info = account_service_for(admin_session).create_credit_card(
            "Corporate", "5000.00", closing_day=10, due_day=20
        ).unwrap()

        assert info.is_credit_card
        assert info.available_limit == Decimal("5000.00")
        assert info.used_limit == Decimal("0.00")
        assert (info.closing_day, info.due_day) == (10, 20)

    def test_member_cannot_create(self, member_session, account_service_for):
        result = account_service_for(member_session).create_bank_account("Petty")
        assert result.status == OperationStatus.FORBIDDEN

    def test_demoted_admin_cannot_create(self, session, admin, admin_session, account_service_for):
        admin_session.profile()
        admin.role = ProfileRole.USER.value
        session.commit()

        result = account_service_for(admin_session).create_bank_account("Petty")
        assert result.status == OperationStatus.FORBIDDEN

    @pytest.mark.parametrize("limit", ["-1.00", "10.001", 1000.0])
    def test_bad_limit_rejected(self, admin_session, account_service_for, limit):
        result = account_service_for(admin_session).create_credit_card("Card", limit)
        assert result.status == OperationStatus.VALIDATION_ERROR

    @pytest.mark.parametrize("day", [0, 32, "10", True])
    def test_bad_billing_day_rejected(self, admin_session, account_service_for, day):
        result = account_service_for(admin_session).create_credit_card("Card", "100.00", due_day=day)
        assert result.status == OperationStatus.VALIDATION_ERROR


class TestUpdateAccount:

    @pytest.fixture(autouse=True)
    def _setup(self, admin_session, account_service_for, company, make_account):
        self.service = account_service_for(admin_session)
        self.card = make_account(
            company,
            AccountType.CREDIT_CARD.value,
            credit_limit=Decimal("1000.00"),
            available_limit=Decimal("700.00"),
        )
        self.bank = make_account(company, balance=Decimal("50.00"))

    def test_raising_limit_keeps_used_amount(self):
        info = self.service.update_account(self.card.id, credit_limit="1500.00").unwrap()

        assert info.credit_limit == Decimal("1500.00")
        assert info.available_limit == Decimal("1200.00")
        assert info.used_limit == Decimal("300.00")

    def test_limit_below_used_rejected(self):
        result = self.service.update_account(self.card.id, credit_limit="200.00")

        assert result.status == OperationStatus.VALIDATION_ERROR
        assert self.card.credit_limit == Decimal("1000.00")

    def test_card_fields_rejected_on_bank_account(self):
        result = self.service.update_account(self.bank.id, credit_limit="100.00")
        assert result.status == OperationStatus.VALIDATION_ERROR

    def test_balance_is_not_updatable(self):
        result = self.service.update_account(self.bank.id, balance="999.00")

        assert result.status == OperationStatus.VALIDATION_ERROR
        assert self.bank.balance == Decimal("50.00")

    def test_rename_and_deactivate(self):
        info = self.service.update_account(self.bank.id, name="Old Account", is_active=False).unwrap()

        assert info.name == "Old Account"
        assert not info.is_active
        assert [a.account_id for a in self.service.list_accounts().unwrap()] == [self.card.id]

    def test_foreign_account_is_not_found(self, make_company, make_account):
        foreign = make_account(make_company("Other Co"))
        result = self.service.update_account(foreign.id, name="Mine")
        assert result.status == OperationStatus.NOT_FOUND

    def test_unknown_account_is_not_found(self):
        result = self.service.update_account(uuid4(), name="Ghost")
        assert result.status == OperationStatus.NOT_FOUND


class TestListAccounts:

    def test_scoped_and_filtered(
        self, admin_session, member_session, account_service_for, company, make_company, make_account
    ):
        bank = make_account(company)
        card = make_account(company, AccountType.CREDIT_CARD.value)
        make_account(make_company("Other Co"))

        listed = account_service_for(member_session).list_accounts().unwrap()
        cards = account_service_for(member_session).list_accounts("credit_card").unwrap()

        assert {a.account_id for a in listed} == {bank.id, card.id}
        assert [a.account_id for a in cards] == [card.id]

    def test_inactive_included_on_request(self, admin_session, account_service_for, company, make_account):
        service = account_service_for(admin_session)
        bank = make_account(company)
        service.update_account(bank.id, is_active=False).unwrap()

        assert service.list_accounts().unwrap() == []
        assert [a.account_id for a in service.list_accounts(active_only=False).unwrap()] == [bank.id]

    def test_unknown_type_rejected(self, admin_session, account_service_for):
        result = account_service_for(admin_session).list_accounts("wallet")
        assert result.status == OperationStatus.VALIDATION_ERROR


class TestInactiveAccounts:

    def test_inactive_account_left_out_of_dashboard(
        self, session, admin_session, account_service_for, company, make_account, deterministic_clock, app_config
    ):
        make_account(company, balance=Decimal("100.00"))
        closed = make_account(company, balance=Decimal("900.00"))
        account_service_for(admin_session).update_account(closed.id, is_active=False).unwrap()

        dashboard = DashboardService(session, admin_session, clock=deterministic_clock, config=app_config)
        summary = dashboard.summary().unwrap()

        assert summary.bank_balance.amount == Decimal("100.00")
