"""
Tests for the company isolation guard.

Covers:
- assert_access(): same company, orphan record, foreign record, no caller
- ensure_company_data(): stamping, foreign payload, no company
- access_level() / can_manage_company()
- audit_isolation(): own, orphan and foreign rows reached through links
- resolve_tenant(): fresh read of the stored company
- repair_orphans(): linked orphans adopted, unlinked and foreign rows untouched
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from fieldops_kernel.exceptions import ForbiddenError
from fieldops_kernel.models import Expense, ProfileRole, UserType
from fieldops_modules.isolation import (
    AccessLevel,
    ProfileInfo,
    access_level,
    assert_access,
    audit_isolation,
    can_manage_company,
    ensure_company_data,
    repair_orphans,
    resolve_tenant,
)


class TestAssertAccess:

    def setup_method(self):
        self.a = uuid4()
        self.b = uuid4()

    def test_same_company_passes(self):
        assert_access(self.a, self.a)

    def test_orphan_record_passes(self):
        assert_access(self.a, None)

    def test_other_company_fails(self):
        with pytest.raises(ForbiddenError):
            assert_access(self.a, self.b)

    def test_caller_without_company_fails(self):
        with pytest.raises(ForbiddenError):
            assert_access(None, self.b)

    def test_denial_is_logged(self, captured_logs):
        with pytest.raises(ForbiddenError):
            assert_access(self.a, self.b)
        assert any(r["message"] == "cross_company_access_denied" for r in captured_logs())


class TestEnsureCompanyData:

    def test_stamps_company_on_copy(self):
        company_id = uuid4()
        data = {"title": "x"}
        stamped = ensure_company_data(data, company_id)
        assert stamped == {"title": "x", "company_id": company_id}
        assert "company_id" not in data

    def test_rejects_payload_naming_another_company(self):
        with pytest.raises(ForbiddenError):
            ensure_company_data({"company_id": uuid4()}, uuid4())

    def test_rejects_caller_without_company(self):
        with pytest.raises(ForbiddenError):
            ensure_company_data({}, None)


def profile_info(role=ProfileRole.USER, user_type=UserType.USER, company_id="set", is_active=True):
    return ProfileInfo(
        profile_id=uuid4(),
        email="x@example.com",
        name="X",
        role=role,
        user_type=user_type,
        company_id=uuid4() if company_id == "set" else company_id,
        provider_id=None,
        is_active=is_active,
    )


class TestAccessLevel:

    @pytest.mark.parametrize(
        "profile, expected",
        [
            (profile_info(role=ProfileRole.ADMIN), AccessLevel.OWNER),
            (profile_info(), AccessLevel.EMPLOYEE),
            (profile_info(user_type=UserType.PROVIDER), AccessLevel.PROVIDER),
            (profile_info(company_id=None), AccessLevel.NONE),
            (profile_info(role=ProfileRole.ADMIN, is_active=False), AccessLevel.NONE),
            (None, AccessLevel.NONE),
        ],
    )
    def test_levels(self, profile, expected):
        assert access_level(profile) == expected

    def test_only_owner_manages(self):
        assert can_manage_company(profile_info(role=ProfileRole.ADMIN))
        assert not can_manage_company(profile_info())


class TestAuditIsolation:

    def test_clean_company_is_isolated(self, session, company, make_mission):
        make_mission(company)
        audit = audit_isolation(session, company.id)
        assert audit.is_isolated
        assert audit.for_table("missions").company == 1

    def test_orphan_rows_are_counted_not_violations(self, session, company, make_mission, captured_logs):
        make_mission(None)
        audit = audit_isolation(session, company.id)
        assert audit.is_isolated
        assert audit.for_table("missions").orphan == 1
        assert any(r["message"] == "orphan_records_detected" for r in captured_logs())

    def test_linked_foreign_rows_are_violations(
        self, session, company, member, make_company, make_mission, captured_logs
    ):
        other = make_company("Other Co")
        session.add(
            Expense(
                id=uuid4(),
                company_id=other.id,
                employee_id=member.id,
                employee_name=member.name,
                category="fuel",
                amount=Decimal("10.00"),
                date=date(2024, 6, 1),
                status="pending",
            )
        )
        session.commit()

        audit = audit_isolation(session, company.id)

        assert not audit.is_isolated
        assert audit.violations == {"expenses": 1}
        assert any(r["message"] == "isolation_violation_detected" for r in captured_logs())

    def test_unlinked_other_company_rows_are_ignored(self, session, company, make_company, make_mission):
        make_mission(make_company("Other Co"))
        audit = audit_isolation(session, company.id)
        assert audit.for_table("missions").total == 0


class TestResolveTenant:

    def test_reads_current_company(self, session, member, company):
        assert resolve_tenant(session, member.id) == company.id

    def test_sees_tenant_change(self, session, member, make_company):
        other = make_company("Other Co")
        member.company_id = other.id
        session.commit()
        assert resolve_tenant(session, member.id) == other.id

    def test_unknown_user(self, session):
        assert resolve_tenant(session, uuid4()) is None


class TestRepairOrphans:

    @pytest.fixture(autouse=True)
    def _setup(self, session, company, make_company, make_profile, make_provider, make_mission, make_payment):
        self.session = session
        self.company = company
        self.provider = make_provider(company)
        self.mission = make_mission(None, providers=(self.provider,))
        self.payment = make_payment(self.provider, Decimal("100.00"))
        self.payment.company_id = None
        outsider = make_profile(make_company("Other Co"))
        self.expense = Expense(
            id=uuid4(),
            company_id=None,
            mission_id=self.mission.id,
            employee_id=outsider.id,
            employee_name=outsider.name,
            category="fuel",
            amount=Decimal("25.00"),
            date=date(2024, 6, 1),
            status="pending",
        )
        session.add(self.expense)
        session.commit()

    def test_linked_orphans_are_adopted(self, captured_logs):
        repair = repair_orphans(self.session, self.company.id)

        assert repair.adopted == {"missions": 1, "payments": 1, "expenses": 1}
        assert repair.total == 3
        assert self.expense.company_id == self.company.id
        audit = audit_isolation(self.session, self.company.id)
        assert all(t.orphan == 0 for t in audit.tables)
        adopted_logs = [r for r in captured_logs() if r["message"] == "orphan_record_adopted"]
        assert {r["record_id"] for r in adopted_logs} == {
            str(self.mission.id), str(self.payment.id), str(self.expense.id)
        }

    def test_unlinked_orphan_is_left_alone(self, make_mission):
        stray = make_mission(None)
        repair_orphans(self.session, self.company.id)

        assert stray.company_id is None
        assert audit_isolation(self.session, self.company.id).for_table("missions").orphan == 1

    def test_other_company_cannot_adopt(self, make_company):
        other = make_company("Third Co")
        repair = repair_orphans(self.session, other.id)

        assert repair.total == 0
        assert self.mission.company_id is None

    def test_foreign_rows_are_not_restamped(self, make_company, member):
        other = make_company("Fourth Co")
        foreign = Expense(
            id=uuid4(),
            company_id=other.id,
            employee_id=member.id,
            employee_name=member.name,
            category="fuel",
            amount=Decimal("5.00"),
            date=date(2024, 6, 1),
            status="pending",
        )
        self.session.add(foreign)
        self.session.commit()

        repair_orphans(self.session, self.company.id)
        assert foreign.company_id == other.id
