"""
Tests for AccessCodeService.

Covers:
- issue_code(): format, admin only, malformed email, provider codes,
  collision retry, exhausted attempts, company-scoped listing
- redeem_code(): joins the company and refreshes the session profile,
  generic message on every failure, double redemption
- list_employees() / deactivate_employee()
"""

from dataclasses import replace

import pytest

from fieldops_config.schema import AccessCodeConfig
from fieldops_kernel.domain.results import OperationStatus
from fieldops_kernel.messages import access_code_message
from fieldops_kernel.models.profile import ProfileRole
from fieldops_modules.access import AccessCodeService


@pytest.fixture
def access_service_for(session, deterministic_clock, app_config):
    def _make(user_session, config=None):
        return AccessCodeService(
            session,
            user_session,
            clock=deterministic_clock,
            config=config or app_config,
        )

    return _make


class TestIssueCode:

    def test_issue_employee_code(self, admin_session, access_service_for, company):
        result = access_service_for(admin_session).issue_code("New Hire", " Hire@Example.com ")

        info = result.unwrap()
        assert info.code.startswith("EMP2024")
        assert len(info.code) == len("EMP") + 4 + 6
        assert info.employee_email == "hire@example.com"
        assert info.company_id == company.id
        assert not info.is_used

    def test_member_cannot_issue(self, member_session, access_service_for):
        result = access_service_for(member_session).issue_code("X", "x@example.com")
        assert result.status == OperationStatus.FORBIDDEN

    def test_demoted_admin_cannot_issue(self, session, admin, admin_session, access_service_for):
        service = access_service_for(admin_session)
        assert service.issue_code("First", "first@example.com").is_success

        admin.role = ProfileRole.USER.value
        session.commit()

        result = service.issue_code("Second", "second@example.com")
        assert result.status == OperationStatus.FORBIDDEN

    def test_malformed_email(self, admin_session, access_service_for):
        result = access_service_for(admin_session).issue_code("X", "not-an-email")
        assert result.status == OperationStatus.VALIDATION_ERROR

    def test_provider_code_requires_owned_provider(
        self, admin_session, access_service_for, make_company, make_provider, company
    ):
        service = access_service_for(admin_session)
        foreign = make_provider(make_company("Other Co"))
        own = make_provider(company)

        assert service.issue_code("P", "p@example.com", "provider").status == OperationStatus.VALIDATION_ERROR
        assert (
            service.issue_code("P", "p@example.com", "provider", foreign.id).status
            == OperationStatus.NOT_FOUND
        )
        info = service.issue_code("P", "p@example.com", "provider", own.id).unwrap()
        assert info.code.startswith("PRV")
        assert info.provider_id == own.id

    def test_collision_retries_next_suffix(self, admin_session, access_service_for):
        service = access_service_for(admin_session)
        first = service.issue_code("A", "a@example.com").unwrap()
        second = service.issue_code("B", "b@example.com").unwrap()

        assert first.code != second.code
        assert int(second.code[-6:]) == (int(first.code[-6:]) + 1) % 1_000_000

    def test_exhausted_attempts_conflict(self, admin_session, access_service_for, app_config):
        config = replace(app_config, access_codes=AccessCodeConfig(issue_attempts=1))
        service = access_service_for(admin_session, config)
        service.issue_code("A", "a@example.com").unwrap()

        result = service.issue_code("B", "b@example.com")
        assert result.status == OperationStatus.CONFLICT

    def test_list_codes_is_company_scoped(
        self, admin_session, access_service_for, make_company, make_profile, user_session_for
    ):
        issued = access_service_for(admin_session).issue_code("A", "a@example.com").unwrap()
        outsider = make_profile(make_company("Other Co"), role="admin", user_type="admin")
        access_service_for(user_session_for(outsider)).issue_code("B", "b@example.com").unwrap()

        listed = access_service_for(admin_session).list_codes().unwrap()
        assert [c.code for c in listed] == [issued.code]


class TestRedeemCode:

    @pytest.fixture(autouse=True)
    def _setup(self, admin_session, access_service_for, make_profile, user_session_for):
        self.code = access_service_for(admin_session).issue_code("New Hire", "hire@example.com").unwrap()
        self.newcomer = make_profile(None, email="hire@example.com", name="")
        self.newcomer_session = user_session_for(self.newcomer)
        self.service = access_service_for(self.newcomer_session)

    def test_redeem_joins_company(self, company):
        assert self.newcomer_session.company_id is None

        redemption = self.service.redeem_code(self.code.code.lower(), "hire@example.com").unwrap()

        assert redemption.company_id == company.id
        assert redemption.company_name == company.name
        assert self.newcomer_session.company_id == company.id
        assert self.newcomer_session.profile().name == "New Hire"

    def test_double_redemption(self):
        assert self.service.redeem_code(self.code.code, "hire@example.com").is_success
        second = self.service.redeem_code(self.code.code, "hire@example.com")

        assert second.status == OperationStatus.ALREADY_USED
        assert second.message == access_code_message("en")

    def test_failures_share_one_message(self):
        mismatch = self.service.redeem_code(self.code.code, "someone@example.com")
        unknown = self.service.redeem_code("EMP2024XXXXXX", "hire@example.com")

        assert mismatch.status == unknown.status == OperationStatus.NOT_FOUND
        assert mismatch.message == unknown.message == access_code_message("en")


class TestEmployees:

    def test_list_employees_is_company_scoped(
        self, admin_session, access_service_for, admin, member, make_company, make_profile
    ):
        make_profile(make_company("Other Co"))
        employees = access_service_for(admin_session).list_employees().unwrap()
        assert {e.profile_id for e in employees} == {admin.id, member.id}

    def test_deactivate_employee(self, admin_session, access_service_for, member):
        info = access_service_for(admin_session).deactivate_employee(member.id).unwrap()
        assert not info.is_active

    def test_cannot_deactivate_self(self, admin_session, access_service_for, admin):
        result = access_service_for(admin_session).deactivate_employee(admin.id)
        assert result.status == OperationStatus.VALIDATION_ERROR

    def test_member_cannot_deactivate(self, member_session, access_service_for, admin):
        result = access_service_for(member_session).deactivate_employee(admin.id)
        assert result.status == OperationStatus.FORBIDDEN

    def test_foreign_profile_is_not_found(self, admin_session, access_service_for, make_company, make_profile):
        outsider = make_profile(make_company("Other Co"))
        result = access_service_for(admin_session).deactivate_employee(outsider.id)
        assert result.status == OperationStatus.NOT_FOUND
