"""
Pytest fixtures for the FieldOps test suite.

Provides:
- An in-memory SQLite database per test (tables created and dropped around it)
- A deterministic clock and an explicit AppConfig
- Factories for companies, profiles, providers, accounts and missions
- Structured log capture

Environment Variables:
- FIELDOPS_TEST_DATABASE_URL: run against PostgreSQL instead of SQLite
  (tests marked ``postgres`` are skipped without it).
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from fieldops_config.schema import AppConfig, DatabaseConfig
from fieldops_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from fieldops_kernel.domain.clock import DeterministicClock
from fieldops_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fieldops_kernel.models import (
    AccountType,
    Company,
    Mission,
    Payment,
    PaymentStatus,
    PaymentType,
    Profile,
    ProfileRole,
    ServiceProvider,
    SettlementAccount,
    UserType,
)
from fieldops_modules.isolation.session import UserSession

TEST_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


def get_database_url() -> str:
    return os.environ.get("FIELDOPS_TEST_DATABASE_URL", "sqlite://")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fieldops logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            assert any(r["message"] == "procedure_completed" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fieldops")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    eng = init_engine_from_url(get_database_url())
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine):
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def app_config():
    return AppConfig(database=DatabaseConfig(url="sqlite://"), locale="en")


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_company(session):
    def _make(name: str = "Acme Field Services") -> Company:
        company = Company(id=uuid4(), name=name)
        session.add(company)
        session.commit()
        return company

    return _make


@pytest.fixture
def make_profile(session):
    def _make(
        company: Company | None = None,
        *,
        role: str = ProfileRole.USER.value,
        user_type: str = UserType.USER.value,
        email: str | None = None,
        name: str = "Test User",
        is_active: bool = True,
    ) -> Profile:
        profile = Profile(
            id=uuid4(),
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            name=name,
            role=role,
            user_type=user_type,
            company_id=company.id if company else None,
            is_active=is_active,
        )
        session.add(profile)
        session.commit()
        return profile

    return _make


@pytest.fixture
def make_provider(session):
    def _make(company: Company, name: str = "Provider", is_active: bool = True) -> ServiceProvider:
        provider = ServiceProvider(
            id=uuid4(),
            company_id=company.id,
            name=name,
            is_active=is_active,
            current_balance=Decimal("0"),
        )
        session.add(provider)
        session.commit()
        return provider

    return _make


@pytest.fixture
def make_account(session):
    def _make(
        company: Company,
        account_type: str = AccountType.BANK_ACCOUNT.value,
        *,
        balance: Decimal = Decimal("0"),
        credit_limit: Decimal = Decimal("0"),
        available_limit: Decimal = Decimal("0"),
    ) -> SettlementAccount:
        account = SettlementAccount(
            id=uuid4(),
            company_id=company.id,
            name=f"{account_type}-{uuid4().hex[:4]}",
            account_type=account_type,
            balance=balance,
            credit_limit=credit_limit,
            available_limit=available_limit,
        )
        session.add(account)
        session.commit()
        return account

    return _make


@pytest.fixture
def make_mission(session):
    def _make(
        company: Company | None,
        *,
        service_value: Decimal = Decimal("1000.00"),
        company_percentage: Decimal = Decimal("30"),
        providers: tuple = (),
        title: str = "Install fiber",
    ) -> Mission:
        company_value = (service_value * company_percentage / 100).quantize(Decimal("0.01"))
        mission = Mission(
            id=uuid4(),
            company_id=company.id if company else None,
            title=title,
            service_value=service_value,
            company_percentage=company_percentage,
            company_value=company_value,
            provider_value=service_value - company_value,
            assigned_providers=[str(p.id) for p in providers],
            provider_id=providers[0].id if providers else None,
        )
        session.add(mission)
        session.commit()
        return mission

    return _make


@pytest.fixture
def make_payment(session):
    def _make(
        provider: ServiceProvider,
        amount: Decimal,
        *,
        due_date: date | None = None,
        status: str = PaymentStatus.PENDING.value,
        type: str = PaymentType.FULL.value,
        paid_amount: Decimal = Decimal("0"),
    ) -> Payment:
        payment = Payment(
            id=uuid4(),
            provider_id=provider.id,
            company_id=provider.company_id,
            amount=amount,
            paid_amount=paid_amount,
            status=status,
            type=type,
            due_date=due_date,
        )
        session.add(payment)
        session.commit()
        return payment

    return _make


@pytest.fixture
def user_session_for(session, deterministic_clock, app_config):
    """Build a UserSession for a profile."""

    def _make(profile: Profile) -> UserSession:
        return UserSession(
            session,
            profile.id,
            clock=deterministic_clock,
            auth_config=app_config.auth,
        )

    return _make


@pytest.fixture
def company(make_company):
    return make_company()


@pytest.fixture
def admin(make_profile, company):
    return make_profile(company, role=ProfileRole.ADMIN.value, user_type=UserType.ADMIN.value, name="Owner")


@pytest.fixture
def member(make_profile, company):
    return make_profile(company, name="Field Tech")


@pytest.fixture
def admin_session(user_session_for, admin):
    return user_session_for(admin)


@pytest.fixture
def member_session(user_session_for, member):
    return user_session_for(member)
