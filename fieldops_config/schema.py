"""
Application configuration schema.

Frozen dataclasses parsed from ``defaults.yaml`` plus environment overrides
by ``fieldops_config.loader``.  Every section validates itself in
``__post_init__`` and raises ``ValueError`` on bad values, so an invalid
configuration fails at load time instead of at first use.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fieldops_kernel.domain.currency import CurrencyRegistry
from fieldops_kernel.messages import SUPPORTED_LOCALES

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """Backend connection settings (URL supplied at deploy time)."""

    url: str
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url must not be empty")
        if self.pool_size < 1:
            raise ValueError(f"database.pool_size must be >= 1, got {self.pool_size}")


@dataclass(frozen=True)
class AuthConfig:
    """Session and profile cache settings."""

    api_key: str = ""
    cache_key: str = "fieldops_auth_cache"
    profile_cache_ttl_seconds: int = 300

    def __post_init__(self) -> None:
        if not self.cache_key:
            raise ValueError("auth.cache_key must not be empty")
        if self.profile_cache_ttl_seconds < 0:
            raise ValueError(
                "auth.profile_cache_ttl_seconds must be >= 0, "
                f"got {self.profile_cache_ttl_seconds}"
            )


@dataclass(frozen=True)
class AccessCodeConfig:
    """Access code format and issuance settings."""

    employee_prefix: str = "EMP"
    provider_prefix: str = "PRV"
    ttl_days: int = 30
    issue_attempts: int = 5

    def __post_init__(self) -> None:
        for name in ("employee_prefix", "provider_prefix"):
            value = getattr(self, name)
            if not value or not value.isalnum() or value != value.upper():
                raise ValueError(f"access_codes.{name} must be uppercase alphanumeric, got {value!r}")
        if self.employee_prefix == self.provider_prefix:
            raise ValueError("access_codes prefixes must differ")
        if self.ttl_days < 1:
            raise ValueError(f"access_codes.ttl_days must be >= 1, got {self.ttl_days}")
        if self.issue_attempts < 1:
            raise ValueError(
                f"access_codes.issue_attempts must be >= 1, got {self.issue_attempts}"
            )


@dataclass(frozen=True)
class RevenueConfig:
    """Revenue defaults."""

    due_days: int = 30

    def __post_init__(self) -> None:
        if self.due_days < 0:
            raise ValueError(f"revenue.due_days must be >= 0, got {self.due_days}")


@dataclass(frozen=True)
class AppConfig:
    """The complete runtime configuration."""

    database: DatabaseConfig
    auth: AuthConfig = field(default_factory=AuthConfig)
    access_codes: AccessCodeConfig = field(default_factory=AccessCodeConfig)
    revenue: RevenueConfig = field(default_factory=RevenueConfig)
    currency: str = "BRL"
    locale: str = "pt-BR"
    log_level: str = "INFO"
    checksum: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))
        if self.locale not in SUPPORTED_LOCALES:
            raise ValueError(
                f"locale must be one of {sorted(SUPPORTED_LOCALES)}, got {self.locale!r}"
            )
        level = self.log_level.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", level)
