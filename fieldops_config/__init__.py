"""
fieldops_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration sits above ``fieldops_kernel`` and below
    ``fieldops_services`` / ``fieldops_modules``.  The kernel never imports
    from ``fieldops_config``; services receive an ``AppConfig`` instance.

Failure modes:
    - ``FileNotFoundError`` -- the requested YAML file does not exist.
    - ``ValueError`` -- schema validation failures.

Audit relevance:
    Every load emits a ``CONFIG_TRACE`` log entry with the checksum of the
    effective (secret-redacted) configuration.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from fieldops_config.loader import load_config
from fieldops_config.schema import (
    AccessCodeConfig,
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    RevenueConfig,
)
from fieldops_kernel.logging_config import configure_logging, get_logger

_logger = get_logger("config")

_active: AppConfig | None = None


def get_active_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    *,
    reload: bool = False,
) -> AppConfig:
    """The ONLY public configuration entrypoint.

    The first call loads and validates the configuration; later calls
    return the same instance unless ``reload`` is set or an explicit path
    or environment is given.
    """
    global _active
    if _active is not None and not reload and config_path is None and env is None:
        return _active

    config = load_config(config_path, env)
    configure_logging(level=config.log_level)
    _logger.info(
        "CONFIG_TRACE",
        extra={
            "trace_type": "CONFIG_TRACE",
            "checksum": config.checksum,
            "currency": config.currency,
            "locale": config.locale,
            "database_backend": config.database.url.split(":", 1)[0],
        },
    )
    _active = config
    return config


def reset_active_config() -> None:
    """Forget the cached configuration. FOR TESTING ONLY."""
    global _active
    _active = None


__all__ = [
    "AccessCodeConfig",
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "RevenueConfig",
    "get_active_config",
    "reset_active_config",
]
