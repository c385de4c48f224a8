"""
Configuration Loader (``fieldops_config.loader``).

Responsibility
--------------
Loads the YAML defaults, applies environment overrides and parses the
result into the frozen ``fieldops_config.schema`` dataclasses.  Runtime
callers use ``fieldops_config.get_active_config()`` instead of calling this
module directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Environment variables win over file values; file values win over
  dataclass defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective configuration (secrets excluded).

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ValueError`` from schema validation.
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from fieldops_config.schema import (
    AccessCodeConfig,
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    RevenueConfig,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

# Environment variable -> (section, key); section None means top level.
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "FIELDOPS_DATABASE_URL": ("database", "url"),
    "FIELDOPS_API_KEY": ("auth", "api_key"),
    "FIELDOPS_LOCALE": (None, "locale"),
    "FIELDOPS_LOG_LEVEL": (None, "log_level"),
    "FIELDOPS_CURRENCY": (None, "currency"),
}

_SECRET_KEYS = frozenset({"api_key", "url"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def apply_env_overrides(data: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged = {k: (dict(v) if isinstance(v, dict) else v) for k, v in data.items()}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if section is None:
            merged[key] = value
        else:
            merged.setdefault(section, {})[key] = value
    return merged


def _redacted(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in data.items():
        if isinstance(v, dict):
            out[k] = _redacted(v)
        elif k in _SECRET_KEYS:
            out[k] = "<redacted>"
        else:
            out[k] = v
    return out


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization, with secrets redacted."""
    canonical = json.dumps(_redacted(data), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> AppConfig:
    """
    Parse an ``AppConfig`` from a dict.

    Raises:
        KeyError: if the database section or its url is missing.
        ValueError: if a value fails schema validation.
    """
    db = data["database"]
    auth = data.get("auth", {})
    codes = data.get("access_codes", {})
    revenue = data.get("revenue", {})

    return AppConfig(
        database=DatabaseConfig(
            url=str(db["url"]),
            echo=bool(db.get("echo", False)),
            pool_size=int(db.get("pool_size", 10)),
            max_overflow=int(db.get("max_overflow", 5)),
        ),
        auth=AuthConfig(
            api_key=str(auth.get("api_key", "")),
            cache_key=str(auth.get("cache_key", "fieldops_auth_cache")),
            profile_cache_ttl_seconds=int(auth.get("profile_cache_ttl_seconds", 300)),
        ),
        access_codes=AccessCodeConfig(
            employee_prefix=str(codes.get("employee_prefix", "EMP")),
            provider_prefix=str(codes.get("provider_prefix", "PRV")),
            ttl_days=int(codes.get("ttl_days", 30)),
            issue_attempts=int(codes.get("issue_attempts", 5)),
        ),
        revenue=RevenueConfig(due_days=int(revenue.get("due_days", 30))),
        currency=str(data.get("currency", "BRL")),
        locale=str(data.get("locale", "pt-BR")),
        log_level=str(data.get("log_level", "INFO")),
        checksum=compute_checksum(data),
    )


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load ``path`` (default: packaged defaults), apply ``env``, and parse."""
    data = load_yaml_file(path or DEFAULTS_PATH)
    data = apply_env_overrides(data, os.environ if env is None else env)
    return parse_config(data)
