"""
Tests for configuration loading: packaged defaults, environment overrides,
schema validation and the redacted checksum.
"""

import pytest
import yaml

from fieldops_config import get_active_config, reset_active_config
from fieldops_config.loader import apply_env_overrides, compute_checksum, load_config
from fieldops_config.schema import AccessCodeConfig, AppConfig, AuthConfig, DatabaseConfig


class TestLoadConfig:

    def test_packaged_defaults(self):
        config = load_config(env={})

        assert config.database.url == "sqlite://"
        assert config.currency == "BRL"
        assert config.locale == "pt-BR"
        assert config.auth.cache_key == "fieldops_auth_cache"
        assert config.auth.profile_cache_ttl_seconds == 300
        assert config.access_codes.employee_prefix == "EMP"
        assert config.revenue.due_days == 30
        assert len(config.checksum) == 64

    def test_env_overrides_file(self):
        config = load_config(
            env={
                "FIELDOPS_LOCALE": "en",
                "FIELDOPS_CURRENCY": "usd",
                "FIELDOPS_LOG_LEVEL": "debug",
                "FIELDOPS_DATABASE_URL": "postgresql://db/fieldops",
            }
        )

        assert config.locale == "en"
        assert config.currency == "USD"
        assert config.log_level == "DEBUG"
        assert config.database.url == "postgresql://db/fieldops"

    def test_empty_env_value_is_ignored(self):
        assert load_config(env={"FIELDOPS_LOCALE": ""}).locale == "pt-BR"

    def test_custom_file(self, tmp_path):
        path = tmp_path / "fieldops.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "database": {"url": "sqlite:///tmp.db"},
                    "access_codes": {"ttl_days": 7},
                    "locale": "en",
                }
            )
        )
        config = load_config(path, env={})

        assert config.access_codes.ttl_days == 7
        assert config.access_codes.provider_prefix == "PRV"
        assert config.locale == "en"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml", env={})

    @pytest.mark.parametrize(
        "env",
        [
            {"FIELDOPS_LOCALE": "klingon"},
            {"FIELDOPS_CURRENCY": "XYZ"},
            {"FIELDOPS_LOG_LEVEL": "chatty"},
        ],
    )
    def test_invalid_values_fail_at_load(self, env):
        with pytest.raises(ValueError):
            load_config(env=env)


class TestSchemaValidation:

    def test_empty_database_url(self):
        with pytest.raises(ValueError):
            DatabaseConfig(url="")

    def test_negative_cache_ttl(self):
        with pytest.raises(ValueError):
            AuthConfig(profile_cache_ttl_seconds=-1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"employee_prefix": "emp"},
            {"provider_prefix": "EMP"},
            {"ttl_days": 0},
            {"issue_attempts": 0},
        ],
    )
    def test_access_code_settings(self, kwargs):
        with pytest.raises(ValueError):
            AccessCodeConfig(**kwargs)

    def test_app_config_normalizes(self):
        config = AppConfig(database=DatabaseConfig(url="sqlite://"), currency=" eur ", log_level="warning")
        assert config.currency == "EUR"
        assert config.log_level == "WARNING"


class TestChecksum:

    def test_secrets_do_not_change_checksum(self):
        base = {"database": {"url": "postgresql://a"}, "auth": {"api_key": "one"}}
        other = {"database": {"url": "postgresql://b"}, "auth": {"api_key": "two"}}
        assert compute_checksum(base) == compute_checksum(other)

    def test_settings_change_checksum(self):
        assert compute_checksum({"locale": "en"}) != compute_checksum({"locale": "pt-BR"})

    def test_env_overrides_do_not_mutate_input(self):
        data = {"database": {"url": "sqlite://"}}
        merged = apply_env_overrides(data, {"FIELDOPS_DATABASE_URL": "postgresql://x"})
        assert data["database"]["url"] == "sqlite://"
        assert merged["database"]["url"] == "postgresql://x"


class TestActiveConfig:

    def setup_method(self):
        reset_active_config()

    def teardown_method(self):
        reset_active_config()

    def test_cached_between_calls(self):
        first = get_active_config(env={})
        assert get_active_config() is first

    def test_load_emits_config_trace(self, captured_logs):
        config = get_active_config(env={"FIELDOPS_API_KEY": "sekret"})

        record = next(r for r in captured_logs() if r["message"] == "CONFIG_TRACE")
        assert record["checksum"] == config.checksum
        assert record["database_backend"] == "sqlite"
        assert "sekret" not in str(record)
