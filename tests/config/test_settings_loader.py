"""Tests for settings loading (bookkeeping_config)."""

from decimal import Decimal

import pytest

from bookkeeping_config import (
    ConfigurationError,
    get_settings,
    load_settings,
    reset_settings,
)
from bookkeeping_config.loader import merge_settings_data, parse_settings
from bookkeeping_kernel.domain.authorization import DEFAULT_ROLE_PERMISSIONS


@pytest.fixture(autouse=True)
def _reset_cache():
    reset_settings()
    yield
    reset_settings()


def _write(tmp_path, text):
    path = tmp_path / "override.yaml"
    path.write_text(text)
    return path


class TestDefaults:

    def test_packaged_defaults(self):
        settings = load_settings(env={})

        assert settings.balance.tolerance == Decimal("0.01")
        assert settings.balance.decimal_places == 2
        assert settings.session.inactive_timeout_minutes == 2
        assert settings.session.expiry_minutes == 15
        assert settings.log_level == "INFO"
        assert settings.roles == DEFAULT_ROLE_PERMISSIONS

    def test_settings_loaded_is_logged(self, captured_logs):
        load_settings(env={})

        records = [r for r in captured_logs() if r["message"] == "settings_loaded"]
        assert records
        assert records[0]["balance_tolerance"] == "0.01"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestOverrides:

    def test_file_override_merges(self, tmp_path):
        path = _write(tmp_path, "balance:\n  tolerance: '0.005'\n")

        settings = load_settings(path, env={})

        assert settings.balance.tolerance == Decimal("0.005")
        assert settings.balance.decimal_places == 2

    def test_float_tolerance_is_read_exactly(self, tmp_path):
        path = _write(tmp_path, "balance:\n  tolerance: 0.1\n")

        assert load_settings(path, env={}).balance.tolerance == Decimal("0.1")

    def test_config_file_from_environment(self, tmp_path):
        path = _write(tmp_path, "log_level: debug\n")

        settings = load_settings(env={"BOOKKEEPING_CONFIG": str(path)})

        assert settings.log_level == "DEBUG"

    def test_environment_wins_over_files(self, tmp_path):
        path = _write(tmp_path, "database_url: sqlite:///from-file.db\n")

        settings = load_settings(
            path,
            env={
                "BOOKKEEPING_DATABASE_URL": "postgresql://localhost/books",
                "BOOKKEEPING_LOG_LEVEL": "warning",
            },
        )

        assert settings.database_url == "postgresql://localhost/books"
        assert settings.log_level == "WARNING"

    def test_custom_role_added(self, tmp_path):
        path = _write(tmp_path, "roles:\n  clerk: [create_entries]\n")

        settings = load_settings(path, env={})

        assert settings.roles["clerk"] == frozenset({"create_entries"})

    def test_missing_override_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", env={})


class TestErrors:

    @pytest.mark.parametrize(
        "data, key",
        [
            ({"database_url": "sqlite://", "log_level": "LOUD"}, "log_level"),
            ({"database_url": ""}, "database_url"),
            ({"database_url": "sqlite://", "balance": {"tolerance": "abc"}}, "balance.tolerance"),
            ({"database_url": "sqlite://", "balance": {"tolerance": "0"}}, "balance.tolerance"),
            ({"database_url": "sqlite://", "balance": {"decimal_places": -1}}, "balance.decimal_places"),
            ({"database_url": "sqlite://", "session": {"expiry_minutes": 0}}, "session.expiry_minutes"),
            ({"database_url": "sqlite://", "roles": {"admin": ["fly"]}}, "roles.admin"),
            ({"database_url": "sqlite://", "roles": {"admin": "everything"}}, "roles.admin"),
            ({"database_url": "sqlite://", "balance": [1, 2]}, "balance"),
        ],
    )
    def test_rejected(self, data, key):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_settings(data, source="test.yaml")

        assert exc_info.value.key == key
        assert exc_info.value.source == "test.yaml"
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_settings({"database_url": None})


class TestMerge:

    def test_nested_merge(self):
        merged = merge_settings_data(
            {"balance": {"tolerance": "0.01", "decimal_places": 2}, "log_level": "INFO"},
            {"balance": {"tolerance": "0.02"}},
        )

        assert merged == {
            "balance": {"tolerance": "0.02", "decimal_places": 2},
            "log_level": "INFO",
        }
