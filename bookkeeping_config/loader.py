"""
Configuration Loader (``bookkeeping_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into ``bookkeeping_config.schema``
dataclasses.  Environment variables override file values.

Invariants enforced
-------------------
* Every parse error raises ``ConfigurationError`` naming the source and
  the offending key; no silent fallback for a malformed value.
* Unknown permission names in ``roles`` are rejected.
* Monetary tunables are parsed as ``Decimal`` from their string form.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or values  -> ``ConfigurationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from bookkeeping_config.schema import BalanceSettings, SessionSettings, Settings
from bookkeeping_kernel.domain.authorization import DEFAULT_ROLE_PERMISSIONS, Permission

ENV_DATABASE_URL = "BOOKKEEPING_DATABASE_URL"
ENV_LOG_LEVEL = "BOOKKEEPING_LOG_LEVEL"

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_PERMISSIONS = frozenset(p.value for p in Permission)


class ConfigurationError(ValueError):
    """Settings could not be parsed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, key: str, detail: str):
        self.source = source
        self.key = key
        self.detail = detail
        super().__init__(f"Invalid configuration in {source} at '{key}': {detail}")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def merge_settings_data(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursive dict merge; ``override`` wins, nested mappings merge."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_settings_data(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(data: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    data = dict(data)
    if env.get(ENV_DATABASE_URL):
        data["database_url"] = env[ENV_DATABASE_URL]
    if env.get(ENV_LOG_LEVEL):
        data["log_level"] = env[ENV_LOG_LEVEL]
    return data


def _parse_decimal(value: Any, source: str, key: str) -> Decimal:
    if isinstance(value, float):
        # YAML reads 0.01 as a float; go through its repr, never its binary value
        value = repr(value)
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(source, key, f"not a decimal: {value!r}") from exc


def _parse_positive_int(value: Any, source: str, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(source, key, f"expected a positive integer, got {value!r}")
    return value


def parse_balance(data: Mapping[str, Any], source: str) -> BalanceSettings:
    defaults = BalanceSettings()
    tolerance = _parse_decimal(data.get("tolerance", defaults.tolerance), source, "balance.tolerance")
    if tolerance <= 0:
        raise ConfigurationError(source, "balance.tolerance", "must be greater than zero")
    decimal_places = data.get("decimal_places", defaults.decimal_places)
    if isinstance(decimal_places, bool) or not isinstance(decimal_places, int) or decimal_places < 0:
        raise ConfigurationError(
            source, "balance.decimal_places", f"expected a non-negative integer, got {decimal_places!r}"
        )
    return BalanceSettings(tolerance=tolerance, decimal_places=decimal_places)


def parse_session(data: Mapping[str, Any], source: str) -> SessionSettings:
    defaults = SessionSettings()
    return SessionSettings(
        inactive_timeout_minutes=_parse_positive_int(
            data.get("inactive_timeout_minutes", defaults.inactive_timeout_minutes),
            source,
            "session.inactive_timeout_minutes",
        ),
        expiry_minutes=_parse_positive_int(
            data.get("expiry_minutes", defaults.expiry_minutes),
            source,
            "session.expiry_minutes",
        ),
    )


def parse_roles(data: Mapping[str, Any], source: str) -> dict[str, frozenset[str]]:
    roles: dict[str, frozenset[str]] = {}
    for role, permissions in data.items():
        key = f"roles.{role}"
        if permissions is None:
            permissions = []
        if not isinstance(permissions, list):
            raise ConfigurationError(source, key, "expected a list of permissions")
        unknown = set(permissions) - _PERMISSIONS
        if unknown:
            raise ConfigurationError(source, key, f"unknown permissions {sorted(unknown)}")
        roles[str(role)] = frozenset(permissions)
    return roles


def parse_settings(data: Mapping[str, Any], source: str = "<settings>") -> Settings:
    """Parse a settings dict into ``Settings``."""
    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in _VALID_LOG_LEVELS:
        raise ConfigurationError(source, "log_level", f"unknown level {log_level!r}")

    database_url = data.get("database_url")
    if not database_url or not isinstance(database_url, str):
        raise ConfigurationError(source, "database_url", "a database URL is required")

    for section in ("balance", "session", "roles"):
        if data.get(section) is not None and not isinstance(data[section], Mapping):
            raise ConfigurationError(source, section, "expected a mapping")

    if data.get("roles"):
        roles = parse_roles(data["roles"], source)
    else:
        roles = dict(DEFAULT_ROLE_PERMISSIONS)

    return Settings(
        database_url=database_url,
        log_level=log_level,
        balance=parse_balance(data.get("balance") or {}, source),
        session=parse_session(data.get("session") or {}, source),
        roles=roles,
    )
