"""
Bookkeeping configuration (``bookkeeping_config``).

Responsibility
--------------
Single entry point for runtime settings.  ``load_settings`` reads the
packaged ``defaults.yaml``, merges an optional override file and applies
environment overrides; ``get_settings`` caches the result for the process.

Audit relevance
---------------
A ``settings_loaded`` log entry records the sources and the balance
tolerance in force, so a validation outcome can be tied to the tolerance
that produced it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from bookkeeping_config.loader import (
    ConfigurationError,
    apply_env_overrides,
    load_yaml_file,
    merge_settings_data,
    parse_settings,
)
from bookkeeping_config.schema import (
    DEFAULT_SETTINGS,
    BalanceSettings,
    SessionSettings,
    Settings,
)

__all__ = [
    "BalanceSettings",
    "ConfigurationError",
    "DEFAULT_SETTINGS",
    "SessionSettings",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
]

_logger = logging.getLogger("bookkeeping_kernel.config")

DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"
ENV_CONFIG_FILE = "BOOKKEEPING_CONFIG"

_cached: Settings | None = None


def load_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load settings.

    Args:
        path: Override file merged over the defaults.  Falls back to the
            file named by ``BOOKKEEPING_CONFIG`` in ``env``.
        env: Environment mapping; defaults to ``os.environ``.

    Raises:
        FileNotFoundError: If the override file does not exist.
        ConfigurationError: If a value is malformed.
    """
    env = os.environ if env is None else env
    data = load_yaml_file(DEFAULTS_FILE)
    sources = [str(DEFAULTS_FILE)]

    override_path = path or env.get(ENV_CONFIG_FILE)
    if override_path:
        data = merge_settings_data(data, load_yaml_file(Path(override_path)))
        sources.append(str(override_path))

    data = apply_env_overrides(data, env)
    settings = parse_settings(data, source=sources[-1])

    _logger.info(
        "settings_loaded",
        extra={
            "sources": sources,
            "balance_tolerance": str(settings.balance.tolerance),
            "log_level": settings.log_level,
            "roles": sorted(settings.roles),
        },
    )
    return settings


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _cached
    if _cached is None:
        _cached = load_settings()
    return _cached


def reset_settings() -> None:
    """Drop cached settings. FOR TESTING ONLY."""
    global _cached
    _cached = None
