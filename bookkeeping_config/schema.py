"""
Configuration schema (``bookkeeping_config.schema``).

Responsibility
--------------
Frozen dataclasses describing every tunable of the bookkeeping kernel.
The defaults here are the values shipped in ``defaults.yaml``; services
that are constructed without settings use ``DEFAULT_SETTINGS``.

Architecture position
---------------------
**Config layer** -- pure value objects.  No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from bookkeeping_kernel.domain.authorization import DEFAULT_ROLE_PERMISSIONS


@dataclass(frozen=True)
class BalanceSettings:
    """
    Balance validator tunables.

    ``tolerance`` is a strict upper bound: an entry is balanced iff
    |debits - credits| < tolerance.
    """

    tolerance: Decimal = Decimal("0.01")
    decimal_places: int = 2


@dataclass(frozen=True)
class SessionSettings:
    """
    User session timers, in minutes.

    Read by the application's session handling; the kernel only carries
    the values so they live in one place.
    """

    inactive_timeout_minutes: int = 2
    expiry_minutes: int = 15


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///bookkeeping.db"
    log_level: str = "INFO"
    balance: BalanceSettings = field(default_factory=BalanceSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    roles: dict[str, frozenset[str]] = field(
        default_factory=lambda: dict(DEFAULT_ROLE_PERMISSIONS)
    )


DEFAULT_SETTINGS = Settings()
