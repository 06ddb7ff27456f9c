"""
Depreciation amounts for adjustment entries.

Responsibility
--------------
Pure calculation of the depreciation posted by a periodic adjustment
entry.  Two methods are supported: straight-line and accelerated
(straight-line rate doubled).

Invariants enforced
-------------------
* Decimal in, Decimal out, rounded to 2 places with round_money().
* The amount never exceeds the depreciable base (cost - residual).

Failure modes
-------------
* Non-positive useful life or period count -> ``Decimal("0")``.
* Residual value >= cost -> ``Decimal("0")``.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from bookkeeping_kernel.db.types import ZERO, round_money

ACCELERATION_FACTOR = Decimal("2")
MONTHS_PER_YEAR = Decimal("12")


class DepreciationMethod(str, Enum):
    STRAIGHT_LINE = "straight_line"
    ACCELERATED = "accelerated"


def depreciation_for_months(
    cost: Decimal,
    residual_value: Decimal,
    useful_life_years: int,
    months: int = 1,
    method: DepreciationMethod | str = DepreciationMethod.STRAIGHT_LINE,
    accumulated: Decimal = ZERO,
) -> Decimal:
    """
    Depreciation for ``months`` months.

    ``accumulated`` is what has already been depreciated; the result is
    capped so accumulated depreciation never passes the depreciable base.
    """
    method = DepreciationMethod(method)
    if useful_life_years <= 0 or months <= 0:
        return ZERO
    base = cost - residual_value
    remaining = base - accumulated
    if base <= ZERO or remaining <= ZERO:
        return ZERO

    annual = base / Decimal(useful_life_years)
    if method == DepreciationMethod.ACCELERATED:
        annual *= ACCELERATION_FACTOR
    amount = round_money(annual / MONTHS_PER_YEAR * Decimal(months))
    return min(amount, remaining)
