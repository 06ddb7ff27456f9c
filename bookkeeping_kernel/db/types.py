"""
Module: bookkeeping_kernel.db.types
Responsibility: Annotated type aliases and the rounding helpers used for
    monetary values.  Centralizes precision and rounding so that every
    model, validator and aggregator uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - MONEY_DECIMAL_PLACES is the canonical display/validation precision for
      monetary amounts.  round_money() is the ONLY sanctioned rounding
      function for financial values.
    - No floats.  to_decimal() refuses float input.

Failure modes:
    - ValueError on non-numeric or float input to to_decimal().
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any

from sqlalchemy import Numeric, String

# 38 digits total, 9 decimal places of storage precision
Money = Annotated[Decimal, Numeric(38, 9)]

# Short identifier strings (account codes, entry numbers)
ShortCode = Annotated[str, String(50)]

# Long text for descriptions and notes
LongText = Annotated[str, String(4000)]


MONEY_DECIMAL_PLACES = 2
STORAGE_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a line amount to Decimal.

    Accepts Decimal, int and numeric strings.  Floats are rejected: an
    amount that already went through binary floating point cannot be
    trusted to the cent.

    Raises:
        ValueError: If value is a float, a bool, or not numeric.
    """
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Not a finite amount: {value!r}")
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Monetary amounts must not be {type(value).__name__}: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a numeric amount: {value!r}") from exc
        if not result.is_finite():
            raise ValueError(f"Not a finite amount: {value!r}")
        return result
    raise ValueError(f"Not a numeric amount: {value!r}")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for financial values.
    All other code delegates rounding here.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
