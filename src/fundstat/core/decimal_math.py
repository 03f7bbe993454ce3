"""
Decimal helpers for ledger amounts.

Amounts travel as strings and are computed with Decimal, rounded half-up to
the ledger's 7 fractional digits. The helpers never raise: unparseable or
non-finite input yields "0" (or Decimal 0).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Iterable, Optional, Union

LEDGER_PRECISION = 7

Number = Union[str, int, float, Decimal]

_WORKING_PRECISION = 60


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Parse value into a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps floats at their shortest repr instead of binary expansion
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not result.is_finite():
        return None
    return result


def safe_decimal(value: Optional[Number]) -> Decimal:
    """Parse value, falling back to zero."""
    result = to_decimal(value)
    return result if result is not None else Decimal("0")


def _digits(d: Decimal) -> int:
    return len(d.as_tuple().digits)


def format_decimal(value: Decimal) -> str:
    """Render without exponent or trailing zeros."""
    if not value.is_finite():
        return "0"
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def quantize_str(value: Optional[Number], places: int = LEDGER_PRECISION) -> str:
    """Round half-up to `places` fractional digits and render."""
    d = to_decimal(value)
    if d is None:
        return "0"
    try:
        with localcontext() as ctx:
            ctx.prec = max(_WORKING_PRECISION, d.adjusted() + places + 2)
            return format_decimal(d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))
    except (ArithmeticError, ValueError):
        return "0"


def multiply_with_precision(a: Optional[Number], b: Optional[Number], places: int = LEDGER_PRECISION) -> str:
    """Multiply two amounts, rounded half-up to `places` fractional digits."""
    da, db = to_decimal(a), to_decimal(b)
    if da is None or db is None:
        return "0"
    try:
        with localcontext() as ctx:
            # wide enough for the exact product
            ctx.prec = max(_WORKING_PRECISION, _digits(da) + _digits(db))
            product = da * db
    except (ArithmeticError, ValueError):
        return "0"
    return quantize_str(product, places)


def divide_with_precision(a: Optional[Number], b: Optional[Number]) -> str:
    """Divide two amounts, rounded to ledger precision. Division by zero yields "0"."""
    da, db = to_decimal(a), to_decimal(b)
    if da is None or db is None or db == 0:
        return "0"
    try:
        with localcontext() as ctx:
            ctx.prec = max(_WORKING_PRECISION, da.adjusted() - db.adjusted() + LEDGER_PRECISION + 3)
            quotient = da / db
    except (ArithmeticError, ValueError):
        return "0"
    return quantize_str(quotient)


def is_positive(value: Optional[Number]) -> bool:
    d = to_decimal(value)
    return d is not None and d > 0


def safe_sum(values: Iterable[Optional[Number]]) -> Decimal:
    """Sum values, skipping None, non-finite, unparseable and overflowing items."""
    total = Decimal("0")
    with localcontext() as ctx:
        ctx.prec = _WORKING_PRECISION
        for value in values:
            d = to_decimal(value)
            if d is None:
                continue
            try:
                total += d
            except ArithmeticError:
                continue
    return total
