"""Fixed-point money helpers.

Amounts are persisted as integer minor units (cents) and surfaced as
``Decimal`` with two places. Floats never take part in arithmetic: inputs are
converted through ``str`` first.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError

_CENT = Decimal("0.01")


def parse_decimal(value, field: str) -> Decimal:
    """Parse a caller-supplied amount, rejecting NaN and infinities."""
    if isinstance(value, bool):
        raise ValidationError({field: ["Must be a number"]})
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError({field: ["Must be a number"]}) from None
    if amount.is_nan():
        raise ValidationError({field: ["Must not be NaN"]})
    if amount.is_infinite():
        raise ValidationError({field: ["Must be finite"]})
    return amount


def to_cents(value, field: str, allow_negative: bool = False) -> int:
    amount = parse_decimal(value, field)
    if amount < 0 and not allow_negative:
        raise ValidationError({field: ["Must not be negative"]})
    return int((amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def optional_cents(value, field: str) -> int | None:
    if value is None or value == "":
        return None
    return to_cents(value, field)


def from_cents(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(_CENT)
