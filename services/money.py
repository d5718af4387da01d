# services/money.py
"""
Fixed-precision money helpers.

All amounts are ``decimal.Decimal``. Values are rounded half-up to two places
only at the point where they become a persisted monetary field; intermediate
products keep full precision.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Union

from .exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Largest magnitudes of Numeric(12, 2) and Numeric(10, 2) columns
MAX_AMOUNT = Decimal("9999999999.99")
MAX_QUANTITY = Decimal("99999999.99")

Numeric = Union[Decimal, int, str, float]


def to_decimal(value: Numeric) -> Decimal:
     """
     Convert a value to Decimal without rounding.
     Floats go through ``str`` so 0.1 becomes Decimal('0.1'), not its binary expansion.
     """
     if isinstance(value, Decimal):
          result = value
     elif isinstance(value, bool):
          raise ValidationError(f"Cannot use boolean {value!r} as an amount")
     elif isinstance(value, (int, float)):
          result = Decimal(str(value))
     elif isinstance(value, str):
          try:
               result = Decimal(value.strip())
          except InvalidOperation:
               raise ValidationError(f"Invalid amount: {value!r}")
     else:
          raise ValidationError(f"Cannot convert {type(value).__name__} to Decimal")

     if not result.is_finite():
          raise ValidationError(f"Amount must be finite: {value!r}")
     return result


def round_money(value: Numeric) -> Decimal:
     """Round to currency precision (2 places, half-up)."""
     amount = to_decimal(value)
     try:
          return amount.quantize(CENT, rounding=ROUND_HALF_UP)
     except InvalidOperation:
          raise ValidationError(f"Amount is out of range: {value}")


def sum_money(values: Iterable[Numeric]) -> Decimal:
     """Exact sum of amounts, rounded to currency precision."""
     total = ZERO
     for v in values:
          total += to_decimal(v)
     return round_money(total)


def require_positive(value: Numeric, field_name: str) -> Decimal:
     amount = to_decimal(value)
     if amount <= 0:
          raise ValidationError(f"{field_name} must be greater than 0, got {value}")
     return amount


def require_non_negative(value: Numeric, field_name: str) -> Decimal:
     amount = to_decimal(value)
     if amount < 0:
          raise ValidationError(f"{field_name} cannot be negative, got {value}")
     return amount


def require_scale(value: Numeric, field_name: str, places: int = 2) -> Decimal:
     """Reject values with more fractional digits than the column stores."""
     amount = to_decimal(value)
     try:
          quantized = amount.quantize(Decimal(1).scaleb(-places))
     except InvalidOperation:
          raise ValidationError(f"{field_name} is out of range: {value}")
     if amount != quantized:
          raise ValidationError(f"{field_name} allows at most {places} decimal places, got {value}")
     return amount


def require_within(value: Numeric, field_name: str, limit: Decimal = MAX_AMOUNT) -> Decimal:
     """Reject magnitudes the Numeric column cannot hold."""
     amount = to_decimal(value)
     if abs(amount) > limit:
          raise ValidationError(f"{field_name} exceeds the maximum of {limit}, got {value}")
     return amount
