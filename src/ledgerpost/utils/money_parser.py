"""Money parsing utilities.

All amounts leave this module as integer cents. Rounding is
round-half-away-from-zero (``ROUND_HALF_UP`` in :mod:`decimal`).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import math
import re

from ledgerpost.domain.errors import ValidationError

_CENT = Decimal("0.01")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_EMPTY_REMAINDERS = {"", "-", ".", "-."}


def parse_money_cents(value) -> int:
    """Parse a raw money value into integer cents.

    Handles various formats:
    - 1234, 1234.5, Decimal("1234.50")
    - "1234.56", "$1,234.56", "-$12.00", "USD 12.00"
    - "(123.45)" (negative in parentheses)
    - None, "", "-" (all normalize to 0)

    Args:
        value: Number, numeric string or currency-formatted string

    Returns:
        Amount in integer cents

    Raises:
        ValidationError: If the numeric remainder is not a decimal number
    """
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, int):
        return value * 100

    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"Could not parse amount '{value}'")
        # str() keeps the shortest repr, so 1234.565 stays 1234.565
        value = str(value)

    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip()

        # Handle parentheses notation (negative)
        is_negative = False
        if text.startswith("(") and text.endswith(")"):
            is_negative = True
            text = text[1:-1]

        text = _NON_NUMERIC.sub("", text)
        if text in _EMPTY_REMAINDERS:
            return 0

        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Could not parse amount '{value}'")
        if is_negative:
            amount = -amount

    if not amount.is_finite():
        raise ValidationError(f"Could not parse amount '{value}'")

    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_cents(cents: int) -> str:
    """Render integer cents as a two-decimal string, e.g. 123456 -> "1234.56"."""
    return str((Decimal(cents) / 100).quantize(_CENT))


def cents_to_amount(cents: int) -> float:
    """Cents as a JSON-ready number; two-decimal values survive float repr exactly."""
    return float(Decimal(format_cents(cents)))
