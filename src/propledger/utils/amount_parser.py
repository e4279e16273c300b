"""Amount parsing utilities.

Amounts cross every boundary as integer cents; these helpers convert
user-entered decimal strings to cents and cents back to display strings.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
import re

CENT = Decimal("0.01")


def parse_amount_cents(amount_str: str) -> int:
    """Parse an amount string into integer cents.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Fractions of a cent are rounded half-to-even.

    Args:
        amount_str: Amount string

    Returns:
        Amount in cents

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and thousands separators
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e!r}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}': not a finite number")

    if is_negative:
        amount = -amount
    cents = amount.quantize(CENT, rounding=ROUND_HALF_EVEN) * 100
    return int(cents)


def format_cents(amount_cents: int, currency: str = "$") -> str:
    """Format integer cents for display, e.g. -123456 -> '-$1,234.56'."""
    sign = "-" if amount_cents < 0 else ""
    dollars = Decimal(abs(amount_cents)) / 100
    return f"{sign}{currency}{dollars:,.2f}"
