"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Any

CENT = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "1,234.56"
    - "12,5" (comma as decimal separator when it is the only separator)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Remove currency symbols
    amount_str = re.sub(r"[$€£¥]", "", amount_str).strip()

    if "," in amount_str and "." not in amount_str and amount_str.count(",") == 1:
        head, _, tail = amount_str.partition(",")
        if len(tail) != 3:
            amount_str = f"{head}.{tail}"

    # Remove thousands separators
    amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount


def to_amount(value: Any) -> Decimal:
    """Coerce any stored or entered value to a Decimal.

    Missing, non-numeric and non-finite values become zero instead of raising.
    Strings accept a comma as decimal separator.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = repr(value)
    if not isinstance(value, str):
        return Decimal("0")
    try:
        amount = Decimal(value.strip().replace(",", "."))
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary value to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Any, currency: str = "$") -> str:
    """Format an amount for display, e.g. ``$1,234.50``."""
    value = round_money(to_amount(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{currency or '$'}{abs(value):,.2f}"
