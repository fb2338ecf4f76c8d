"""Date parsing utilities."""

from datetime import date, datetime, timedelta, UTC
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a user-entered date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last month",
      "this month", "next month"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this month": today.replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_iso_date(value: Any) -> Optional[date]:
    """Leniently read a stored calendar date.

    Accepts ``date`` objects and ``YYYY-MM-DD`` strings (a trailing time part
    is ignored). Anything else, including None, yields None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Leniently read a stored timestamp.

    ISO 8601 strings and epoch milliseconds are accepted. Naive values are
    taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            dt = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_iso_date(value: Optional[date]) -> Optional[str]:
    """Format a date as ``YYYY-MM-DD`` (None stays None)."""
    return value.isoformat() if value is not None else None


def same_month(value: date, ref: date) -> bool:
    """Return True if both dates fall in the same calendar year and month."""
    return value.year == ref.year and value.month == ref.month
