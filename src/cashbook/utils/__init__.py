"""Utility functions for cashbook."""

from cashbook.utils.date_parser import parse_date
from cashbook.utils.amount_parser import parse_amount, to_amount, format_money
from cashbook.utils.id_resolver import resolve_id

__all__ = ["parse_date", "parse_amount", "to_amount", "format_money", "resolve_id"]
