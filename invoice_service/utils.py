"""Utility functions shared across the invoice service."""
from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from dateutil import parser

CENTS = Decimal("0.01")


def parse_datetime(value: object) -> Optional[datetime]:
    """Parse free-form date text into a datetime; returns None on failure."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = parser.parse(value)
        # dateutil accepts offsets such as +25:00 that datetime cannot represent
        parsed.utcoffset()
    except (ValueError, TypeError, OverflowError):
        return None
    return parsed


def to_number(value: object) -> Optional[float]:
    """Convert a JSON number or numeric text to a finite float, else None.

    Booleans are rejected even though ``bool`` subclasses ``int``.
    """
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_decimal(value: object) -> Decimal:
    """Exact decimal for a stored number; goes through ``str`` so 9.99 stays 9.99."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc


def format_money(value: Decimal) -> str:
    """Round to 2 decimal places for display only."""
    return str(to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())
