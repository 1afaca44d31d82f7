# backend/portfolio_tracker/utils/date_utils.py
"""
Date helpers for the transaction ledger.

The ledger stores calendar dates only. Clients send either a date
("2024-03-15"), a full ISO timestamp, or (in tests and services) a
date/datetime object; to_ledger_date() folds all of them into a date.
"""

from datetime import date, datetime


def to_ledger_date(value: date | datetime | str) -> date:
    """
    Coerce a transaction date into the ledger's representation.

    Timestamps keep their own calendar day (no timezone conversion), so a
    transaction entered at 23:30 local time stays on that day.

    Args:
        value: date, datetime, or ISO-8601 date/datetime string

    Returns:
        The calendar date

    Raises:
        ValueError: If a string is not ISO-8601
        TypeError: For any other type

    Example:
        >>> to_ledger_date("2024-03-15T23:30:00+07:00")
        datetime.date(2024, 3, 15)
    """
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if "T" in text or " " in text:
            # fromisoformat only accepts a trailing "Z" from Python 3.11 on
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    raise TypeError(f"Cannot interpret {type(value).__name__} as a transaction date")


def month_name(month: int) -> str:
    """English month name for a 1-12 period number (used to fill PVD/cooperative rows)."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return date(2000, month, 1).strftime("%B")
