"""Schedule arithmetic for recurring rules.

All arithmetic happens on timezone-aware UTC datetimes. Naive datetimes (as they come
back from the database) are taken to already be UTC.

Month-end policy: ``monthly`` advancement clamps to the last day of the target month
when the source day does not exist there (Jan 31 -> Feb 28 -> Mar 28). Each step works
from the previous due instant only, so a clamped day carries forward; the
``day_of_month`` hint on the rule is never consulted.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ..models import RecurringRule


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Return ``value`` as a naive UTC datetime, the storage form."""

    return to_utc(value).replace(tzinfo=None)


def add_months(start: datetime, months: int) -> datetime:
    """Add calendar months to ``start``, clamping the day to the target month's length."""

    month = start.month - 1 + months
    year = start.year + month // 12
    month = month % 12 + 1
    day = min(start.day, monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def advance(current_due: datetime, frequency: str, interval: Optional[int]) -> datetime:
    """Return the due instant following ``current_due``.

    ``interval`` values below 1 (or missing) are treated as 1. Raises ``ValueError``
    for an unknown frequency.
    """

    step = interval if interval and interval > 0 else 1
    due = to_utc(current_due)

    if frequency == "daily":
        return due + timedelta(days=step)
    if frequency == "weekly":
        return due + timedelta(days=7 * step)
    if frequency == "monthly":
        return add_months(due, step)
    raise ValueError(f"Unknown frequency: {frequency!r}")


def in_window(rule: RecurringRule, today: date) -> bool:
    """True when ``today`` lies within the rule's inclusive start/end dates."""

    if rule.start_date is not None and today < rule.start_date:
        return False
    if rule.end_date is not None and today > rule.end_date:
        return False
    return True
