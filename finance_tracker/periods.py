"""Calendar helpers shared by every analytics component.

All comparisons happen at day granularity.  Anything date-like handed to
these helpers (``date``, ``datetime``, ``pandas.Timestamp`` or an ISO string)
is first collapsed to a plain ``datetime.date``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Tuple

import pandas as pd

from .errors import InvalidFrequency

DateRange = Tuple[date, date]

# Offsets applied by ``add_by_frequency``.  Calendar-month and calendar-year
# steps clamp to the last valid day (Jan 31 -> Feb 28/29, Feb 29 -> Feb 28).
FREQUENCY_OFFSETS = {
    'daily': pd.DateOffset(days=1),
    'weekly': pd.DateOffset(weeks=1),
    'monthly': pd.DateOffset(months=1),
    'yearly': pd.DateOffset(years=1),
}


def to_date(value: Any) -> date:
    """Collapse a date-like value to a ``datetime.date``."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return pd.to_datetime(value).date()
    raise TypeError(f"Cannot interpret {value!r} as a date.")


def date_range(period: str, reference: Any) -> DateRange:
    """Return the inclusive ``(start, end)`` bucket containing ``reference``.

    Weeks start on Monday; months and years follow the calendar.
    """
    ref = to_date(reference)
    if period == 'day':
        return ref, ref
    if period == 'week':
        start = ref - timedelta(days=ref.weekday())
        return start, start + timedelta(days=6)
    if period == 'month':
        start = ref.replace(day=1)
        end = (pd.Timestamp(start) + pd.offsets.MonthEnd(1)).date()
        return start, end
    if period == 'year':
        return date(ref.year, 1, 1), date(ref.year, 12, 31)
    raise ValueError(f"Unsupported period '{period}'.")


def is_within_period(value: Any, period: str, reference: Any) -> bool:
    start, end = date_range(period, reference)
    return start <= to_date(value) <= end


def previous_period(period: str, reference: Any) -> DateRange:
    """Return the bucket used for period-over-period comparison.

    This is not simply the ``date_range`` bucket before the current one:
    ``week`` means the seven days ending yesterday, and ``day`` means
    yesterday.  Months and years are the previous calendar month/year.
    """
    ref = to_date(reference)
    if period == 'day':
        yesterday = ref - timedelta(days=1)
        return yesterday, yesterday
    if period == 'week':
        return ref - timedelta(days=7), ref - timedelta(days=1)
    if period == 'month':
        end = ref.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    if period == 'year':
        return date(ref.year - 1, 1, 1), date(ref.year - 1, 12, 31)
    raise ValueError(f"Unsupported period '{period}'.")


def add_by_frequency(value: Any, frequency: str) -> date:
    """Step ``value`` forward by one recurrence ``frequency``."""
    offset = FREQUENCY_OFFSETS.get(frequency) if isinstance(frequency, str) else None
    if offset is None:
        raise InvalidFrequency(frequency)
    return (pd.Timestamp(to_date(value)) + offset).date()


def is_same_calendar_day(a: Any, b: Any) -> bool:
    return to_date(a) == to_date(b)


def days_between(start: Any, end: Any) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (to_date(end) - to_date(start)).days


def iter_days(start: Any, end: Any):
    """Yield each date from ``start`` to ``end`` inclusive."""
    current = to_date(start)
    last = to_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)
