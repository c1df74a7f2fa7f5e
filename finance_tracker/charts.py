"""Chart series and calendar grids built from the expense ledger."""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from . import config
from .aggregation import budget_amount, filter_window, records_frame
from .models import BudgetLimit, CalendarDay, CalendarView, ChartData, ChartPoint, Expense
from .periods import iter_days, to_date

# strftime pattern for the bucket key and the display label of each period
BUCKET_FORMATS = {
    'day': ('%Y-%m-%d', '%b %d'),
    'week': ('%G-W%V', '%b %d'),
    'month': ('%Y-%m', '%b %Y'),
    'year': ('%Y', '%Y'),
}


def chart_data(expenses: Sequence[Any], period: str, start: Any, end: Any) -> ChartData:
    """Bucket expenses between ``start`` and ``end`` into a plottable series.

    Week buckets use ISO week numbering; the label of every bucket is taken
    from its earliest expense date.
    """
    if period not in BUCKET_FORMATS:
        raise ValueError(f"Unsupported period '{period}'.")
    key_format, label_format = BUCKET_FORMATS[period]

    frame, _ = records_frame(expenses)
    window = filter_window(frame, to_date(start), to_date(end))
    if window.empty:
        return ChartData(period=period, data=[], categories=[], total=0.0)

    window = window.assign(bucket=window['date'].dt.strftime(key_format))
    grouped = window.groupby('bucket').agg(value=('amount', 'sum'), first=('date', 'min'))
    grouped = grouped.sort_values('first')

    points = [
        ChartPoint(date=str(bucket), value=float(row['value']), label=row['first'].strftime(label_format))
        for bucket, row in grouped.iterrows()
    ]
    categories = list(dict.fromkeys(window.sort_values('date', kind='stable')['label']))
    return ChartData(
        period=period,
        data=points,
        categories=categories,
        total=float(window['amount'].sum()),
    )


def _daily_category_limits(limits: Sequence[BudgetLimit]) -> Dict[str, float]:
    caps: Dict[str, float] = {}
    for limit in limits:
        cap = budget_amount(limit.amount)
        if limit.is_active and limit.period == 'day' and cap is not None:
            caps[limit.category] = cap
    return caps


def calendar_view(
    expenses: Sequence[Expense],
    year: int,
    month: int,
    limits: Sequence[BudgetLimit] = (),
    monthly_budget: Optional[float] = None,
) -> CalendarView:
    """One entry per day of ``month`` with that day's expenses.

    A day is flagged as overspending when its total exceeds the monthly
    budget spread evenly over the month, or when any active daily category
    limit is exceeded.
    """
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    monthly = budget_amount(monthly_budget)
    daily_budget = monthly / config.DAYS_PER_MONTH if monthly is not None else None
    category_limits = _daily_category_limits(limits)

    frame, _ = records_frame(expenses)
    window = filter_window(frame, first, last)
    valid_ids = set(window['id']) if not window.empty else set()
    by_day: Dict[date, List[Expense]] = {}
    for expense in expenses:
        if expense.id in valid_ids:
            by_day.setdefault(to_date(expense.date), []).append(expense)

    days: List[CalendarDay] = []
    for day in iter_days(first, last):
        entries = by_day.get(day, [])
        total = float(sum(e.amount for e in entries))
        per_category = pd.Series(
            [e.amount for e in entries], index=[e.category for e in entries], dtype=float,
        ).groupby(level=0).sum()
        over_category = any(
            per_category.get(category, 0.0) > cap for category, cap in category_limits.items()
        )
        over_budget = daily_budget is not None and total > daily_budget
        days.append(CalendarDay(
            date=day,
            expenses=entries,
            total=total,
            has_overspending=over_budget or over_category,
            is_no_spend_day=not entries,
        ))
    return CalendarView(year=year, month=month, days=days)
