"""Ledger aggregation.

Functions here filter dated monetary records to a period and compute totals
grouped by category (or income source) and by calendar day.  Records carry
either a ``category`` (expenses) or a ``source`` (incomes); both expose it as
``label``.  Invalid amounts are skipped per record and reported back instead
of aborting the whole pass.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidAmount
from .models import ExpenseSummary, FinancialSummary, IncomeSummary
from .periods import date_range, to_date

RECORD_COLUMNS = ['id', 'amount', 'label', 'date']


def validate_amount(value: Any, record_id: str | None = None) -> float:
    """Return ``value`` as a float or raise ``InvalidAmount``."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidAmount(value, record_id) from None
    if not math.isfinite(amount) or amount < 0:
        raise InvalidAmount(value, record_id)
    return amount


def budget_amount(value: Any) -> Optional[float]:
    """A usable positive budget figure, or ``None`` when it cannot be applied.

    Unset, negative, zero and non-finite budgets all count as not configured.
    """
    if value is None:
        return None
    try:
        amount = validate_amount(value)
    except InvalidAmount:
        return None
    return amount if amount > 0 else None


def records_frame(records: Iterable[Any]) -> Tuple[pd.DataFrame, Tuple[str, ...]]:
    """Build a DataFrame of valid records plus the ids of skipped ones."""
    rows: List[Dict[str, Any]] = []
    skipped: List[str] = []
    for record in records:
        try:
            amount = validate_amount(record.amount, record.id)
        except InvalidAmount:
            skipped.append(record.id)
            continue
        rows.append({
            'id': record.id,
            'amount': amount,
            'label': record.label,
            'date': pd.Timestamp(to_date(record.date)),
        })
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS), tuple(skipped)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS), tuple(skipped)


def filter_window(frame: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
    """Rows of ``frame`` dated within ``[start, end]`` inclusive."""
    if frame.empty:
        return frame
    mask = (frame['date'] >= pd.Timestamp(start)) & (frame['date'] <= pd.Timestamp(end))
    return frame[mask]


def _grouped(frame: pd.DataFrame) -> Tuple[float, Dict[str, float], Dict[str, float], int]:
    if frame.empty:
        return 0.0, {}, {}, 0
    total = float(np.sum(frame['amount'].to_numpy()))
    by_label = {str(k): float(v) for k, v in frame.groupby('label')['amount'].sum().items()}
    day_keys = frame['date'].dt.strftime('%Y-%m-%d')
    by_date = {str(k): float(v) for k, v in frame.groupby(day_keys)['amount'].sum().items()}
    return total, by_label, by_date, len(frame)


def summarize(records: Sequence[Any], period: str, reference: Any) -> ExpenseSummary:
    """Summarize expenses falling in the ``period`` bucket around ``reference``."""
    start, end = date_range(period, reference)
    frame, skipped = records_frame(records)
    total, by_category, by_date, count = _grouped(filter_window(frame, start, end))
    return ExpenseSummary(
        total=total,
        by_category=by_category,
        by_date=by_date,
        count=count,
        skipped=skipped,
    )


def summarize_incomes(incomes: Sequence[Any], period: str, reference: Any) -> IncomeSummary:
    """Summarize incomes in the period, grouped by source."""
    start, end = date_range(period, reference)
    frame, skipped = records_frame(incomes)
    total, by_source, by_date, count = _grouped(filter_window(frame, start, end))
    return IncomeSummary(
        total=total,
        by_source=by_source,
        by_date=by_date,
        count=count,
        skipped=skipped,
    )


def financial_summary(
    expenses: Sequence[Any],
    incomes: Sequence[Any],
    period: str,
    reference: Any,
) -> FinancialSummary:
    """Income vs. expenses for the period with the resulting savings rate."""
    total_expenses = summarize(expenses, period, reference).total
    total_income = summarize_incomes(incomes, period, reference).total
    net_savings = total_income - total_expenses
    savings_rate = (net_savings / total_income * 100) if total_income > 0 else 0.0
    return FinancialSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_savings=net_savings,
        savings_rate=savings_rate,
        period=period,
    )


def category_totals(records: Sequence[Any], start: Any, end: Any) -> Dict[str, float]:
    """Per-category totals for an explicit inclusive date window."""
    frame, _ = records_frame(records)
    window = filter_window(frame, to_date(start), to_date(end))
    if window.empty:
        return {}
    return {str(k): float(v) for k, v in window.groupby('label')['amount'].sum().items()}


def total_amount(records: Iterable[Any]) -> float:
    """Sum of valid amounts, ignoring records that fail validation."""
    frame, _ = records_frame(records)
    if frame.empty:
        return 0.0
    return float(frame['amount'].sum())
