"""Budget-limit and overspending alerts.

Alerts fire once spending exceeds a limit at all; severity grows with the
size of the overage.  Every call builds fresh alerts.  Callers that want to
avoid re-notifying an unchanged condition pass the set of condition keys
they have already shown (see ``alert_key``).
"""

from __future__ import annotations

from typing import AbstractSet, Any, List, Optional, Sequence, Tuple

from . import config
from .aggregation import budget_amount, summarize
from .formatting import format_currency
from .models import BUDGET_PERIODS, BudgetLimit, SpendingAlert, new_id
from .periods import to_date

ConditionKey = Tuple[str, Optional[str], str]


def severity_for_overage(percentage: float) -> str:
    """Severity tier for the amount over a limit, as a percentage of that limit.

    Spending 100 against a limit of 80 is 25% over and rates ``low``.
    """
    if percentage > config.OVERAGE_HIGH_PCT:
        return 'high'
    if percentage > config.OVERAGE_MEDIUM_PCT:
        return 'medium'
    return 'low'


def overage_percentage(spent: float, limit: float) -> float:
    return (spent - limit) / limit * 100


def alert_key(alert: SpendingAlert) -> ConditionKey:
    return (alert.type, alert.category, alert.period)


def period_budget(monthly_budget: float, period: str) -> float:
    """Scale a monthly budget down to a day, week or month."""
    if period == 'day':
        return monthly_budget / config.DAYS_PER_MONTH
    if period == 'week':
        return monthly_budget / config.WEEKS_PER_MONTH
    if period == 'month':
        return monthly_budget
    raise ValueError(f"Unsupported budget period '{period}'.")


def _suppressed(key: ConditionKey, notified: Optional[AbstractSet[ConditionKey]]) -> bool:
    return notified is not None and key in notified


def check_budget_limits(
    expenses: Sequence[Any],
    limits: Sequence[BudgetLimit],
    period: str,
    reference: Any,
    *,
    notified: Optional[AbstractSet[ConditionKey]] = None,
) -> List[SpendingAlert]:
    """Emit a ``budget_limit`` alert for each active limit that is exceeded.

    Spending is summed over the ``period`` bucket containing ``reference``
    for the limit's category.  Limits whose amount is not a positive finite
    number are ignored.
    """
    if period not in BUDGET_PERIODS:
        raise ValueError(f"Unsupported budget period '{period}'.")
    day = to_date(reference)
    by_category = summarize(expenses, period, day).by_category
    alerts: List[SpendingAlert] = []

    for limit in limits:
        cap = budget_amount(limit.amount)
        if not limit.is_active or cap is None:
            continue
        if _suppressed(('budget_limit', limit.category, period), notified):
            continue
        spent = by_category.get(limit.category, 0.0)
        if spent <= cap:
            continue
        percentage = spent / cap * 100
        alerts.append(SpendingAlert(
            id=new_id('alert'),
            type='budget_limit',
            title='Budget Limit Exceeded',
            message=(
                f"You've exceeded your {limit.category} budget by "
                f"{format_currency(spent - cap)} ({percentage:.1f}% of limit)"
            ),
            category=limit.category,
            amount=spent,
            limit=cap,
            period=period,
            date=day,
            severity=severity_for_overage(overage_percentage(spent, cap)),
        ))
    return alerts


def check_overspending(
    expenses: Sequence[Any],
    monthly_budget: Optional[float],
    period: str = 'month',
    reference: Any = None,
    *,
    notified: Optional[AbstractSet[ConditionKey]] = None,
) -> List[SpendingAlert]:
    """Compare total spend against the monthly budget scaled to ``period``.

    Returns an empty list when no usable monthly budget is configured.
    """
    monthly = budget_amount(monthly_budget)
    if monthly is None:
        return []
    if reference is None:
        raise ValueError("A reference date is required to check overspending.")
    if _suppressed(('overspending', None, period), notified):
        return []

    day = to_date(reference)
    budget = period_budget(monthly, period)
    spent = summarize(expenses, period, day).total
    if spent <= budget:
        return []

    return [SpendingAlert(
        id=new_id('alert'),
        type='overspending',
        title='Overspending Alert',
        message=(
            f"You've spent {format_currency(spent)} this {period}, which is "
            f"{format_currency(spent - budget)} over your budget"
        ),
        amount=spent,
        limit=budget,
        period=period,
        date=day,
        severity=severity_for_overage(overage_percentage(spent, budget)),
    )]
