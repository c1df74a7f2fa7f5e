"""Spending insights derived from period-over-period comparison.

Insights are softer than alerts: they describe trends (a category grew or
shrank against the previous period), budgets getting close to their limit,
savings goals at risk, and a single category dominating spend.  When none of
those apply the generator still returns one encouraging tip, so the list is
never empty for a period with any expense activity.
"""

from __future__ import annotations

from typing import AbstractSet, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .aggregation import budget_amount, category_totals, filter_window, records_frame, total_amount
from .formatting import format_currency
from .models import BudgetLimit, GoalProgress, SavingsGoal, SpendingInsight, new_id
from .periods import date_range, days_between, previous_period, to_date

ConditionKey = Tuple[str, Optional[str], str]


def insight_key(insight: SpendingInsight, period: str) -> ConditionKey:
    # Goal tips and the fallback tip have no category; their titles differ.
    subject = insight.category if insight.category is not None else insight.title
    return (insight.type, subject, period)


def _category_name(category: Any) -> str:
    if isinstance(category, str):
        return category
    if isinstance(category, dict):
        return str(category.get('name', ''))
    return str(getattr(category, 'name', category))


def trend_severity(change: float) -> str:
    if change > config.TREND_HIGH_PCT:
        return 'high'
    if change > config.TREND_MEDIUM_PCT:
        return 'medium'
    return 'low'


def savings_goal_progress(
    goal: SavingsGoal,
    incomes: Iterable[Any],
    expenses: Iterable[Any],
    today: Any,
) -> GoalProgress:
    """Progress towards ``goal`` using net savings of the supplied ledger.

    Net savings is total income minus total expenses across whatever records
    the caller passes, not a sub-ledger earmarked for this goal.
    """
    day = to_date(today)
    net_savings = total_amount(incomes) - total_amount(expenses)
    target = float(goal.target_amount)

    progress = min(net_savings / target * 100, 100.0) if target > 0 else 0.0
    remaining = max(target - net_savings, 0.0)

    days_left = 0
    if goal.target_date is not None:
        days_left = max(days_between(day, goal.target_date), 0)

    if days_left > 0:
        daily_required = remaining / days_left
        created = to_date(goal.created_at) if goal.created_at is not None else day
        daily_actual = net_savings / max(days_between(created, day), 1)
        is_on_track = daily_actual >= daily_required
    else:
        is_on_track = remaining == 0

    return GoalProgress(
        progress=progress,
        remaining=remaining,
        days_left=days_left,
        is_on_track=is_on_track,
    )


def _trend_insights(
    current: Dict[str, float],
    previous: Dict[str, float],
    period: str,
    day,
) -> List[SpendingInsight]:
    insights: List[SpendingInsight] = []
    for category, amount in current.items():
        before = previous.get(category, 0.0)
        if before <= 0:
            continue
        change = (amount - before) / before * 100
        if change > config.TREND_CHANGE_PCT:
            insights.append(SpendingInsight(
                id=new_id('insight'),
                type='spending_increase',
                title=f"Spending Increase in {category}",
                message=(
                    f"You spent {abs(change):.1f}% more on {category} this {period} "
                    f"compared to last {period}."
                ),
                category=category,
                percentage=change,
                date=day,
                severity=trend_severity(change),
            ))
        elif change < -config.TREND_CHANGE_PCT:
            insights.append(SpendingInsight(
                id=new_id('insight'),
                type='spending_decrease',
                title=f"Great Job on {category} Spending!",
                message=(
                    f"You spent {abs(change):.1f}% less on {category} this {period} "
                    f"compared to last {period}. Keep it up!"
                ),
                category=category,
                percentage=change,
                date=day,
                severity='low',
            ))
    return insights


def _budget_insights(
    current: Dict[str, float],
    limits: Sequence[BudgetLimit],
    day,
) -> List[SpendingInsight]:
    insights: List[SpendingInsight] = []
    for limit in limits:
        cap = budget_amount(limit.amount)
        if not limit.is_active or cap is None:
            continue
        spent = current.get(limit.category, 0.0)
        percentage = spent / cap * 100
        if percentage < config.BUDGET_WARNING_PCT:
            continue
        insights.append(SpendingInsight(
            id=new_id('insight'),
            type='budget_alert',
            title=f"{limit.category} Budget Alert",
            message=(
                f"You've used {percentage:.1f}% of your {limit.category} budget. "
                "Consider slowing down spending in this category."
            ),
            category=limit.category,
            percentage=percentage,
            date=day,
            severity='high' if percentage >= config.BUDGET_CRITICAL_PCT else 'medium',
        ))
    return insights


def _goal_insights(
    goals: Sequence[SavingsGoal],
    incomes: Sequence[Any],
    expenses: Sequence[Any],
    day,
) -> List[SpendingInsight]:
    insights: List[SpendingInsight] = []
    for goal in goals:
        if goal.is_completed:
            continue
        status = savings_goal_progress(goal, incomes, expenses, day)
        at_risk = (
            status.progress > config.GOAL_RISK_PROGRESS_PCT
            and not status.is_on_track
            and status.days_left < config.GOAL_RISK_DAYS_LEFT
        )
        if not at_risk:
            continue
        insights.append(SpendingInsight(
            id=new_id('insight'),
            type='savings_tip',
            title=f"Savings Goal: {goal.name}",
            message=(
                f"You're {status.progress:.1f}% to your goal but need to save "
                f"{format_currency(status.remaining)} more in {status.days_left} days."
            ),
            category=None,
            percentage=status.progress,
            date=day,
            severity='medium',
        ))
    return insights


def _dominant_category_insight(
    current: Dict[str, float],
    period: str,
    day,
) -> Optional[SpendingInsight]:
    total = sum(current.values())
    if total <= 0:
        return None
    # Largest amount wins; equal amounts resolve alphabetically.
    top = min(current, key=lambda name: (-current[name], name))
    percentage = current[top] / total * 100
    if percentage <= config.DOMINANT_CATEGORY_PCT:
        return None
    return SpendingInsight(
        id=new_id('insight'),
        type='budget_alert',
        title=f"{top} is Your Biggest Expense",
        message=(
            f"{top} accounts for {percentage:.1f}% of your total spending this {period}. "
            f"Consider reviewing your {top.lower()} expenses."
        ),
        category=top,
        percentage=percentage,
        date=day,
        severity='medium',
    )


def _healthy_habits_insight(period: str, day) -> SpendingInsight:
    return SpendingInsight(
        id=new_id('insight'),
        type='savings_tip',
        title='Great Spending Habits!',
        message=(
            f"Your spending patterns look healthy this {period}. Keep tracking your "
            "expenses to maintain good financial habits."
        ),
        date=day,
        severity='low',
    )


def generate_insights(
    expenses: Sequence[Any],
    categories: Sequence[Any],
    period: str,
    reference: Any,
    limits: Sequence[BudgetLimit] = (),
    goals: Sequence[SavingsGoal] = (),
    incomes: Sequence[Any] = (),
    *,
    notified: Optional[AbstractSet[ConditionKey]] = None,
) -> List[SpendingInsight]:
    """Build the insight list for the ``period`` bucket around ``reference``.

    Args:
        expenses: Full expense ledger; filtering happens here.
        categories: Category names (or objects with ``name``) to compare
            period over period.  Empty means every category with spend.
        period: ``day``, ``week``, ``month`` or ``year``.
        reference: Date inside the current period.
        limits: Budget limits checked for 80% proximity.
        goals: Savings goals checked for risk of missing their date.
        incomes: Incomes used for goal progress; only the current period's
            share counts.
        notified: Condition keys already shown; matching insights are dropped
            before the fallback tip is considered.

    Returns:
        A list of new, unread insights; empty only when the current period
        has no valid expenses.
    """
    day = to_date(reference)
    start, end = date_range(period, day)
    frame, _ = records_frame(expenses)
    current_rows = filter_window(frame, start, end)
    if current_rows.empty:
        return []

    current = category_totals(expenses, start, end)
    previous = category_totals(expenses, *previous_period(period, day))

    wanted = {_category_name(c) for c in categories if _category_name(c)}
    trend_current = {k: v for k, v in current.items() if k in wanted} if wanted else current

    current_ids = set(current_rows['id'])
    period_expenses = [e for e in expenses if e.id in current_ids]
    income_frame, _ = records_frame(incomes)
    income_ids = set(filter_window(income_frame, start, end)['id'])
    period_incomes = [i for i in incomes if i.id in income_ids]

    insights: List[SpendingInsight] = []
    insights.extend(_trend_insights(trend_current, previous, period, day))
    insights.extend(_budget_insights(current, limits, day))
    insights.extend(_goal_insights(goals, period_incomes, period_expenses, day))
    dominant = _dominant_category_insight(current, period, day)
    if dominant is not None:
        insights.append(dominant)

    if notified is not None:
        insights = [i for i in insights if insight_key(i, period) not in notified]

    if not insights:
        fallback = _healthy_habits_insight(period, day)
        if notified is None or insight_key(fallback, period) not in notified:
            insights.append(fallback)
    return insights
