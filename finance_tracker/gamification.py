"""Spending streaks and achievement progress."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

import pandas as pd

from . import config
from .aggregation import budget_amount, records_frame
from .models import Achievement, SavingsGoal, StreakData
from .periods import to_date


def default_achievements() -> List[Achievement]:
    """Stock achievements every new profile starts with."""
    return [
        Achievement(
            id='1', type='streak', title='First Steps',
            description='Track expenses for 7 consecutive days',
            icon='🔥', max_progress=7, rarity='common',
        ),
        Achievement(
            id='2', type='savings', title='Saver',
            description='Save 10,000 in total',
            icon='💰', max_progress=10000, rarity='common',
        ),
        Achievement(
            id='3', type='no_spend', title='No Spend Day',
            description='Complete a day without any expenses',
            icon='🎯', max_progress=1, rarity='rare',
        ),
        Achievement(
            id='4', type='budget', title='Budget Master',
            description='Stay within budget for 30 consecutive days',
            icon='📊', max_progress=30, rarity='epic',
        ),
        Achievement(
            id='5', type='goal', title='Goal Achiever',
            description='Complete your first savings goal',
            icon='🏆', max_progress=1, rarity='legendary',
        ),
    ]


def _daily_totals(expenses: Sequence[Any], reference: date) -> Dict[date, float]:
    frame, _ = records_frame(expenses)
    if frame.empty:
        return {}
    frame = frame[frame['date'] <= pd.Timestamp(reference)]
    totals = frame.groupby(frame['date'].dt.date)['amount'].sum()
    return {day: float(amount) for day, amount in totals.items()}


def _scan_window(first_day: date, reference: date, horizon_days: int) -> List[date]:
    """Days from ``reference`` backwards, stopping at the horizon or ``first_day``."""
    oldest = max(reference - timedelta(days=horizon_days - 1), first_day)
    span = (reference - oldest).days + 1
    return [reference - timedelta(days=offset) for offset in range(span)]


def _runs(flags: List[bool]) -> Tuple[int, int]:
    """Current (leading) and longest run of True values."""
    current = 0
    while current < len(flags) and flags[current]:
        current += 1
    longest = run = 0
    for flag in flags:
        run = run + 1 if flag else 0
        longest = max(longest, run)
    return current, longest


def compute_streaks(
    expenses: Sequence[Any],
    reference_day: Any,
    horizon_days: int = config.STREAK_HORIZON_DAYS,
) -> StreakData:
    """Recompute streak statistics from scratch.

    Days are walked backwards from ``reference_day`` for at most
    ``horizon_days`` days, never past the first day with a recorded expense:
    days before tracking started are neither spending nor no-spend days.
    A ledger that begins inside the horizon therefore reports fewer
    ``no_spend_days``/``total_no_spend_days`` than a full ``horizon_days``
    scan would; a user who started tracking last week has at most seven.
    Current streaks are the runs that include ``reference_day`` itself.
    """
    reference = to_date(reference_day)
    daily = _daily_totals(expenses, reference)
    if not daily or horizon_days <= 0:
        return StreakData()

    spend_days: Set[date] = set(daily)
    window = _scan_window(min(spend_days), reference, horizon_days)
    spent = [day in spend_days for day in window]
    idle = [not flag for flag in spent]

    current_streak, longest_streak = _runs(spent)
    current_no_spend, longest_no_spend = _runs(idle)
    no_spend_days = sum(idle)

    return StreakData(
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_spend_date=max(spend_days),
        no_spend_days=no_spend_days,
        total_no_spend_days=no_spend_days,
        current_no_spend_streak=current_no_spend,
        longest_no_spend_streak=longest_no_spend,
    )


def days_within_budget(
    expenses: Sequence[Any],
    monthly_budget: float,
    reference_day: Any,
    horizon_days: int = config.STREAK_HORIZON_DAYS,
) -> int:
    """Consecutive days ending at ``reference_day`` spent under the daily budget."""
    reference = to_date(reference_day)
    daily = _daily_totals(expenses, reference)
    monthly = budget_amount(monthly_budget)
    if not daily or monthly is None:
        return 0
    daily_budget = monthly / config.DAYS_PER_MONTH
    window = _scan_window(min(daily), reference, horizon_days)
    within = [daily.get(day, 0.0) <= daily_budget for day in window]
    return _runs(within)[0]


def _clamp(value: float, maximum: float) -> float:
    return max(0.0, min(float(value), float(maximum)))


def check_achievements(
    expenses: Sequence[Any],
    goals: Sequence[SavingsGoal],
    achievements: Sequence[Achievement],
    today: Any,
    *,
    monthly_budget: Optional[float] = None,
    now: Optional[datetime] = None,
) -> List[Achievement]:
    """Refresh progress of locked achievements and unlock completed ones.

    Unlocked achievements are returned untouched, whatever the ledger now
    says.  Achievement types without an available signal (``budget`` with
    no monthly budget configured) keep their previous progress.
    """
    day = to_date(today)
    unlocked_at = now or datetime.combine(day, datetime.min.time())
    streaks = compute_streaks(expenses, day)
    valid_expenses, _ = records_frame(expenses)

    signals: Dict[str, Callable[[], float]] = {
        'streak': lambda: streaks.current_streak,
        'savings': lambda: sum(float(g.current_amount) for g in goals),
        'no_spend': lambda: 1 if streaks.no_spend_days > 0 else 0,
        'goal': lambda: sum(1 for g in goals if g.is_completed),
        'milestone': lambda: len(valid_expenses),
    }
    if budget_amount(monthly_budget) is not None:
        signals['budget'] = lambda: days_within_budget(expenses, monthly_budget, day)

    updated: List[Achievement] = []
    for achievement in achievements:
        signal = signals.get(achievement.type)
        if achievement.is_unlocked or signal is None:
            updated.append(achievement)
            continue
        progress = _clamp(signal(), achievement.max_progress)
        if progress >= achievement.max_progress:
            updated.append(replace(
                achievement, progress=progress, is_unlocked=True, unlocked_at=unlocked_at,
            ))
        else:
            updated.append(replace(achievement, progress=progress))
    return updated
