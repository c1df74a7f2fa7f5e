"""Tests for finance_tracker.gamification."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from finance_tracker.gamification import (
    check_achievements,
    compute_streaks,
    days_within_budget,
    default_achievements,
)
from finance_tracker.models import Achievement, Expense, SavingsGoal, StreakData


def _on_days(days, amount=10.0, category='Food'):
    return [
        Expense(id=f"e{i}", amount=amount, category=category, date=day)
        for i, day in enumerate(days)
    ]


def _consecutive(end: date, count: int):
    return [end - timedelta(days=offset) for offset in range(count)]


class TestComputeStreaks:

    def test_empty_ledger(self, reference_day) -> None:
        assert compute_streaks([], reference_day) == StreakData()

    def test_unbroken_run_up_to_today(self, reference_day) -> None:
        streaks = compute_streaks(_on_days(_consecutive(reference_day, 5)), reference_day)
        assert streaks.current_streak == 5
        assert streaks.longest_streak == 5
        assert streaks.no_spend_days == 0
        assert streaks.last_spend_date == reference_day

    def test_gap_splits_runs(self, reference_day) -> None:
        days = [date(2024, 3, 10), date(2024, 3, 11), date(2024, 3, 12), reference_day]
        streaks = compute_streaks(_on_days(days), reference_day)
        assert streaks.current_streak == 1
        assert streaks.longest_streak == 3
        assert streaks.no_spend_days == 2
        assert streaks.current_no_spend_streak == 0
        assert streaks.longest_no_spend_streak == 2

    def test_idle_days_since_last_spend(self, reference_day) -> None:
        streaks = compute_streaks(_on_days([date(2024, 3, 10), date(2024, 3, 11)]), reference_day)
        assert streaks.current_streak == 0
        assert streaks.longest_streak == 2
        assert streaks.current_no_spend_streak == 4
        assert streaks.last_spend_date == date(2024, 3, 11)

    def test_future_expenses_are_ignored(self, reference_day) -> None:
        days = [reference_day, reference_day + timedelta(days=3)]
        streaks = compute_streaks(_on_days(days), reference_day)
        assert streaks.current_streak == 1
        assert streaks.last_spend_date == reference_day

    def test_horizon_caps_the_scan(self, reference_day) -> None:
        expenses = _on_days(_consecutive(reference_day, 15))
        streaks = compute_streaks(expenses, reference_day, horizon_days=7)
        assert streaks.current_streak == 7
        assert streaks.longest_streak == 7

    def test_no_spend_days_start_at_first_expense(self, reference_day) -> None:
        days = [reference_day - timedelta(days=9), reference_day]
        streaks = compute_streaks(_on_days(days), reference_day)
        assert streaks.no_spend_days == 8
        assert streaks.total_no_spend_days == 8
        assert streaks.longest_no_spend_streak == 8

    def test_several_expenses_on_one_day_count_once(self, reference_day) -> None:
        expenses = _on_days([reference_day, reference_day, reference_day])
        assert compute_streaks(expenses, reference_day).current_streak == 1


def test_days_within_budget(reference_day) -> None:
    expenses = [
        Expense(id='a', amount=5.0, category='Food', date=date(2024, 3, 13)),
        Expense(id='b', amount=20.0, category='Food', date=date(2024, 3, 14)),
        Expense(id='c', amount=5.0, category='Food', date=reference_day),
    ]
    # 300 a month is 10 a day
    assert days_within_budget(expenses, 300.0, reference_day) == 1
    assert days_within_budget(expenses, 900.0, reference_day) == 3
    assert days_within_budget(expenses, 0.0, reference_day) == 0


class TestCheckAchievements:

    def test_week_of_tracking_unlocks_streak(self, reference_day) -> None:
        expenses = _on_days(_consecutive(reference_day, 7))
        result = {a.type: a for a in check_achievements(expenses, [], default_achievements(), reference_day)}

        streak = result['streak']
        assert streak.is_unlocked
        assert streak.progress == 7
        assert streak.unlocked_at == datetime(2024, 3, 15, 0, 0)
        assert not result['no_spend'].is_unlocked
        assert result['no_spend'].progress == 0

    def test_progress_is_clamped_and_goals_counted(self, reference_day) -> None:
        goals = [
            SavingsGoal(id='g1', name='Bike', target_amount=8000.0, current_amount=8000.0, is_completed=True),
            SavingsGoal(id='g2', name='Trip', target_amount=9000.0, current_amount=4000.0),
        ]
        now = datetime(2024, 3, 15, 9, 30)
        result = {a.type: a for a in check_achievements([], goals, default_achievements(), reference_day, now=now)}

        assert result['savings'].is_unlocked
        assert result['savings'].progress == 10000
        assert result['savings'].unlocked_at == now
        assert result['goal'].is_unlocked

    def test_budget_needs_a_monthly_budget(self, reference_day) -> None:
        expenses = _on_days(_consecutive(reference_day, 3), amount=1.0)
        without = {a.type: a for a in check_achievements(expenses, [], default_achievements(), reference_day)}
        assert without['budget'].progress == 0

        with_budget = {
            a.type: a
            for a in check_achievements(
                expenses, [], default_achievements(), reference_day, monthly_budget=300.0,
            )
        }
        assert with_budget['budget'].progress == 3
        assert not with_budget['budget'].is_unlocked

    def test_gap_day_unlocks_no_spend(self, reference_day) -> None:
        expenses = _on_days([date(2024, 3, 13), reference_day])
        result = {a.type: a for a in check_achievements(expenses, [], default_achievements(), reference_day)}
        assert result['no_spend'].is_unlocked

    def test_unlocked_achievements_are_untouched(self, reference_day) -> None:
        earned = Achievement(
            id='1', type='streak', title='First Steps', description='7 days',
            max_progress=7, progress=7, is_unlocked=True,
            unlocked_at=datetime(2024, 1, 1, 12, 0),
        )
        assert check_achievements([], [], [earned], reference_day) == [earned]

    def test_milestone_counts_valid_expenses(self, reference_day) -> None:
        milestone = Achievement(
            id='m', type='milestone', title='Getting Started',
            description='Log 3 expenses', max_progress=3,
        )
        expenses = _on_days([reference_day, reference_day])
        expenses.append(Expense(id='bad', amount=-4.0, category='Food', date=reference_day))

        (result,) = check_achievements(expenses, [], [milestone], reference_day)
        assert result.progress == 2
        assert not result.is_unlocked

    def test_input_is_not_mutated(self, reference_day) -> None:
        achievements = default_achievements()
        check_achievements(_on_days(_consecutive(reference_day, 7)), [], achievements, reference_day)
        assert all(not a.is_unlocked for a in achievements)


def test_non_finite_budget_is_treated_as_unset(reference_day) -> None:
    expenses = _on_days(_consecutive(reference_day, 3), amount=1.0)
    assert days_within_budget(expenses, float('nan'), reference_day) == 0
    result = {
        a.type: a
        for a in check_achievements(
            expenses, [], default_achievements(), reference_day, monthly_budget=float('nan'),
        )
    }
    assert result['budget'].progress == 0
