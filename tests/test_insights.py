"""Tests for finance_tracker.insights."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from finance_tracker.insights import generate_insights, insight_key, savings_goal_progress
from finance_tracker.models import BudgetLimit, Expense, Income, SavingsGoal


def _expenses(rows):
    return [
        Expense(id=f"e{i}", amount=amount, category=category, date=day)
        for i, (amount, category, day) in enumerate(rows)
    ]


def _types(insights):
    return [(i.type, i.category) for i in insights]


def test_no_activity_means_no_insights(reference_day) -> None:
    expenses = _expenses([(100.0, 'Food', date(2024, 2, 10))])
    assert generate_insights(expenses, [], 'month', reference_day) == []


def test_spending_increase_against_previous_month(reference_day) -> None:
    expenses = _expenses([
        (150.0, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
    ])
    insights = generate_insights(expenses, [], 'month', reference_day)

    increase = [i for i in insights if i.type == 'spending_increase']
    assert len(increase) == 1
    assert increase[0].category == 'Food'
    assert increase[0].percentage == pytest.approx(50.0)
    assert increase[0].severity == 'medium'
    # Food is also the only category, so it dominates the period
    assert ('budget_alert', 'Food') in _types(insights)


@pytest.mark.parametrize('current, severity', [
    (125.0, 'low'),
    (135.0, 'medium'),
    (151.0, 'high'),
])
def test_increase_severity(current, severity, reference_day) -> None:
    expenses = _expenses([
        (current, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
    ])
    increase = [i for i in generate_insights(expenses, [], 'month', reference_day)
                if i.type == 'spending_increase']
    assert increase[0].severity == severity


def test_spending_decrease_is_low_severity(reference_day) -> None:
    expenses = _expenses([
        (50.0, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
    ])
    decrease = [i for i in generate_insights(expenses, [], 'month', reference_day)
                if i.type == 'spending_decrease']
    assert len(decrease) == 1
    assert decrease[0].severity == 'low'
    assert decrease[0].percentage == pytest.approx(-50.0)


def test_small_changes_and_new_categories_are_ignored(reference_day) -> None:
    expenses = _expenses([
        (110.0, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
        (100.0, 'Travel', date(2024, 3, 6)),
        (100.0, 'Books', date(2024, 3, 7)),
    ])
    insights = generate_insights(expenses, [], 'month', reference_day)
    assert not any(i.type.startswith('spending_') for i in insights)


def test_budget_proximity(reference_day) -> None:
    limits = [
        BudgetLimit(id='l1', category='Food', amount=100.0, period='month'),
        BudgetLimit(id='l2', category='Travel', amount=100.0, period='month'),
        BudgetLimit(id='l3', category='Books', amount=100.0, period='month', is_active=False),
    ]
    expenses = _expenses([
        (85.0, 'Food', date(2024, 3, 5)),
        (95.0, 'Travel', date(2024, 3, 6)),
        (99.0, 'Books', date(2024, 3, 7)),
        (79.0, 'Gifts', date(2024, 3, 8)),
    ])
    insights = generate_insights(expenses, [], 'month', reference_day, limits)
    budget = {i.category: i for i in insights if i.type == 'budget_alert'}

    assert budget['Food'].severity == 'medium'
    assert budget['Food'].percentage == pytest.approx(85.0)
    assert budget['Travel'].severity == 'high'
    assert 'Books' not in budget


def test_fallback_tip_when_nothing_else_applies(reference_day) -> None:
    expenses = _expenses([
        (35.0, 'Food', date(2024, 3, 5)),
        (35.0, 'Travel', date(2024, 3, 6)),
        (30.0, 'Books', date(2024, 3, 7)),
    ])
    insights = generate_insights(expenses, [], 'month', reference_day)
    assert len(insights) == 1
    assert insights[0].type == 'savings_tip'
    assert insights[0].title == 'Great Spending Habits!'
    assert insights[0].severity == 'low'


def test_dominant_category_tie_resolves_alphabetically(reference_day) -> None:
    expenses = _expenses([
        (45.0, 'Food', date(2024, 3, 5)),
        (45.0, 'Books', date(2024, 3, 6)),
        (10.0, 'Travel', date(2024, 3, 7)),
    ])
    dominant = [i for i in generate_insights(expenses, [], 'month', reference_day)
                if i.type == 'budget_alert']
    assert len(dominant) == 1
    assert dominant[0].category == 'Books'
    assert dominant[0].percentage == pytest.approx(45.0)


def test_category_filter_limits_trend_comparison(reference_day) -> None:
    expenses = _expenses([
        (200.0, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
        (200.0, 'Travel', date(2024, 3, 6)),
        (100.0, 'Travel', date(2024, 2, 6)),
    ])
    insights = generate_insights(expenses, ['Travel'], 'month', reference_day)
    increases = [i.category for i in insights if i.type == 'spending_increase']
    assert increases == ['Travel']


def test_goal_at_risk_produces_savings_tip(reference_day) -> None:
    goal = SavingsGoal(
        id='g1', name='Laptop', target_amount=1000.0,
        target_date=reference_day + timedelta(days=10),
        created_at=reference_day - timedelta(days=30),
    )
    incomes = [Income(id='pay', amount=800.0, source='Salary', date=date(2024, 3, 1))]
    expenses = _expenses([
        (70.0, 'Food', date(2024, 3, 5)),
        (70.0, 'Travel', date(2024, 3, 6)),
        (60.0, 'Books', date(2024, 3, 7)),
    ])
    insights = generate_insights(expenses, [], 'month', reference_day, [], [goal], incomes)

    tips = [i for i in insights if i.type == 'savings_tip']
    assert len(tips) == 1
    assert tips[0].title == 'Savings Goal: Laptop'
    assert tips[0].severity == 'medium'
    assert tips[0].percentage == pytest.approx(60.0)


def test_completed_goal_is_ignored(reference_day) -> None:
    goal = SavingsGoal(
        id='g1', name='Laptop', target_amount=1000.0, is_completed=True,
        target_date=reference_day + timedelta(days=10),
        created_at=reference_day - timedelta(days=30),
    )
    incomes = [Income(id='pay', amount=800.0, source='Salary', date=date(2024, 3, 1))]
    expenses = _expenses([(100.0, 'Food', date(2024, 3, 5))])
    insights = generate_insights(expenses, [], 'month', reference_day, [], [goal], incomes)
    assert not any(i.title.startswith('Savings Goal') for i in insights)


def test_notified_insights_are_dropped(reference_day) -> None:
    expenses = _expenses([
        (150.0, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
    ])
    first = generate_insights(expenses, [], 'month', reference_day)
    notified = {insight_key(i, 'month') for i in first}
    second = generate_insights(expenses, [], 'month', reference_day, notified=notified)
    assert [i.title for i in second] == ['Great Spending Habits!']
    assert not any(i.type == 'spending_increase' for i in second)


class TestSavingsGoalProgress:

    def test_progress_remaining_and_track(self, reference_day) -> None:
        goal = SavingsGoal(
            id='g1', name='Laptop', target_amount=1000.0,
            target_date=reference_day + timedelta(days=10),
            created_at=reference_day - timedelta(days=30),
        )
        incomes = [Income(id='pay', amount=800.0, source='Salary', date=reference_day)]
        expenses = _expenses([(200.0, 'Food', reference_day)])

        status = savings_goal_progress(goal, incomes, expenses, reference_day)
        assert status.progress == pytest.approx(60.0)
        assert status.remaining == pytest.approx(400.0)
        assert status.days_left == 10
        # 600 over 30 days is 20/day; 400 over 10 days needs 40/day
        assert not status.is_on_track

    def test_on_track_when_saving_fast_enough(self, reference_day) -> None:
        goal = SavingsGoal(
            id='g1', name='Trip', target_amount=1000.0,
            target_date=reference_day + timedelta(days=60),
            created_at=reference_day - timedelta(days=10),
        )
        incomes = [Income(id='pay', amount=500.0, source='Salary', date=reference_day)]
        status = savings_goal_progress(goal, incomes, [], reference_day)
        assert status.is_on_track

    def test_progress_is_capped_and_guards_division(self, reference_day) -> None:
        goal = SavingsGoal(id='g1', name='Fund', target_amount=100.0)
        incomes = [Income(id='pay', amount=500.0, source='Salary', date=reference_day)]
        status = savings_goal_progress(goal, incomes, [], reference_day)
        assert status.progress == 100.0
        assert status.remaining == 0.0
        assert status.days_left == 0
        assert status.is_on_track

    def test_past_target_date_and_zero_target(self, reference_day) -> None:
        goal = SavingsGoal(
            id='g1', name='Late', target_amount=0.0,
            target_date=reference_day - timedelta(days=5),
        )
        status = savings_goal_progress(goal, [], [], reference_day)
        assert status.progress == 0.0
        assert status.days_left == 0


def test_invalid_expenses_are_skipped(reference_day) -> None:
    expenses = _expenses([
        (150.0, 'Food', date(2024, 3, 5)),
        (100.0, 'Food', date(2024, 2, 5)),
        (-500.0, 'Food', date(2024, 3, 6)),
        (float('nan'), 'Travel', date(2024, 3, 7)),
    ])
    insights = generate_insights(expenses, [], 'month', reference_day)
    increase = [i for i in insights if i.type == 'spending_increase']
    assert [(i.category, i.percentage) for i in increase] == [('Food', pytest.approx(50.0))]
    assert all(i.category != 'Travel' for i in insights)


def test_only_invalid_expenses_means_no_insights(reference_day) -> None:
    expenses = _expenses([(float('inf'), 'Food', date(2024, 3, 5))])
    assert generate_insights(expenses, [], 'month', reference_day) == []


@pytest.mark.parametrize('bad_amount', [float('nan'), -100.0, 0.0])
def test_unusable_limit_is_skipped_for_proximity(bad_amount, reference_day) -> None:
    limits = [
        BudgetLimit(id='broken', category='Food', amount=bad_amount),
        BudgetLimit(id='travel', category='Travel', amount=100.0),
    ]
    expenses = _expenses([
        (85.0, 'Food', date(2024, 3, 5)),
        (90.0, 'Travel', date(2024, 3, 6)),
        (80.0, 'Books', date(2024, 3, 7)),
    ])
    budget = [
        (i.category, i.percentage)
        for i in generate_insights(expenses, [], 'month', reference_day, limits)
        if i.type == 'budget_alert'
    ]
    assert budget == [('Travel', pytest.approx(90.0))]
