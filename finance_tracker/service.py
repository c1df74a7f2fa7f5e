"""Host-side orchestration of the analytics engine.

``LedgerService`` reads snapshots from a ``LedgerStore``, runs the pure
analytics functions and writes the results back.  It also remembers which
alert and insight conditions the user has already been told about, so an
unchanged condition is not re-announced until it clears.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from . import config
from .aggregation import financial_summary, records_frame
from .alerts import alert_key, check_budget_limits, check_overspending
from .gamification import check_achievements, compute_streaks
from .insights import generate_insights, insight_key
from .logger import get_logger
from .models import BUDGET_PERIODS, Achievement, Expense, SpendingAlert, SpendingInsight, StreakData
from .periods import to_date
from .recurring import is_due, is_ended, materialize, upcoming
from .storage import JsonLedgerStore, LedgerStore

logger = get_logger(__name__)

ConditionKey = Tuple[Any, ...]


def _keys_from_settings(rows: Iterable[Any]) -> Set[ConditionKey]:
    return {tuple(row) for row in rows or []}


def _keys_to_settings(keys: Set[ConditionKey]) -> List[List[Any]]:
    return sorted((list(key) for key in keys), key=lambda row: [str(v) for v in row])


class LedgerService:
    """Runs the analytics engine against a storage backend."""

    def __init__(self, store: Optional[LedgerStore] = None):
        self.store = store if store is not None else JsonLedgerStore()

    # -- recurring --------------------------------------------------------

    def run_recurring(self, today: Any) -> List[Expense]:
        """Materialize due recurring expenses and advance their definitions."""
        day = to_date(today)
        definitions = self.store.load_recurring()
        generated: List[Expense] = []
        for expense, advanced in materialize(definitions, day):
            self.store.persist_recurring(expense, advanced)
            generated.append(expense)
            logger.info(
                "Generated %s %.2f from recurring %s; next due %s",
                expense.category, expense.amount, advanced.id, advanced.next_due_date,
            )
        produced = {e.recurring_id for e in generated}
        skipped = [
            d.id for d in definitions
            if is_due(d, day) and not is_ended(d, day) and d.id not in produced
        ]
        if skipped:
            logger.warning("Due recurring expenses not generated: %s", ', '.join(skipped))
        return generated

    def upcoming_reminders(self, today: Any, days_ahead: int = config.REMINDER_DAYS_AHEAD):
        return upcoming(self.store.load_recurring(), today, days_ahead)

    # -- alerts and insights ---------------------------------------------

    def refresh_alerts(self, reference: Any) -> List[SpendingAlert]:
        """Check every budget period and persist alerts for new conditions."""
        day = to_date(reference)
        expenses, _ = self.store.load_ledger()
        limits = self.store.load_budget_limits()
        settings = self.store.load_settings()
        notified = _keys_from_settings(settings.get('notifiedAlerts'))

        _, skipped = records_frame(expenses)
        if skipped:
            logger.warning("Ignoring expenses with invalid amounts: %s", ', '.join(skipped))

        current: List[SpendingAlert] = []
        for period in BUDGET_PERIODS:
            scoped = [limit for limit in limits if limit.period == period]
            current.extend(check_budget_limits(expenses, scoped, period, day))
        current.extend(check_overspending(expenses, settings.get('monthlyBudget'), 'month', day))

        fresh: List[SpendingAlert] = []
        for alert in current:
            if alert_key(alert) in notified:
                logger.debug("Suppressing repeated alert %s", alert_key(alert))
            else:
                fresh.append(alert)
        active = {alert_key(alert) for alert in current}

        if fresh:
            self.store.persist_alerts(fresh)
            logger.info("Raised %d spending alert(s)", len(fresh))
        self.store.save_settings({'notifiedAlerts': _keys_to_settings(active)})
        return fresh

    def refresh_insights(self, period: str, reference: Any) -> List[SpendingInsight]:
        """Generate insights and persist the ones not shown before."""
        day = to_date(reference)
        expenses, incomes = self.store.load_ledger()
        settings = self.store.load_settings()
        notified = _keys_from_settings(settings.get('notifiedInsights'))

        current = generate_insights(
            expenses,
            settings.get('categories') or [],
            period,
            day,
            self.store.load_budget_limits(),
            self.store.load_savings_goals(),
            incomes,
        )
        fresh = [i for i in current if insight_key(i, period) not in notified]
        active = {insight_key(i, period) for i in current}
        # Conditions tracked for other periods are left alone.
        others = {key for key in notified if key[-1] != period}

        if fresh:
            self.store.persist_insights(fresh)
            logger.info("Generated %d new insight(s) for %s", len(fresh), period)
        self.store.save_settings({'notifiedInsights': _keys_to_settings(active | others)})
        return fresh

    # -- gamification -----------------------------------------------------

    def refresh_gamification(self, today: Any) -> Tuple[StreakData, List[Achievement]]:
        day = to_date(today)
        expenses, _ = self.store.load_ledger()
        goals = self.store.load_savings_goals()
        previous = self.store.load_achievements()
        settings = self.store.load_settings()

        streaks = compute_streaks(expenses, day)
        achievements = check_achievements(
            expenses, goals, previous, day, monthly_budget=settings.get('monthlyBudget'),
        )
        was_unlocked = {a.id for a in previous if a.is_unlocked}
        for achievement in achievements:
            if achievement.is_unlocked and achievement.id not in was_unlocked:
                logger.info("Achievement unlocked: %s", achievement.title)

        self.store.persist_streak_data(streaks)
        self.store.persist_achievements(achievements)
        return streaks, achievements

    # -- combined ---------------------------------------------------------

    def daily_cycle(self, today: Any, insight_period: str = 'month') -> Dict[str, Any]:
        """Everything the app runs on start-up, in dependency order."""
        day = to_date(today)
        generated = self.run_recurring(day)
        alerts = self.refresh_alerts(day)
        insights = self.refresh_insights(insight_period, day)
        streaks, achievements = self.refresh_gamification(day)
        expenses, incomes = self.store.load_ledger()
        return {
            'generated': generated,
            'alerts': alerts,
            'insights': insights,
            'streaks': streaks,
            'achievements': achievements,
            'summary': financial_summary(expenses, incomes, insight_period, day),
        }
