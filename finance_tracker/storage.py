"""Persistence port for the host application.

The analytics functions never touch storage.  The host loads snapshots
through a ``LedgerStore`` and writes derived records back through it.
``JsonLedgerStore`` keeps the whole ledger in one JSON document, which is
rewritten atomically on every save.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from .config import STORE_PATH, ensure_data_directories
from .gamification import default_achievements
from .logger import get_logger
from .models import (
    Achievement,
    BudgetLimit,
    Expense,
    Income,
    RecurringExpense,
    SavingsGoal,
    SpendingAlert,
    SpendingInsight,
    StreakData,
)

logger = get_logger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    'monthlyBudget': None,
    'categories': [],
    'notifiedAlerts': [],
    'notifiedInsights': [],
}

DEFAULT_DOCUMENT: Dict[str, Any] = {
    'expenses': [],
    'incomes': [],
    'budgetLimits': [],
    'recurringExpenses': [],
    'savingsGoals': [],
    'achievements': None,
    'alerts': [],
    'insights': [],
    'streaks': None,
    'settings': DEFAULT_SETTINGS,
}


class LedgerStore(Protocol):
    """Operations the host needs from a storage backend."""

    def load_ledger(self) -> Tuple[List[Expense], List[Income]]: ...

    def load_budget_limits(self) -> List[BudgetLimit]: ...

    def load_recurring(self) -> List[RecurringExpense]: ...

    def load_savings_goals(self) -> List[SavingsGoal]: ...

    def load_achievements(self) -> List[Achievement]: ...

    def load_settings(self) -> Dict[str, Any]: ...

    def save_settings(self, settings: Dict[str, Any]) -> None: ...

    def persist_generated_expense(self, expense: Expense) -> None: ...

    def persist_advanced_definition(self, definition: RecurringExpense) -> None: ...

    def persist_recurring(self, expense: Expense, definition: RecurringExpense) -> None: ...

    def persist_alerts(self, alerts: Sequence[SpendingAlert]) -> None: ...

    def persist_insights(self, insights: Sequence[SpendingInsight]) -> None: ...

    def persist_achievements(self, achievements: Sequence[Achievement]) -> None: ...

    def persist_streak_data(self, data: StreakData) -> None: ...


def _fresh_document() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_DOCUMENT)


def load_document(path: Path) -> Dict[str, Any]:
    """Read the JSON document, falling back to an empty ledger."""
    if not path.exists():
        return _fresh_document()
    try:
        with path.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Could not read ledger at %s (%s); starting empty", path, exc)
        return _fresh_document()
    if not isinstance(data, dict):
        logger.warning("Ledger at %s is not a JSON object; starting empty", path)
        return _fresh_document()
    merged = _fresh_document()
    merged.update({k: v for k, v in data.items() if k in DEFAULT_DOCUMENT})
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    if isinstance(data.get('settings'), dict):
        settings.update(data['settings'])
    merged['settings'] = settings
    return merged


def save_document(document: Dict[str, Any], path: Path) -> None:
    """Write ``document`` to ``path`` via a temporary file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as handle:
            json.dump(document, handle, indent=2, sort_keys=True, ensure_ascii=False)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def _parse_all(cls, rows: Any) -> list:
    parsed = []
    for row in rows or []:
        try:
            parsed.append(cls.from_dict(row))
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Skipping malformed %s record %r: %s", cls.__name__, row, exc)
    return parsed


def _upsert(rows: List[Dict[str, Any]], record: Any) -> List[Dict[str, Any]]:
    payload = record.to_dict()
    out = [row for row in rows if row.get('id') != payload['id']]
    out.append(payload)
    return out


class JsonLedgerStore:
    """``LedgerStore`` backed by a single JSON file."""

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            ensure_data_directories()
            path = STORE_PATH
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        return load_document(self.path)

    def _write(self, document: Dict[str, Any]) -> None:
        save_document(document, self.path)

    # -- loads ------------------------------------------------------------

    def load_ledger(self) -> Tuple[List[Expense], List[Income]]:
        document = self._read()
        return _parse_all(Expense, document['expenses']), _parse_all(Income, document['incomes'])

    def load_budget_limits(self) -> List[BudgetLimit]:
        return _parse_all(BudgetLimit, self._read()['budgetLimits'])

    def load_recurring(self) -> List[RecurringExpense]:
        return _parse_all(RecurringExpense, self._read()['recurringExpenses'])

    def load_savings_goals(self) -> List[SavingsGoal]:
        return _parse_all(SavingsGoal, self._read()['savingsGoals'])

    def load_achievements(self) -> List[Achievement]:
        rows = self._read()['achievements']
        if rows is None:
            return default_achievements()
        return _parse_all(Achievement, rows)

    def load_alerts(self) -> List[SpendingAlert]:
        return _parse_all(SpendingAlert, self._read()['alerts'])

    def load_insights(self) -> List[SpendingInsight]:
        return _parse_all(SpendingInsight, self._read()['insights'])

    def load_streak_data(self) -> StreakData:
        row = self._read()['streaks']
        return StreakData.from_dict(row) if row else StreakData()

    def load_settings(self) -> Dict[str, Any]:
        return self._read()['settings']

    # -- writes -----------------------------------------------------------

    def save_settings(self, settings: Dict[str, Any]) -> None:
        document = self._read()
        document['settings'].update(settings)
        self._write(document)

    def add_records(self, key: str, records: Sequence[Any]) -> None:
        """Insert or replace records under a top-level document key."""
        document = self._read()
        rows = document[key]
        for record in records:
            rows = _upsert(rows, record)
        document[key] = rows
        self._write(document)

    def persist_generated_expense(self, expense: Expense) -> None:
        self.add_records('expenses', [expense])

    def persist_advanced_definition(self, definition: RecurringExpense) -> None:
        self.add_records('recurringExpenses', [definition])

    def persist_recurring(self, expense: Expense, definition: RecurringExpense) -> None:
        """Store a generated instance and its advanced definition in one write."""
        document = self._read()
        document['expenses'] = _upsert(document['expenses'], expense)
        document['recurringExpenses'] = _upsert(document['recurringExpenses'], definition)
        self._write(document)

    def persist_alerts(self, alerts: Sequence[SpendingAlert]) -> None:
        self.add_records('alerts', alerts)

    def persist_insights(self, insights: Sequence[SpendingInsight]) -> None:
        self.add_records('insights', insights)

    def persist_achievements(self, achievements: Sequence[Achievement]) -> None:
        document = self._read()
        document['achievements'] = [a.to_dict() for a in achievements]
        self._write(document)

    def persist_streak_data(self, data: StreakData) -> None:
        document = self._read()
        document['streaks'] = data.to_dict()
        self._write(document)
