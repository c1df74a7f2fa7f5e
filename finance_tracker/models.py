"""Typed records consumed and produced by the analytics engine.

Every record is a frozen dataclass.  Updates go through
``dataclasses.replace`` so the engine never mutates what the caller passed
in.  ``to_dict``/``from_dict`` translate to and from the camelCase JSON
documents written by the storage layer.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from .periods import to_date

PERIODS = ('day', 'week', 'month', 'year')
BUDGET_PERIODS = ('day', 'week', 'month')
FREQUENCIES = ('daily', 'weekly', 'monthly', 'yearly')
PAYMENT_METHODS = ('cash', 'card', 'upi', 'bank_transfer', 'other')

ALERT_TYPES = ('budget_limit', 'overspending', 'category_limit')
INSIGHT_TYPES = (
    'spending_increase',
    'spending_decrease',
    'budget_alert',
    'savings_tip',
    'overspending_alert',
    'goal_achieved',
)
ACHIEVEMENT_TYPES = ('streak', 'savings', 'no_spend', 'budget', 'goal', 'milestone')
RARITIES = ('common', 'rare', 'epic', 'legendary')

# Display ordering only; never used for control flow.
SEVERITY_ORDER = ('low', 'medium', 'high')


def severity_rank(severity: str) -> int:
    return SEVERITY_ORDER.index(severity)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def _encode(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, tuple):
        return list(value)
    return value


class _Record:
    """Mixin providing camelCase dict conversion for dataclass records."""

    _date_fields: Tuple[str, ...] = ()
    _datetime_fields: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {_camel(key): _encode(value) for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        kwargs: Dict[str, Any] = {}
        for item in fields(cls):
            key = _camel(item.name)
            if key in data:
                value = data[key]
            elif item.name in data:
                value = data[item.name]
            else:
                continue
            if value is not None and item.name in cls._date_fields:
                value = to_date(value)
            elif value is not None and item.name in cls._datetime_fields:
                value = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
            kwargs[item.name] = value
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Expense(_Record):
    id: str
    amount: float
    category: str
    date: date
    note: Optional[str] = None
    payment_method: Optional[str] = None
    is_recurring: bool = False
    recurring_id: Optional[str] = None
    profile_id: Optional[str] = None

    _date_fields = ('date',)

    @property
    def label(self) -> str:
        return self.category


@dataclass(frozen=True)
class Income(_Record):
    id: str
    amount: float
    source: str
    date: date
    note: Optional[str] = None

    _date_fields = ('date',)

    @property
    def label(self) -> str:
        return self.source


@dataclass(frozen=True)
class BudgetLimit(_Record):
    id: str
    category: str
    amount: float
    period: str = 'month'
    is_active: bool = True


@dataclass(frozen=True)
class RecurringExpense(_Record):
    id: str
    title: str
    amount: float
    category: str
    frequency: str
    start_date: date
    next_due_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    note: Optional[str] = None
    payment_method: Optional[str] = None
    profile_id: Optional[str] = None

    _date_fields = ('start_date', 'next_due_date', 'end_date')


@dataclass(frozen=True)
class SavingsGoal(_Record):
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    target_date: Optional[date] = None
    created_at: Optional[date] = None
    is_completed: bool = False
    completed_at: Optional[date] = None

    _date_fields = ('target_date', 'created_at', 'completed_at')


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpendingAlert(_Record):
    id: str
    type: str
    title: str
    message: str
    amount: float
    limit: float
    period: str
    date: date
    severity: str
    category: Optional[str] = None
    is_read: bool = False

    _date_fields = ('date',)


@dataclass(frozen=True)
class SpendingInsight(_Record):
    id: str
    type: str
    title: str
    message: str
    date: date
    severity: str
    category: Optional[str] = None
    percentage: Optional[float] = None
    is_read: bool = False

    _date_fields = ('date',)


@dataclass(frozen=True)
class Achievement(_Record):
    id: str
    type: str
    title: str
    description: str
    max_progress: float
    progress: float = 0.0
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    icon: str = ''
    rarity: str = 'common'

    _datetime_fields = ('unlocked_at',)


@dataclass(frozen=True)
class StreakData(_Record):
    current_streak: int = 0
    longest_streak: int = 0
    last_spend_date: Optional[date] = None
    no_spend_days: int = 0
    total_no_spend_days: int = 0
    current_no_spend_streak: int = 0
    longest_no_spend_streak: int = 0

    _date_fields = ('last_spend_date',)


# ---------------------------------------------------------------------------
# Summaries (not persisted)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExpenseSummary:
    total: float = 0.0
    by_category: Dict[str, float] = field(default_factory=dict)
    by_date: Dict[str, float] = field(default_factory=dict)
    count: int = 0
    skipped: Tuple[str, ...] = ()


@dataclass(frozen=True)
class IncomeSummary:
    total: float = 0.0
    by_source: Dict[str, float] = field(default_factory=dict)
    by_date: Dict[str, float] = field(default_factory=dict)
    count: int = 0
    skipped: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FinancialSummary:
    total_income: float
    total_expenses: float
    net_savings: float
    savings_rate: float
    period: str


@dataclass(frozen=True)
class GoalProgress:
    progress: float
    remaining: float
    days_left: int
    is_on_track: bool


@dataclass(frozen=True)
class ChartPoint:
    date: str
    value: float
    label: str


@dataclass(frozen=True)
class ChartData:
    period: str
    data: List[ChartPoint]
    categories: List[str]
    total: float


@dataclass(frozen=True)
class CalendarDay:
    date: date
    expenses: List[Expense]
    total: float
    has_overspending: bool
    is_no_spend_day: bool


@dataclass(frozen=True)
class CalendarView:
    year: int
    month: int
    days: List[CalendarDay]
