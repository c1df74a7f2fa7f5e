"""Top-level package for the finance tracker analytics engine.

The primary modules are:

* ``periods`` – calendar buckets and recurrence date arithmetic
* ``aggregation`` – period summaries of expenses and incomes
* ``recurring`` – scheduling of recurring expenses
* ``alerts`` – budget-limit and overspending alerts
* ``insights`` – period-over-period spending insights and goal progress
* ``gamification`` – streaks and achievements
* ``charts`` – chart series and calendar grids

Everything above is pure: it takes in-memory records and returns new ones.
``storage`` and ``service`` are the host side that loads the ledger, runs the
engine and persists what it produces.
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import alerts  # noqa: F401
from . import charts  # noqa: F401
from . import gamification  # noqa: F401
from . import insights  # noqa: F401
from . import periods  # noqa: F401
from . import recurring  # noqa: F401
from .errors import FinanceTrackerError, InvalidAmount, InvalidFrequency
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

__version__ = "0.1.0"

__all__ = [
    "aggregation",
    "alerts",
    "charts",
    "gamification",
    "insights",
    "periods",
    "recurring",
    "FinanceTrackerError",
    "InvalidAmount",
    "InvalidFrequency",
    "Achievement",
    "BudgetLimit",
    "Expense",
    "Income",
    "RecurringExpense",
    "SavingsGoal",
    "SpendingAlert",
    "SpendingInsight",
    "StreakData",
]
