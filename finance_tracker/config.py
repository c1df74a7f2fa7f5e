"""Configuration management for the finance tracker.

This module centralizes all configuration values including paths,
thresholds used by the analytics engine, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in finance_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directory
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))

# JSON document holding the whole ledger
STORE_PATH = Path(
    os.getenv("FINTRACK_STORE_PATH", DATA_DIR / "finance_tracker.json")
).resolve()

LOG_LEVEL = os.getenv("FINTRACK_LOG_LEVEL", "INFO").upper()

# Streak scan window and reminder lookahead
STREAK_HORIZON_DAYS = int(os.getenv("FINTRACK_STREAK_HORIZON_DAYS", "365"))
REMINDER_DAYS_AHEAD = int(os.getenv("FINTRACK_REMINDER_DAYS", "2"))

# Display
CURRENCY_SYMBOL = os.getenv("FINTRACK_CURRENCY_SYMBOL", "₹")

# ---------------------------------------------------------------------------
# Alert / insight thresholds (percentages)
# ---------------------------------------------------------------------------

OVERAGE_HIGH_PCT = 150.0
OVERAGE_MEDIUM_PCT = 120.0

TREND_CHANGE_PCT = 20.0
TREND_HIGH_PCT = 50.0
TREND_MEDIUM_PCT = 30.0

BUDGET_WARNING_PCT = 80.0
BUDGET_CRITICAL_PCT = 90.0

DOMINANT_CATEGORY_PCT = 40.0

GOAL_RISK_PROGRESS_PCT = 50.0
GOAL_RISK_DAYS_LEFT = 30

# Monthly budget scaling
DAYS_PER_MONTH = 30
WEEKS_PER_MONTH = 4


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, STORE_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)
