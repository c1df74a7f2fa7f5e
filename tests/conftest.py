from __future__ import annotations

from datetime import date

import pytest


@pytest.fixture
def reference_day() -> date:
    # A Friday in the middle of March 2024
    return date(2024, 3, 15)
