"""
Pytest fixtures and configuration for shift plan tests.
"""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from constants import DEFAULT_CONSTRAINTS
from schedule_models import ConstraintSet, GenerationOptions, PatternCatalog, ShiftPattern, Worker
from schedule_state import ScheduleState
from utils import month_days

# Limits high enough that no rule ever fires within one month
LENIENT_LIMITS = {
    'max_consecutive_work_days': 31,
    'max_consecutive_night_shifts': 31,
    'min_rest_days_per_week': 0,
    'min_rest_days_per_month': 0,
    'exact_rest_days_per_month': 0,
    'max_night_shifts_per_week': 7,
    'max_night_shifts_per_month': 31,
    'max_work_hours_per_week': 168,
    'max_work_hours_per_month': 744,
}


@pytest.fixture
def make_workers():
    """Factory for a roster of n workers with ids W1..Wn."""
    def _make(n):
        return [Worker(id=f"W{i}", name=f"Worker {i}") for i in range(1, n + 1)]
    return _make


@pytest.fixture
def day_pattern():
    """8-hour day shift needing one worker."""
    return ShiftPattern(id="P-day", name="Day", short_label="D", start_time="08:00", end_time="16:00", required_staff=1)


@pytest.fixture
def night_pattern():
    """16.5-hour night shift needing one worker."""
    return ShiftPattern(id="P-night", name="Night", short_label="N", start_time="16:30", end_time="09:00", required_staff=1)


@pytest.fixture
def sentinel_patterns():
    """The rest, ake and vacation patterns."""
    return [
        ShiftPattern(id="P-rest", name="rest", short_label="-", is_workday=False),
        ShiftPattern(id="P-ake", name="ake", short_label="A", is_workday=False, is_ake=True),
        ShiftPattern(id="P-vac", name="vacation", short_label="V", is_workday=False, is_vacation=True),
    ]


@pytest.fixture
def make_constraint_set():
    """Factory for a constraint set that allows everything unless overridden."""
    def _make(id="lenient", label="", **overrides):
        values = {**DEFAULT_CONSTRAINTS, **LENIENT_LIMITS, **overrides}
        return ConstraintSet(id=id, label=label or id, **values)
    return _make


@pytest.fixture
def make_state(sentinel_patterns):
    """Factory for an empty ScheduleState over April 2026."""
    def _make(workers, patterns, constraint_sets=(), year=2026, month=4):
        return ScheduleState(
            workers=tuple(workers),
            catalog=PatternCatalog(list(patterns) + sentinel_patterns),
            constraint_sets=tuple(constraint_sets),
            options=GenerationOptions(year=year, month=month),
            days=tuple(month_days(year, month)),
        )
    return _make


@pytest.fixture
def april_2026():
    """April 2026 has 30 days and starts on a Wednesday."""
    return month_days(2026, 4)