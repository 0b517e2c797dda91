"""Hard constraint checks for a single candidate assignment.

``can_assign`` is the gate every voluntary assignment goes through during the
daily fill. Forced assignments (vacation, ake after a night shift, rest) never
call it.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from logger import get_logger
from schedule_models import ConstraintSet, ShiftPattern
from schedule_state import ScheduleState
from utils import previous_day

logger = get_logger('constraints')

RULE_CONSECUTIVE_WORK = 'max_consecutive_work_days'
RULE_AFTER_NIGHT = 'night_shift_next_day_off'
RULE_CONSECUTIVE_NIGHTS = 'max_consecutive_night_shifts'
RULE_MONTH_NIGHTS = 'max_night_shifts_per_month'
RULE_WEEK_NIGHTS = 'max_night_shifts_per_week'
RULE_MONTH_HOURS = 'max_work_hours_per_month'
RULE_WEEK_HOURS = 'max_work_hours_per_week'


def check_constraint_set(
    state: ScheduleState,
    worker_id: str,
    day: date,
    pattern: ShiftPattern,
    constraint: ConstraintSet,
) -> Optional[str]:
    """Return the name of the first rule of ``constraint`` the candidate breaks, or None."""
    # 1. Consecutive work days (run ending yesterday)
    if state.consecutive_work_before(worker_id, day) >= constraint.max_consecutive_work_days:
        return RULE_CONSECUTIVE_WORK

    # 2. The day after a night shift is reserved for the forced ake
    if constraint.night_shift_next_day_off and state.is_night_on(worker_id, previous_day(day)):
        return RULE_AFTER_NIGHT

    if pattern.night:
        # 3. Consecutive nights
        if state.consecutive_nights_before(worker_id, day) >= constraint.max_consecutive_night_shifts:
            return RULE_CONSECUTIVE_NIGHTS
        # 4. Monthly night count
        if state.night_count(worker_id) >= constraint.max_night_shifts_per_month:
            return RULE_MONTH_NIGHTS
        # 5. Weekly night count (ISO week, Monday start)
        if state.week_night_count(worker_id, day) >= constraint.max_night_shifts_per_week:
            return RULE_WEEK_NIGHTS

    if pattern.is_working:
        # 6. Monthly hours
        if state.work_hours(worker_id) + pattern.hours > constraint.max_work_hours_per_month:
            return RULE_MONTH_HOURS
        # 7. Weekly hours
        if state.week_work_hours(worker_id, day) + pattern.hours > constraint.max_work_hours_per_week:
            return RULE_WEEK_HOURS

    return None


def can_assign(state: ScheduleState, worker_id: str, day: date, pattern: ShiftPattern) -> bool:
    """Whether ``worker_id`` may take ``pattern`` on ``day`` under every active constraint set."""
    if state.is_assigned(worker_id, day):
        return False

    for constraint in state.constraint_sets:
        failed_rule = check_constraint_set(state, worker_id, day, pattern, constraint)
        if failed_rule is not None:
            logger.debug(
                f"{day} {pattern.name}: {worker_id} rejected by '{constraint.label or constraint.id}' ({failed_rule})"
            )
            return False
    return True
