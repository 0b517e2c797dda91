"""Monthly rest-count reconciliation.

A second pass over the finished constructive schedule. For each worker it moves
the number of pure rest days toward the governing constraint set's
``exact_rest_days_per_month`` by converting days between work and rest.

Candidates are taken from an immutable snapshot of the constructive output and
scanned exactly once, in a fixed direction, with no retry. Every check reads
the repair state, so earlier conversions are visible to later ones. When a
worker still misses the target afterwards a ``rest_days`` warning is recorded.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from constants import SEVERITY_WARNING, VIOLATION_REST_DAYS
from logger import get_logger
from schedule_models import Assignment, ConstraintSet, PatternKind, ShiftPattern, Violation, Worker
from schedule_state import ScheduleState
from utils import next_day, previous_day

logger = get_logger('reconciler')


def reconcile_rest_days(state: ScheduleState) -> ScheduleState:
    """Return a repaired copy of ``state``; the input state is left untouched."""
    governing = state.governing_set
    if governing is None or governing.exact_rest_days_per_month <= 0:
        return state

    target = governing.exact_rest_days_per_month
    snapshot = state.snapshot()
    repaired = state.copy()

    for worker in state.workers:
        current = repaired.count_kind(worker.id, PatternKind.REST)
        diff = target - current
        if diff > 0:
            converted = add_rest_days(repaired, snapshot, worker, diff)
        elif diff < 0:
            converted = remove_rest_days(repaired, snapshot, worker, -diff, governing)
        else:
            continue

        final = repaired.count_kind(worker.id, PatternKind.REST)
        logger.info(f"{worker.name}: rest days {current} -> {final} (target {target}, {converted} converted)")
        if final != target:
            repaired.add_violation(Violation(
                date=None,
                worker_id=worker.id,
                worker_name=worker.name,
                constraint_name=governing.label or governing.id,
                violation_type=VIOLATION_REST_DAYS,
                severity=SEVERITY_WARNING,
                message=f"{final} rest days instead of the required {target}",
            ))

    return repaired


def _worker_rows(state: ScheduleState, snapshot: tuple[Assignment, ...], worker_id: str) -> list[tuple[Assignment, ShiftPattern]]:
    return [(a, state.catalog[a.pattern_name]) for a in snapshot if a.worker_id == worker_id]


def add_rest_days(state: ScheduleState, snapshot: tuple[Assignment, ...], worker: Worker, count: int) -> int:
    """Turn up to ``count`` non-night work days into rest, latest date first."""
    candidates = [
        a for a, p in _worker_rows(state, snapshot, worker.id)
        if p.kind is PatternKind.WORK and not p.night
    ]
    candidates.sort(key=lambda a: a.date, reverse=True)

    rest_name = state.catalog.rest.name
    converted = 0
    for assignment in candidates:
        if converted >= count:
            break
        day = assignment.date
        # The day after a night belongs to the ake; a day followed by ake must stay put
        if state.is_night_on(worker.id, previous_day(day)):
            continue
        following = state.pattern_for(worker.id, next_day(day))
        if following is not None and following.kind is PatternKind.AKE:
            continue

        state.reassign(worker.id, day, rest_name)
        converted += 1
        logger.debug(f"Rest added: {worker.name} {day} ({assignment.pattern_name} -> {rest_name})")
    return converted


def remove_rest_days(
    state: ScheduleState,
    snapshot: tuple[Assignment, ...],
    worker: Worker,
    count: int,
    governing: ConstraintSet,
) -> int:
    """Turn up to ``count`` rest days into understaffed work, earliest date first."""
    candidates = [
        a for a, p in _worker_rows(state, snapshot, worker.id)
        if p.kind is PatternKind.REST
    ]
    candidates.sort(key=lambda a: a.date)

    converted = 0
    for assignment in candidates:
        if converted >= count:
            break
        day = assignment.date
        if state.is_night_on(worker.id, previous_day(day)):
            continue
        run = state.consecutive_work_before(worker.id, day) + 1 + state.consecutive_work_after(worker.id, day)
        if run > governing.max_consecutive_work_days:
            continue

        pattern = find_understaffed_pattern(state, day)
        if pattern is None:
            continue
        state.reassign(worker.id, day, pattern.name)
        converted += 1
        logger.debug(f"Rest removed: {worker.name} {day} (rest -> {pattern.name})")
    return converted


def find_understaffed_pattern(state: ScheduleState, day: date) -> Optional[ShiftPattern]:
    """First working pattern (catalog order) still below its headcount on ``day``.

    Night patterns are passed over while the after-night day off is enforced,
    since the day that follows is already planned.
    """
    for pattern in state.catalog.working:
        if pattern.night and state.forces_after_night:
            continue
        if state.assigned_count(day, pattern.name) < pattern.required_staff:
            return pattern
    return None
