"""Constructive phases of schedule generation.

These functions sit between the engine entry point and the work-in-progress
state: the vacation pre-assignment, the per-day pattern fill, the forced ake
after night shifts and the rest fill that completes every day.

Every phase mutates the ``ScheduleState`` it is given and nothing else.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from constants import SEVERITY_ERROR, VIOLATION_REQUIRED_STAFF
from constraint_checks import can_assign
from logger import get_logger
from schedule_models import PreferenceRequest, ShiftPattern, Violation
from schedule_state import ScheduleState
from utils import previous_day

logger = get_logger('pipeline')

REQUIRED_STAFF_CONSTRAINT = 'Required staff'


def apply_vacation_requests(state: ScheduleState, requests: Iterable[PreferenceRequest]) -> int:
    """Grant vacation requests unconditionally. Returns the number granted."""
    vacation_name = None
    granted = 0
    for request in requests:
        worker = state.workers_by_id.get(request.worker_id)
        if worker is None:
            logger.warning(f"Vacation request for unknown worker '{request.worker_id}' on {request.date} ignored")
            continue
        if request.date not in state.days or state.is_assigned(worker.id, request.date):
            continue
        if vacation_name is None:
            vacation_name = state.catalog.vacation.name
        state.assign(worker, request.date, vacation_name)
        granted += 1
        logger.debug(f"Vacation granted: {worker.name} {request.date}")
    return granted


def order_candidates(state: ScheduleState, worker_ids: list[str], pattern: ShiftPattern) -> list[str]:
    """Order the automatic fill pool.

    Ascending workload when balancing is on; with night balancing and a night
    pattern, the night count goes first. sorted() keeps roster order on ties.
    """
    options = state.options
    balance_nights = options.balance_night_shifts and pattern.night
    if not options.balance_workload and not balance_nights:
        return list(worker_ids)

    def sort_key(worker_id):
        key = []
        if balance_nights:
            key.append(state.night_count(worker_id))
        if options.balance_workload:
            key.append(state.workload(worker_id))
        return tuple(key)

    return sorted(worker_ids, key=sort_key)


def fill_pattern(state: ScheduleState, day: date, pattern: ShiftPattern, requested_ids: list[str]) -> list[str]:
    """Pick up to ``required_staff`` workers for one pattern on one day."""
    needed = pattern.required_staff
    filled: list[str] = []

    # 1. Requests first, in request order
    if state.options.prioritize_requests:
        for worker_id in requested_ids:
            if len(filled) >= needed:
                break
            if worker_id in filled or worker_id not in state.workers_by_id:
                continue
            if can_assign(state, worker_id, day, pattern):
                filled.append(worker_id)

    # 2. Remaining slots from the balanced pool
    pool = [w.id for w in state.workers if w.id not in filled]
    for worker_id in order_candidates(state, pool, pattern):
        if len(filled) >= needed:
            break
        if can_assign(state, worker_id, day, pattern):
            filled.append(worker_id)

    return filled


def plan_day(state: ScheduleState, day: date, day_requests: list[PreferenceRequest]) -> None:
    """Fill every working pattern for ``day``, then the forced ake and rest."""
    for pattern in state.catalog.working:
        requested_ids = [r.worker_id for r in day_requests if r.pattern_name == pattern.name]
        filled = fill_pattern(state, day, pattern, requested_ids)

        for worker_id in filled:
            state.assign(state.workers_by_id[worker_id], day, pattern.name)

        if len(filled) < pattern.required_staff:
            state.add_violation(Violation(
                date=day,
                worker_id="",
                worker_name="",
                constraint_name=REQUIRED_STAFF_CONSTRAINT,
                violation_type=VIOLATION_REQUIRED_STAFF,
                severity=SEVERITY_ERROR,
                message=f"{pattern.name} needs {pattern.required_staff}, only {len(filled)} could be assigned",
            ))
            logger.debug(f"{day} {pattern.name}: short by {pattern.required_staff - len(filled)}")

    apply_after_night(state, day)
    fill_rest(state, day)


def apply_after_night(state: ScheduleState, day: date) -> int:
    """Force the ake pattern onto workers coming off a night shift."""
    if not state.forces_after_night:
        return 0

    yesterday = previous_day(day)
    forced = 0
    for worker in state.unassigned_workers(day):
        if state.is_night_on(worker.id, yesterday):
            state.assign(worker, day, state.catalog.ake.name)
            forced += 1
            logger.debug(f"Ake assigned: {worker.name} {day}")
    return forced


def fill_rest(state: ScheduleState, day: date) -> int:
    """Give the plain rest pattern to everyone still unassigned on ``day``."""
    unassigned = state.unassigned_workers(day)
    if not unassigned:
        return 0
    rest_name = state.catalog.rest.name
    for worker in unassigned:
        state.assign(worker, day, rest_name)
    return len(unassigned)
