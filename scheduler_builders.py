"""Pure builder helpers for schedule generation.

This module intentionally contains *no* scheduling decisions. It turns caller
inputs (dataclasses or plain dicts from the YAML configuration) into the typed
objects the engine works with: the pattern catalog, the ordered list of active
constraint sets and the per-month request lists.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from schedule_models import (
    ConstraintSet,
    PatternCatalog,
    PreferenceRequest,
    ShiftPattern,
    Worker,
)


def build_workers(workers: Iterable) -> list[Worker]:
    """Accept Worker objects or worker dicts. Worker ids must be unique."""
    built = [w if isinstance(w, Worker) else Worker.from_dict(w) for w in workers]
    seen: set[str] = set()
    for worker in built:
        if worker.id in seen:
            raise ValueError(f"Duplicate worker id '{worker.id}' ({worker.name})")
        seen.add(worker.id)
    return built


def build_catalog(patterns) -> PatternCatalog:
    """Accept a PatternCatalog, ShiftPattern objects or pattern dicts."""
    if isinstance(patterns, PatternCatalog):
        return patterns
    return PatternCatalog(
        p if isinstance(p, ShiftPattern) else ShiftPattern.from_dict(p) for p in patterns
    )


def build_constraint_sets(constraint_sets: Iterable) -> list[ConstraintSet]:
    return [c if isinstance(c, ConstraintSet) else ConstraintSet.from_dict(c) for c in constraint_sets]


def build_requests(requests: Iterable) -> list[PreferenceRequest]:
    return [r if isinstance(r, PreferenceRequest) else PreferenceRequest.from_dict(r) for r in requests]


def select_constraint_sets(constraint_sets: Iterable[ConstraintSet], constraint_ids=None) -> list[ConstraintSet]:
    """Return the active sets selected for a run, highest priority first.

    ``constraint_ids=None`` selects every active set. Equal priorities keep
    their input order (sorted() is stable).
    """
    selected = [
        c for c in constraint_sets
        if c.is_active and (constraint_ids is None or c.id in constraint_ids)
    ]
    return sorted(selected, key=lambda c: -c.priority)


def requests_in_month(requests: Iterable[PreferenceRequest], days: list[date]) -> list[PreferenceRequest]:
    day_set = set(days)
    return [r for r in requests if r.date in day_set]


def group_requests_by_day(requests: Iterable[PreferenceRequest], catalog: PatternCatalog) -> dict[date, list[PreferenceRequest]]:
    """Non-vacation requests grouped by date, keeping request order."""
    by_day: dict[date, list[PreferenceRequest]] = {}
    for request in requests:
        if catalog.is_vacation_name(request.pattern_name):
            continue
        by_day.setdefault(request.date, []).append(request)
    return by_day


def vacation_requests(requests: Iterable[PreferenceRequest], catalog: PatternCatalog) -> list[PreferenceRequest]:
    return [r for r in requests if catalog.is_vacation_name(r.pattern_name)]
