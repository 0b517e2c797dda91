"""Work-in-progress schedule state.

One ``ScheduleState`` is created per generation run and threaded through every
phase. It owns the growing assignment list plus a (worker, date) index, and
provides the read/query helpers the phases need (consecutive runs, weekly and
monthly tallies) so scheduling logic doesn't have to walk the list itself.

Two runs must never share a state; ``copy()`` gives the reconciliation pass its
own repair state while the constructive output stays untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterator, Optional

from schedule_models import (
    Assignment,
    ConstraintSet,
    GenerationOptions,
    PatternCatalog,
    PatternKind,
    ShiftPattern,
    Violation,
    Worker,
)
from utils import iso_week_bounds, next_day, previous_day

# Kinds that do not count as work in runs, workload and hour tallies
NON_WORK_KINDS = (PatternKind.REST, PatternKind.AKE)


@dataclass
class ScheduleState:
    workers: tuple[Worker, ...]
    catalog: PatternCatalog
    constraint_sets: tuple[ConstraintSet, ...]
    options: GenerationOptions
    days: tuple[date, ...]
    assignments: list[Assignment] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    _index: dict[str, dict[date, int]] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.workers_by_id = {w.id: w for w in self.workers}
        for worker in self.workers:
            self._index.setdefault(worker.id, {})

    # ------------------------------------------------------------------
    # Run-level properties
    # ------------------------------------------------------------------

    @property
    def governing_set(self) -> Optional[ConstraintSet]:
        """Highest-priority active set, or None when no set is selected."""
        return self.constraint_sets[0] if self.constraint_sets else None

    @property
    def forces_after_night(self) -> bool:
        return any(c.night_shift_next_day_off for c in self.constraint_sets)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def assign(self, worker: Worker, day: date, pattern_name: str) -> Assignment:
        if day in self._index[worker.id]:
            raise ValueError(f"{worker.name} already has an assignment on {day}")
        assignment = Assignment.create(worker, day, pattern_name)
        self._index[worker.id][day] = len(self.assignments)
        self.assignments.append(assignment)
        return assignment

    def reassign(self, worker_id: str, day: date, pattern_name: str) -> Assignment:
        position = self._index[worker_id][day]
        assignment = replace(self.assignments[position], pattern_name=pattern_name)
        self.assignments[position] = assignment
        return assignment

    def add_violation(self, violation: Violation) -> None:
        self.violations.append(violation)

    def snapshot(self) -> tuple[Assignment, ...]:
        return tuple(self.assignments)

    def copy(self) -> "ScheduleState":
        return ScheduleState(
            workers=self.workers,
            catalog=self.catalog,
            constraint_sets=self.constraint_sets,
            options=self.options,
            days=self.days,
            assignments=list(self.assignments),
            violations=list(self.violations),
            _index={worker_id: dict(days) for worker_id, days in self._index.items()},
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def assignment_for(self, worker_id: str, day: date) -> Optional[Assignment]:
        position = self._index.get(worker_id, {}).get(day)
        return None if position is None else self.assignments[position]

    def pattern_for(self, worker_id: str, day: date) -> Optional[ShiftPattern]:
        assignment = self.assignment_for(worker_id, day)
        return None if assignment is None else self.catalog[assignment.pattern_name]

    def is_assigned(self, worker_id: str, day: date) -> bool:
        return day in self._index.get(worker_id, {})

    def unassigned_workers(self, day: date) -> list[Worker]:
        return [w for w in self.workers if not self.is_assigned(w.id, day)]

    def iter_worker(self, worker_id: str) -> Iterator[tuple[Assignment, ShiftPattern]]:
        """Yield (assignment, pattern) pairs for a worker in date order."""
        for day in sorted(self._index.get(worker_id, {})):
            assignment = self.assignment_for(worker_id, day)
            yield assignment, self.catalog[assignment.pattern_name]

    def assigned_count(self, day: date, pattern_name: str) -> int:
        count = 0
        for worker in self.workers:
            assignment = self.assignment_for(worker.id, day)
            if assignment is not None and assignment.pattern_name == pattern_name:
                count += 1
        return count

    def is_night_on(self, worker_id: str, day: date) -> bool:
        pattern = self.pattern_for(worker_id, day)
        return pattern is not None and pattern.night

    # ------------------------------------------------------------------
    # Tallies
    # ------------------------------------------------------------------

    def _is_work(self, worker_id: str, day: date) -> bool:
        pattern = self.pattern_for(worker_id, day)
        return pattern is not None and pattern.kind not in NON_WORK_KINDS

    def workload(self, worker_id: str) -> int:
        """Non-rest, non-ake assignments so far (fill-order sort key)."""
        return sum(1 for _a, p in self.iter_worker(worker_id) if p.kind not in NON_WORK_KINDS)

    def count_kind(self, worker_id: str, kind: PatternKind) -> int:
        return sum(1 for _a, p in self.iter_worker(worker_id) if p.kind is kind)

    def night_count(self, worker_id: str, start: Optional[date] = None, end: Optional[date] = None) -> int:
        """Night shifts in [start, end); the whole month when no bounds are given."""
        return sum(
            1 for a, p in self.iter_worker(worker_id)
            if p.night and (start is None or a.date >= start) and (end is None or a.date < end)
        )

    def work_hours(self, worker_id: str, start: Optional[date] = None, end: Optional[date] = None) -> float:
        return sum(
            p.hours for a, p in self.iter_worker(worker_id)
            if p.kind not in NON_WORK_KINDS
            and (start is None or a.date >= start) and (end is None or a.date < end)
        )

    def week_night_count(self, worker_id: str, day: date) -> int:
        return self.night_count(worker_id, *iso_week_bounds(day))

    def week_work_hours(self, worker_id: str, day: date) -> float:
        return self.work_hours(worker_id, *iso_week_bounds(day))

    def consecutive_work_before(self, worker_id: str, day: date) -> int:
        """Length of the work run ending the day before ``day``."""
        count = 0
        current = previous_day(day)
        while self._is_work(worker_id, current):
            count += 1
            current = previous_day(current)
        return count

    def consecutive_work_after(self, worker_id: str, day: date) -> int:
        """Length of the work run starting the day after ``day``."""
        count = 0
        current = next_day(day)
        while self._is_work(worker_id, current):
            count += 1
            current = next_day(current)
        return count

    def consecutive_nights_before(self, worker_id: str, day: date) -> int:
        count = 0
        current = previous_day(day)
        while self.is_night_on(worker_id, current):
            count += 1
            current = previous_day(current)
        return count
