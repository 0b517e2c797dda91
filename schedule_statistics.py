"""Statistics and rest audits over a finished schedule.

Pure aggregation: nothing here changes assignments.
"""

from __future__ import annotations

from datetime import timedelta

from constants import (
    SEVERITY_WARNING,
    STATS_DECIMALS,
    VIOLATION_MIN_REST_MONTH,
    VIOLATION_MIN_REST_WEEK,
)
from schedule_models import (
    PatternDistributionStat,
    PatternKind,
    ScheduleStatistics,
    Violation,
    WorkloadStat,
)
from schedule_state import NON_WORK_KINDS, ScheduleState


def longest_work_run(state: ScheduleState, worker_id: str) -> int:
    """Longest streak of consecutive work days; rest and ake break the streak."""
    longest = current = 0
    for _assignment, pattern in state.iter_worker(worker_id):
        if pattern.kind in NON_WORK_KINDS:
            current = 0
        else:
            current += 1
            longest = max(longest, current)
    return longest


def worker_stat(state: ScheduleState, worker) -> WorkloadStat:
    return WorkloadStat(
        worker_id=worker.id,
        worker_name=worker.name,
        total_shifts=state.count_kind(worker.id, PatternKind.WORK),
        night_shifts=state.night_count(worker.id),
        rest_days=state.count_kind(worker.id, PatternKind.REST),
        ake_days=state.count_kind(worker.id, PatternKind.AKE),
        vacation_days=state.count_kind(worker.id, PatternKind.VACATION),
        consecutive_work_days=longest_work_run(state, worker.id),
        total_work_hours=round(state.work_hours(worker.id), STATS_DECIMALS),
    )


def compute_statistics(state: ScheduleState) -> ScheduleStatistics:
    total_days = len(state.days)

    counts: dict[str, int] = {}
    for assignment in state.assignments:
        counts[assignment.pattern_name] = counts.get(assignment.pattern_name, 0) + 1

    per_pattern = tuple(
        PatternDistributionStat(
            pattern_name=pattern.name,
            count=counts.get(pattern.name, 0),
            required_staff=pattern.required_staff,
            average_per_day=round(counts.get(pattern.name, 0) / total_days, STATS_DECIMALS) if total_days else 0.0,
        )
        for pattern in state.catalog
    )

    total_shifts = sum(
        1 for a in state.assignments
        if state.catalog[a.pattern_name].kind is not PatternKind.REST
    )

    return ScheduleStatistics(
        total_days=total_days,
        total_shifts=total_shifts,
        per_worker=tuple(worker_stat(state, w) for w in state.workers),
        per_pattern=per_pattern,
    )


def _full_weeks(state: ScheduleState):
    """Monday-start weeks lying entirely inside the month."""
    day_set = set(state.days)
    for day in state.days:
        if day.weekday() == 0 and day + timedelta(days=6) in day_set:
            yield day, day + timedelta(days=7)


def audit_minimum_rest(state: ScheduleState) -> list[Violation]:
    """Warn where a worker gets fewer pure rest days than a set's weekly/monthly minimum.

    These minimums are advisory: they are reported here but never block an
    assignment during generation.
    """
    violations: list[Violation] = []
    weeks = list(_full_weeks(state))

    for constraint in state.constraint_sets:
        name = constraint.label or constraint.id
        for worker in state.workers:
            rest_days = [a.date for a, p in state.iter_worker(worker.id) if p.kind is PatternKind.REST]

            if constraint.min_rest_days_per_week > 0:
                for start, end in weeks:
                    in_week = sum(1 for d in rest_days if start <= d < end)
                    if in_week < constraint.min_rest_days_per_week:
                        violations.append(Violation(
                            date=start,
                            worker_id=worker.id,
                            worker_name=worker.name,
                            constraint_name=name,
                            violation_type=VIOLATION_MIN_REST_WEEK,
                            severity=SEVERITY_WARNING,
                            message=(f"{in_week} rest days in week of {start.isoformat()}, "
                                     f"minimum is {constraint.min_rest_days_per_week}"),
                        ))

            if 0 < constraint.min_rest_days_per_month and len(rest_days) < constraint.min_rest_days_per_month:
                violations.append(Violation(
                    date=None,
                    worker_id=worker.id,
                    worker_name=worker.name,
                    constraint_name=name,
                    violation_type=VIOLATION_MIN_REST_MONTH,
                    severity=SEVERITY_WARNING,
                    message=f"{len(rest_days)} rest days this month, minimum is {constraint.min_rest_days_per_month}",
                ))

    return violations
