from datetime import datetime
from typing import Iterable

from logger import PerformanceTracker, get_logger, log_timing, timed
from scheduler_builders import (
    build_catalog,
    build_constraint_sets,
    build_requests,
    build_workers,
    group_requests_by_day,
    requests_in_month,
    select_constraint_sets,
    vacation_requests,
)
from schedule_models import GenerationOptions, GenerationResult, PatternCatalog
from schedule_pipeline import apply_vacation_requests, plan_day
from schedule_state import ScheduleState
from schedule_statistics import audit_minimum_rest, compute_statistics
from rest_reconciler import reconcile_rest_days
from utils import month_days

logger = get_logger('engine')


def build_state(workers, patterns, constraint_sets, options: GenerationOptions) -> ScheduleState:
    """Create the empty work-in-progress state for one generation run."""
    days = month_days(options.year, options.month)
    selected = select_constraint_sets(build_constraint_sets(constraint_sets), options.constraint_ids)
    if not selected:
        logger.warning("No active constraint set selected; only staffing targets apply")
    return ScheduleState(
        workers=tuple(build_workers(workers)),
        catalog=build_catalog(patterns),
        constraint_sets=tuple(selected),
        options=options,
        days=tuple(days),
    )


@timed(name="generate_schedule")
def generate_schedule(
    workers: Iterable,
    patterns,
    constraint_sets: Iterable,
    requests: Iterable,
    options: GenerationOptions,
) -> GenerationResult:
    """Produce a complete schedule for ``options.year``/``options.month``.

    Every worker ends up with exactly one assignment per day of the month.
    Phases run in a fixed order: vacation pre-assignment, the daily sweep
    (pattern fill, forced ake, rest fill), monthly rest reconciliation, then
    statistics and the advisory rest audits.

    Staffing shortfalls and missed rest targets are reported as violations on
    the result. Caller errors (bad month, a catalog without the sentinel
    patterns a phase needs) raise.
    """
    state = build_state(workers, patterns, constraint_sets, options)
    month_requests = requests_in_month(build_requests(requests), state.days)
    logger.info(
        f"Generating {options.year}-{options.month:02d}: {len(state.workers)} workers, "
        f"{len(state.catalog.working)} working patterns, "
        f"{len(state.constraint_sets)} constraint sets, {len(month_requests)} requests"
    )

    with log_timing("vacation pass", logger):
        granted = apply_vacation_requests(state, vacation_requests(month_requests, state.catalog))
    logger.info(f"Vacation requests granted: {granted}")

    requests_by_day = group_requests_by_day(month_requests, state.catalog)
    tracker = PerformanceTracker(logger)
    with log_timing("daily sweep", logger):
        for day in state.days:
            with tracker.track("plan_day"):
                plan_day(state, day, requests_by_day.get(day, []))
    tracker.report("Daily sweep")

    with log_timing("rest reconciliation", logger):
        state = reconcile_rest_days(state)

    statistics = compute_statistics(state)
    for violation in audit_minimum_rest(state):
        state.add_violation(violation)

    roster_order = {w.id: position for position, w in enumerate(state.workers)}
    result = GenerationResult(
        assignments=tuple(sorted(state.assignments, key=lambda a: (a.date, roster_order[a.worker_id]))),
        statistics=statistics,
        violations=tuple(state.violations),
        generated_at=datetime.now(),
    )
    logger.info(
        f"Generated {len(result.assignments)} assignments with "
        f"{len(result.errors)} errors and {len(result.warnings)} warnings"
    )
    return result


def summarize_month(result: GenerationResult, catalog: PatternCatalog, workers) -> list[str]:
    """Render a result as text lines: one row per worker, one column per day."""
    by_worker = result.by_worker()
    days = sorted(result.by_date())
    if not days:
        return []

    name_width = max((len(w.name) for w in workers), default=4)
    header = " " * name_width + " | " + " ".join(f"{d.day:>2}" for d in days)
    lines = [header, "-" * len(header)]
    for worker in workers:
        cells = {a.date: a.pattern_name for a in by_worker.get(worker.id, [])}
        row = []
        for day in days:
            name = cells.get(day)
            pattern = catalog.get(name) if name else None
            label = (pattern.short_label or pattern.name[:1]) if pattern else (name or "?")[:2]
            row.append(f"{label:>2}")
        lines.append(f"{worker.name:<{name_width}} | " + " ".join(row))
    return lines
