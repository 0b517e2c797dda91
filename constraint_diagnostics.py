"""Pre-generation diagnostics for shift plan inputs.

The greedy engine always produces a schedule, even from inputs that cannot be
satisfied; the problems then only show up as violations afterwards. This module
inspects the inputs before a run and reports the obvious conflicts up front:

1. Missing sentinel patterns a phase will need (rest, ake, vacation)
2. Daily staffing demand versus roster size
3. Night patterns that no constraint set allows
4. Rest targets that cannot coexist with the month length or the demand
5. Requests that point at unknown workers, patterns or dates

The report is advisory; generation runs regardless of what it finds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from constants import SEVERITY_ERROR, SEVERITY_WARNING
from scheduler_builders import (
    build_catalog,
    build_constraint_sets,
    build_requests,
    build_workers,
    select_constraint_sets,
)
from schedule_models import PatternCatalog, PatternKind
from utils import month_days


@dataclass
class ConstraintViolation:
    """A single input conflict found before generation."""
    category: str  # e.g., "patterns", "staffing", "rest_target", "requests"
    severity: str  # "error" (the run will fail or be unusable), "warning" (tight)
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.category}: {self.message}"


@dataclass
class DiagnosticReport:
    """Complete diagnostic report for one set of generation inputs."""
    is_feasible: bool
    violations: list[ConstraintViolation] = field(default_factory=list)
    summary: str = ""

    def add_violation(self, violation: ConstraintViolation) -> None:
        self.violations.append(violation)

    def get_errors(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.severity == SEVERITY_ERROR]

    def get_warnings(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.severity == SEVERITY_WARNING]

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_feasible": self.is_feasible,
            "violations": [
                {
                    "category": v.category,
                    "severity": v.severity,
                    "message": v.message,
                    "details": v.details,
                }
                for v in self.violations
            ],
            "summary": self.summary,
        }

    def format_report(self) -> str:
        """Format the report as a human-readable string."""
        lines = ["=" * 60, "INPUT DIAGNOSTIC REPORT", "=" * 60, ""]

        if self.is_feasible:
            lines.append("✓ Inputs look consistent")
        else:
            lines.append("✗ Inputs have blocking problems")
        lines.append("")

        errors = self.get_errors()
        warnings = self.get_warnings()

        if errors:
            lines.append(f"ERRORS ({len(errors)}):")
            lines.append("-" * 40)
            for v in errors:
                lines.append(f"  • [{v.category}] {v.message}")
                for k, val in v.details.items():
                    lines.append(f"      {k}: {val}")
            lines.append("")

        if warnings:
            lines.append(f"WARNINGS ({len(warnings)}):")
            lines.append("-" * 40)
            for v in warnings:
                lines.append(f"  • [{v.category}] {v.message}")
            lines.append("")

        if self.summary:
            lines.append("SUMMARY:")
            lines.append("-" * 40)
            lines.append(f"  {self.summary}")
            lines.append("")

        lines.append("=" * 60)
        return "\n".join(lines)


class ConstraintDiagnostics:
    """Analyzes generation inputs to flag conflicts before a run."""

    def __init__(self, workers, catalog: PatternCatalog, constraint_sets, requests, year: int, month: int):
        self.workers = workers
        self.catalog = catalog
        self.constraint_sets = constraint_sets
        self.requests = requests
        self.days = month_days(year, month)
        self.worker_ids = {w.id for w in workers}

    def analyze(self) -> DiagnosticReport:
        report = DiagnosticReport(is_feasible=True)

        self._check_sentinel_patterns(report)
        self._check_staffing_demand(report)
        self._check_night_allowance(report)
        self._check_rest_targets(report)
        self._check_requests(report)

        if report.get_errors():
            report.is_feasible = False
            report.summary = f"Found {len(report.get_errors())} input problems that will break or degrade the schedule."
        elif report.get_warnings():
            report.summary = f"No blocking problems; {len(report.get_warnings())} warnings."
        else:
            report.summary = "No obvious input problems detected."
        return report

    @property
    def daily_demand(self) -> int:
        return sum(p.required_staff for p in self.catalog.working)

    def _check_sentinel_patterns(self, report: DiagnosticReport) -> None:
        """The rest pattern is always needed; ake and vacation only when used."""
        if not self.catalog.has_kind(PatternKind.REST):
            report.add_violation(ConstraintViolation(
                category="patterns",
                severity=SEVERITY_ERROR,
                message="No rest pattern defined; unassigned days cannot be filled",
            ))

        if any(c.night_shift_next_day_off for c in self.constraint_sets) and not self.catalog.has_kind(PatternKind.AKE):
            report.add_violation(ConstraintViolation(
                category="patterns",
                severity=SEVERITY_ERROR,
                message="A constraint set gives the day after a night shift off, but no ake pattern is defined",
            ))

        wants_vacation = any(self.catalog.is_vacation_name(r.pattern_name) for r in self.requests)
        if wants_vacation and not self.catalog.has_kind(PatternKind.VACATION):
            report.add_violation(ConstraintViolation(
                category="patterns",
                severity=SEVERITY_ERROR,
                message="Vacation is requested but no vacation pattern is defined",
            ))

    def _check_staffing_demand(self, report: DiagnosticReport) -> None:
        demand = self.daily_demand
        roster = len(self.workers)
        details = {"daily_demand": demand, "workers": roster}
        if demand > roster:
            report.add_violation(ConstraintViolation(
                category="staffing",
                severity=SEVERITY_ERROR,
                message=f"Patterns need {demand} workers per day but only {roster} are on the roster",
                details=details,
            ))
        elif demand and roster - demand <= 1:
            report.add_violation(ConstraintViolation(
                category="staffing",
                severity=SEVERITY_WARNING,
                message=f"Only {roster - demand} spare worker(s) per day; rest days will cause shortfalls",
                details=details,
            ))

    def _check_night_allowance(self, report: DiagnosticReport) -> None:
        night_patterns = [p.name for p in self.catalog.working if p.night and p.required_staff > 0]
        if not night_patterns or not self.constraint_sets:
            return
        if all(c.max_night_shifts_per_month <= 0 for c in self.constraint_sets):
            report.add_violation(ConstraintViolation(
                category="night",
                severity=SEVERITY_WARNING,
                message=f"Night patterns {night_patterns} need staff but no constraint set allows night shifts",
            ))

    def _check_rest_targets(self, report: DiagnosticReport) -> None:
        if not self.constraint_sets:
            return
        governing = self.constraint_sets[0]
        target = governing.exact_rest_days_per_month
        if target <= 0:
            return

        num_days = len(self.days)
        name = governing.label or governing.id
        if target > num_days:
            report.add_violation(ConstraintViolation(
                category="rest_target",
                severity=SEVERITY_ERROR,
                message=f"'{name}' asks for {target} rest days in a {num_days}-day month",
            ))
            return

        available = len(self.workers) * (num_days - target)
        needed = self.daily_demand * num_days
        if available < needed:
            report.add_violation(ConstraintViolation(
                category="rest_target",
                severity=SEVERITY_WARNING,
                message=f"'{name}' rest target leaves {available} worker-days for {needed} required shifts",
                details={"exact_rest_days_per_month": target, "available": available, "needed": needed},
            ))

        for constraint in self.constraint_sets:
            if target < constraint.min_rest_days_per_month:
                report.add_violation(ConstraintViolation(
                    category="rest_target",
                    severity=SEVERITY_WARNING,
                    message=(f"Exact rest target {target} is below the monthly minimum "
                             f"{constraint.min_rest_days_per_month} of '{constraint.label or constraint.id}'"),
                ))

    def _check_requests(self, report: DiagnosticReport) -> None:
        day_set = set(self.days)
        for request in self.requests:
            where = f"{request.worker_id} on {request.date}"
            if request.worker_id not in self.worker_ids:
                report.add_violation(ConstraintViolation(
                    category="requests",
                    severity=SEVERITY_WARNING,
                    message=f"Request for unknown worker {where}",
                ))
            if request.pattern_name not in self.catalog and not self.catalog.is_vacation_name(request.pattern_name):
                report.add_violation(ConstraintViolation(
                    category="requests",
                    severity=SEVERITY_WARNING,
                    message=f"Request for unknown pattern '{request.pattern_name}' ({where})",
                ))
            if request.date not in day_set:
                report.add_violation(ConstraintViolation(
                    category="requests",
                    severity=SEVERITY_WARNING,
                    message=f"Request outside the scheduled month ({where})",
                ))


def run_diagnostics(
    workers,
    patterns,
    constraint_sets,
    requests,
    year: int,
    month: int,
    constraint_ids=None,
    logger=None,
) -> DiagnosticReport:
    """
    Run input diagnostics and return a report.

    Args:
        workers: Workers (objects or dicts)
        patterns: PatternCatalog, ShiftPattern objects or pattern dicts
        constraint_sets: Constraint sets (objects or dicts); inactive ones are ignored
        requests: Preference requests (objects or dicts)
        year, month: Month to be generated
        constraint_ids: Optional selection of constraint set ids (None = all active)
        logger: Optional logger for output

    Returns:
        DiagnosticReport with the findings
    """
    diagnostics = ConstraintDiagnostics(
        workers=build_workers(workers),
        catalog=build_catalog(patterns),
        constraint_sets=select_constraint_sets(build_constraint_sets(constraint_sets), constraint_ids),
        requests=build_requests(requests),
        year=year,
        month=month,
    )
    report = diagnostics.analyze()

    if logger:
        for violation in report.get_errors():
            logger.error(str(violation))
        for violation in report.get_warnings():
            logger.warning(str(violation))

    return report
