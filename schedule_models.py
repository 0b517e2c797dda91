"""Domain types for monthly shift plan generation.

Inputs (workers, shift patterns, constraint sets, preference requests) are
plain dataclasses with ``to_dict``/``from_dict`` helpers so they can be loaded
from the YAML configuration. Engine outputs (assignments, violations and
statistics) are frozen so a finished result cannot be modified by callers.

Shift patterns are classified once, at construction time, into a
``PatternKind`` plus an explicit ``night`` flag and a duration in hours. The
scheduling code only ever looks at those computed attributes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from constants import (
    AKE_PATTERN_NAME,
    DEFAULT_CONSTRAINTS,
    NIGHT_NAME_MARKERS,
    REST_PATTERN_NAME,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    VACATION_PATTERN_NAME,
)
from utils import parse_date, parse_time_of_day

# Namespace for deterministic assignment ids (uuid5 of "<worker_id>/<date>")
ASSIGNMENT_NAMESPACE = uuid.UUID('6f1c54a2-3d0b-4c55-9a4e-0b8d2f7e91c3')


class PatternKind(Enum):
    WORK = 'work'
    REST = 'rest'
    AKE = 'ake'
    VACATION = 'vacation'


class PatternCatalogError(LookupError):
    """Raised when a pattern (or a required sentinel pattern) is not in the catalog."""


@dataclass
class Worker:
    """A member of the roster. Read-only input to the engine."""
    id: str
    name: str
    role: str = ""
    employment_category: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "employment_category": self.employment_category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Worker":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            role=data.get("role", ""),
            employment_category=data.get("employment_category", ""),
        )


def pattern_hours(start_time: Optional[str], end_time: Optional[str]) -> float:
    """Duration of a pattern in hours. An end before the start wraps past midnight."""
    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    if start is None or end is None:
        return 0.0
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if minutes < 0:
        minutes += 24 * 60
    return minutes / 60


def classify_pattern(name: str, is_workday: bool, is_ake: bool, is_vacation: bool) -> PatternKind:
    if is_ake or name == AKE_PATTERN_NAME:
        return PatternKind.AKE
    if is_vacation or name == VACATION_PATTERN_NAME:
        return PatternKind.VACATION
    if is_workday:
        return PatternKind.WORK
    return PatternKind.REST


def _looks_like_night(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in NIGHT_NAME_MARKERS)


def _format_time(value) -> Optional[str]:
    parsed = parse_time_of_day(value)
    return parsed.strftime('%H:%M') if parsed else None


@dataclass(frozen=True)
class ShiftPattern:
    """A named, reusable shift definition referenced by name in assignments.

    ``kind``, ``night`` and ``hours`` are derived in ``__post_init__``. Pass
    ``is_night`` to override the name/start-time heuristic for working patterns.
    """
    id: str
    name: str
    short_label: str = ""
    color: str = "#000000"
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_workday: bool = True
    is_ake: bool = False
    is_vacation: bool = False
    required_staff: int = 0
    is_night: Optional[bool] = None
    kind: PatternKind = field(init=False, compare=False)
    night: bool = field(init=False, compare=False)
    hours: float = field(init=False, compare=False)

    def __post_init__(self):
        start = _format_time(self.start_time)
        end = _format_time(self.end_time)
        kind = classify_pattern(self.name, self.is_workday, self.is_ake, self.is_vacation)
        if kind is not PatternKind.WORK:
            night = False
        elif self.is_night is not None:
            night = bool(self.is_night)
        else:
            night = _looks_like_night(self.name)

        object.__setattr__(self, 'start_time', start)
        object.__setattr__(self, 'end_time', end)
        object.__setattr__(self, 'required_staff', int(self.required_staff or 0))
        object.__setattr__(self, 'kind', kind)
        object.__setattr__(self, 'night', night)
        object.__setattr__(self, 'hours', pattern_hours(start, end))

    @property
    def is_working(self) -> bool:
        return self.kind is PatternKind.WORK

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "short_label": self.short_label,
            "color": self.color,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_workday": self.is_workday,
            "is_ake": self.is_ake,
            "is_vacation": self.is_vacation,
            "required_staff": self.required_staff,
        }
        if self.is_night is not None:
            data["is_night"] = self.is_night
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ShiftPattern":
        return cls(
            id=str(data.get("id", data["name"])),
            name=data["name"],
            short_label=data.get("short_label", data["name"][:1]),
            color=data.get("color", "#000000"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            is_workday=bool(data.get("is_workday", True)),
            is_ake=bool(data.get("is_ake", False)),
            is_vacation=bool(data.get("is_vacation", False)),
            required_staff=int(data.get("required_staff", 0)),
            is_night=data.get("is_night"),
        )


class PatternCatalog:
    """Ordered, name-indexed collection of shift patterns.

    Sentinel lookups (``rest``, ``ake``, ``vacation``) raise PatternCatalogError
    when the catalog does not provide them; the engine only touches a sentinel
    when a phase actually needs it.
    """

    def __init__(self, patterns: Iterable[ShiftPattern]):
        self._patterns = tuple(patterns)
        self._by_name: dict[str, ShiftPattern] = {}
        for pattern in self._patterns:
            self._by_name.setdefault(pattern.name, pattern)
        self.working = tuple(p for p in self._patterns if p.kind is PatternKind.WORK)

    def __iter__(self) -> Iterator[ShiftPattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> ShiftPattern:
        try:
            return self._by_name[name]
        except KeyError:
            raise PatternCatalogError(f"Unknown shift pattern '{name}'") from None

    def get(self, name: str) -> Optional[ShiftPattern]:
        return self._by_name.get(name)

    def _sentinel(self, kind: PatternKind, preferred_name: str) -> ShiftPattern:
        pattern = self._by_name.get(preferred_name)
        if pattern is not None and pattern.kind is kind:
            return pattern
        for pattern in self._patterns:
            if pattern.kind is kind:
                return pattern
        raise PatternCatalogError(f"Pattern catalog has no '{preferred_name}' pattern")

    @property
    def rest(self) -> ShiftPattern:
        return self._sentinel(PatternKind.REST, REST_PATTERN_NAME)

    @property
    def ake(self) -> ShiftPattern:
        return self._sentinel(PatternKind.AKE, AKE_PATTERN_NAME)

    @property
    def vacation(self) -> ShiftPattern:
        return self._sentinel(PatternKind.VACATION, VACATION_PATTERN_NAME)

    def has_kind(self, kind: PatternKind) -> bool:
        return any(p.kind is kind for p in self._patterns)

    def is_vacation_name(self, name: str) -> bool:
        """True for the vacation sentinel name or any pattern classified as vacation."""
        if name == VACATION_PATTERN_NAME:
            return True
        pattern = self._by_name.get(name)
        return pattern is not None and pattern.kind is PatternKind.VACATION


@dataclass(frozen=True)
class ConstraintSet:
    """A named, prioritized bundle of scheduling limits.

    Every active set selected for a run is enforced independently; the set with
    the highest ``priority`` also governs the monthly rest-count reconciliation.
    """
    id: str
    label: str = ""
    max_consecutive_work_days: int = DEFAULT_CONSTRAINTS['max_consecutive_work_days']
    max_consecutive_night_shifts: int = DEFAULT_CONSTRAINTS['max_consecutive_night_shifts']
    min_rest_days_per_week: int = DEFAULT_CONSTRAINTS['min_rest_days_per_week']
    min_rest_days_per_month: int = DEFAULT_CONSTRAINTS['min_rest_days_per_month']
    exact_rest_days_per_month: int = DEFAULT_CONSTRAINTS['exact_rest_days_per_month']
    max_night_shifts_per_week: int = DEFAULT_CONSTRAINTS['max_night_shifts_per_week']
    max_night_shifts_per_month: int = DEFAULT_CONSTRAINTS['max_night_shifts_per_month']
    max_work_hours_per_week: float = DEFAULT_CONSTRAINTS['max_work_hours_per_week']
    max_work_hours_per_month: float = DEFAULT_CONSTRAINTS['max_work_hours_per_month']
    night_shift_next_day_off: bool = DEFAULT_CONSTRAINTS['night_shift_next_day_off']
    is_active: bool = DEFAULT_CONSTRAINTS['is_active']
    priority: int = DEFAULT_CONSTRAINTS['priority']

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            **{key: getattr(self, key) for key in DEFAULT_CONSTRAINTS},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConstraintSet":
        values = {key: data.get(key, default) for key, default in DEFAULT_CONSTRAINTS.items()}
        return cls(id=str(data["id"]), label=data.get("label", ""), **values)


@dataclass(frozen=True)
class PreferenceRequest:
    """A worker's wish for a pattern on a date. Binding only for vacation."""
    worker_id: str
    date: date
    pattern_name: str
    note: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'date', parse_date(self.date))

    def to_dict(self) -> dict:
        return {
            "worker_id": self.worker_id,
            "date": self.date.isoformat(),
            "pattern": self.pattern_name,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PreferenceRequest":
        return cls(
            worker_id=str(data["worker_id"]),
            date=data["date"],
            pattern_name=data.get("pattern", data.get("pattern_name")),
            note=data.get("note") or "",
        )


@dataclass(frozen=True)
class Assignment:
    """One worker's pattern for one date."""
    id: str
    date: date
    worker_id: str
    worker_name: str
    pattern_name: str
    is_manually_adjusted: bool = False
    violation_labels: tuple[str, ...] = ()

    @classmethod
    def create(cls, worker: Worker, day: date, pattern_name: str) -> "Assignment":
        assignment_id = uuid.uuid5(ASSIGNMENT_NAMESPACE, f"{worker.id}/{day.isoformat()}")
        return cls(
            id=str(assignment_id),
            date=day,
            worker_id=worker.id,
            worker_name=worker.name,
            pattern_name=pattern_name,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "pattern": self.pattern_name,
            "is_manually_adjusted": self.is_manually_adjusted,
            "violations": list(self.violation_labels),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Assignment":
        return cls(
            id=data["id"],
            date=parse_date(data["date"]),
            worker_id=str(data["worker_id"]),
            worker_name=data.get("worker_name", ""),
            pattern_name=data["pattern"],
            is_manually_adjusted=bool(data.get("is_manually_adjusted", False)),
            violation_labels=tuple(data.get("violations") or ()),
        )


@dataclass(frozen=True)
class Violation:
    """A rule the generated schedule could not satisfy."""
    date: Optional[date]
    worker_id: str
    worker_name: str
    constraint_name: str
    violation_type: str
    severity: str
    message: str

    def __str__(self) -> str:
        when = self.date.isoformat() if self.date else "month"
        who = f" {self.worker_name}" if self.worker_name else ""
        return f"[{self.severity.upper()}] {when}{who} {self.violation_type}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat() if self.date else None,
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "constraint_name": self.constraint_name,
            "violation_type": self.violation_type,
            "severity": self.severity,
            "message": self.message,
        }


@dataclass(frozen=True)
class WorkloadStat:
    worker_id: str
    worker_name: str
    total_shifts: int = 0
    night_shifts: int = 0
    rest_days: int = 0
    ake_days: int = 0
    vacation_days: int = 0
    consecutive_work_days: int = 0
    total_work_hours: float = 0.0


@dataclass(frozen=True)
class PatternDistributionStat:
    pattern_name: str
    count: int = 0
    required_staff: int = 0
    average_per_day: float = 0.0


@dataclass(frozen=True)
class ScheduleStatistics:
    total_days: int
    total_shifts: int
    per_worker: tuple[WorkloadStat, ...] = ()
    per_pattern: tuple[PatternDistributionStat, ...] = ()

    def for_worker(self, worker_id: str) -> Optional[WorkloadStat]:
        for stat in self.per_worker:
            if stat.worker_id == worker_id:
                return stat
        return None

    def for_pattern(self, pattern_name: str) -> Optional[PatternDistributionStat]:
        for stat in self.per_pattern:
            if stat.pattern_name == pattern_name:
                return stat
        return None

    def to_dict(self) -> dict:
        return {
            "total_days": self.total_days,
            "total_shifts": self.total_shifts,
            "per_worker": [vars(s).copy() for s in self.per_worker],
            "per_pattern": [vars(s).copy() for s in self.per_pattern],
        }


@dataclass(frozen=True)
class GenerationOptions:
    """Run parameters: target month, selected constraint sets and fill options.

    ``constraint_ids=None`` selects every active constraint set.
    """
    year: int
    month: int
    constraint_ids: Optional[tuple[str, ...]] = None
    prioritize_requests: bool = True
    balance_workload: bool = True
    balance_night_shifts: bool = False

    def __post_init__(self):
        if self.constraint_ids is not None:
            object.__setattr__(self, 'constraint_ids', tuple(self.constraint_ids))


@dataclass(frozen=True)
class GenerationResult:
    assignments: tuple[Assignment, ...]
    statistics: ScheduleStatistics
    violations: tuple[Violation, ...]
    generated_at: datetime

    def assignment_for(self, worker_id: str, day: date) -> Optional[Assignment]:
        for assignment in self.assignments:
            if assignment.worker_id == worker_id and assignment.date == day:
                return assignment
        return None

    def by_date(self) -> dict[date, list[Assignment]]:
        grouped: dict[date, list[Assignment]] = {}
        for assignment in sorted(self.assignments, key=lambda a: a.date):
            grouped.setdefault(assignment.date, []).append(assignment)
        return grouped

    def by_worker(self) -> dict[str, list[Assignment]]:
        grouped: dict[str, list[Assignment]] = {}
        for assignment in sorted(self.assignments, key=lambda a: a.date):
            grouped.setdefault(assignment.worker_id, []).append(assignment)
        return grouped

    @property
    def errors(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == SEVERITY_ERROR]

    @property
    def warnings(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == SEVERITY_WARNING]

    def to_dict(self) -> dict[str, Any]:
        return {
            "assignments": [a.to_dict() for a in self.assignments],
            "statistics": self.statistics.to_dict(),
            "violations": [v.to_dict() for v in self.violations],
            "generated_at": self.generated_at.isoformat(),
        }
