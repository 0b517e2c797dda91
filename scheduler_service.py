"""Scheduler Service - Business logic layer between callers and the scheduling engine.

This module provides a clean API for shift plan operations, decoupling the CLI
(or any other front end) from the engine modules. Roster, pattern catalog,
constraint sets, preference requests and committed schedules all go through
this service.

Benefits:
- Front-end code stays simple (no direct imports from scheduling_engine, etc.)
- Business logic can be tested without a front end
- Configuration loading and validation live in one place
- Engine errors are reported as results instead of exceptions
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Optional

import yaml

from constants import DEFAULT_AKE_PATTERN, DEFAULT_CONSTRAINTS, DEFAULT_PATTERNS, DEFAULT_VACATION_PATTERN
from constraint_diagnostics import DiagnosticReport, run_diagnostics
from logger import get_logger
from schedule_models import (
    Assignment,
    ConstraintSet,
    GenerationOptions,
    GenerationResult,
    PatternCatalog,
    PatternKind,
    PreferenceRequest,
    ShiftPattern,
    Worker,
)
from scheduler_builders import build_workers
from scheduling_engine import generate_schedule
from utils import parse_date

logger = get_logger('scheduler_service')


@dataclass
class ScheduleResult:
    """Result of a schedule generation operation."""
    success: bool
    result: Optional[GenerationResult] = None
    diagnostic_report: Optional[DiagnosticReport] = None
    error_message: str = ""

    @property
    def is_feasible(self) -> bool:
        """True when a schedule was produced without error violations."""
        return self.success and self.result is not None and not self.result.errors

    @property
    def assignments(self) -> tuple[Assignment, ...]:
        return self.result.assignments if self.result else ()


class SchedulerService:
    """
    Service layer for shift plan operations.

    This class provides a clean API for:
    - Worker management (add, remove, list)
    - Pattern catalog and constraint set management
    - Preference requests
    - Schedule generation with pre-flight diagnostics
    - Committed schedules per month
    - Configuration persistence
    """

    DEFAULT_CONFIG_FILE = "config.yaml"
    DEFAULT_HISTORY_FILE = "schedule_history.json"
    DEFAULT_SETTINGS = {
        'prioritize_requests': True,
        'balance_workload': True,
        'balance_night_shifts': False,
        'log_level': 'INFO',
    }

    def __init__(self, config_path: Optional[str] = None, history_path: Optional[str] = None):
        """Initialize the scheduler service.

        Args:
            config_path: Path to configuration file. If None, uses default.
            history_path: JSON file of committed schedules. If None, sits next to the config file.
        """
        self._config_path = config_path or self._get_default_config_path()
        self._history_path = history_path or os.path.join(
            os.path.dirname(os.path.abspath(self._config_path)), self.DEFAULT_HISTORY_FILE
        )
        self._settings: dict[str, Any] = self.DEFAULT_SETTINGS.copy()
        self._workers: list[Worker] = []
        self._patterns: list[ShiftPattern] = []
        self._constraint_sets: list[ConstraintSet] = []
        self._requests: list[PreferenceRequest] = []
        # Committed assignments per month key ("YYYY-MM")
        self._committed: dict[str, list[Assignment]] = {}

        self._load_config()
        self.load_history()

    @staticmethod
    def _get_default_config_path() -> str:
        """Get the default config file path."""
        return os.path.join(os.path.dirname(os.path.abspath(__file__)), SchedulerService.DEFAULT_CONFIG_FILE)

    # =========================================================================
    # Configuration Management
    # =========================================================================

    def _load_defaults(self) -> None:
        self._workers = self._get_default_workers()
        self._patterns = [ShiftPattern.from_dict(p) for p in DEFAULT_PATTERNS]
        self._constraint_sets = [self._get_default_constraint_set()]
        self._requests = []

    def _load_config(self) -> None:
        """Load configuration from file."""
        if not os.path.exists(self._config_path):
            logger.info(f"Config file not found at {self._config_path}, using defaults")
            self._load_defaults()
            return

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}

            self._settings.update(config.get('settings') or {})

            if config.get('workers'):
                self._workers = build_workers(config['workers'])
            else:
                self._workers = self._get_default_workers()

            if config.get('patterns'):
                self._patterns = [ShiftPattern.from_dict(p) for p in config['patterns']]
            else:
                self._patterns = [ShiftPattern.from_dict(p) for p in DEFAULT_PATTERNS]

            if config.get('constraint_sets'):
                self._constraint_sets = [ConstraintSet.from_dict(c) for c in config['constraint_sets']]
            else:
                self._constraint_sets = [self._get_default_constraint_set()]

            self._requests = [PreferenceRequest.from_dict(r) for r in config.get('requests') or []]
            logger.info(f"Configuration loaded from {self._config_path}")

        except Exception as e:
            logger.warning(f"Could not load config file: {e}")
            self._settings = self.DEFAULT_SETTINGS.copy()
            self._load_defaults()

    @staticmethod
    def _get_default_workers() -> list[Worker]:
        """Return the demo roster."""
        defaults = [
            ("Sato", "ID001", "nurse", "full-time"),
            ("Suzuki", "ID002", "nurse", "full-time"),
            ("Takahashi", "ID003", "nurse", "full-time"),
            ("Tanaka", "ID004", "nurse", "full-time"),
            ("Ito", "ID005", "nurse", "full-time"),
            ("Watanabe", "ID006", "nurse", "full-time"),
            ("Yamamoto", "ID007", "nurse", "full-time"),
            ("Nakamura", "ID008", "care worker", "full-time"),
            ("Kobayashi", "ID009", "care worker", "part-time"),
            ("Kato", "ID010", "care worker", "part-time"),
        ]
        return [Worker(name=n, id=i, role=r, employment_category=c) for n, i, r, c in defaults]

    @staticmethod
    def _get_default_constraint_set() -> ConstraintSet:
        return ConstraintSet.from_dict({'id': 'default', 'label': 'Standard', **DEFAULT_CONSTRAINTS})

    def save_config(self) -> bool:
        """Save current configuration to file.

        Returns:
            True if save was successful, False otherwise.
        """
        config = {
            'settings': self._settings,
            'workers': [w.to_dict() for w in self._workers],
            'patterns': [p.to_dict() for p in self._patterns],
            'constraint_sets': [c.to_dict() for c in self._constraint_sets],
        }
        if self._requests:
            config['requests'] = [r.to_dict() for r in self._requests]

        try:
            with open(self._config_path, 'w', encoding='utf-8') as f:
                yaml.dump(config, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            logger.info(f"Configuration saved to {self._config_path}")
            return True
        except Exception as e:
            logger.error(f"Could not save config file: {e}")
            return False

    @property
    def settings(self) -> dict[str, Any]:
        return self._settings.copy()

    @property
    def prioritize_requests(self) -> bool:
        return bool(self._settings['prioritize_requests'])

    @prioritize_requests.setter
    def prioritize_requests(self, value: bool) -> None:
        self._settings['prioritize_requests'] = bool(value)

    @property
    def balance_workload(self) -> bool:
        return bool(self._settings['balance_workload'])

    @balance_workload.setter
    def balance_workload(self, value: bool) -> None:
        self._settings['balance_workload'] = bool(value)

    @property
    def balance_night_shifts(self) -> bool:
        return bool(self._settings['balance_night_shifts'])

    @balance_night_shifts.setter
    def balance_night_shifts(self, value: bool) -> None:
        self._settings['balance_night_shifts'] = bool(value)

    # =========================================================================
    # Worker Management
    # =========================================================================

    @property
    def workers(self) -> list[Worker]:
        """Get list of all workers."""
        return self._workers.copy()

    @property
    def worker_names(self) -> list[str]:
        """Get list of worker names."""
        return [w.name for w in self._workers]

    def get_worker(self, name: str) -> Optional[Worker]:
        """Get a worker by name."""
        for w in self._workers:
            if w.name == name:
                return w
        return None

    def add_worker(self, name: str, role: str = "", employment_category: str = "") -> Worker:
        """Add a new worker.

        Args:
            name: Worker's name (must be unique)
            role: Job role, informational only
            employment_category: e.g. full-time / part-time, informational only

        Returns:
            The newly created Worker

        Raises:
            ValueError: If worker name already exists
        """
        if any(w.name == name for w in self._workers):
            raise ValueError(f"Worker '{name}' already exists")

        numbers = [int(w.id[2:]) for w in self._workers if w.id[:2] == "ID" and w.id[2:].isdigit()]
        new_id = f"ID{max(numbers, default=0) + 1:03d}"

        worker = Worker(id=new_id, name=name, role=role, employment_category=employment_category)
        self._workers.append(worker)

        logger.info(f"Added worker: {name}")
        return worker

    def remove_worker(self, name: str) -> bool:
        """Remove a worker by name, together with the worker's requests and committed assignments.

        Returns:
            True if worker was removed, False if not found
        """
        for i, w in enumerate(self._workers):
            if w.name == name:
                self._workers.pop(i)
                self._requests = [r for r in self._requests if r.worker_id != w.id]

                dropped = 0
                for key, assignments in list(self._committed.items()):
                    kept = [a for a in assignments if a.worker_id != w.id]
                    dropped += len(assignments) - len(kept)
                    if kept:
                        self._committed[key] = kept
                    else:
                        del self._committed[key]
                if dropped:
                    self.save_history()

                logger.info(f"Removed worker: {name} ({dropped} committed assignments dropped)")
                return True
        return False

    # =========================================================================
    # Pattern Catalog
    # =========================================================================

    @property
    def patterns(self) -> list[ShiftPattern]:
        return self._patterns.copy()

    @property
    def catalog(self) -> PatternCatalog:
        return PatternCatalog(self._patterns)

    def add_pattern(self, pattern: ShiftPattern | dict) -> ShiftPattern:
        """Append a pattern to the catalog. Working patterns are filled in catalog order.

        Raises:
            ValueError: If a pattern with the same name already exists
        """
        if isinstance(pattern, dict):
            pattern = ShiftPattern.from_dict(pattern)
        if any(p.name == pattern.name for p in self._patterns):
            raise ValueError(f"Pattern '{pattern.name}' already exists")
        self._patterns.append(pattern)
        logger.info(f"Added pattern: {pattern.name}")
        return pattern

    def remove_pattern(self, name: str) -> bool:
        for i, p in enumerate(self._patterns):
            if p.name == name:
                self._patterns.pop(i)
                logger.info(f"Removed pattern: {name}")
                return True
        return False

    def ensure_default_patterns(self) -> list[str]:
        """Create the ake and vacation patterns when the catalog lacks them.

        Returns:
            Names of the patterns that were created
        """
        catalog = self.catalog
        created = []
        for kind, template in ((PatternKind.AKE, DEFAULT_AKE_PATTERN), (PatternKind.VACATION, DEFAULT_VACATION_PATTERN)):
            if catalog.has_kind(kind):
                continue
            data = dict(template)
            existing_ids = {p.id for p in self._patterns}
            if data['id'] in existing_ids:
                data['id'] = f"{data['id']}-{data['name']}"
            self._patterns.append(ShiftPattern.from_dict(data))
            created.append(data['name'])
        if created:
            logger.info(f"Created default patterns: {created}")
        return created

    # =========================================================================
    # Constraint Sets
    # =========================================================================

    @property
    def constraint_sets(self) -> list[ConstraintSet]:
        return self._constraint_sets.copy()

    @property
    def active_constraint_ids(self) -> list[str]:
        return [c.id for c in self._constraint_sets if c.is_active]

    def add_constraint_set(self, constraint_set: ConstraintSet | dict) -> ConstraintSet:
        """
        Raises:
            ValueError: If a set with the same id already exists
        """
        if isinstance(constraint_set, dict):
            constraint_set = ConstraintSet.from_dict(constraint_set)
        if any(c.id == constraint_set.id for c in self._constraint_sets):
            raise ValueError(f"Constraint set '{constraint_set.id}' already exists")
        self._constraint_sets.append(constraint_set)
        logger.info(f"Added constraint set: {constraint_set.label or constraint_set.id}")
        return constraint_set

    def set_active(self, constraint_id: str, active: bool = True) -> bool:
        for i, c in enumerate(self._constraint_sets):
            if c.id == constraint_id:
                self._constraint_sets[i] = replace(c, is_active=active)
                return True
        return False

    # =========================================================================
    # Preference Requests
    # =========================================================================

    @property
    def requests(self) -> list[PreferenceRequest]:
        return self._requests.copy()

    def add_request(self, worker_name: str, day, pattern_name: str, note: str = "") -> PreferenceRequest:
        """Record a worker's wish for a pattern on a date.

        A worker holds at most one request per date; a new request replaces
        the previous one.

        Raises:
            ValueError: For an unknown worker or pattern
        """
        worker = self.get_worker(worker_name)
        if worker is None:
            raise ValueError(f"Unknown worker '{worker_name}'")
        catalog = self.catalog
        if pattern_name not in catalog and not catalog.is_vacation_name(pattern_name):
            raise ValueError(f"Unknown pattern '{pattern_name}'")

        request = PreferenceRequest(worker_id=worker.id, date=parse_date(day), pattern_name=pattern_name, note=note)
        self._requests = [
            r for r in self._requests
            if not (r.worker_id == worker.id and r.date == request.date)
        ]
        self._requests.append(request)
        logger.debug(f"Request recorded: {worker_name} {request.date} {pattern_name}")
        return request

    def remove_request(self, worker_name: str, day) -> bool:
        worker = self.get_worker(worker_name)
        if worker is None:
            return False
        target = parse_date(day)
        before = len(self._requests)
        self._requests = [r for r in self._requests if not (r.worker_id == worker.id and r.date == target)]
        return len(self._requests) < before

    def requests_for_month(self, year: int, month: int) -> list[PreferenceRequest]:
        return [r for r in self._requests if r.date.year == year and r.date.month == month]

    # =========================================================================
    # Schedule Generation
    # =========================================================================

    def generate(self, year: int, month: int, constraint_ids: Optional[list[str]] = None) -> ScheduleResult:
        """Generate a schedule for the given month.

        Args:
            year: Year to schedule
            month: Month to schedule (1-12)
            constraint_ids: Constraint sets to enforce (None = every active set)

        Returns:
            ScheduleResult with the generated schedule or error information
        """
        logger.info(f"Generating schedule for {month}/{year} with {len(self._workers)} workers")
        month_requests = self.requests_for_month(year, month) if 1 <= month <= 12 else []

        try:
            diagnostic_report = run_diagnostics(
                self._workers, self._patterns, self._constraint_sets, month_requests,
                year, month, constraint_ids=constraint_ids, logger=logger,
            )

            options = GenerationOptions(
                year=year,
                month=month,
                constraint_ids=constraint_ids,
                prioritize_requests=self.prioritize_requests,
                balance_workload=self.balance_workload,
                balance_night_shifts=self.balance_night_shifts,
            )
            result = generate_schedule(self._workers, self.catalog, self._constraint_sets, month_requests, options)

            logger.info(f"Schedule generated with {len(result.assignments)} assignments")
            return ScheduleResult(success=True, result=result, diagnostic_report=diagnostic_report)

        except Exception as e:
            logger.error(f"Error generating schedule: {e}", exc_info=True)
            return ScheduleResult(success=False, error_message=str(e))

    # =========================================================================
    # Committed Schedules
    # =========================================================================

    @staticmethod
    def _month_key(year: int, month: int) -> str:
        return f"{year:04d}-{month:02d}"

    @property
    def history_path(self) -> str:
        return self._history_path

    def load_history(self, file_path: Optional[str] = None) -> bool:
        """Load committed schedules from a JSON file.

        Months found in the file replace the months held in memory.

        Args:
            file_path: Path to the JSON file (default: the service's history file)

        Returns:
            True if loaded successfully, False otherwise
        """
        file_path = file_path or self._history_path
        if not os.path.exists(file_path):
            logger.debug(f"No schedule history at {file_path}")
            return False

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)

            for month_key, assignments in loaded.items():
                self._committed[month_key] = [Assignment.from_dict(a) for a in assignments]

            logger.info(f"History loaded from {file_path} ({len(loaded)} months)")
            return True

        except json.JSONDecodeError:
            logger.error(f"Invalid JSON in {file_path}")
            return False
        except Exception as e:
            logger.error(f"Failed to load history: {e}")
            return False

    def save_history(self, file_path: Optional[str] = None) -> bool:
        """Save committed schedules to a JSON file.

        Args:
            file_path: Path to the JSON file (default: the service's history file)

        Returns:
            True if saved successfully, False otherwise
        """
        file_path = file_path or self._history_path
        history = {
            month_key: [a.to_dict() for a in assignments]
            for month_key, assignments in sorted(self._committed.items())
        }
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(history, f, indent=4, ensure_ascii=False)
            logger.info(f"History saved to {file_path}")
            return True
        except Exception as e:
            logger.error(f"Failed to save history: {e}")
            return False

    def commit(self, result: GenerationResult | ScheduleResult) -> int:
        """Store a generated schedule, replacing whatever was committed for its month(s),
        and write the history file.

        Returns:
            Number of assignments stored
        """
        if isinstance(result, ScheduleResult):
            if not result.success or result.result is None:
                raise ValueError("Cannot commit a failed generation")
            result = result.result

        by_month: dict[str, list[Assignment]] = {}
        for assignment in result.assignments:
            key = self._month_key(assignment.date.year, assignment.date.month)
            by_month.setdefault(key, []).append(assignment)

        for key, assignments in by_month.items():
            self._committed[key] = assignments
            logger.info(f"Committed {len(assignments)} assignments for {key}")
        self.save_history()
        return len(result.assignments)

    def committed_for_month(self, year: int, month: int) -> list[Assignment]:
        return list(self._committed.get(self._month_key(year, month), []))

    def has_schedule_for_month(self, year: int, month: int) -> bool:
        """Check if a schedule has been committed for the given month."""
        return bool(self._committed.get(self._month_key(year, month)))

    def reset_schedule_for_month(self, year: int, month: int) -> bool:
        """Drop the committed schedule of the given month from memory and the history file.

        Returns:
            True if assignments were removed, False if none were committed
        """
        removed = self._committed.pop(self._month_key(year, month), None)
        if removed:
            self.save_history()
            logger.info(f"Reset schedule for {month}/{year}")
        return bool(removed)
