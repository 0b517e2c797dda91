"""
Tests for scheduling_engine.py - End-to-end generation

These tests cover:
- The reference scenarios (plain fill, forced ake, rest reconciliation, vacation)
- Structural properties every generated month must satisfy
- Run options (request priority, balancing)
- Caller errors
"""

import logging
import pytest
from collections import Counter
from datetime import date

from schedule_models import (
    GenerationOptions,
    PatternCatalog,
    PatternCatalogError,
    PreferenceRequest,
    ShiftPattern,
    Worker,
)
from scheduling_engine import generate_schedule, summarize_month


def apr(day):
    return date(2026, 4, day)


def patterns_by_day(result, worker_id):
    return {a.date: a.pattern_name for a in result.assignments if a.worker_id == worker_id}


class TestReferenceScenarios:
    """Small hand-checked schedules."""

    def test_plain_fill_without_constraints(self, make_workers, sentinel_patterns):
        """3 workers, Day needs 2, no constraint sets: 2 Day + 1 rest every day."""
        day = ShiftPattern(id="d", name="Day", start_time="08:00", end_time="16:00", required_staff=2)
        result = generate_schedule(make_workers(3), [day] + sentinel_patterns, [], [],
                                   GenerationOptions(year=2026, month=2))

        for d, assignments in result.by_date().items():
            counts = Counter(a.pattern_name for a in assignments)
            assert counts == {"Day": 2, "rest": 1}, d
        assert result.violations == ()
        assert result.statistics.total_days == 28
        assert result.statistics.total_shifts == 56

    def test_balanced_fill_rotates_rest(self, make_workers, sentinel_patterns):
        day = ShiftPattern(id="d", name="Day", start_time="08:00", end_time="16:00", required_staff=2)
        result = generate_schedule(make_workers(3), [day] + sentinel_patterns, [], [],
                                   GenerationOptions(year=2026, month=2))
        shifts = [result.statistics.for_worker(f"W{i}").total_shifts for i in (1, 2, 3)]
        assert max(shifts) - min(shifts) <= 1

    def test_forced_ake_after_night(self, make_workers, night_pattern, sentinel_patterns, make_constraint_set):
        """1 worker, Night needs 1: Night, ake, Night, ake, ..."""
        constraint = make_constraint_set(max_consecutive_night_shifts=1, night_shift_next_day_off=True)
        result = generate_schedule(make_workers(1), [night_pattern] + sentinel_patterns, [constraint], [],
                                   GenerationOptions(year=2026, month=4))

        plan = patterns_by_day(result, "W1")
        assert plan[apr(1)] == "Night"
        assert plan[apr(2)] == "ake"
        assert plan[apr(3)] == "Night"
        staffing_dates = {v.date for v in result.errors if v.violation_type == "required_staff"}
        assert apr(2) in staffing_dates
        assert apr(1) not in staffing_dates

    def test_early_shift_gets_no_ake(self, make_workers, sentinel_patterns, make_constraint_set):
        """An early-morning pattern without a night name or flag is plain day work."""
        early = ShiftPattern(id="e", name="Early", start_time="05:00", end_time="13:00", required_staff=1)
        constraint = make_constraint_set(night_shift_next_day_off=True)
        result = generate_schedule(make_workers(1), [early] + sentinel_patterns, [constraint], [],
                                   GenerationOptions(year=2026, month=4))

        assert set(patterns_by_day(result, "W1").values()) == {"Early"}
        assert result.errors == []

    def test_rest_reconciliation_adds_rest_from_month_end(self, make_workers, day_pattern, sentinel_patterns,
                                                           make_constraint_set):
        """Max 4 consecutive days leaves 6 rest days in April; the target of 10 converts days 26-29."""
        constraint = make_constraint_set(max_consecutive_work_days=4, exact_rest_days_per_month=10)
        result = generate_schedule(make_workers(1), [day_pattern] + sentinel_patterns, [constraint], [],
                                   GenerationOptions(year=2026, month=4))

        plan = patterns_by_day(result, "W1")
        rest_days = sorted(d.day for d, name in plan.items() if name == "rest")
        assert rest_days == [5, 10, 15, 20, 25, 26, 27, 28, 29, 30]
        assert result.statistics.for_worker("W1").rest_days == 10
        assert not [v for v in result.violations if v.violation_type == "rest_days"]

    def test_vacation_beats_staffing(self, make_workers, sentinel_patterns):
        day = ShiftPattern(id="d", name="Day", start_time="08:00", end_time="16:00", required_staff=2)
        requests = [PreferenceRequest(worker_id="W2", date=apr(10), pattern_name="vacation")]
        result = generate_schedule(make_workers(2), [day] + sentinel_patterns, [], requests,
                                   GenerationOptions(year=2026, month=4))

        assert patterns_by_day(result, "W2")[apr(10)] == "vacation"
        assert patterns_by_day(result, "W1")[apr(10)] == "Day"
        shortfalls = [v for v in result.errors if v.date == apr(10)]
        assert len(shortfalls) == 1
        assert shortfalls[0].constraint_name == "Required staff"


@pytest.fixture
def ward_month(make_workers, sentinel_patterns, make_constraint_set):
    """A realistic ward: 8 workers, three working patterns, ake policy on."""
    patterns = [
        ShiftPattern(id="d", name="Day", start_time="08:30", end_time="17:00", required_staff=2),
        ShiftPattern(id="l", name="Late", start_time="12:00", end_time="20:30", required_staff=1),
        ShiftPattern(id="n", name="Night", start_time="16:30", end_time="09:00", required_staff=1),
    ] + sentinel_patterns
    constraint = make_constraint_set(
        id="ward",
        max_consecutive_work_days=5,
        max_consecutive_night_shifts=1,
        max_night_shifts_per_month=6,
        max_night_shifts_per_week=2,
        exact_rest_days_per_month=9,
        night_shift_next_day_off=True,
    )
    requests = [
        PreferenceRequest(worker_id="W3", date=apr(7), pattern_name="Night"),
        PreferenceRequest(worker_id="W5", date=apr(12), pattern_name="Late"),
    ]
    return make_workers(8), patterns, [constraint], requests


class TestScheduleProperties:
    """Invariants every generated month satisfies."""

    def test_one_assignment_per_worker_and_day(self, ward_month):
        workers, patterns, constraints, requests = ward_month
        result = generate_schedule(workers, patterns, constraints, requests, GenerationOptions(year=2026, month=4))

        assert len(result.assignments) == len(workers) * 30
        keys = [(a.worker_id, a.date) for a in result.assignments]
        assert len(keys) == len(set(keys))
        assert len({a.id for a in result.assignments}) == len(result.assignments)

    def test_runs_within_limit(self, ward_month):
        workers, patterns, constraints, requests = ward_month
        result = generate_schedule(workers, patterns, constraints, requests, GenerationOptions(year=2026, month=4))

        for worker in workers:
            run = 0
            for a in result.by_worker()[worker.id]:
                run = 0 if a.pattern_name in ("rest", "ake") else run + 1
                assert run <= 5, (worker.id, a.date)

    def test_day_after_night_is_ake(self, ward_month):
        workers, patterns, constraints, requests = ward_month
        result = generate_schedule(workers, patterns, constraints, requests, GenerationOptions(year=2026, month=4))

        for worker in workers:
            plan = patterns_by_day(result, worker.id)
            for d, name in plan.items():
                if name == "Night" and d.day < 30:
                    assert plan[date(2026, 4, d.day + 1)] == "ake"

    def test_deterministic(self, ward_month):
        workers, patterns, constraints, requests = ward_month
        options = GenerationOptions(year=2026, month=4)
        first = generate_schedule(workers, patterns, constraints, requests, options)
        second = generate_schedule(workers, patterns, constraints, requests, options)
        assert first.assignments == second.assignments
        assert first.violations == second.violations

    def test_raising_demand_never_reduces_shortfalls(self, make_workers, sentinel_patterns):
        def shortfall_dates(required):
            day = ShiftPattern(id="d", name="Day", start_time="08:00", end_time="16:00", required_staff=required)
            result = generate_schedule(make_workers(3), [day] + sentinel_patterns, [], [],
                                       GenerationOptions(year=2026, month=4))
            return Counter(v.date for v in result.errors)

        low, high = shortfall_dates(2), shortfall_dates(5)
        for d in (apr(n) for n in range(1, 31)):
            assert high[d] >= low[d]
        assert sum(high.values()) == 30

    def test_input_patterns_accept_dicts(self, make_workers):
        patterns = [
            {"name": "Day", "start_time": "08:00", "end_time": "16:00", "required_staff": 1},
            {"name": "rest", "is_workday": False},
        ]
        result = generate_schedule(make_workers(2), patterns, [], [], GenerationOptions(year=2026, month=4))
        assert len(result.assignments) == 60


class TestRunOptions:
    """Tests for request priority and balancing switches."""

    def test_request_wins_slot(self, make_workers, day_pattern, sentinel_patterns):
        requests = [PreferenceRequest(worker_id="W3", date=apr(1), pattern_name="Day")]
        result = generate_schedule(make_workers(3), [day_pattern] + sentinel_patterns, [], requests,
                                   GenerationOptions(year=2026, month=4))
        assert patterns_by_day(result, "W3")[apr(1)] == "Day"

    def test_request_ignored_without_priority(self, make_workers, day_pattern, sentinel_patterns):
        requests = [PreferenceRequest(worker_id="W3", date=apr(1), pattern_name="Day")]
        options = GenerationOptions(year=2026, month=4, prioritize_requests=False)
        result = generate_schedule(make_workers(3), [day_pattern] + sentinel_patterns, [], requests, options)
        assert patterns_by_day(result, "W1")[apr(1)] == "Day"
        assert patterns_by_day(result, "W3")[apr(1)] == "rest"

    def test_request_blocked_by_constraint(self, make_workers, day_pattern, sentinel_patterns, make_constraint_set):
        requests = [PreferenceRequest(worker_id="W1", date=apr(2), pattern_name="Day")]
        constraint = make_constraint_set(max_consecutive_work_days=1)
        result = generate_schedule(make_workers(2), [day_pattern] + sentinel_patterns, [constraint], requests,
                                   GenerationOptions(year=2026, month=4))
        assert patterns_by_day(result, "W1")[apr(1)] == "Day"
        assert patterns_by_day(result, "W1")[apr(2)] == "rest"
        assert patterns_by_day(result, "W2")[apr(2)] == "Day"

    def test_without_balancing_roster_order_wins(self, make_workers, day_pattern, sentinel_patterns):
        options = GenerationOptions(year=2026, month=4, balance_workload=False)
        result = generate_schedule(make_workers(3), [day_pattern] + sentinel_patterns, [], [], options)
        assert result.statistics.for_worker("W1").total_shifts == 30
        assert result.statistics.for_worker("W3").total_shifts == 0

    def test_balance_nights_spreads_nights(self, make_workers, day_pattern, night_pattern, sentinel_patterns):
        """Night is filled first; without night balancing W1 would take it whenever workloads tie."""
        options = GenerationOptions(year=2026, month=4, balance_night_shifts=True)
        result = generate_schedule(make_workers(3), [night_pattern, day_pattern] + sentinel_patterns, [], [], options)
        nights = [result.statistics.for_worker(f"W{i}").night_shifts for i in (1, 2, 3)]
        assert sum(nights) == 30
        assert max(nights) - min(nights) <= 1

    def test_inactive_and_unselected_sets_ignored(self, make_workers, day_pattern, sentinel_patterns,
                                                  make_constraint_set):
        blocked = make_constraint_set(id="off", max_consecutive_work_days=1, is_active=False)
        other = make_constraint_set(id="other", max_consecutive_work_days=1)
        options = GenerationOptions(year=2026, month=4, constraint_ids=["off"], balance_workload=False)
        result = generate_schedule(make_workers(1), [day_pattern] + sentinel_patterns, [blocked, other], [], options)
        assert result.statistics.for_worker("W1").total_shifts == 30


class TestCallerErrors:
    """Caller errors propagate as exceptions."""

    def test_invalid_month(self, make_workers, day_pattern, sentinel_patterns):
        with pytest.raises(ValueError):
            generate_schedule(make_workers(1), [day_pattern] + sentinel_patterns, [], [],
                              GenerationOptions(year=2026, month=13))

    def test_missing_rest_pattern(self, make_workers, day_pattern):
        with pytest.raises(PatternCatalogError):
            generate_schedule(make_workers(2), [day_pattern], [], [], GenerationOptions(year=2026, month=4))

    def test_missing_vacation_pattern(self, make_workers, day_pattern):
        rest = ShiftPattern(id="r", name="rest", is_workday=False)
        requests = [PreferenceRequest(worker_id="W1", date=apr(3), pattern_name="vacation")]
        with pytest.raises(PatternCatalogError):
            generate_schedule(make_workers(1), [day_pattern, rest], [], requests, GenerationOptions(year=2026, month=4))

    def test_duplicate_worker_ids_rejected(self, day_pattern, sentinel_patterns):
        workers = [Worker(id="W1", name="Worker 1"), Worker(id="W1", name="Worker 2")]
        with pytest.raises(ValueError, match="Duplicate worker id"):
            generate_schedule(workers, [day_pattern] + sentinel_patterns, [], [], GenerationOptions(year=2026, month=4))

    def test_unknown_worker_request_skipped(self, make_workers, day_pattern, sentinel_patterns, caplog):
        requests = [PreferenceRequest(worker_id="nobody", date=apr(3), pattern_name="vacation")]
        with caplog.at_level(logging.WARNING):
            result = generate_schedule(make_workers(1), [day_pattern] + sentinel_patterns, [], requests,
                                       GenerationOptions(year=2026, month=4))
        assert len(result.assignments) == 30
        assert "unknown worker" in caplog.text


class TestLoggingAndRendering:
    """Tests for the run log and the text grid."""

    def test_run_logged(self, make_workers, day_pattern, sentinel_patterns, caplog):
        with caplog.at_level(logging.INFO):
            generate_schedule(make_workers(1), [day_pattern] + sentinel_patterns, [], [],
                              GenerationOptions(year=2026, month=4))
        assert "Generating 2026-04" in caplog.text

    def test_summarize_month(self, make_workers, day_pattern, sentinel_patterns):
        workers = make_workers(2)
        catalog = PatternCatalog([day_pattern] + sentinel_patterns)
        result = generate_schedule(workers, catalog, [], [], GenerationOptions(year=2026, month=4))

        lines = summarize_month(result, catalog, workers)
        assert len(lines) == 2 + len(workers)
        assert lines[2].startswith("Worker 1")
        assert " D" in lines[2]
        assert " -" in lines[3]
