#!/usr/bin/env python3
"""
Command line entry point for the shift plan generator.
"""

from __future__ import annotations

import argparse
import logging

from logger import get_logger, setup_logging
from scheduler_service import SchedulerService
from scheduling_engine import summarize_month

logger = get_logger('main')

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_STRICT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shiftplan", description="Generate a monthly shift plan")
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--month", type=int, required=True)
    parser.add_argument("--config", default=None, help="Path to the YAML configuration (default: config.yaml)")
    parser.add_argument("--constraint", action="append", dest="constraints", metavar="ID",
                        help="Constraint set id to enforce; repeat for several (default: every active set)")
    parser.add_argument("--no-requests", action="store_true", help="Ignore non-vacation preference requests")
    parser.add_argument("--no-balance", action="store_true", help="Fill in roster order instead of by workload")
    parser.add_argument("--balance-nights", action="store_true", help="Spread night shifts evenly")
    parser.add_argument("--strict", action="store_true", help="Exit with status 2 when the plan has errors")
    parser.add_argument("--dry-run", action="store_true", help="Print the plan without committing it to the history file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", default=None, help="Log file path (default: dated file under logs/)")
    return parser


def format_statistics(result) -> list[str]:
    lines = [
        f"{'Worker':<14} {'Shifts':>6} {'Night':>5} {'Rest':>4} {'Ake':>3} {'Vac':>3} {'Run':>3} {'Hours':>6}",
    ]
    for stat in result.statistics.per_worker:
        lines.append(
            f"{stat.worker_name:<14} {stat.total_shifts:>6} {stat.night_shifts:>5} {stat.rest_days:>4} "
            f"{stat.ake_days:>3} {stat.vacation_days:>3} {stat.consecutive_work_days:>3} {stat.total_work_hours:>6}"
        )
    lines.append("")
    for stat in result.statistics.per_pattern:
        lines.append(f"{stat.pattern_name:<14} total {stat.count:>4}  avg/day {stat.average_per_day:>4}  required {stat.required_staff}")
    return lines


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    service = SchedulerService(config_path=args.config)
    level = logging.DEBUG if args.verbose else service.settings.get('log_level', 'INFO')
    setup_logging(level=level, log_to_file=True, log_file=args.log_file)

    if args.no_requests:
        service.prioritize_requests = False
    if args.no_balance:
        service.balance_workload = False
    if args.balance_nights:
        service.balance_night_shifts = True

    logger.info(f"Starting shift plan generation for {args.year}-{args.month:02d}")
    outcome = service.generate(args.year, args.month, constraint_ids=args.constraints)

    if outcome.diagnostic_report is not None:
        print(outcome.diagnostic_report.format_report())

    if not outcome.success:
        print(f"Generation failed: {outcome.error_message}")
        return EXIT_FAILED

    result = outcome.result
    print()
    print("\n".join(summarize_month(result, service.catalog, service.workers)))
    print()
    print("\n".join(format_statistics(result)))

    if result.violations:
        print()
        print(f"VIOLATIONS ({len(result.errors)} errors, {len(result.warnings)} warnings):")
        for violation in result.violations:
            print(f"  {violation}")

    if args.strict and result.errors:
        return EXIT_STRICT

    if not args.dry_run:
        count = service.commit(result)
        print()
        print(f"Committed {count} assignments to {service.history_path}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
