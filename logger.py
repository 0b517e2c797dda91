"""
Logging configuration for the shift plan generator.

Every module logs through a child of the ``shiftplan`` logger. Console output is
set up on import; the CLI adds the dated log file once it knows the level.
"""

import logging
import os
import time
import functools
from contextlib import contextmanager
from datetime import datetime

LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
LOG_FILE = os.path.join(LOG_DIR, f"shiftplan_{datetime.now().strftime('%Y%m%d')}.log")

ROOT_LOGGER_NAME = 'shiftplan'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def resolve_level(level) -> int:
    """Accept a logging level number or a name such as 'debug' from the config file."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level=logging.INFO, log_to_file=False, log_file=None):
    """
    Configure the ``shiftplan`` logger.

    Args:
        level: Level number or name (default: INFO)
        log_to_file: Also write to a log file (default: False)
        log_file: Log file path; defaults to a dated file under logs/

    Returns:
        The configured root logger of the application
    """
    level = resolve_level(level)
    log_file = log_file or LOG_FILE
    log_dir = os.path.dirname(log_file)
    if log_to_file and log_dir:
        os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(level)

    # Reconfiguring replaces the previous handlers
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if log_to_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        app_logger.addHandler(file_handler)

    return app_logger


def get_logger(name=None):
    """Return ``shiftplan.<name>``, or the application logger itself when no name is given."""
    if name:
        return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
    return logging.getLogger(ROOT_LOGGER_NAME)


@contextmanager
def log_timing(operation_name: str, logger_instance=None):
    """
    Log how long a block took.

    Usage:
        with log_timing("daily sweep", logger):
            for day in state.days:
                plan_day(state, day, [])
    """
    log = logger_instance or get_logger('perf')
    start = time.perf_counter()
    try:
        yield
    finally:
        log.info(f"⏱️ {operation_name}: {time.perf_counter() - start:.4f}s")


def timed(func=None, *, name=None):
    """
    Decorator logging a function's run time, and the failure type when it raises.

    Usage:
        @timed(name="generate_schedule")
        def generate_schedule(...):
            ...
    """
    def decorator(fn):
        op_name = name or fn.__qualname__

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            log = get_logger('perf')
            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                log.error(f"⏱️ {op_name}: {time.perf_counter() - start:.4f}s (failed with {type(e).__name__})")
                raise
            log.info(f"⏱️ {op_name}: {time.perf_counter() - start:.4f}s")
            return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


class PerformanceTracker:
    """
    Accumulates timings of a repeated step, e.g. one ``plan_day`` call per date,
    and logs a per-step summary at DEBUG level.
    """

    def __init__(self, logger_instance=None):
        self.logger = logger_instance or get_logger('perf')
        self.timings: dict[str, list[float]] = {}

    @contextmanager
    def track(self, operation_name: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            self.timings.setdefault(operation_name, []).append(time.perf_counter() - start)

    def report(self, title: str = "Performance Summary"):
        """Log one line per tracked step, slowest total first. Returns the raw timings."""
        self.logger.debug(f"📊 {title}")
        for op, times in sorted(self.timings.items(), key=lambda x: -sum(x[1])):
            total = sum(times)
            self.logger.debug(
                f"  {op:20s} | total: {total:8.4f}s | count: {len(times):5d} | "
                f"avg: {total / len(times):.4f}s | max: {max(times):.4f}s"
            )
        return self.timings


# Console logging is available as soon as any module imports the logger
logger = setup_logging()
