"""
Tests for logger.py - Logging setup and timing helpers
"""

import logging

import pytest

from logger import PerformanceTracker, get_logger, log_timing, resolve_level, setup_logging, timed


class TestSetup:
    """Logger configuration."""

    def test_child_loggers(self):
        assert get_logger('engine').name == 'shiftplan.engine'
        assert get_logger().name == 'shiftplan'

    def test_level_names(self):
        assert resolve_level('debug') == logging.DEBUG
        assert resolve_level(logging.WARNING) == logging.WARNING
        assert resolve_level('nonsense') == logging.INFO

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "nested" / "run.log"
        app_logger = setup_logging('INFO', log_to_file=True, log_file=str(log_file))
        try:
            get_logger('test').info("hello file")
            assert "hello file" in log_file.read_text(encoding='utf-8')
            assert len(app_logger.handlers) == 2
        finally:
            setup_logging()

    def test_reconfigure_replaces_handlers(self):
        setup_logging()
        assert len(setup_logging().handlers) == 1


class TestTiming:
    """Timing helpers."""

    def test_log_timing(self, caplog):
        with caplog.at_level(logging.INFO):
            with log_timing("sweep", get_logger('test')):
                pass
        assert "sweep:" in caplog.text

    def test_timed_reraises(self, caplog):
        @timed(name="boom")
        def boom():
            raise RuntimeError("x")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RuntimeError):
                boom()
        assert "failed with RuntimeError" in caplog.text

    def test_tracker_accumulates(self):
        tracker = PerformanceTracker()
        for _ in range(3):
            with tracker.track("plan_day"):
                pass
        assert len(tracker.report()["plan_day"]) == 3
