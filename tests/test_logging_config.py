# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import shutil
import tempfile
import unittest
from pathlib import Path

from src.config.logging_config import ROOT_LOGGER_NAME, setup_logging
from src.config.settings import Settings


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Reset the pricewatch logger and use a temp logs dir."""
        self._reset()
        self.tmp_dir = tempfile.mkdtemp()
        self.logs_dir = Path(self.tmp_dir) / "logs"

    def tearDown(self) -> None:
        self._reset()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    @staticmethod
    def _reset() -> None:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(root_logger.handlers):
            handler.close()
            root_logger.removeHandler(handler)

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_log_file_inside_logs_dir(self) -> None:
        """Log file is created inside the requested directory."""
        log_path = setup_logging(self.logs_dir)
        self.assertEqual(log_path.parent, self.logs_dir)

    def test_handler_levels(self) -> None:
        """File handler logs DEBUG; console handler only WARNING."""
        setup_logging(self.logs_dir)
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        file_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        stream_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(file_handlers[0].level, logging.DEBUG)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)
        self.assertEqual(root_logger.level, logging.DEBUG)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging(self.logs_dir)
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        count_before = len(root_logger.handlers)
        setup_logging(self.logs_dir)
        self.assertEqual(count_before, len(root_logger.handlers))

    def test_repeated_calls_return_active_file(self) -> None:
        """A second call reports the file already in use."""
        first = setup_logging(self.logs_dir)
        self.assertEqual(setup_logging(Path(self.tmp_dir) / "other"), first)

    def test_old_runs_pruned(self) -> None:
        """Only the newest run logs are kept."""
        self.logs_dir.mkdir(parents=True)
        for day in range(1, 31):
            (self.logs_dir / f"run_202601{day:02d}_000000.log").touch()
        log_path = setup_logging(self.logs_dir)
        remaining = sorted(self.logs_dir.glob("run_*.log"))
        self.assertEqual(len(remaining), Settings.LOG_RETENTION_RUNS)
        self.assertIn(log_path, remaining)

    def test_child_loggers_reach_file(self) -> None:
        """Module loggers under pricewatch.* write to the run file."""
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("pricewatch.coordinator").info("cycle marker")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        self.assertIn("cycle marker", log_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
