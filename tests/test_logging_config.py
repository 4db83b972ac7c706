# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path

from src.config.logging_config import PROJECT_LOGGER, setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Detach handlers left over from earlier tests."""
        logging.getLogger(PROJECT_LOGGER).handlers.clear()

    def tearDown(self) -> None:
        project_logger = logging.getLogger(PROJECT_LOGGER)
        for handler in project_logger.handlers:
            handler.close()
        project_logger.handlers.clear()

    def test_setup_creates_log_file(self) -> None:
        log_path = setup_logging()
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        log_path = setup_logging()
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_log_file_inside_logs_dir(self) -> None:
        log_path = setup_logging()
        self.assertEqual(log_path.parent.name, "logs")

    def test_explicit_directory(self) -> None:
        target = Path(tempfile.mkdtemp()) / "custom"
        log_path = setup_logging(target)
        self.assertEqual(log_path.parent, target)

    def test_file_debug_console_warning(self) -> None:
        setup_logging()
        handlers = logging.getLogger(PROJECT_LOGGER).handlers
        file_levels = [
            h.level for h in handlers if isinstance(h, logging.FileHandler)
        ]
        console_levels = [
            h.level
            for h in handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(file_levels, [logging.DEBUG])
        self.assertEqual(console_levels, [logging.WARNING])

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        setup_logging()
        count_before = len(logging.getLogger(PROJECT_LOGGER).handlers)
        setup_logging()
        self.assertEqual(
            len(logging.getLogger(PROJECT_LOGGER).handlers), count_before
        )

    def test_child_loggers_reach_file(self) -> None:
        log_path = setup_logging()
        logging.getLogger(f"{PROJECT_LOGGER}.orchestrator").debug(
            "fence moved"
        )
        for handler in logging.getLogger(PROJECT_LOGGER).handlers:
            handler.flush()
        self.assertIn("fence moved", log_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
