# src/config/logging_config.py

"""Per-run logging for storefront_search.

Every launch writes to its own ``logs/run_<timestamp>.log`` so a search
session (debounce firings, superseded fetches, cache misses) can be
replayed after the fact.  Only warnings and above reach the terminal;
the CLI owns stdout for results.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

PROJECT_LOGGER = "storefront_search"

_FILE_FORMAT = (
    "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _build_handler(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach file + console handlers to the ``storefront_search`` logger.

    Safe to call more than once: handlers are only attached the first
    time, later calls just return a fresh log path.

    Returns:
        Path of the log file for this run.
    """
    directory = logs_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = directory / f"run_{stamp}.log"

    project_logger = logging.getLogger(PROJECT_LOGGER)
    project_logger.setLevel(logging.DEBUG)
    if project_logger.handlers:
        return log_file

    project_logger.addHandler(
        _build_handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    project_logger.addHandler(
        _build_handler(
            logging.StreamHandler(sys.stderr),
            logging.WARNING,
            _CONSOLE_FORMAT,
        )
    )
    project_logger.info("Logging to %s", log_file)
    return log_file
