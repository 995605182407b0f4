# src/config/logging_config.py

"""Per-run logging for the pricewatch daemon and its one-shot commands.

Every process launch writes ``run_<timestamp>.log`` into the logs
directory and routes all ``pricewatch.*`` loggers through it. Page
loads and store access run on worker threads, so the file format
carries the thread name next to the logger.

One-shot commands (``--check-now``, ``--add`` ...) each start a new run,
so only the newest ``Settings.LOG_RETENTION_RUNS`` run files are kept.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "pricewatch"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(threadName)-12s | %(name)s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _prune_old_runs(logs_dir: Path, keep: int) -> int:
    """Delete all but the newest ``keep`` run logs. Returns the count removed."""
    runs = sorted(logs_dir.glob("run_*.log"))
    stale = runs[:-keep] if keep > 0 else []
    for path in stale:
        path.unlink(missing_ok=True)
    return len(stale)


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run file and stderr handlers to the ``pricewatch`` logger.

    Calling it again in the same process adds nothing; the path of the
    file already in use is returned.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, _DATE_FORMAT))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(
        logging.getLevelName(Settings.CONSOLE_LOG_LEVEL.upper())
    )
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, _DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    removed = _prune_old_runs(target_dir, Settings.LOG_RETENTION_RUNS)
    root_logger.info(
        "Logging to %s (%d old run logs removed)", log_file, removed,
    )
    return log_file
