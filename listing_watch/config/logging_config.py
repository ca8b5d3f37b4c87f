# listing_watch/config/logging_config.py

"""Logging for a poller run.

Every launch writes ``logs/run_YYYYMMDD_HHMMSS.log`` holding all
``listing_watch.*`` records at DEBUG. Cycle progress is echoed to stderr
at ``LOG_LEVEL``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from listing_watch.config.settings import Settings

ROOT_LOGGER_NAME = "listing_watch"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: str | int) -> int:
    """Map a level name or number to a number; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _configured(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(
    logs_dir: Path | None = None,
    console_level: str | int = "INFO",
) -> Path:
    """Attach the run file and stderr handlers to ``listing_watch``.

    Args:
        logs_dir: Where the run file goes; ``Settings.LOGS_DIR`` when
            omitted.
        console_level: Level for stderr output.

    Returns:
        Path of this run's log file. A second call in the same process
        leaves the existing handlers in place.
    """
    target_dir = logs_dir if logs_dir is not None else Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)
    if root_logger.handlers:
        return log_file

    root_logger.addHandler(
        _configured(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    root_logger.addHandler(
        _configured(
            logging.StreamHandler(sys.stderr),
            _resolve_level(console_level),
            _CONSOLE_FORMAT,
        )
    )
    root_logger.debug("Writing run log to %s", log_file)
    return log_file
