"""
Log line format shared by the engine and the ``nested-set`` command.

Each line reads ``time | level | importance | logger | message``. The
importance (0-10) ranks records for readers that filter a log by
severity across levels: a rolled-back unit caused by broken invariants is
worth more attention than a lock timeout, though both are errors.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

LEVEL_TO_IMPORTANCE = {
    "DEBUG": 2,
    "INFO": 4,
    "WARNING": 6,
    "ERROR": 8,
    "CRITICAL": 10,
}

UNIFIED_DATE_FMT = "%Y-%m-%d %H:%M:%S"
UNIFIED_FORMAT_STR = (
    "%(asctime)s | %(levelname)-8s | %(importance)s | %(name)s | %(message)s"
)

# Logger that owns every handler installed by configure_logging
ROOT_LOGGER_NAME = "nested_set"


def importance_from_level(level_name: str) -> int:
    """Importance for a level name; 4 when the name is unknown."""
    return LEVEL_TO_IMPORTANCE.get((level_name or "").strip().upper(), 4)


def _ensure_importance(record: logging.LogRecord) -> logging.LogRecord:
    if getattr(record, "importance", None) is None:
        record.importance = importance_from_level(record.levelname)
    return record


def install_unified_record_factory() -> None:
    """
    Give every new LogRecord an ``importance`` attribute.

    Records logged with ``extra={"importance": n}`` keep ``n``. Installing
    twice is a no-op, so repeated ``configure_logging`` calls do not stack
    factories.
    """
    current = logging.getLogRecordFactory()
    if getattr(current, "_nested_set_factory", False):
        return

    def _factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        return _ensure_importance(current(*args, **kwargs))

    _factory._nested_set_factory = True
    logging.setLogRecordFactory(_factory)


class UnifiedFormatter(logging.Formatter):
    """Formatter for the unified line; fills importance for foreign records."""

    def format(self, record: logging.LogRecord) -> str:
        return super().format(_ensure_importance(record))


def create_unified_formatter(
    fmt: str = UNIFIED_FORMAT_STR,
    datefmt: str = UNIFIED_DATE_FMT,
) -> UnifiedFormatter:
    return UnifiedFormatter(fmt=fmt, datefmt=datefmt)


def configure_logging(
    level: str = "INFO", log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route ``nested_set`` loggers to stderr (and optionally a file).

    Installs the record factory, then replaces the handlers installed by a
    previous call.

    Args:
        level: Standard level name
        log_file: Optional path of a log file to append to

    Returns:
        The package root logger
    """
    install_unified_record_factory()
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_nested_set_handler", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = create_unified_formatter()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._nested_set_handler = True
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
