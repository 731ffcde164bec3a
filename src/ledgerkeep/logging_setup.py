"""Logging configuration for the command line.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, once, by the entry point.
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# Third-party loggers that are chatty below WARNING
NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "sqlalchemy.engine",
    "asyncio",
]

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str | int = logging.WARNING, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the root logger.

    Args:
        level: Level name (e.g. "INFO") or number for the console handler
        log_file: Optional path of a daily-rotated log file written at the same level

    Returns:
        The configured root logger
    """
    if isinstance(level, str):
        level_name = level
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level '{level_name}'")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # stderr keeps log lines out of command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=log_file,
            when="midnight",
            interval=1,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))

    root_logger.debug("Logging initialized at %s", logging.getLevelName(level))
    return root_logger
