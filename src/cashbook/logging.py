"""Logging setup shared by the CLI and embedding applications.

Usage:
    from cashbook.logging import setup_logging
    setup_logging("INFO", log_file="~/.cashbook/cashbook.log")
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUP_COUNT = 3

# Library loggers that are too chatty at INFO/DEBUG
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "sqlalchemy",
    "asyncio",
]


def setup_logging(level: str | int = logging.WARNING, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``cashbook`` logger.

    Args:
        level: Console level (name or number)
        log_file: Optional file that receives DEBUG and above, rotated by size

    Returns:
        The configured ``cashbook`` logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger("cashbook")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialized (console=%s, file=%s)", logging.getLevelName(level), log_file)
    return logger
