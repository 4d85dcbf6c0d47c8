"""Logging utilities for CLI and dispatch modules."""

from __future__ import annotations

import logging
from pathlib import Path


DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    log_file: Path,
    level: int | str = logging.INFO,
    console_level: int | str = logging.ERROR,
) -> logging.Logger:
    """Configure process-wide logging: full detail to file, errors only to the console.

    Verb output goes to stdout, so the console handler stays quiet by default.
    """

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_level = logging.getLevelName(level) if isinstance(level, str) else level
    stream_level = logging.getLevelName(console_level) if isinstance(console_level, str) else console_level

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_level, stream_level))

    formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(stream_level)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    file_handler.setLevel(file_level)

    root_logger.addHandler(stream_handler)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger("verbkit")
    logger.setLevel(min(file_level, stream_level))
    return logger
