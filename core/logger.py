"""Centralized logging configuration."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LevelLike = Union[int, str]


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints the level name by severity."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # The record is shared with other handlers; restore it afterwards
        plain = record.levelname
        tint = self.LEVEL_COLORS.get(record.levelno)
        if tint:
            record.levelname = f"{tint}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def resolve_level(level: LevelLike) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def _console_handler(level: int, colored: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter_cls = ColoredFormatter if colored else logging.Formatter
    handler.setFormatter(formatter_cls(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logger(
    name: Optional[str] = None,
    level: LevelLike = logging.INFO,
    log_file: Optional[str] = None,
    colored: bool = True
) -> logging.Logger:
    """Configure a logger with console output and an optional log file.

    Args:
        name: Logger name; the root logger when omitted so module loggers propagate
        level: Logging level, numeric or by name
        log_file: Optional path of a UTF-8 log file, parent directories are created
        colored: Whether console level names are colored

    Returns:
        The configured logger, with any previous handlers replaced
    """
    numeric_level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    logger.addHandler(_console_handler(numeric_level, colored))
    if log_file:
        logger.addHandler(_file_handler(Path(log_file), numeric_level))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name."""
    return logging.getLogger(name)
