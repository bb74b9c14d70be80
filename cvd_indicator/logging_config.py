"""
Logging setup for the CVD indicator.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the application entry point. Supports colored
console output, an optional rotating log file and a JSON line format,
all switchable through environment variables.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "cvd_indicator"

HUMAN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "line": %(lineno)d, "message": "%(message)s"}'
)


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(
    name: Optional[str] = PACKAGE_LOGGER,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
    json_format: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Attach handlers to a logger.

    Args:
        name: Logger name (None = root logger)
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: $LOG_LEVEL or INFO)
        log_file: Rotating log file path (default: $LOG_FILE, unset = no file)
        console: Log to stdout
        json_format: One JSON object per line instead of the human format
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    Returns:
        The configured logger

    Example:
        >>> logger = setup_logging(level="DEBUG", log_file="logs/cvd.log")
        >>> logger.info("Streaming started")
    """
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if log_file is None:
        log_file = os.getenv("LOG_FILE")

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    log_format = JSON_FORMAT if json_format else HUMAN_FORMAT
    date_format = "%Y-%m-%dT%H:%M:%S" if json_format else "%Y-%m-%d %H:%M:%S"

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        if json_format:
            console_handler.setFormatter(logging.Formatter(log_format, date_format))
        else:
            console_handler.setFormatter(ColoredFormatter(log_format, date_format))
        logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format, date_format))
        logger.addHandler(file_handler)

    if name is not None:
        logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger, configuring the package logger with defaults on first use.

    Args:
        name: Logger name (typically __name__)
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        setup_logging()
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    message: str = "An exception occurred",
    level: int = logging.ERROR,
) -> None:
    """Log an exception with full traceback."""
    logger.log(level, f"{message}: {exc}", exc_info=exc)


def configure_default_logging() -> logging.Logger:
    """
    Configure package logging from the environment.

    - LOG_LEVEL: Logging level (default: INFO)
    - LOG_FILE: Log file path (default: no file)
    - LOG_JSON: Use JSON format (default: false)
    - LOG_CONSOLE: Enable console output (default: true)
    """
    level = os.getenv("LOG_LEVEL", "INFO")
    log_file = os.getenv("LOG_FILE") or None
    json_format = os.getenv("LOG_JSON", "false").lower() == "true"
    console = os.getenv("LOG_CONSOLE", "true").lower() == "true"

    logger = setup_logging(
        level=level,
        log_file=log_file,
        console=console,
        json_format=json_format,
    )
    logger.debug(
        f"Logging initialized (level={level}, file={log_file}, json={json_format}, "
        f"console={console})"
    )
    return logger
