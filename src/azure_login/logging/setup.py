"""Logging setup and configuration."""

import logging
import sys
from pathlib import Path

from azure_login.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_CONSOLE_LEVEL = logging.INFO
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "adal-python",
    "aiohttp",
    "urllib3",
    "requests",
]


def setup_logging(
    name: str = "azure_login",
    console_level: int = DEFAULT_CONSOLE_LEVEL,
    file_level: int = DEFAULT_FILE_LEVEL,
    json_format: bool = False,
    log_file: Path | None = None,
    suppress_noisy: bool = True,
) -> logging.Logger:
    """
    Configure root logging with a console handler and an optional JSON file handler.

    Args:
        name: Name of the logger to return
        console_level: Console handler level (default: INFO)
        file_level: File handler level (default: DEBUG)
        json_format: Use JSON lines on the console as well
        log_file: Write JSON lines to this file when given
        suppress_noisy: Quiet down ADAL and HTTP client loggers

    Returns:
        Configured logger instance
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    if suppress_noisy:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        "Logging initialized",
        extra={"flow": "setup"},
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
