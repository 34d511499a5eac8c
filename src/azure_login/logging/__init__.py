"""
Structured logging module.

Provides JSON and console logging with authentication context and the
explicit ADAL logging configuration.
"""

from azure_login.logging.adal_logging import (
    ADAL_LOGGER_NAME,
    AdalLoggingConfig,
    configure_adal_logging,
)
from azure_login.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from azure_login.logging.formatters import ConsoleFormatter, JSONFormatter
from azure_login.logging.setup import get_logger, setup_logging
from azure_login.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # ADAL
    "AdalLoggingConfig",
    "configure_adal_logging",
    "ADAL_LOGGER_NAME",
    # Utilities
    "log_with_context",
    "log_exception",
]
