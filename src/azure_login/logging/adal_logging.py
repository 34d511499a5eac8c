"""
Logging configuration for the wrapped ADAL library.

ADAL writes to the ``adal-python`` logger. Instead of a process-wide
environment toggle, credentials receive an AdalLoggingConfig at construction
time and apply it here.

Example:
    >>> config = AdalLoggingConfig(enabled=True, level="DEBUG")
    >>> creds = ApplicationTokenCredentials(
    ...     "client-id", "tenant-id", "secret", logging_config=config
    ... )
"""

import logging
from dataclasses import dataclass

import adal

logger = logging.getLogger(__name__)

ADAL_LOGGER_NAME = adal.ADAL_LOGGER_NAME


@dataclass(frozen=True)
class AdalLoggingConfig:
    """
    ADAL logging options.

    Attributes:
        enabled: Turn ADAL logging on (off by default, ADAL then only logs errors)
        level: Level name for the ``adal-python`` logger
        enable_pii: Let ADAL include user identifiers in its log lines
        handler: Extra handler for ADAL records (records also propagate to root)
    """

    enabled: bool = False
    level: str = "DEBUG"
    enable_pii: bool = False
    handler: logging.Handler | None = None


def configure_adal_logging(config: AdalLoggingConfig | None) -> bool:
    """
    Apply an ADAL logging configuration.

    Safe to call once per credential: a handler already attached to the ADAL
    logger is not attached twice.

    Returns:
        True if ADAL logging was (re)configured
    """
    if config is None or not config.enabled:
        return False

    options: dict = {"level": config.level.upper()}
    adal_logger = logging.getLogger(ADAL_LOGGER_NAME)
    if config.handler is not None and config.handler not in adal_logger.handlers:
        options["handler"] = config.handler

    adal.set_logging_options(options)
    logger.debug(
        "Configured ADAL logging",
        extra={"flow": "adal"},
    )
    return True


__all__ = ["AdalLoggingConfig", "configure_adal_logging", "ADAL_LOGGER_NAME"]
