"""Log formatters for JSON and console output."""

import json
import logging
import re
import sys
from datetime import UTC, date, datetime
from typing import Any

from azure_login.logging.context import get_log_context


def json_serializer(obj: Any) -> Any:
    """Serialize datetimes as ISO 8601, enums by value, everything else as str."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if hasattr(obj, "value"):
        return obj.value
    return str(obj)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Redacts secrets from URLs and never emits token or secret fields.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Identity
        "tenant_id",
        "client_id",
        "username",
        "resource",
        "environment",
        "token_audience",
        # Cache
        "entries_removed",
        "cache_hit",
        # HTTP
        "http_status",
        "http_url",
        "port",
        # Errors
        "error_category",
        "error_message",
        "error_type",
        # Operation tracking
        "flow",
        "auth_file",
        "duration_ms",
        "tenant_count",
        "subscription_count",
        "expires_on",
    ]

    NUMERIC_FIELDS = {
        "duration_ms": float,
        "entries_removed": int,
        "http_status": int,
        "port": int,
        "tenant_count": int,
        "subscription_count": int,
    }

    URL_FIELDS = ["http_url"]

    SENSITIVE_PARAMS_PATTERN = re.compile(
        r"([?&])(sig|token|key|secret|password|code)=[^&]*",
        re.IGNORECASE,
    )

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if key in self.URL_FIELDS and isinstance(value, str):
            return self.SENSITIVE_PARAMS_PATTERN.sub(r"\1\2=[REDACTED]", value)
        return value

    def _ensure_type(self, field: str, value: Any) -> Any:
        if field not in self.NUMERIC_FIELDS or value is None:
            return value
        try:
            return self.NUMERIC_FIELDS[field](value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _base_log_entry(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_entry = self._base_log_entry(record)

        for key, value in get_log_context().items():
            if value:
                log_entry[key] = value

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = self._sanitize_value(field, self._ensure_type(field, value))

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "stacktrace": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Colors are auto-disabled when output is not a TTY (pipes, files).
    """

    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _format_level_name(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        if not self._use_colors or not color:
            return record.levelname
        return f"{color}{record.levelname}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output with optional color coding."""
        log_context = get_log_context()
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            self._format_level_name(record),
        ]
        if log_context["flow"]:
            parts.append(f"[{log_context['flow']}]")

        tenant_id = getattr(record, "tenant_id", None) or log_context["tenant_id"]
        prefix = " - ".join(parts)
        if tenant_id:
            return f"{prefix} - [tenant:{tenant_id[:8]}] {record.getMessage()}"
        return f"{prefix} - {record.getMessage()}"
