"""
Exception hierarchy for azure_login.

Three tiers:
    - VALIDATION: bad arguments or auth file, raised before any I/O
    - AUTH: ordinary authentication failures (bad credentials, network,
      missing or expired cache entry)
    - CRITICAL: the token cache could not be repaired after a failed lookup

Errors raised by ADAL itself (``adal.AdalError``) belong to the AUTH tier and
are propagated verbatim, they are never wrapped by this layer.
"""

from enum import Enum

import adal

from azure_login.constants import SDK_INTERNAL_ERROR


class ErrorCategory(Enum):
    """Classification of errors raised while authenticating."""

    VALIDATION = "validation"
    AUTH = "auth"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class AzureLoginError(Exception):
    """
    Base exception for all azure_login errors.

    Attributes:
        message: Human-readable error description
        category: Error tier
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(AzureLoginError, ValueError):
    """Invalid arguments or configuration, raised before any network or cache access."""

    category = ErrorCategory.VALIDATION


class AuthFileError(ValidationError):
    """The auth file is missing, unreadable, malformed or incomplete."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        field: str | None = None,
        cause: Exception | None = None,
    ):
        context = {}
        if file_path:
            context["auth_file"] = file_path
        if field:
            context["field"] = field
        super().__init__(message, cause, context)
        self.file_path = file_path
        self.field = field


# =============================================================================
# Authentication Errors
# =============================================================================


class TokenAcquisitionError(AzureLoginError):
    """A token, tenant list or subscription list could not be obtained."""

    category = ErrorCategory.AUTH

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code


# =============================================================================
# Critical Errors
# =============================================================================


class SdkInternalError(AzureLoginError):
    """
    The token cache is in a suspect state.

    Raised only when removing stale entries after a failed cache lookup itself
    fails. The message always starts with ``SDK_INTERNAL_ERROR`` and ends with
    the message of the failure that triggered it. Callers must not fall back
    to a live token request when they see this error.
    """

    category = ErrorCategory.CRITICAL

    def __init__(self, detail: str, reason: Exception | None = None):
        message = f"{SDK_INTERNAL_ERROR} : {detail}"
        if reason is not None:
            message = f"{message} {reason}"
        super().__init__(message, cause=reason)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Classification Utilities
# =============================================================================


def is_critical_error(exc: BaseException) -> bool:
    """Check whether an exception belongs to the critical tier."""
    if isinstance(exc, SdkInternalError):
        return True
    return str(exc).startswith(SDK_INTERNAL_ERROR)


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify an exception into an error tier."""
    if isinstance(exc, AzureLoginError):
        return exc.category

    if is_critical_error(exc):
        return ErrorCategory.CRITICAL

    if isinstance(exc, adal.AdalError):
        return ErrorCategory.AUTH

    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "AzureLoginError",
    "ValidationError",
    "AuthFileError",
    "TokenAcquisitionError",
    "SdkInternalError",
    "is_critical_error",
    "classify_exception",
]
