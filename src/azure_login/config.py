"""Authentication settings from environment variables or a YAML file.

YAML layout:

    auth:
      auth_location_env: AZURE_AUTH_LOCATION
      subscription_env_variable: AZURE_SUBSCRIPTION_ID
      msi_port: 50342
      default_language: en-us
      adal_logging:
        enabled: false
        level: DEBUG
        enable_pii: false

Environment variables ARE supported using ${VAR_NAME} and ${VAR_NAME:-default}
syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from azure_login.constants import (
    AZURE_AUTH_LOCATION,
    DEFAULT_LANGUAGE,
    DEFAULT_MSI_PORT,
    DEFAULT_SUBSCRIPTION_ENV_VARIABLE,
)
from azure_login.errors import ValidationError
from azure_login.logging.adal_logging import AdalLoggingConfig

logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _as_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"msi_port must be an integer, got {value!r}", cause=e) from e
    if port <= 0:
        raise ValidationError(f"msi_port must be positive, got {port}")
    return port


@dataclass
class AuthSettings:
    """Authentication settings.

    Attributes:
        auth_location_env: Env var holding the auth file path
        subscription_env_variable: Env var that receives the auth file's subscription id
        msi_port: Port of the local managed identity endpoint
        default_language: Language for device-code messages
        adal_logging: Options passed to every credential built by the login flows
    """

    auth_location_env: str = AZURE_AUTH_LOCATION
    subscription_env_variable: str = DEFAULT_SUBSCRIPTION_ENV_VARIABLE
    msi_port: int = DEFAULT_MSI_PORT
    default_language: str = DEFAULT_LANGUAGE
    adal_logging: AdalLoggingConfig = field(default_factory=AdalLoggingConfig)

    @classmethod
    def from_env(cls) -> "AuthSettings":
        """Load settings from environment variables, falling back to defaults.

        Reads AZURE_AUTH_LOCATION_ENV, AZURE_SUBSCRIPTION_ENV_VARIABLE,
        AZURE_MSI_PORT, AZURE_LANGUAGE, AZURE_ADAL_LOGGING_ENABLED,
        AZURE_ADAL_LOG_LEVEL and AZURE_ADAL_ENABLE_PII.
        """
        return cls(
            auth_location_env=os.getenv("AZURE_AUTH_LOCATION_ENV", AZURE_AUTH_LOCATION),
            subscription_env_variable=os.getenv(
                "AZURE_SUBSCRIPTION_ENV_VARIABLE", DEFAULT_SUBSCRIPTION_ENV_VARIABLE
            ),
            msi_port=_as_port(os.getenv("AZURE_MSI_PORT", DEFAULT_MSI_PORT)),
            default_language=os.getenv("AZURE_LANGUAGE", DEFAULT_LANGUAGE),
            adal_logging=AdalLoggingConfig(
                enabled=_as_bool(os.getenv("AZURE_ADAL_LOGGING_ENABLED", "false")),
                level=os.getenv("AZURE_ADAL_LOG_LEVEL", "DEBUG").upper(),
                enable_pii=_as_bool(os.getenv("AZURE_ADAL_ENABLE_PII", "false")),
            ),
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "AuthSettings":
        """Load settings from the ``auth:`` section of a YAML file.

        A missing file or a missing section yields the defaults.

        Raises:
            ValidationError: If the section is not a mapping or a value is invalid
        """
        path = Path(path)
        data = _expand_env_vars(load_yaml(path))
        section = data.get("auth") or {}
        if not isinstance(section, dict):
            raise ValidationError(f"Invalid config file {path}: 'auth:' must be a mapping")

        adal_section = section.get("adal_logging") or {}
        settings = cls(
            auth_location_env=section.get("auth_location_env", AZURE_AUTH_LOCATION),
            subscription_env_variable=section.get(
                "subscription_env_variable", DEFAULT_SUBSCRIPTION_ENV_VARIABLE
            ),
            msi_port=_as_port(section.get("msi_port", DEFAULT_MSI_PORT)),
            default_language=section.get("default_language", DEFAULT_LANGUAGE),
            adal_logging=AdalLoggingConfig(
                enabled=_as_bool(adal_section.get("enabled", False)),
                level=str(adal_section.get("level", "DEBUG")).upper(),
                enable_pii=_as_bool(adal_section.get("enable_pii", False)),
            ),
        )
        logger.debug(f"Loaded auth settings from {path}")
        return settings


__all__ = ["AuthSettings", "load_yaml"]
