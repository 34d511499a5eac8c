"""
Auth file loading.

An auth file is the JSON descriptor written by
``az ad sp create-for-rbac --sdk-auth``:

    {
      "clientId": "...",
      "clientSecret": "...",
      "subscriptionId": "...",
      "tenantId": "...",
      "activeDirectoryEndpointUrl": "https://login.microsoftonline.com",
      "resourceManagerEndpointUrl": "https://management.azure.com/",
      "activeDirectoryGraphResourceId": "https://graph.windows.net/",
      "sqlManagementEndpointUrl": "https://management.core.windows.net:8443/",
      "galleryEndpointUrl": "https://gallery.azure.com/",
      "managementEndpointUrl": "https://management.core.windows.net/"
    }

The management endpoint selects a registered cloud; unknown clouds are
synthesized from the file's endpoints and registered.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from azure_login.environments import (
    AzureEnvironment,
    EnvironmentRegistry,
    default_registry,
)
from azure_login.errors import AuthFileError, ValidationError

logger = logging.getLogger(__name__)

# Checked in this order; the first missing one is reported
REQUIRED_FIELDS = (
    "clientId",
    "clientSecret",
    "subscriptionId",
    "tenantId",
    "activeDirectoryEndpointUrl",
    "resourceManagerEndpointUrl",
    "activeDirectoryGraphResourceId",
    "sqlManagementEndpointUrl",
)

DEFAULT_PORTAL_URL = "https://portal.azure.com"

_ENVIRONMENT_NAME_PATTERN = re.compile(r".*management\.core\.(.*)\..*", re.IGNORECASE)


@dataclass
class AuthFile:
    """Validated auth file content."""

    client_id: str
    client_secret: str
    subscription_id: str
    tenant_id: str
    active_directory_endpoint_url: str
    resource_manager_endpoint_url: str
    active_directory_graph_resource_id: str
    sql_management_endpoint_url: str
    management_endpoint_url: str
    file_path: str
    gallery_endpoint_url: str | None = None

    @classmethod
    def from_dict(cls, content: dict[str, Any], file_path: str) -> "AuthFile":
        """
        Build from parsed JSON.

        Raises:
            AuthFileError: If a required field is missing
        """
        validate_auth_file_content(content, file_path)
        return cls(
            client_id=content["clientId"],
            client_secret=content["clientSecret"],
            subscription_id=content["subscriptionId"],
            tenant_id=content["tenantId"],
            active_directory_endpoint_url=content["activeDirectoryEndpointUrl"],
            resource_manager_endpoint_url=content["resourceManagerEndpointUrl"],
            active_directory_graph_resource_id=content["activeDirectoryGraphResourceId"],
            sql_management_endpoint_url=content["sqlManagementEndpointUrl"],
            management_endpoint_url=(
                content.get("managementEndpointUrl") or content["resourceManagerEndpointUrl"]
            ),
            gallery_endpoint_url=content.get("galleryEndpointUrl"),
            file_path=file_path,
        )


def validate_auth_file_content(content: dict[str, Any], file_path: str) -> None:
    """
    Check that every required field is present and non-empty.

    Raises:
        ValidationError: If content or file_path is missing
        AuthFileError: Naming the first missing field
    """
    if not file_path:
        raise ValidationError("Please provide a file_path.")
    if not isinstance(content, dict) or not content:
        raise AuthFileError(
            f"The auth file is empty or not a JSON object: {file_path}.",
            file_path=file_path,
        )

    for field in REQUIRED_FIELDS:
        if not content.get(field):
            raise AuthFileError(
                f'"{field}" is missing from the auth file: {file_path}.',
                file_path=file_path,
                field=field,
            )


def read_auth_file(file_path: str | Path) -> AuthFile:
    """
    Read and validate an auth file.

    Raises:
        AuthFileError: If the file cannot be read, is not JSON, or misses a field
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise AuthFileError(
            f"Failed to read auth file: {file_path}\nError: {e}",
            file_path=str(file_path),
            cause=e,
        ) from e

    try:
        content = json.loads(text)
    except json.JSONDecodeError as e:
        raise AuthFileError(
            f"Auth file is not valid JSON: {file_path}\nError: {e}",
            file_path=str(file_path),
            cause=e,
        ) from e

    auth_file = AuthFile.from_dict(content, str(file_path))
    logger.debug(
        "Loaded auth file",
        extra={"auth_file": str(file_path), "client_id": auth_file.client_id},
    )
    return auth_file


def synthesize_environment(auth_file: AuthFile) -> AzureEnvironment:
    """
    Build an environment for a cloud that is not registered.

    The name is taken from ``management.core.<name>.`` in the management
    endpoint, falling back to the auth file path.
    """
    management_url = auth_file.management_endpoint_url
    match = _ENVIRONMENT_NAME_PATTERN.match(management_url)
    name = match.group(1) if match and match.group(1) else auth_file.file_path

    ad_endpoint = auth_file.active_directory_endpoint_url
    if not ad_endpoint.endswith("/"):
        ad_endpoint += "/"

    return AzureEnvironment(
        name=name,
        portal_url=DEFAULT_PORTAL_URL,
        management_endpoint_url=management_url,
        resource_manager_endpoint_url=auth_file.resource_manager_endpoint_url,
        active_directory_endpoint_url=ad_endpoint,
        active_directory_resource_id=management_url,
        active_directory_graph_resource_id=auth_file.active_directory_graph_resource_id,
        sql_management_endpoint_url=auth_file.sql_management_endpoint_url,
        gallery_endpoint_url=auth_file.gallery_endpoint_url,
    )


def resolve_environment(
    auth_file: AuthFile,
    registry: EnvironmentRegistry | None = None,
) -> AzureEnvironment:
    """
    Find the registered cloud for an auth file, or register a synthesized one.

    Management endpoints are compared ignoring case and a trailing slash.
    """
    if registry is None:
        registry = default_registry

    environment = registry.find_by_management_endpoint(auth_file.management_endpoint_url)
    if environment is not None:
        logger.debug(
            f"Auth file matches environment '{environment.name}'",
            extra={"auth_file": auth_file.file_path, "environment": environment.name},
        )
        return environment

    environment = synthesize_environment(auth_file)
    logger.info(
        f"No registered environment matches the auth file, adding '{environment.name}'",
        extra={"auth_file": auth_file.file_path, "environment": environment.name},
    )
    return registry.add(environment, replace=True)


__all__ = [
    "AuthFile",
    "REQUIRED_FIELDS",
    "read_auth_file",
    "resolve_environment",
    "synthesize_environment",
    "validate_auth_file_content",
]
