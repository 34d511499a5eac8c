"""
Azure cloud environments.

An environment is the fixed set of endpoint URLs a credential talks to:
the Azure AD authority, the resource-management audience, Graph, Batch and
so on. The built-in public, China, US Government and German clouds are
registered at import time; custom clouds (Azure Stack, auth files pointing at
unknown endpoints) are added to a registry with the same record type.

Example:
    >>> env = default_registry.find_by_management_endpoint(
    ...     "https://management.core.windows.net/"
    ... )
    >>> env.name
    'Azure'
"""

import logging
import threading
from dataclasses import dataclass
from typing import Iterator

from azure_login.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AzureEnvironment:
    """
    Endpoint metadata for one Azure cloud.

    Attributes:
        name: Environment name (registry key)
        portal_url: Azure portal
        management_endpoint_url: Classic service management endpoint
        resource_manager_endpoint_url: Azure Resource Manager endpoint
        active_directory_endpoint_url: Azure AD authority host (with trailing slash)
        active_directory_resource_id: Default token audience
        active_directory_graph_resource_id: Azure AD Graph audience
        sql_management_endpoint_url: SQL management endpoint
        batch_resource_id: Azure Batch audience
        validate_authority: Whether ADAL validates the authority host
    """

    name: str
    portal_url: str
    management_endpoint_url: str
    resource_manager_endpoint_url: str
    active_directory_endpoint_url: str
    active_directory_resource_id: str
    active_directory_graph_resource_id: str | None = None
    sql_management_endpoint_url: str | None = None
    batch_resource_id: str | None = None
    gallery_endpoint_url: str | None = None
    publishing_profile_url: str | None = None
    sql_server_hostname_suffix: str | None = None
    storage_endpoint_suffix: str | None = None
    key_vault_dns_suffix: str | None = None
    active_directory_graph_api_version: str | None = None
    validate_authority: bool = True


REQUIRED_ENVIRONMENT_FIELDS = (
    "name",
    "portal_url",
    "management_endpoint_url",
    "resource_manager_endpoint_url",
    "active_directory_endpoint_url",
    "active_directory_resource_id",
)


AZURE_PUBLIC_CLOUD = AzureEnvironment(
    name="Azure",
    portal_url="https://portal.azure.com",
    publishing_profile_url="https://go.microsoft.com/fwlink/?LinkId=254432",
    management_endpoint_url="https://management.core.windows.net",
    resource_manager_endpoint_url="https://management.azure.com/",
    sql_management_endpoint_url="https://management.core.windows.net:8443/",
    sql_server_hostname_suffix=".database.windows.net",
    gallery_endpoint_url="https://gallery.azure.com/",
    active_directory_endpoint_url="https://login.microsoftonline.com/",
    active_directory_resource_id="https://management.core.windows.net/",
    active_directory_graph_resource_id="https://graph.windows.net/",
    batch_resource_id="https://batch.core.windows.net/",
    active_directory_graph_api_version="2013-04-05",
    storage_endpoint_suffix=".core.windows.net",
    key_vault_dns_suffix=".vault.azure.net",
)

AZURE_CHINA_CLOUD = AzureEnvironment(
    name="AzureChina",
    portal_url="https://portal.azure.cn",
    publishing_profile_url="https://go.microsoft.com/fwlink/?LinkID=301774",
    management_endpoint_url="https://management.core.chinacloudapi.cn",
    resource_manager_endpoint_url="https://management.chinacloudapi.cn",
    sql_management_endpoint_url="https://management.core.chinacloudapi.cn:8443/",
    sql_server_hostname_suffix=".database.chinacloudapi.cn",
    gallery_endpoint_url="https://gallery.chinacloudapi.cn/",
    active_directory_endpoint_url="https://login.chinacloudapi.cn/",
    active_directory_resource_id="https://management.core.chinacloudapi.cn/",
    active_directory_graph_resource_id="https://graph.chinacloudapi.cn/",
    batch_resource_id="https://batch.chinacloudapi.cn/",
    active_directory_graph_api_version="2013-04-05",
    storage_endpoint_suffix=".core.chinacloudapi.cn",
    key_vault_dns_suffix=".vault.azure.cn",
)

AZURE_US_GOVERNMENT = AzureEnvironment(
    name="AzureUSGovernment",
    portal_url="https://portal.azure.us",
    publishing_profile_url="https://manage.windowsazure.us/publishsettings/index",
    management_endpoint_url="https://management.core.usgovcloudapi.net",
    resource_manager_endpoint_url="https://management.usgovcloudapi.net",
    sql_management_endpoint_url="https://management.core.usgovcloudapi.net:8443/",
    sql_server_hostname_suffix=".database.usgovcloudapi.net",
    gallery_endpoint_url="https://gallery.usgovcloudapi.net/",
    active_directory_endpoint_url="https://login.microsoftonline.us/",
    active_directory_resource_id="https://management.core.usgovcloudapi.net/",
    active_directory_graph_resource_id="https://graph.windows.net/",
    batch_resource_id="https://batch.core.usgovcloudapi.net/",
    active_directory_graph_api_version="2013-04-05",
    storage_endpoint_suffix=".core.usgovcloudapi.net",
    key_vault_dns_suffix=".vault.usgovcloudapi.net",
)

AZURE_GERMAN_CLOUD = AzureEnvironment(
    name="AzureGermanCloud",
    portal_url="https://portal.microsoftazure.de/",
    publishing_profile_url="https://manage.microsoftazure.de/publishsettings/index",
    management_endpoint_url="https://management.core.cloudapi.de",
    resource_manager_endpoint_url="https://management.microsoftazure.de",
    sql_management_endpoint_url="https://management.core.cloudapi.de:8443/",
    sql_server_hostname_suffix=".database.cloudapi.de",
    gallery_endpoint_url="https://gallery.cloudapi.de/",
    active_directory_endpoint_url="https://login.microsoftonline.de/",
    active_directory_resource_id="https://management.core.cloudapi.de/",
    active_directory_graph_resource_id="https://graph.cloudapi.de/",
    batch_resource_id="https://batch.microsoftazure.de/",
    active_directory_graph_api_version="2013-04-05",
    storage_endpoint_suffix=".core.cloudapi.de",
    key_vault_dns_suffix=".vault.microsoftazure.de",
)

BUILTIN_ENVIRONMENTS = (
    AZURE_PUBLIC_CLOUD,
    AZURE_CHINA_CLOUD,
    AZURE_US_GOVERNMENT,
    AZURE_GERMAN_CLOUD,
)


def urls_match(first: str, second: str) -> bool:
    """
    Compare two endpoint URLs ignoring case and a single trailing slash.

    Raises:
        ValidationError: If either URL is empty or not a string
    """
    for label, url in (("first", first), ("second", second)):
        if not url or not isinstance(url, str):
            raise ValidationError(f"{label} url cannot be empty and must be of type str.")

    first = first[:-1] if first.endswith("/") else first
    second = second[:-1] if second.endswith("/") else second
    return first.lower() == second.lower()


class EnvironmentRegistry:
    """
    Thread-safe mapping from environment name to AzureEnvironment.

    Preloaded with the built-in clouds unless ``include_builtins`` is False.
    """

    def __init__(self, include_builtins: bool = True):
        self._environments: dict[str, AzureEnvironment] = {}
        self._lock = threading.Lock()
        if include_builtins:
            for env in BUILTIN_ENVIRONMENTS:
                self._environments[env.name] = env

    def __contains__(self, name: str) -> bool:
        return name in self._environments

    def __iter__(self) -> Iterator[AzureEnvironment]:
        with self._lock:
            return iter(list(self._environments.values()))

    def __len__(self) -> int:
        return len(self._environments)

    def names(self) -> list[str]:
        """List registered environment names in registration order."""
        with self._lock:
            return list(self._environments.keys())

    def get(self, name: str) -> AzureEnvironment:
        """
        Get environment by name.

        Raises:
            ValidationError: If no environment with that name is registered
        """
        with self._lock:
            if name not in self._environments:
                raise ValidationError(
                    f"Environment '{name}' not found. "
                    f"Available: {list(self._environments.keys())}"
                )
            return self._environments[name]

    def add(self, environment: AzureEnvironment, replace: bool = False) -> AzureEnvironment:
        """
        Register a custom environment.

        Args:
            environment: Environment record with at least the required endpoints
            replace: Overwrite an existing entry with the same name

        Returns:
            The registered environment

        Raises:
            ValidationError: If a required endpoint is empty or the name is taken
        """
        missing = [
            name for name in REQUIRED_ENVIRONMENT_FIELDS if not getattr(environment, name)
        ]
        if missing:
            raise ValidationError(
                f"Environment is missing required fields: {', '.join(missing)}"
            )

        with self._lock:
            if environment.name in self._environments and not replace:
                raise ValidationError(f"Environment '{environment.name}' already exists")
            self._environments[environment.name] = environment

        logger.info(
            f"Registered Azure environment '{environment.name}'",
            extra={"environment": environment.name},
        )
        return environment

    def find_by_management_endpoint(self, url: str) -> AzureEnvironment | None:
        """Return the first environment whose management endpoint matches ``url``."""
        for env in self:
            if env.management_endpoint_url and urls_match(url, env.management_endpoint_url):
                return env
        return None


default_registry = EnvironmentRegistry()


__all__ = [
    "AzureEnvironment",
    "EnvironmentRegistry",
    "AZURE_PUBLIC_CLOUD",
    "AZURE_CHINA_CLOUD",
    "AZURE_US_GOVERNMENT",
    "AZURE_GERMAN_CLOUD",
    "BUILTIN_ENVIRONMENTS",
    "REQUIRED_ENVIRONMENT_FIELDS",
    "default_registry",
    "urls_match",
]
