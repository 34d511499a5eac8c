"""
Base class for ADAL-backed token credentials.

Holds the identity (client id), tenant, token audience, cloud environment and
token cache shared by every flow, and owns the ADAL AuthenticationContext.

ADAL is a blocking library: every call into it runs in a worker thread
(asyncio.to_thread) so credentials can be awaited from async code. Calls to
get_token() on one instance are serialized with an asyncio.Lock, so cache
lookups and cache repair never interleave on the same credential.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Any, Callable, TypeVar

import adal

from azure_login.constants import AAD_COMMON_TENANT
from azure_login.environments import AZURE_PUBLIC_CLOUD, AzureEnvironment
from azure_login.errors import ValidationError
from azure_login.logging.adal_logging import AdalLoggingConfig, configure_adal_logging
from azure_login.models import TokenResponse
from azure_login.types import AudienceLike, TokenAudience, normalize_audience

logger = logging.getLogger(__name__)

T = TypeVar("T")


def require_non_empty_string(value: Any, name: str) -> str:
    """
    Validate a constructor argument.

    Raises:
        ValidationError: If value is empty or not a string
    """
    if not value or not isinstance(value, str):
        raise ValidationError(f"{name} must be a non empty string.")
    return value


class TokenCredentialsBase(ABC):
    """
    Abstract base class for Azure AD token credentials.

    Attributes:
        client_id: Azure AD application (client) ID
        domain: Tenant id or domain the application lives in
        token_audience: None, a TokenAudience member, or a resource URI
        environment: Azure cloud to authenticate against
        token_cache: ADAL token cache (shared between credentials if passed in)
        auth_context: ADAL AuthenticationContext bound to the tenant authority
    """

    def __init__(
        self,
        client_id: str,
        domain: str,
        token_audience: AudienceLike = None,
        environment: AzureEnvironment | None = None,
        token_cache: adal.TokenCache | None = None,
        logging_config: AdalLoggingConfig | None = None,
    ):
        """
        Initialize credential.

        Args:
            client_id: Azure AD application (client) ID
            domain: Tenant id or domain containing the application
            token_audience: "graph", "batch", any resource URI, or None for
                the resource-management audience
            environment: Azure cloud (default: public Azure)
            token_cache: ADAL token cache (default: new in-memory cache)
            logging_config: ADAL logging options applied at construction

        Raises:
            ValidationError: If client_id or domain is empty, or the graph
                audience is requested against the "common" tenant
        """
        require_non_empty_string(client_id, "client_id")
        require_non_empty_string(domain, "domain")

        audience = normalize_audience(token_audience)
        if audience is TokenAudience.GRAPH and domain.lower() == AAD_COMMON_TENANT:
            raise ValidationError(
                "If the token_audience is specified as 'graph' then 'domain' cannot be "
                f"defaulted to '{AAD_COMMON_TENANT}' tenant. It must be the actual tenant "
                "(preferably a string in a guid format)."
            )

        self.client_id = client_id
        self.domain = domain
        self.token_audience = audience
        self.environment = environment or AZURE_PUBLIC_CLOUD
        self.token_cache = token_cache if token_cache is not None else adal.TokenCache()
        self.logging_config = logging_config

        configure_adal_logging(logging_config)
        self.auth_context = self._create_auth_context()
        self._token_lock = asyncio.Lock()

    @property
    def authority(self) -> str:
        """Azure AD authority URL for this tenant."""
        return self.environment.active_directory_endpoint_url.rstrip("/") + "/" + self.domain

    @property
    def user_name(self) -> str:
        """Identity reported alongside subscriptions."""
        return self.client_id

    @property
    def user_type(self) -> str:
        """Identity kind reported alongside subscriptions."""
        return "user"

    def _create_auth_context(self) -> adal.AuthenticationContext:
        enable_pii = bool(self.logging_config and self.logging_config.enable_pii)
        return adal.AuthenticationContext(
            self.authority,
            validate_authority=self.environment.validate_authority,
            cache=self.token_cache,
            enable_pii=enable_pii,
        )

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking ADAL call in a worker thread."""
        return await asyncio.to_thread(func, *args)

    def get_active_directory_resource_id(self) -> str:
        """
        Resolve the resource the token is requested for.

        Returns:
            Graph or Batch resource id for those audiences, the audience itself
            for a custom resource URI, else the environment's default audience
        """
        if self.token_audience is TokenAudience.GRAPH:
            return self.environment.active_directory_graph_resource_id
        if self.token_audience is TokenAudience.BATCH:
            return self.environment.batch_resource_id
        if self.token_audience:
            return self.token_audience
        return self.environment.active_directory_resource_id

    async def get_token_from_cache(self, username: str | None = None) -> TokenResponse:
        """
        Look up a token in the ADAL cache (ADAL refreshes it if it can).

        Args:
            username: Scope the lookup to this user (user and device flows)

        Raises:
            adal.AdalError: If no usable entry is cached
        """
        resource = self.get_active_directory_resource_id()
        response = await self._run(
            self.auth_context.acquire_token, resource, username, self.client_id
        )
        logger.debug(
            "Found token in cache",
            extra={"client_id": self.client_id, "tenant_id": self.domain, "resource": resource},
        )
        return TokenResponse.from_adal(response)

    @abstractmethod
    async def _retrieve_token(self) -> TokenResponse:
        """Flow-specific token retrieval."""
        pass

    async def get_token(self) -> TokenResponse:
        """
        Get a token for the configured resource.

        Concurrent calls on the same instance are queued.

        Raises:
            adal.AdalError: If ADAL rejects the request
            SdkInternalError: If the token cache could not be repaired
        """
        async with self._token_lock:
            return await self._retrieve_token()

    async def get_authorization_header(self) -> dict[str, str]:
        """Get an ``Authorization`` header built from a fresh token."""
        token = await self.get_token()
        return {"Authorization": token.authorization_value}

    async def sign_request(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set the ``Authorization`` header on a request's headers in place."""
        headers.update(await self.get_authorization_header())
        return headers

    def for_tenant(self, tenant_id: str) -> "TokenCredentialsBase":
        """
        Clone this credential for another tenant.

        The clone shares the token cache, so tokens acquired through it are
        visible to the original credential.
        """
        require_non_empty_string(tenant_id, "tenant_id")
        clone = copy.copy(self)
        clone.domain = tenant_id
        clone.auth_context = clone._create_auth_context()
        clone._token_lock = asyncio.Lock()
        return clone

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(client_id={self.client_id!r}, "
            f"domain={self.domain!r}, environment={self.environment.name!r})"
        )


__all__ = ["TokenCredentialsBase", "require_non_empty_string"]
