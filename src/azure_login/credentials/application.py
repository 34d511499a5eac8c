"""
Service principal (client secret) credentials.

Tries the ADAL token cache first and falls back to the client credentials
grant. A failed cache lookup also removes this client's entries from the
cache: ADAL reports a missing entry and an expired one with the same
"Entry not found in cache." error, and an expired service principal token
cannot be refreshed, so it is dropped before a new one is requested.

Example:
    >>> creds = ApplicationTokenCredentials("client-id", "tenant-id", "secret")
    >>> token = await creds.get_token()
    >>> headers = {"Authorization": token.authorization_value}
"""

import logging

import adal

from azure_login.credentials.base import TokenCredentialsBase
from azure_login.environments import AzureEnvironment
from azure_login.errors import SdkInternalError, ValidationError, is_critical_error
from azure_login.logging.adal_logging import AdalLoggingConfig
from azure_login.models import TokenResponse
from azure_login.types import AudienceLike

logger = logging.getLogger(__name__)


class ApplicationTokenCredentials(TokenCredentialsBase):
    """
    Credentials for an Azure AD application authenticating with a client secret.

    The secret is kept out of logs and repr.
    """

    def __init__(
        self,
        client_id: str,
        domain: str,
        secret: str,
        token_audience: AudienceLike = None,
        environment: AzureEnvironment | None = None,
        token_cache: adal.TokenCache | None = None,
        logging_config: AdalLoggingConfig | None = None,
    ):
        """
        Initialize service principal credentials.

        Args:
            client_id: Azure AD application (client) ID
            domain: Tenant id or domain containing the application
            secret: Client secret
            token_audience: "graph", "batch", a resource URI, or None
            environment: Azure cloud (default: public Azure)
            token_cache: ADAL token cache (default: new in-memory cache)
            logging_config: ADAL logging options

        Raises:
            ValidationError: If secret is empty, before any cache or network access
        """
        if not secret or not isinstance(secret, str):
            raise ValidationError("secret must be a non empty string.")
        super().__init__(
            client_id, domain, token_audience, environment, token_cache, logging_config
        )
        self._secret = secret

    @property
    def user_type(self) -> str:
        return "servicePrincipal"

    async def _retrieve_token(self) -> TokenResponse:
        try:
            return await self.get_token_from_cache()
        except Exception as error:
            if is_critical_error(error):
                raise
            logger.debug(
                "No usable cached token, requesting one with client credentials",
                extra={"client_id": self.client_id, "tenant_id": self.domain},
            )

        resource = self.get_active_directory_resource_id()
        response = await self._run(
            self.auth_context.acquire_token_with_client_credentials,
            resource,
            self.client_id,
            self._secret,
        )
        logger.info(
            "Acquired token with client credentials",
            extra={"client_id": self.client_id, "tenant_id": self.domain, "resource": resource},
        )
        return TokenResponse.from_adal(response)

    async def get_token_from_cache(self, username: str | None = None) -> TokenResponse:
        """
        Look up the cached token, cleaning the cache when the lookup fails.

        After a failed lookup this client's entries are removed and the
        original error is raised again: the cleanup never turns a miss into
        a success.

        Raises:
            adal.AdalError: The original lookup error, after cleanup
            SdkInternalError: If the cleanup itself failed
        """
        try:
            return await super().get_token_from_cache(username)
        except Exception as error:
            await self._remove_invalid_items_from_cache({"_clientId": self.client_id}, error)
            raise

    async def _remove_invalid_items_from_cache(self, query: dict, trigger: Exception) -> int:
        """
        Remove cache entries matching ``query``.

        Returns:
            Number of entries removed

        Raises:
            SdkInternalError: If the cache query or removal fails
        """
        try:
            entries = await self._run(self.token_cache.find, query)
            if entries:
                await self._run(self.token_cache.remove, entries)
        except Exception as reason:
            error = SdkInternalError(
                "critical failure while removing expired token for service principal "
                "from token cache.",
                reason,
            )
            error.context["trigger"] = str(trigger)
            logger.error(
                "Failed to remove stale service principal tokens from cache",
                extra={
                    "client_id": self.client_id,
                    "error_category": error.category.value,
                    "error_message": str(reason),
                },
            )
            raise error from reason

        removed = len(entries) if entries else 0
        logger.debug(
            "Removed stale entries from token cache",
            extra={"client_id": self.client_id, "entries_removed": removed},
        )
        return removed


__all__ = ["ApplicationTokenCredentials"]
