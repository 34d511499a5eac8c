"""Username/password credentials (non-interactive, no MFA)."""

import logging

import adal

from azure_login.credentials.base import TokenCredentialsBase, require_non_empty_string
from azure_login.environments import AzureEnvironment
from azure_login.errors import TokenAcquisitionError, is_critical_error
from azure_login.logging.adal_logging import AdalLoggingConfig
from azure_login.models import TokenResponse
from azure_login.types import AudienceLike

logger = logging.getLogger(__name__)


class UserTokenCredentials(TokenCredentialsBase):
    """
    Credentials for an organizational user signing in with a password.

    Tokens are cached per user; a cache miss falls back to the resource owner
    password grant.
    """

    def __init__(
        self,
        client_id: str,
        domain: str,
        username: str,
        password: str,
        token_audience: AudienceLike = None,
        environment: AzureEnvironment | None = None,
        token_cache: adal.TokenCache | None = None,
        logging_config: AdalLoggingConfig | None = None,
    ):
        """
        Initialize user credentials.

        Args:
            client_id: Azure AD application (client) ID
            domain: Tenant id or domain ("common" for multi-tenant sign in)
            username: User principal name, e.g. "user@example.com"
            password: User password
            token_audience: "graph", "batch", a resource URI, or None
            environment: Azure cloud (default: public Azure)
            token_cache: ADAL token cache (default: new in-memory cache)
            logging_config: ADAL logging options

        Raises:
            ValidationError: If any of client_id, domain, username or password is empty
        """
        require_non_empty_string(username, "username")
        require_non_empty_string(password, "password")
        super().__init__(
            client_id, domain, token_audience, environment, token_cache, logging_config
        )
        self.username = username
        self._password = password

    @property
    def user_name(self) -> str:
        return self.username

    def _cross_check_user(self, token_user_id: str | None) -> None:
        if not token_user_id or token_user_id.lower() != self.username.lower():
            raise TokenAcquisitionError(
                f"The username {self.username} does not match the username present "
                f"in the token: {token_user_id}",
                context={"username": self.username},
            )

    async def _retrieve_token(self) -> TokenResponse:
        try:
            return await self.get_token_from_cache(self.username)
        except Exception as error:
            if is_critical_error(error):
                raise
            logger.debug(
                "No usable cached token, requesting one with username and password",
                extra={"client_id": self.client_id, "tenant_id": self.domain},
            )

        resource = self.get_active_directory_resource_id()
        response = await self._run(
            self.auth_context.acquire_token_with_username_password,
            resource,
            self.username,
            self._password,
            self.client_id,
        )
        token = TokenResponse.from_adal(response)
        self._cross_check_user(token.user_id)
        logger.info(
            "Acquired token with username and password",
            extra={"client_id": self.client_id, "tenant_id": self.domain, "resource": resource},
        )
        return token


__all__ = ["UserTokenCredentials"]
