"""Credentials produced by the interactive device-code flow."""

import adal

from azure_login.constants import AAD_COMMON_TENANT, DEFAULT_ADAL_CLIENT_ID, DEFAULT_USERNAME
from azure_login.credentials.base import TokenCredentialsBase
from azure_login.environments import AzureEnvironment
from azure_login.logging.adal_logging import AdalLoggingConfig
from azure_login.models import TokenResponse
from azure_login.types import AudienceLike


class DeviceTokenCredentials(TokenCredentialsBase):
    """
    Credentials for a user who signed in through a device code.

    The device flow itself (user code, polling) runs in login.interactive();
    these credentials only read the tokens it left in the shared cache, which
    ADAL refreshes with the cached refresh token when needed.
    """

    def __init__(
        self,
        client_id: str | None = None,
        domain: str | None = None,
        username: str | None = None,
        token_audience: AudienceLike = None,
        environment: AzureEnvironment | None = None,
        token_cache: adal.TokenCache | None = None,
        logging_config: AdalLoggingConfig | None = None,
        authorization_scheme: str = "Bearer",
    ):
        super().__init__(
            client_id or DEFAULT_ADAL_CLIENT_ID,
            domain or AAD_COMMON_TENANT,
            token_audience,
            environment,
            token_cache,
            logging_config,
        )
        self.username = username or DEFAULT_USERNAME
        self.authorization_scheme = authorization_scheme

    @property
    def user_name(self) -> str:
        return self.username

    async def _retrieve_token(self) -> TokenResponse:
        return await self.get_token_from_cache(self.username)


__all__ = ["DeviceTokenCredentials"]
