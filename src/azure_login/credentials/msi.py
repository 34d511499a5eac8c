"""
Managed identity (MSI) credentials.

Requests a token from the MSI extension listening on localhost inside an
Azure VM. One request per get_token() call: no caching, no retry.
"""

import asyncio
import logging
from collections.abc import MutableMapping

import aiohttp

from azure_login.constants import (
    DEFAULT_AAD_ENDPOINT,
    DEFAULT_MSI_PORT,
    DEFAULT_MSI_RESOURCE,
    HTTP_TIMEOUT_SECONDS,
)
from azure_login.credentials.base import require_non_empty_string
from azure_login.errors import TokenAcquisitionError, ValidationError
from azure_login.models import TokenResponse

logger = logging.getLogger(__name__)


class MSITokenCredentials:
    """
    Credentials backed by the local managed identity endpoint.

    Attributes:
        domain: Tenant id or domain of the identity
        port: Port of the MSI extension (default: 50342)
        resource: Resource the token is requested for
        aad_endpoint: Azure AD authority host
    """

    def __init__(
        self,
        domain: str,
        port: int | None = None,
        resource: str | None = None,
        aad_endpoint: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize MSI credentials.

        Args:
            domain: Tenant id or domain
            port: MSI extension port (default: 50342)
            resource: Token audience (default: resource manager)
            aad_endpoint: Azure AD authority host
            session: Optional aiohttp session to reuse (not closed by close())

        Raises:
            ValidationError: If domain or resource is empty, or port is not an int
        """
        require_non_empty_string(domain, "domain")
        port = DEFAULT_MSI_PORT if port is None else port
        if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
            raise ValidationError("port must be a positive integer.")
        resource = DEFAULT_MSI_RESOURCE if resource is None else resource
        require_non_empty_string(resource, "resource")

        self.domain = domain
        self.port = port
        self.resource = resource
        self.aad_endpoint = aad_endpoint or DEFAULT_AAD_ENDPOINT
        self._session = session
        self._owns_session = session is None

    @property
    def token_url(self) -> str:
        return f"http://localhost:{self.port}/oauth2/token"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP client session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def get_token(self) -> TokenResponse:
        """
        Request a token from the MSI endpoint.

        Returns:
            TokenResponse built from the endpoint's JSON payload

        Raises:
            TokenAcquisitionError: On a non-200 response, HTTP failure, timeout
                or a payload without an access token
        """
        session = await self._ensure_session()
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
            "Metadata": "true",
        }

        try:
            async with session.post(
                self.token_url,
                data={"resource": self.resource},
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(
                        f"MSI token request failed: HTTP {response.status}",
                        extra={"http_status": response.status, "port": self.port},
                    )
                    raise TokenAcquisitionError(
                        f"MSI token request failed: HTTP {response.status}: {error_text[:200]}",
                        status_code=response.status,
                    )

                payload = await response.json()

            token = TokenResponse.from_msi(payload)

        except TokenAcquisitionError:
            raise
        except aiohttp.ClientError as e:
            logger.error(
                f"HTTP error during MSI token request: {e}",
                extra={"port": self.port, "resource": self.resource},
            )
            raise TokenAcquisitionError(f"MSI token request failed: {e}", cause=e) from e
        except asyncio.TimeoutError as e:
            logger.error(
                f"MSI token request timed out after {HTTP_TIMEOUT_SECONDS}s",
                extra={"port": self.port, "resource": self.resource},
            )
            raise TokenAcquisitionError(
                f"MSI token request timed out after {HTTP_TIMEOUT_SECONDS}s", cause=e
            ) from e
        except Exception as e:
            logger.error(
                f"Unexpected error during MSI token request: {e!r}",
                extra={"port": self.port, "resource": self.resource},
            )
            raise TokenAcquisitionError(f"MSI token request failed: {e!r}", cause=e) from e

        logger.debug(
            "Acquired token from MSI endpoint",
            extra={"resource": self.resource, "port": self.port},
        )
        return token

    async def get_authorization_header(self) -> dict[str, str]:
        """Get an ``Authorization`` header built from a fresh token."""
        token = await self.get_token()
        return {"Authorization": token.authorization_value}

    async def sign_request(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set the ``Authorization`` header on a request's headers in place."""
        headers.update(await self.get_authorization_header())
        return headers

    async def close(self) -> None:
        """Close the HTTP client session if this instance created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0)


__all__ = ["MSITokenCredentials"]
