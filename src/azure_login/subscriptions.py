"""
Tenant and subscription listing through Azure Resource Manager.

Used by the login flows to report which subscriptions a freshly built
credential can reach. Each tenant is queried with a clone of the credential
bound to that tenant; the clones share the original token cache.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiohttp

from azure_login.constants import AAD_COMMON_TENANT, ARM_API_VERSION, HTTP_TIMEOUT_SECONDS
from azure_login.credentials.base import TokenCredentialsBase
from azure_login.errors import TokenAcquisitionError
from azure_login.logging.utilities import log_with_context
from azure_login.models import SubscriptionInfo

logger = logging.getLogger(__name__)


def _arm_url(credentials: TokenCredentialsBase, path: str, api_version: str) -> str:
    base_url = credentials.environment.resource_manager_endpoint_url
    separator = "" if base_url.endswith("/") else "/"
    return f"{base_url}{separator}{path}?api-version={api_version}"


@asynccontextmanager
async def _session_scope(
    session: aiohttp.ClientSession | None,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Use the caller's session, or open (and close) a private one."""
    if session is not None:
        yield session
        return
    async with aiohttp.ClientSession() as owned:
        yield owned


async def _get_all_pages(
    credentials: TokenCredentialsBase,
    url: str,
    session: aiohttp.ClientSession,
) -> list[dict[str, Any]]:
    """GET a resource manager list, following ``nextLink`` until exhausted."""
    items: list[dict[str, Any]] = []
    next_url: str | None = url

    while next_url:
        headers = await credentials.get_authorization_header()
        try:
            async with session.get(
                next_url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(
                        f"Resource manager request failed: HTTP {response.status}",
                        extra={"http_status": response.status, "http_url": next_url},
                    )
                    raise TokenAcquisitionError(
                        f"HTTP {response.status}: {error_text[:200]}",
                        status_code=response.status,
                    )
                body = await response.json()

            items.extend(body.get("value", []))
            next_url = body.get("nextLink")

        except TokenAcquisitionError:
            raise
        except aiohttp.ClientError as e:
            logger.error(
                f"HTTP error during resource manager request: {e}",
                extra={"http_url": next_url},
            )
            raise TokenAcquisitionError(f"HTTP error: {e}", cause=e) from e
        except asyncio.TimeoutError as e:
            logger.error(
                f"Resource manager request timed out after {HTTP_TIMEOUT_SECONDS}s",
                extra={"http_url": next_url},
            )
            raise TokenAcquisitionError(
                f"Resource manager request timed out after {HTTP_TIMEOUT_SECONDS}s", cause=e
            ) from e
        except Exception as e:
            logger.error(
                f"Unexpected error during resource manager request: {e!r}",
                extra={"http_url": next_url},
            )
            raise TokenAcquisitionError(f"Resource manager request failed: {e!r}", cause=e) from e

    return items


async def build_tenant_list(
    credentials: TokenCredentialsBase,
    session: aiohttp.ClientSession | None = None,
    api_version: str = ARM_API_VERSION,
) -> list[str]:
    """
    List the tenants a credential can sign in to.

    Credentials bound to a specific tenant return just that tenant, without
    any request.

    Returns:
        Tenant ids

    Raises:
        TokenAcquisitionError: If the tenant listing fails
    """
    if credentials.domain and credentials.domain.lower() != AAD_COMMON_TENANT:
        return [credentials.domain]

    async with _session_scope(session) as http:
        items = await _get_all_pages(credentials, _arm_url(credentials, "tenants", api_version), http)

    tenants = [item["tenantId"] for item in items if item.get("tenantId")]
    log_with_context(
        logger,
        logging.DEBUG,
        "Listed tenants",
        tenant_count=len(tenants),
        client_id=credentials.client_id,
    )
    return tenants


async def get_subscriptions_from_tenants(
    credentials: TokenCredentialsBase,
    tenants: list[str],
    session: aiohttp.ClientSession | None = None,
    api_version: str = ARM_API_VERSION,
) -> list[SubscriptionInfo]:
    """
    List the subscriptions reachable in each tenant.

    Args:
        credentials: Credential to authenticate with
        tenants: Tenant ids to query
        session: Optional aiohttp session to reuse

    Returns:
        Subscriptions across all tenants, in tenant order

    Raises:
        TokenAcquisitionError: If a listing fails
        adal.AdalError: If a token for a tenant cannot be acquired
    """
    subscriptions: list[SubscriptionInfo] = []

    async with _session_scope(session) as http:
        for tenant in tenants:
            tenant_credentials = credentials.for_tenant(tenant)
            items = await _get_all_pages(
                tenant_credentials,
                _arm_url(tenant_credentials, "subscriptions", api_version),
                http,
            )
            subscriptions.extend(
                SubscriptionInfo.from_arm(
                    item,
                    tenant_id=tenant,
                    user_name=credentials.user_name,
                    user_type=credentials.user_type,
                    environment_name=credentials.environment.name,
                )
                for item in items
            )

    logger.info(
        f"Found {len(subscriptions)} subscription(s) in {len(tenants)} tenant(s)",
        extra={"subscription_count": len(subscriptions), "tenant_count": len(tenants)},
    )
    return subscriptions


__all__ = ["build_tenant_list", "get_subscriptions_from_tenants"]
