"""
Login flows.

Each flow builds a credential, proves it by acquiring a token, and lists the
subscriptions the identity can reach. The ``*_with_auth_response`` forms
return an AuthResponse (credential plus subscriptions); the short forms
return only the credential. Flows for the graph audience skip the
subscription listing, as graph tokens cannot call resource manager.

Example:
    >>> creds = await with_service_principal_secret("client-id", "secret", "tenant-id")
    >>> headers = await creds.get_authorization_header()
"""

import inspect
import logging
import os
from pathlib import Path
from typing import Any, Callable

import adal
import aiohttp

from azure_login.auth_file import read_auth_file, resolve_environment
from azure_login.config import AuthSettings
from azure_login.constants import AAD_COMMON_TENANT, DEFAULT_ADAL_CLIENT_ID
from azure_login.credentials import (
    ApplicationTokenCredentials,
    DeviceTokenCredentials,
    MSITokenCredentials,
    UserTokenCredentials,
)
from azure_login.credentials.base import TokenCredentialsBase
from azure_login.environments import AzureEnvironment, EnvironmentRegistry
from azure_login.errors import ValidationError
from azure_login.logging.adal_logging import AdalLoggingConfig
from azure_login.logging.context import set_log_context
from azure_login.logging.utilities import log_exception
from azure_login.models import AuthResponse, SubscriptionInfo, TokenResponse
from azure_login.subscriptions import build_tenant_list, get_subscriptions_from_tenants
from azure_login.types import AudienceLike, TokenAudience, TokenCredential

logger = logging.getLogger(__name__)

UserCodeCallback = Callable[[dict[str, Any]], Any]


async def _authenticate(credentials: TokenCredential) -> TokenResponse:
    try:
        return await credentials.get_token()
    except Exception as e:
        context = {"tenant_id": credentials.domain}
        client_id = getattr(credentials, "client_id", None)
        if client_id:
            context["client_id"] = client_id
        log_exception(logger, e, "Sign in failed", include_traceback=False, **context)
        raise


async def _list_subscriptions(
    credentials: TokenCredentialsBase,
    tenants: list[str] | None,
    session: aiohttp.ClientSession | None,
) -> list[SubscriptionInfo]:
    if credentials.token_audience is TokenAudience.GRAPH:
        logger.debug("Graph audience, skipping subscription listing")
        return []
    if tenants is None:
        tenants = await build_tenant_list(credentials, session=session)
    return await get_subscriptions_from_tenants(credentials, tenants, session=session)


# =============================================================================
# Service principal
# =============================================================================


async def with_service_principal_secret_with_auth_response(
    client_id: str,
    secret: str,
    domain: str,
    token_audience: AudienceLike = None,
    environment: AzureEnvironment | None = None,
    token_cache: adal.TokenCache | None = None,
    logging_config: AdalLoggingConfig | None = None,
    session: aiohttp.ClientSession | None = None,
) -> AuthResponse:
    """
    Sign in as a service principal with a client secret.

    Raises:
        ValidationError: If an argument is empty
        adal.AdalError: If Azure AD rejects the credentials
        SdkInternalError: If the token cache could not be repaired
    """
    set_log_context(flow="service_principal", tenant_id=domain, client_id=client_id)
    credentials = ApplicationTokenCredentials(
        client_id,
        domain,
        secret,
        token_audience=token_audience,
        environment=environment,
        token_cache=token_cache,
        logging_config=logging_config,
    )
    await _authenticate(credentials)
    subscriptions = await _list_subscriptions(credentials, [domain], session)
    return AuthResponse(credentials=credentials, subscriptions=subscriptions)


async def with_service_principal_secret(*args: Any, **kwargs: Any) -> ApplicationTokenCredentials:
    """Sign in as a service principal; returns only the credential."""
    response = await with_service_principal_secret_with_auth_response(*args, **kwargs)
    return response.credentials


# =============================================================================
# Username and password
# =============================================================================


async def with_username_password_with_auth_response(
    username: str,
    password: str,
    client_id: str | None = None,
    domain: str | None = None,
    token_audience: AudienceLike = None,
    environment: AzureEnvironment | None = None,
    token_cache: adal.TokenCache | None = None,
    logging_config: AdalLoggingConfig | None = None,
    session: aiohttp.ClientSession | None = None,
) -> AuthResponse:
    """
    Sign in as an organizational user with a password.

    Args:
        username: User principal name
        password: User password
        client_id: Application id (default: the Azure CLI public client)
        domain: Tenant (default: "common", tenants are then listed)

    Raises:
        ValidationError: If an argument is empty
        adal.AdalError: If Azure AD rejects the credentials
        TokenAcquisitionError: If the token belongs to another user, or listing fails
    """
    client_id = client_id or DEFAULT_ADAL_CLIENT_ID
    domain = domain or AAD_COMMON_TENANT
    set_log_context(flow="username_password", tenant_id=domain, client_id=client_id)

    credentials = UserTokenCredentials(
        client_id,
        domain,
        username,
        password,
        token_audience=token_audience,
        environment=environment,
        token_cache=token_cache,
        logging_config=logging_config,
    )
    await _authenticate(credentials)
    subscriptions = await _list_subscriptions(credentials, None, session)
    return AuthResponse(credentials=credentials, subscriptions=subscriptions)


async def with_username_password(*args: Any, **kwargs: Any) -> UserTokenCredentials:
    """Sign in with username and password; returns only the credential."""
    response = await with_username_password_with_auth_response(*args, **kwargs)
    return response.credentials


# =============================================================================
# Device code
# =============================================================================


async def interactive_with_auth_response(
    client_id: str | None = None,
    domain: str | None = None,
    environment: AzureEnvironment | None = None,
    token_audience: AudienceLike = None,
    token_cache: adal.TokenCache | None = None,
    language: str | None = None,
    user_code_callback: UserCodeCallback | None = None,
    logging_config: AdalLoggingConfig | None = None,
    session: aiohttp.ClientSession | None = None,
    settings: AuthSettings | None = None,
) -> AuthResponse:
    """
    Sign in through the device-code flow.

    The user code response is handed to ``user_code_callback`` (sync or
    async), or its ``message`` is printed. ADAL then polls until the user
    completes sign in on another device. Failures propagate unchanged.

    Args:
        client_id: Application id (default: the Azure CLI public client)
        domain: Tenant (default: "common")
        language: Language of the displayed message
            (default: ``settings.default_language``)
        user_code_callback: Receives the user code dict (``message``,
            ``user_code``, ``verification_url``, ...)
        logging_config: ADAL logging options (default: ``settings.adal_logging``)
        settings: Defaults for language and ADAL logging

    Raises:
        adal.AdalError: If the user code cannot be obtained or sign in fails
    """
    settings = settings or AuthSettings()
    credentials = DeviceTokenCredentials(
        client_id=client_id,
        domain=domain,
        token_audience=token_audience,
        environment=environment,
        token_cache=token_cache,
        logging_config=logging_config or settings.adal_logging,
    )
    set_log_context(
        flow="device_code", tenant_id=credentials.domain, client_id=credentials.client_id
    )
    resource = credentials.get_active_directory_resource_id()
    auth_context = credentials.auth_context

    user_code = await credentials._run(
        auth_context.acquire_user_code,
        resource,
        credentials.client_id,
        language or settings.default_language,
    )
    if user_code_callback is not None:
        result = user_code_callback(user_code)
        if inspect.isawaitable(result):
            await result
    else:
        print(user_code["message"])

    response = await credentials._run(
        auth_context.acquire_token_with_device_code,
        resource,
        user_code,
        credentials.client_id,
    )
    token = TokenResponse.from_adal(response)
    if token.user_id:
        credentials.username = token.user_id
    credentials.authorization_scheme = token.token_type
    logger.info(
        "Signed in with device code",
        extra={"client_id": credentials.client_id, "username": credentials.username},
    )

    subscriptions = await _list_subscriptions(credentials, None, session)
    return AuthResponse(credentials=credentials, subscriptions=subscriptions)


async def interactive(*args: Any, **kwargs: Any) -> DeviceTokenCredentials:
    """Sign in through the device-code flow; returns only the credential."""
    response = await interactive_with_auth_response(*args, **kwargs)
    return response.credentials


# =============================================================================
# Auth file
# =============================================================================


async def with_auth_file_with_auth_response(
    file_path: str | Path | None = None,
    subscription_env_variable: str | None = None,
    settings: AuthSettings | None = None,
    registry: EnvironmentRegistry | None = None,
    token_cache: adal.TokenCache | None = None,
    session: aiohttp.ClientSession | None = None,
) -> AuthResponse:
    """
    Sign in as the service principal described by an auth file.

    The file's subscription id is exported to ``subscription_env_variable``
    (default: AZURE_SUBSCRIPTION_ID) before signing in.

    Args:
        file_path: Auth file (default: the path in $AZURE_AUTH_LOCATION)
        subscription_env_variable: Env var receiving the subscription id
        settings: Env var names and ADAL logging options
        registry: Environments to match the file against

    Raises:
        ValidationError: If no path is given or found in the environment
        AuthFileError: If the file is unreadable or misses a required field
    """
    settings = settings or AuthSettings()
    if not file_path:
        file_path = os.getenv(settings.auth_location_env)
    if not file_path:
        raise ValidationError(
            f"Either provide an absolute file path to the auth file or set/export "
            f"the environment variable {settings.auth_location_env}."
        )

    set_log_context(flow="auth_file")
    auth_file = read_auth_file(file_path)
    env_variable = subscription_env_variable or settings.subscription_env_variable
    os.environ[env_variable] = auth_file.subscription_id
    environment = resolve_environment(auth_file, registry)

    logger.info(
        "Signing in with auth file",
        extra={"auth_file": str(file_path), "environment": environment.name},
    )
    return await with_service_principal_secret_with_auth_response(
        auth_file.client_id,
        auth_file.client_secret,
        auth_file.tenant_id,
        environment=environment,
        token_cache=token_cache,
        logging_config=settings.adal_logging,
        session=session,
    )


async def with_auth_file(*args: Any, **kwargs: Any) -> ApplicationTokenCredentials:
    """Sign in with an auth file; returns only the credential."""
    response = await with_auth_file_with_auth_response(*args, **kwargs)
    return response.credentials


# =============================================================================
# Managed identity
# =============================================================================


async def with_msi(
    domain: str,
    port: int | None = None,
    resource: str | None = None,
    aad_endpoint: str | None = None,
    settings: AuthSettings | None = None,
) -> TokenResponse:
    """
    Get a token from the managed identity endpoint of the local VM.

    Args:
        domain: Tenant the identity belongs to
        port: Endpoint port (default: ``settings.msi_port``)
        resource: Resource the token is for
        settings: Supplies the default port

    Raises:
        ValidationError: If domain is empty or port is invalid
        TokenAcquisitionError: If the endpoint answers with an error or is unreachable
    """
    settings = settings or AuthSettings()
    set_log_context(flow="msi", tenant_id=domain)
    credentials = MSITokenCredentials(
        domain,
        port=port if port is not None else settings.msi_port,
        resource=resource,
        aad_endpoint=aad_endpoint,
    )
    try:
        return await _authenticate(credentials)
    finally:
        await credentials.close()


__all__ = [
    "with_service_principal_secret",
    "with_service_principal_secret_with_auth_response",
    "with_username_password",
    "with_username_password_with_auth_response",
    "interactive",
    "interactive_with_auth_response",
    "with_auth_file",
    "with_auth_file_with_auth_response",
    "with_msi",
]
