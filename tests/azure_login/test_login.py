"""Tests for the login flows."""

import json
import logging
import os
from unittest.mock import AsyncMock, MagicMock, patch

import adal
import pytest

from azure_login import login
from azure_login.config import AuthSettings
from azure_login.constants import DEFAULT_ADAL_CLIENT_ID
from azure_login.credentials import (
    ApplicationTokenCredentials,
    DeviceTokenCredentials,
    UserTokenCredentials,
)
from azure_login.environments import AZURE_PUBLIC_CLOUD, EnvironmentRegistry
from azure_login.errors import AuthFileError, TokenAcquisitionError, ValidationError
from azure_login.models import SubscriptionInfo, TokenResponse

TENANT = "22222222-2222-2222-2222-222222222222"


def _adal_token(user_id=None, token_type="Bearer"):
    token = {"accessToken": "at", "tokenType": token_type, "expiresIn": 3599}
    if user_id:
        token["userId"] = user_id
    return token


def _subscription(sub_id="sub-1", tenant=TENANT):
    return SubscriptionInfo(id=f"/subscriptions/{sub_id}", subscription_id=sub_id, tenant_id=tenant)


@pytest.fixture
def arm():
    """Patch resource manager listing used by the login flows."""
    with patch("azure_login.login.build_tenant_list", new_callable=AsyncMock) as tenants, patch(
        "azure_login.login.get_subscriptions_from_tenants", new_callable=AsyncMock
    ) as subscriptions:
        tenants.return_value = [TENANT]
        subscriptions.return_value = [_subscription()]
        yield MagicMock(tenants=tenants, subscriptions=subscriptions)


# ---------------------------------------------------------------------------
# Service principal
# ---------------------------------------------------------------------------


class TestServicePrincipal:
    async def test_returns_credentials_and_subscriptions(self, auth_context, token_cache, arm):
        auth_context.acquire_token.return_value = _adal_token()

        response = await login.with_service_principal_secret_with_auth_response(
            "client-id", "secret", TENANT, token_cache=token_cache
        )

        assert isinstance(response.credentials, ApplicationTokenCredentials)
        assert [s.subscription_id for s in response.subscriptions] == ["sub-1"]
        arm.tenants.assert_not_called()
        assert arm.subscriptions.call_args.args[1] == [TENANT]

    async def test_short_form_returns_credentials(self, auth_context, token_cache, arm):
        auth_context.acquire_token.return_value = _adal_token()

        creds = await login.with_service_principal_secret(
            "client-id", "secret", TENANT, token_cache=token_cache
        )

        assert isinstance(creds, ApplicationTokenCredentials)

    async def test_graph_audience_skips_subscriptions(self, auth_context, token_cache, arm):
        auth_context.acquire_token.return_value = _adal_token()

        response = await login.with_service_principal_secret_with_auth_response(
            "client-id", "secret", TENANT, token_audience="graph", token_cache=token_cache
        )

        assert response.subscriptions == []
        arm.subscriptions.assert_not_called()

    async def test_auth_failure_propagates(self, auth_context, token_cache, arm):
        error = adal.AdalError("invalid_client")
        auth_context.acquire_token.side_effect = adal.AdalError("Entry not found in cache.")
        auth_context.acquire_token_with_client_credentials.side_effect = error

        with pytest.raises(adal.AdalError) as exc_info:
            await login.with_service_principal_secret(
                "client-id", "secret", TENANT, token_cache=token_cache
            )

        assert exc_info.value is error
        arm.subscriptions.assert_not_called()


# ---------------------------------------------------------------------------
# Username and password
# ---------------------------------------------------------------------------


class TestUsernamePassword:
    async def test_defaults_and_tenant_listing(self, auth_context, token_cache, arm):
        auth_context.acquire_token.return_value = _adal_token(user_id="alice@contoso.com")

        response = await login.with_username_password_with_auth_response(
            "alice@contoso.com", "p@ss", token_cache=token_cache
        )

        creds = response.credentials
        assert isinstance(creds, UserTokenCredentials)
        assert creds.client_id == DEFAULT_ADAL_CLIENT_ID
        assert creds.domain == "common"
        arm.tenants.assert_awaited_once()
        assert arm.subscriptions.call_args.args[1] == [TENANT]

    async def test_short_form(self, auth_context, token_cache, arm):
        auth_context.acquire_token.return_value = _adal_token(user_id="alice@contoso.com")

        creds = await login.with_username_password(
            "alice@contoso.com", "p@ss", token_cache=token_cache
        )

        assert creds.username == "alice@contoso.com"


# ---------------------------------------------------------------------------
# Device code
# ---------------------------------------------------------------------------


class TestInteractive:
    async def test_device_flow(self, auth_context, token_cache, arm):
        user_code = {"message": "Go to https://microsoft.com/devicelogin", "user_code": "ABC"}
        auth_context.acquire_user_code.return_value = user_code
        auth_context.acquire_token_with_device_code.return_value = _adal_token(
            user_id="bob@contoso.com"
        )
        shown = []

        response = await login.interactive_with_auth_response(
            token_cache=token_cache, user_code_callback=shown.append
        )

        assert shown == [user_code]
        auth_context.acquire_user_code.assert_called_once_with(
            AZURE_PUBLIC_CLOUD.active_directory_resource_id, DEFAULT_ADAL_CLIENT_ID, "en-us"
        )
        auth_context.acquire_token_with_device_code.assert_called_once_with(
            AZURE_PUBLIC_CLOUD.active_directory_resource_id, user_code, DEFAULT_ADAL_CLIENT_ID
        )
        creds = response.credentials
        assert isinstance(creds, DeviceTokenCredentials)
        assert creds.username == "bob@contoso.com"
        assert creds.authorization_scheme == "Bearer"
        assert len(response.subscriptions) == 1

    async def test_prints_message_without_callback(self, auth_context, token_cache, arm, capsys):
        auth_context.acquire_user_code.return_value = {"message": "Enter code XYZ"}
        auth_context.acquire_token_with_device_code.return_value = _adal_token(user_id="u@x.com")

        await login.interactive(token_cache=token_cache, language="de-de")

        assert "Enter code XYZ" in capsys.readouterr().out
        assert auth_context.acquire_user_code.call_args.args[2] == "de-de"

    async def test_async_callback_awaited(self, auth_context, token_cache, arm):
        auth_context.acquire_user_code.return_value = {"message": "m"}
        auth_context.acquire_token_with_device_code.return_value = _adal_token(user_id="u@x.com")
        callback = AsyncMock()

        await login.interactive(token_cache=token_cache, user_code_callback=callback)

        callback.assert_awaited_once_with({"message": "m"})

    async def test_user_code_failure_propagates(self, auth_context, token_cache, arm):
        auth_context.acquire_user_code.side_effect = adal.AdalError("invalid client")

        with pytest.raises(adal.AdalError, match="invalid client"):
            await login.interactive(token_cache=token_cache)

        auth_context.acquire_token_with_device_code.assert_not_called()

    async def test_language_from_settings(self, auth_context, token_cache, arm):
        auth_context.acquire_user_code.return_value = {"message": "m"}
        auth_context.acquire_token_with_device_code.return_value = _adal_token(user_id="u@x.com")

        await login.interactive(
            token_cache=token_cache,
            user_code_callback=lambda code: None,
            settings=AuthSettings(default_language="fr-fr"),
        )

        assert auth_context.acquire_user_code.call_args.args[2] == "fr-fr"


# ---------------------------------------------------------------------------
# Auth file
# ---------------------------------------------------------------------------


def _auth_file_content(**overrides):
    content = {
        "clientId": "file-client",
        "clientSecret": "file-secret",
        "subscriptionId": "file-sub",
        "tenantId": TENANT,
        "activeDirectoryEndpointUrl": "https://login.microsoftonline.com",
        "resourceManagerEndpointUrl": "https://management.azure.com/",
        "activeDirectoryGraphResourceId": "https://graph.windows.net/",
        "sqlManagementEndpointUrl": "https://management.core.windows.net:8443/",
        "managementEndpointUrl": "https://management.core.windows.net/",
    }
    content.update(overrides)
    return content


class TestAuthFile:
    async def test_signs_in_and_exports_subscription(
        self, auth_context, token_cache, arm, tmp_path, monkeypatch
    ):
        monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
        path = tmp_path / "auth.json"
        path.write_text(json.dumps(_auth_file_content()))
        auth_context.acquire_token.return_value = _adal_token()

        response = await login.with_auth_file_with_auth_response(
            path, registry=EnvironmentRegistry(), token_cache=token_cache
        )

        creds = response.credentials
        assert isinstance(creds, ApplicationTokenCredentials)
        assert creds.client_id == "file-client"
        assert creds.domain == TENANT
        assert creds.environment == AZURE_PUBLIC_CLOUD
        assert os.environ["AZURE_SUBSCRIPTION_ID"] == "file-sub"

    async def test_path_from_environment(
        self, auth_context, token_cache, arm, tmp_path, monkeypatch
    ):
        path = tmp_path / "auth.json"
        path.write_text(json.dumps(_auth_file_content()))
        monkeypatch.setenv("AZURE_AUTH_LOCATION", str(path))
        monkeypatch.delenv("MY_SUB", raising=False)
        auth_context.acquire_token.return_value = _adal_token()

        creds = await login.with_auth_file(
            subscription_env_variable="MY_SUB",
            registry=EnvironmentRegistry(),
            token_cache=token_cache,
        )

        assert creds.client_id == "file-client"
        assert os.environ["MY_SUB"] == "file-sub"

    async def test_missing_location(self, monkeypatch):
        monkeypatch.delenv("AZURE_AUTH_LOCATION", raising=False)

        with pytest.raises(ValidationError, match="AZURE_AUTH_LOCATION"):
            await login.with_auth_file()

    async def test_missing_field_fails_before_sign_in(self, auth_context, tmp_path):
        content = _auth_file_content()
        del content["clientSecret"]
        path = tmp_path / "auth.json"
        path.write_text(json.dumps(content))

        with pytest.raises(AuthFileError, match='"clientSecret" is missing'):
            await login.with_auth_file(path)

        auth_context.constructor.assert_not_called()


# ---------------------------------------------------------------------------
# Managed identity
# ---------------------------------------------------------------------------


class TestMsi:
    async def test_returns_token_and_closes(self):
        token = TokenResponse("msi-token")
        with patch("azure_login.login.MSITokenCredentials") as mock_cls:
            instance = mock_cls.return_value
            instance.get_token = AsyncMock(return_value=token)
            instance.close = AsyncMock()

            result = await login.with_msi("tenant", port=6000)

        assert result is token
        mock_cls.assert_called_once_with("tenant", port=6000, resource=None, aad_endpoint=None)
        instance.close.assert_awaited_once()

    async def test_port_from_settings(self):
        with patch("azure_login.login.MSITokenCredentials") as mock_cls:
            instance = mock_cls.return_value
            instance.get_token = AsyncMock(return_value=TokenResponse("msi-token"))
            instance.close = AsyncMock()

            await login.with_msi("tenant", settings=AuthSettings(msi_port=7000))

        assert mock_cls.call_args.kwargs["port"] == 7000

    async def test_explicit_port_wins_over_settings(self):
        with patch("azure_login.login.MSITokenCredentials") as mock_cls:
            instance = mock_cls.return_value
            instance.get_token = AsyncMock(return_value=TokenResponse("msi-token"))
            instance.close = AsyncMock()

            await login.with_msi("tenant", port=6000, settings=AuthSettings(msi_port=7000))

        assert mock_cls.call_args.kwargs["port"] == 6000

    async def test_failure_logged_and_closed(self, caplog):
        error = TokenAcquisitionError("MSI token request failed: HTTP 400")
        with patch("azure_login.login.MSITokenCredentials") as mock_cls:
            instance = mock_cls.return_value
            instance.domain = "tenant"
            instance.get_token = AsyncMock(side_effect=error)
            instance.close = AsyncMock()

            with caplog.at_level(logging.ERROR, logger="azure_login.login"):
                with pytest.raises(TokenAcquisitionError) as exc_info:
                    await login.with_msi("tenant")

        assert exc_info.value is error
        instance.close.assert_awaited_once()
        record = next(r for r in caplog.records if r.getMessage() == "Sign in failed")
        assert record.tenant_id == "tenant"
        assert record.error_type == "TokenAcquisitionError"

    async def test_validation(self):
        with pytest.raises(ValidationError):
            await login.with_msi("")
