"""Tests for UserTokenCredentials and DeviceTokenCredentials."""

import adal
import pytest

from azure_login.constants import AAD_COMMON_TENANT, DEFAULT_ADAL_CLIENT_ID, DEFAULT_USERNAME
from azure_login.credentials.device import DeviceTokenCredentials
from azure_login.credentials.user import UserTokenCredentials
from azure_login.errors import SdkInternalError, TokenAcquisitionError, ValidationError

USERNAME = "alice@contoso.com"


def _adal_token(user_id=USERNAME, access_token="user-token"):
    return {
        "accessToken": access_token,
        "tokenType": "Bearer",
        "expiresIn": 3599,
        "userId": user_id,
        "refreshToken": "refresh",
    }


def _make_user(token_cache, **kwargs):
    return UserTokenCredentials(
        DEFAULT_ADAL_CLIENT_ID, "common", USERNAME, "p@ss", token_cache=token_cache, **kwargs
    )


# ---------------------------------------------------------------------------
# UserTokenCredentials
# ---------------------------------------------------------------------------


class TestUserCredentialsInit:
    def test_rejects_empty_username(self, auth_context, token_cache):
        with pytest.raises(ValidationError, match="username"):
            UserTokenCredentials("client", "common", "", "p@ss", token_cache=token_cache)

    def test_rejects_empty_password(self, auth_context, token_cache):
        with pytest.raises(ValidationError, match="password"):
            UserTokenCredentials("client", "common", USERNAME, "", token_cache=token_cache)
        auth_context.constructor.assert_not_called()

    def test_user_name_is_username(self, auth_context, token_cache):
        creds = _make_user(token_cache)
        assert creds.user_name == USERNAME
        assert creds.user_type == "user"


class TestUserGetToken:
    async def test_cache_hit_scoped_to_user(self, auth_context, token_cache):
        auth_context.acquire_token.return_value = _adal_token(access_token="cached")
        creds = _make_user(token_cache)

        token = await creds.get_token()

        assert token.access_token == "cached"
        auth_context.acquire_token.assert_called_once_with(
            "https://management.core.windows.net/", USERNAME, DEFAULT_ADAL_CLIENT_ID
        )
        auth_context.acquire_token_with_username_password.assert_not_called()

    async def test_miss_falls_back_to_password_grant(self, auth_context, token_cache):
        auth_context.acquire_token.side_effect = adal.AdalError("Entry not found in cache.")
        auth_context.acquire_token_with_username_password.return_value = _adal_token()
        creds = _make_user(token_cache)

        token = await creds.get_token()

        assert token.access_token == "user-token"
        auth_context.acquire_token_with_username_password.assert_called_once_with(
            "https://management.core.windows.net/", USERNAME, "p@ss", DEFAULT_ADAL_CLIENT_ID
        )

    async def test_user_id_compared_case_insensitively(self, auth_context, token_cache):
        auth_context.acquire_token.side_effect = adal.AdalError("miss")
        auth_context.acquire_token_with_username_password.return_value = _adal_token(
            user_id=USERNAME.upper()
        )
        creds = _make_user(token_cache)

        token = await creds.get_token()

        assert token.user_id == USERNAME.upper()

    async def test_mismatched_user_raises(self, auth_context, token_cache):
        auth_context.acquire_token.side_effect = adal.AdalError("miss")
        auth_context.acquire_token_with_username_password.return_value = _adal_token(
            user_id="mallory@contoso.com"
        )
        creds = _make_user(token_cache)

        with pytest.raises(TokenAcquisitionError, match="does not match"):
            await creds.get_token()

    async def test_critical_cache_error_short_circuits(self, auth_context, token_cache):
        auth_context.acquire_token.side_effect = SdkInternalError("cache broken")
        creds = _make_user(token_cache)

        with pytest.raises(SdkInternalError):
            await creds.get_token()

        auth_context.acquire_token_with_username_password.assert_not_called()


# ---------------------------------------------------------------------------
# DeviceTokenCredentials
# ---------------------------------------------------------------------------


class TestDeviceCredentials:
    def test_defaults(self, auth_context, token_cache):
        creds = DeviceTokenCredentials(token_cache=token_cache)

        assert creds.client_id == DEFAULT_ADAL_CLIENT_ID
        assert creds.domain == AAD_COMMON_TENANT
        assert creds.username == DEFAULT_USERNAME
        assert creds.authorization_scheme == "Bearer"

    async def test_get_token_reads_cache_for_user(self, auth_context, token_cache):
        auth_context.acquire_token.return_value = _adal_token(access_token="device-token")
        creds = DeviceTokenCredentials(username=USERNAME, token_cache=token_cache)

        token = await creds.get_token()

        assert token.access_token == "device-token"
        auth_context.acquire_token.assert_called_once_with(
            "https://management.core.windows.net/", USERNAME, DEFAULT_ADAL_CLIENT_ID
        )

    async def test_cache_miss_propagates(self, auth_context, token_cache):
        miss = adal.AdalError("Entry not found in cache.")
        auth_context.acquire_token.side_effect = miss
        creds = DeviceTokenCredentials(username=USERNAME, token_cache=token_cache)

        with pytest.raises(adal.AdalError) as exc_info:
            await creds.get_token()

        assert exc_info.value is miss
        token_cache.find.assert_not_called()
