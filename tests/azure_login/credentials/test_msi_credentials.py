"""Tests for MSITokenCredentials - managed identity endpoint on localhost."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from azure_login.constants import DEFAULT_MSI_PORT, DEFAULT_MSI_RESOURCE
from azure_login.credentials.msi import MSITokenCredentials
from azure_login.errors import TokenAcquisitionError, ValidationError


def _mock_session_with_response(response_mock):
    """Create a mock session where post() returns the given response context manager."""
    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.post = MagicMock(return_value=response_mock)
    mock_session.close = AsyncMock()
    return mock_session


def _ok_response(data):
    """Create a mock async context manager for a 200 response."""
    mock_resp = AsyncMock()
    mock_resp.status = 200
    mock_resp.json = AsyncMock(return_value=data)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def _error_response(status, text="error"):
    """Create a mock async context manager for an error response."""
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.text = AsyncMock(return_value=text)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


MSI_PAYLOAD = {
    "access_token": "msi-token",
    "token_type": "Bearer",
    "expires_in": "3599",
    "expires_on": "1893456000",
    "resource": DEFAULT_MSI_RESOURCE,
}


# ---------------------------------------------------------------------------
# __init__
# ---------------------------------------------------------------------------


class TestMSIInit:
    def test_defaults(self):
        creds = MSITokenCredentials("tenant")
        assert creds.port == DEFAULT_MSI_PORT
        assert creds.resource == DEFAULT_MSI_RESOURCE
        assert creds.token_url == f"http://localhost:{DEFAULT_MSI_PORT}/oauth2/token"

    def test_custom_port(self):
        creds = MSITokenCredentials("tenant", port=6000)
        assert creds.token_url == "http://localhost:6000/oauth2/token"

    def test_rejects_empty_domain(self):
        with pytest.raises(ValidationError, match="domain"):
            MSITokenCredentials("")

    @pytest.mark.parametrize("port", ["50342", 0, -1, True, 1.5])
    def test_rejects_bad_port(self, port):
        with pytest.raises(ValidationError, match="port"):
            MSITokenCredentials("tenant", port=port)

    def test_rejects_empty_resource(self):
        with pytest.raises(ValidationError, match="resource"):
            MSITokenCredentials("tenant", resource="")


# ---------------------------------------------------------------------------
# get_token
# ---------------------------------------------------------------------------


class TestMSIGetToken:
    async def test_successful_request(self):
        session = _mock_session_with_response(_ok_response(MSI_PAYLOAD))
        creds = MSITokenCredentials("tenant", session=session)

        token = await creds.get_token()

        assert token.access_token == "msi-token"
        assert token.expires_in == 3599
        assert token.expires_on is not None
        call = session.post.call_args
        assert call.args[0] == f"http://localhost:{DEFAULT_MSI_PORT}/oauth2/token"
        assert call.kwargs["data"] == {"resource": DEFAULT_MSI_RESOURCE}
        assert call.kwargs["headers"]["Metadata"] == "true"

    async def test_non_200_raises_with_status(self):
        session = _mock_session_with_response(_error_response(400, "bad request"))
        creds = MSITokenCredentials("tenant", session=session)

        with pytest.raises(TokenAcquisitionError, match="HTTP 400") as exc_info:
            await creds.get_token()

        assert exc_info.value.status_code == 400

    async def test_client_error_wrapped(self):
        session = MagicMock()
        session.closed = False
        session.post = MagicMock(side_effect=aiohttp.ClientError("connection refused"))
        creds = MSITokenCredentials("tenant", session=session)

        with pytest.raises(TokenAcquisitionError, match="connection refused") as exc_info:
            await creds.get_token()

        assert isinstance(exc_info.value.cause, aiohttp.ClientError)

    async def test_timeout_wrapped(self):
        response = AsyncMock()
        response.__aenter__ = AsyncMock(side_effect=asyncio.TimeoutError())
        response.__aexit__ = AsyncMock(return_value=False)
        creds = MSITokenCredentials("tenant", session=_mock_session_with_response(response))

        with pytest.raises(TokenAcquisitionError, match="timed out") as exc_info:
            await creds.get_token()

        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)

    async def test_payload_without_access_token_wrapped(self):
        session = _mock_session_with_response(_ok_response({"error": "identity not found"}))
        creds = MSITokenCredentials("tenant", session=session)

        with pytest.raises(TokenAcquisitionError, match="access_token") as exc_info:
            await creds.get_token()

        assert isinstance(exc_info.value.cause, KeyError)

    async def test_invalid_json_wrapped(self):
        response = _ok_response({})
        response.json = AsyncMock(side_effect=ValueError("not json"))
        creds = MSITokenCredentials("tenant", session=_mock_session_with_response(response))

        with pytest.raises(TokenAcquisitionError, match="not json"):
            await creds.get_token()

    async def test_authorization_header(self):
        session = _mock_session_with_response(_ok_response(MSI_PAYLOAD))
        creds = MSITokenCredentials("tenant", session=session)

        assert await creds.get_authorization_header() == {"Authorization": "Bearer msi-token"}


# ---------------------------------------------------------------------------
# close
# ---------------------------------------------------------------------------


class TestMSIClose:
    async def test_does_not_close_borrowed_session(self):
        session = _mock_session_with_response(_ok_response(MSI_PAYLOAD))
        creds = MSITokenCredentials("tenant", session=session)

        await creds.close()

        session.close.assert_not_awaited()

    async def test_closes_owned_session(self):
        creds = MSITokenCredentials("tenant")
        session = _mock_session_with_response(_ok_response(MSI_PAYLOAD))
        creds._session = session

        await creds.close()

        session.close.assert_awaited_once()
