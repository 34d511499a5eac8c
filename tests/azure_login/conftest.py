"""Shared fixtures for azure_login tests: ADAL is replaced with mocks."""

from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture
def auth_context():
    """Mock AuthenticationContext returned for every credential built in the test."""
    context = MagicMock()
    with patch("azure_login.credentials.base.adal.AuthenticationContext") as mock_cls:
        mock_cls.return_value = context
        context.constructor = mock_cls
        yield context


@pytest.fixture
def token_cache():
    cache = MagicMock()
    cache.find.return_value = []
    return cache
