"""Shared pytest fixtures for freee OAuth tests."""

from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest

from freee_oauth.base import AuthorizationClient, TokenStore
from freee_oauth.config import FreeeOAuthConfig
from freee_oauth.models import Token


@pytest.fixture
def config(tmp_path):
    """Create test OAuth config bound to an ephemeral local port."""
    return FreeeOAuthConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        callback_host="127.0.0.1",
        callback_port=0,
        token_file=str(tmp_path / "token.json"),
        flow_timeout_seconds=2,
        shutdown_timeout_seconds=2,
    )


@pytest.fixture
def valid_token():
    """Token that expires in one hour."""
    return Token(
        access_token="valid_access_token",
        refresh_token="valid_refresh_token",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def expired_token():
    """Expired token with a refresh token."""
    return Token(
        access_token="expired_access_token",
        refresh_token="valid_refresh_token",
        expiry=datetime.now(timezone.utc) - timedelta(hours=1),
    )


@pytest.fixture
def store():
    """Token store double."""
    store = mock.Mock(spec=TokenStore)
    store.load.return_value = None
    store.exists.return_value = False
    return store


@pytest.fixture
def client():
    """Authorization client double."""
    client = mock.Mock(spec=AuthorizationClient)
    client.authorization_url.side_effect = (
        lambda state: f"https://example.com/authorize?state={state}"
    )
    return client
