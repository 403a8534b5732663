"""Tests for the freee OAuth client."""

from datetime import datetime, timedelta, timezone
from unittest import mock
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from freee_oauth.config import FreeeOAuthConfig
from freee_oauth.exceptions import TokenExchangeError, TokenRefreshError
from freee_oauth.models import Token
from freee_oauth.oauth_client import FreeeOAuthClient


def token_response(status_code=200, body=None, text=""):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = body
    response.text = text
    return response


class TestFreeeOAuthClient:
    """Tests for FreeeOAuthClient class."""

    @pytest.fixture
    def config(self):
        return FreeeOAuthConfig(client_id="test_client_id", client_secret="test_client_secret")

    @pytest.fixture
    def oauth_client(self, config):
        return FreeeOAuthClient(config)

    @pytest.fixture
    def expired_token(self):
        return Token(
            access_token="expired_access",
            refresh_token="old_refresh",
            expiry=datetime.now(timezone.utc) - timedelta(hours=1),
        )

    def test_authorization_url(self, oauth_client, config):
        """authorization_url includes every required parameter."""
        url = oauth_client.authorization_url("state-abc_123")

        parsed = urlparse(url)
        assert url.startswith(config.authorization_url + "?")
        params = parse_qs(parsed.query)
        assert params["client_id"] == ["test_client_id"]
        assert params["redirect_uri"] == ["http://localhost:8080/callback"]
        assert params["response_type"] == ["code"]
        assert params["scope"] == ["read write"]
        assert params["state"] == ["state-abc_123"]

    def test_authorization_url_excludes_secret(self, oauth_client):
        assert "test_client_secret" not in oauth_client.authorization_url("s")

    @mock.patch("requests.post")
    def test_exchange_success(self, mock_post, oauth_client, config):
        mock_post.return_value = token_response(
            body={
                "access_token": "new_access_token",
                "refresh_token": "new_refresh_token",
                "token_type": "bearer",
                "expires_in": 21600,
                "scope": "read write",
            }
        )

        token = oauth_client.exchange("auth_code_123")

        mock_post.assert_called_once()
        call_args = mock_post.call_args
        assert call_args[0][0] == config.token_url
        data = call_args[1]["data"]
        assert data["grant_type"] == "authorization_code"
        assert data["code"] == "auth_code_123"
        assert data["redirect_uri"] == config.callback_url
        assert data["client_id"] == "test_client_id"
        assert data["client_secret"] == "test_client_secret"
        assert call_args[1]["timeout"] == config.request_timeout_seconds

        assert token.access_token == "new_access_token"
        assert token.refresh_token == "new_refresh_token"
        assert token.is_valid() is True

    @mock.patch("requests.post")
    def test_exchange_handles_400_error(self, mock_post, oauth_client):
        mock_post.return_value = token_response(status_code=400, text='{"error":"invalid_grant"}')

        with pytest.raises(TokenExchangeError, match="status 400"):
            oauth_client.exchange("bad_code")

    @mock.patch("requests.post")
    def test_exchange_handles_network_error(self, mock_post, oauth_client):
        mock_post.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(TokenExchangeError, match="Network error"):
            oauth_client.exchange("code")

    @mock.patch("requests.post")
    def test_exchange_handles_invalid_response(self, mock_post, oauth_client):
        mock_post.return_value = token_response(body={"token_type": "bearer"})

        with pytest.raises(TokenExchangeError, match="Invalid response"):
            oauth_client.exchange("code")

    @mock.patch("requests.post")
    def test_exchange_handles_non_json_response(self, mock_post, oauth_client):
        response = token_response()
        response.json.side_effect = ValueError("No JSON")
        mock_post.return_value = response

        with pytest.raises(TokenExchangeError, match="Invalid response"):
            oauth_client.exchange("code")

    @mock.patch("requests.post")
    def test_refresh_success(self, mock_post, oauth_client, expired_token):
        mock_post.return_value = token_response(
            body={
                "access_token": "refreshed_access",
                "refresh_token": "rotated_refresh",
                "expires_in": 21600,
            }
        )

        token = oauth_client.refresh(expired_token)

        data = mock_post.call_args[1]["data"]
        assert data["grant_type"] == "refresh_token"
        assert data["refresh_token"] == "old_refresh"
        assert token.access_token == "refreshed_access"
        assert token.refresh_token == "rotated_refresh"
        assert token.is_valid() is True
        assert token is not expired_token

    @mock.patch("requests.post")
    def test_refresh_keeps_refresh_token_when_not_rotated(
        self, mock_post, oauth_client, expired_token
    ):
        mock_post.return_value = token_response(
            body={"access_token": "refreshed_access", "expires_in": 21600}
        )

        token = oauth_client.refresh(expired_token)

        assert token.refresh_token == "old_refresh"

    @mock.patch("requests.post")
    def test_refresh_single_attempt_on_error(self, mock_post, oauth_client, expired_token):
        mock_post.return_value = token_response(status_code=401, text="invalid_grant")

        with pytest.raises(TokenRefreshError, match="status 401"):
            oauth_client.refresh(expired_token)

        mock_post.assert_called_once()

    @mock.patch("requests.post")
    def test_refresh_handles_network_error(self, mock_post, oauth_client, expired_token):
        mock_post.side_effect = requests.Timeout("timed out")

        with pytest.raises(TokenRefreshError, match="Network error"):
            oauth_client.refresh(expired_token)

        mock_post.assert_called_once()

    @mock.patch("requests.post")
    def test_refresh_without_refresh_token(self, mock_post, oauth_client):
        token = Token("access", "", datetime.now(timezone.utc) - timedelta(hours=1))

        with pytest.raises(TokenRefreshError):
            oauth_client.refresh(token)

        mock_post.assert_not_called()

    @mock.patch("requests.post")
    def test_errors_do_not_leak_credentials(self, mock_post, oauth_client, expired_token):
        mock_post.return_value = token_response(status_code=500, text="server error")

        with pytest.raises(TokenRefreshError) as exc_info:
            oauth_client.refresh(expired_token)

        assert "old_refresh" not in str(exc_info.value)
        assert "test_client_secret" not in str(exc_info.value)
