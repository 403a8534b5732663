"""
freee OAuth 2.0 client.

Talks to freee's authorization and token endpoints:
- Authorization URL generation
- Token exchange (authorization code → access/refresh tokens)
- Token refresh (refresh token → new access token)

A single attempt is made per call; deciding what to do after a failure is
left to the orchestrator.
"""

import logging
from typing import Any, Dict
from urllib.parse import urlencode

import requests

from .base import AuthorizationClient
from .config import FreeeOAuthConfig
from .exceptions import TokenExchangeError, TokenRefreshError
from .models import Token

logger = logging.getLogger(__name__)


class FreeeOAuthClient(AuthorizationClient):
    """
    OAuth client for the freee accounting API.

    Client credentials are sent as form fields on every token request.
    """

    def __init__(self, config: FreeeOAuthConfig):
        """
        Initialize the client.

        Args:
            config: OAuth configuration
        """
        self.config = config

    def authorization_url(self, state: str) -> str:
        """
        Generate the freee authorization URL.

        Args:
            state: Anti-CSRF state, passed through verbatim

        Returns:
            Complete authorization URL with query parameters
        """
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.callback_url,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            "state": state,
        }
        return f"{self.config.authorization_url}?{urlencode(params)}"

    def _post_token_request(self, data: Dict[str, str]) -> requests.Response:
        payload = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            **data,
        }
        return requests.post(
            self.config.token_url,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            data=payload,
            timeout=self.config.request_timeout_seconds,
        )

    def exchange(self, code: str) -> Token:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            code: Code received from OAuth callback

        Returns:
            Token with access and refresh tokens

        Raises:
            TokenExchangeError: If exchange fails
        """
        logger.info("Exchanging authorization code for tokens")

        try:
            response = self._post_token_request(
                {
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config.callback_url,
                }
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token exchange: {e}")
            raise TokenExchangeError(f"Network error during token exchange: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"Token exchange failed: {response.status_code} - {response.text}"
            )
            raise TokenExchangeError(
                f"Token exchange failed with status {response.status_code}. "
                f"Check that your client_id and client_secret are correct."
            )

        try:
            token = Token.from_response(self._json(response))
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise TokenExchangeError(f"Invalid response from token endpoint: {e}") from e

        logger.info("Successfully obtained tokens")
        return token

    def refresh(self, token: Token) -> Token:
        """
        Refresh access token using refresh token.

        The expiry of the given token is ignored; it is assumed to be
        expired already.

        Args:
            token: Token whose refresh token is used

        Returns:
            New Token with a fresh access token

        Raises:
            TokenRefreshError: If refresh fails
        """
        if not token.has_refresh_token():
            raise TokenRefreshError("Token has no refresh token")

        logger.info("Refreshing access token")

        try:
            response = self._post_token_request(
                {
                    "grant_type": "refresh_token",
                    "refresh_token": token.refresh_token,
                }
            )
        except requests.RequestException as e:
            logger.warning(f"Network error during token refresh: {e}")
            raise TokenRefreshError(f"Network error during token refresh: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"Token refresh failed: {response.status_code} - {response.text}"
            )
            raise TokenRefreshError(
                f"Token refresh failed with status {response.status_code}. "
                f"Your refresh token may have expired."
            )

        try:
            new_token = Token.from_response(self._json(response), previous=token)
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise TokenRefreshError(f"Invalid response from token endpoint: {e}") from e

        logger.info("Successfully refreshed tokens")
        return new_token

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        data = response.json()
        if not isinstance(data, dict):
            raise TypeError(f"expected JSON object, got {type(data).__name__}")
        return data
