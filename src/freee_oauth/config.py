"""
OAuth configuration for the freee API.

This module provides configuration management for the OAuth 2.0
authorization code flow. The client credentials come from environment
variables; everything else is a fixed default that tests may override
programmatically.
"""

import os
from dataclasses import dataclass
from typing import Tuple

from .exceptions import ConfigurationError


@dataclass
class FreeeOAuthConfig:
    """
    Configuration for freee OAuth 2.0.

    Attributes:
        client_id: freee app client ID
        client_secret: freee app client secret
        callback_host: Host the local callback server binds to
        callback_port: Port for callback server (0 picks a free port)
        callback_path: URL path for callback
        authorization_url: freee OAuth authorization endpoint
        token_url: freee OAuth token endpoint
        scopes: Requested OAuth scopes
        token_file: Path to token storage file
        flow_timeout_seconds: How long to wait for the browser redirect
        shutdown_timeout_seconds: Grace period for stopping the callback server
        request_timeout_seconds: Timeout for token endpoint requests
    """

    # Required - from the freee app store developer console
    client_id: str
    client_secret: str

    # Callback configuration
    callback_host: str = "localhost"
    callback_port: int = 8080
    callback_path: str = "/callback"

    # freee OAuth endpoints
    authorization_url: str = "https://accounts.secure.freee.co.jp/public_api/authorize"
    token_url: str = "https://accounts.secure.freee.co.jp/public_api/token"
    scopes: Tuple[str, ...] = ("read", "write")

    token_file: str = "token.json"

    # Flow timing
    flow_timeout_seconds: float = 300
    shutdown_timeout_seconds: float = 5
    request_timeout_seconds: float = 30

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.client_id:
            raise ConfigurationError("client_id cannot be empty")

        if not self.client_secret:
            raise ConfigurationError("client_secret cannot be empty")

        if not isinstance(self.callback_port, int) or not (
            0 <= self.callback_port <= 65535
        ):
            raise ConfigurationError(
                f"callback_port must be between 0 and 65535, got {self.callback_port}"
            )

        if not self.callback_path.startswith("/"):
            raise ConfigurationError(
                f"callback_path must start with '/', got {self.callback_path!r}"
            )

        for name in (
            "flow_timeout_seconds",
            "shutdown_timeout_seconds",
            "request_timeout_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

    def __repr__(self) -> str:
        return (
            f"FreeeOAuthConfig(client_id={self.client_id!r}, "
            f"callback_url={self.callback_url!r}, token_file={self.token_file!r})"
        )

    @property
    def callback_url(self) -> str:
        """
        Full callback URL for OAuth redirect.

        Returns:
            Complete callback URL (e.g., http://localhost:8080/callback)
        """
        return f"http://{self.callback_host}:{self.callback_port}{self.callback_path}"

    @classmethod
    def from_env(cls) -> "FreeeOAuthConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            FREEE_CLIENT_ID: freee app client ID
            FREEE_CLIENT_SECRET: freee app client secret

        Returns:
            FreeeOAuthConfig instance

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        client_id = os.environ.get("FREEE_CLIENT_ID")
        client_secret = os.environ.get("FREEE_CLIENT_SECRET")

        if not client_id or not client_secret:
            raise ConfigurationError(
                "FREEE_CLIENT_ID and FREEE_CLIENT_SECRET must be set:\n"
                "  export FREEE_CLIENT_ID=your_client_id\n"
                "  export FREEE_CLIENT_SECRET=your_client_secret\n"
                "\n"
                "Get credentials from: https://app.secure.freee.co.jp/developers"
            )

        return cls(client_id=client_id, client_secret=client_secret)
