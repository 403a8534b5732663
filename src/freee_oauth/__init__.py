"""
OAuth 2.0 authorization code flow for the freee API.

Obtains, persists and refreshes a freee API access token from the command
line: stored tokens are reused or refreshed, and when neither works a new
authorization is completed through a short-lived local callback server.

Public API:
    FreeeOAuthConfig: OAuth configuration management
    Token: Token value object
    TokenStore / AuthorizationClient: Collaborator interfaces
    TokenStorage: File-based token persistence
    FreeeOAuthClient: freee token endpoint client
    AuthorizationOrchestrator: Token lifecycle state machine
    OAuthCallbackServer: Local callback receiver
    AuthorizationRunner: End-to-end flow

Exceptions:
    FreeeOAuthError: Base exception
    ConfigurationError: Configuration error
    TokenNotAvailableError: No usable token stored
    TokenRefreshError: Token refresh failed
    TokenExchangeError: Token exchange failed
    TokenStorageError: Storage operation failed
    CallbackServerError: Callback server failure
    AuthorizationError: Authorization flow error
    StateMismatchError: Callback state mismatch
    AuthorizationTimeoutError: No callback in time
"""

from .auth_server import AuthorizationResult, OAuthCallbackServer, ResultChannel
from .base import AuthorizationClient, TokenStore
from .config import FreeeOAuthConfig
from .exceptions import (
    AuthorizationError,
    AuthorizationTimeoutError,
    CallbackServerError,
    ConfigurationError,
    FreeeOAuthError,
    StateMismatchError,
    TokenExchangeError,
    TokenNotAvailableError,
    TokenRefreshError,
    TokenStorageError,
)
from .models import Token
from .oauth_client import FreeeOAuthClient
from .orchestrator import AuthorizationOrchestrator
from .runner import AuthorizationRunner
from .token_storage import TokenStorage

__all__ = [
    # Configuration
    "FreeeOAuthConfig",
    # Token
    "Token",
    # Collaborators
    "TokenStore",
    "AuthorizationClient",
    "TokenStorage",
    "FreeeOAuthClient",
    # Flow
    "AuthorizationOrchestrator",
    "OAuthCallbackServer",
    "AuthorizationResult",
    "ResultChannel",
    "AuthorizationRunner",
    # Exceptions
    "FreeeOAuthError",
    "ConfigurationError",
    "TokenNotAvailableError",
    "TokenRefreshError",
    "TokenExchangeError",
    "TokenStorageError",
    "CallbackServerError",
    "AuthorizationError",
    "StateMismatchError",
    "AuthorizationTimeoutError",
]
