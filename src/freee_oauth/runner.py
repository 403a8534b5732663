"""
End-to-end runner for the freee OAuth flow.

Loads (or refreshes) the stored token and, when there is none, walks the
user through a new authorization: print the authorization URL, wait for the
callback, stop the callback server.
"""

import logging
from typing import Optional

from .auth_server import OAuthCallbackServer
from .base import TokenStore
from .config import FreeeOAuthConfig
from .exceptions import (
    AuthorizationTimeoutError,
    TokenNotAvailableError,
    TokenRefreshError,
)
from .models import Token
from .oauth_client import FreeeOAuthClient
from .orchestrator import AuthorizationOrchestrator
from .token_storage import TokenStorage

logger = logging.getLogger(__name__)


class AuthorizationRunner:
    """
    Top-level control flow.

    Example:
        runner = AuthorizationRunner(FreeeOAuthConfig.from_env())
        token = runner.run()
    """

    def __init__(
        self,
        config: FreeeOAuthConfig,
        orchestrator: Optional[AuthorizationOrchestrator] = None,
        store: Optional[TokenStore] = None,
    ):
        """
        Initialize the runner.

        Args:
            config: OAuth configuration
            orchestrator: Orchestrator (built from config if not provided)
            store: Token store (file storage at config.token_file if not provided)
        """
        self.config = config
        self.store = store or TokenStorage(config.token_file)
        self.orchestrator = orchestrator or AuthorizationOrchestrator(
            self.store, FreeeOAuthClient(config)
        )

    def run(self) -> Token:
        """
        Return a usable token, authorizing anew if necessary.

        Returns:
            Valid Token

        Raises:
            AuthorizationTimeoutError: No callback within the flow timeout
            AuthorizationError: Provider returned an error or no code
            TokenExchangeError: Code exchange failed
            TokenStorageError: Token could not be saved
            CallbackServerError: Callback server failed to start or stop
        """
        try:
            token = self.orchestrator.get_or_refresh_token()
        except TokenRefreshError:
            print("Token refresh failed. Starting new OAuth2 flow...")
        except TokenNotAvailableError:
            if self.store.exists():
                print("Stored token is no longer usable. Starting OAuth2 flow...")
            else:
                print("No existing token. Starting OAuth2 flow...")
        else:
            print("Loaded existing valid token")
            self._print_token(token)
            print("\nToken is ready for API requests.")
            return token

        token = self._run_authorization_flow()

        print("\nAccess token obtained successfully")
        self._print_token(token)
        if token.has_refresh_token():
            print("  Refresh Token: (available)")
        print(f"\nToken saved to {self.config.token_file}")
        print("\nYou can now use this token to make API requests.")
        return token

    def _run_authorization_flow(self) -> Token:
        auth_url, _ = self.orchestrator.start_authorization()
        server = OAuthCallbackServer(self.config, self.orchestrator)
        result = None

        try:
            server.start()

            print("Visit this URL to authorize the application:")
            print(f"\n{auth_url}\n")
            print("Waiting for authorization...")

            result = server.wait_for_result(self.config.flow_timeout_seconds)
        finally:
            # A callback arriving after this point must not complete the flow
            if result is None or not result.success:
                self.orchestrator.cancel_authorization()
            server.stop(self.config.shutdown_timeout_seconds)

        if result is None:
            logger.warning(
                f"Timeout waiting for callback after {self.config.flow_timeout_seconds}s"
            )
            raise AuthorizationTimeoutError(
                f"authorization timeout ({self.config.flow_timeout_seconds:g} seconds)"
            )

        if not result.success:
            logger.error(f"Authorization flow failed: {result.error}")
            raise result.error

        print("\nAuthorization successful!")
        return result.token

    @staticmethod
    def _print_token(token: Token) -> None:
        print(f"  Access Token: {token.masked_access_token()}")
        print(f"  Expires: {token.expiry.isoformat(timespec='seconds')}")
