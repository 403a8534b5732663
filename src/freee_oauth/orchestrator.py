"""
Authorization orchestrator for the token lifecycle.

This module decides whether a stored token can be used as-is, refreshed,
or has to be replaced through a new authorization flow, and validates the
callback of that flow against the state it issued.
"""

import logging
import secrets
import threading
from typing import Optional, Tuple

from .base import AuthorizationClient, TokenStore
from .exceptions import (
    StateMismatchError,
    TokenExchangeError,
    TokenNotAvailableError,
    TokenRefreshError,
    TokenStorageError,
)
from .models import Token

logger = logging.getLogger(__name__)

# 32 random bytes = 256 bits of entropy
STATE_BYTES = 32


class AuthorizationOrchestrator:
    """
    Token lifecycle state machine.

    Only one authorization flow is tracked at a time: start_authorization()
    replaces the state of any flow started before it.

    Example:
        orchestrator = AuthorizationOrchestrator(storage, client)
        try:
            token = orchestrator.get_or_refresh_token()
        except (TokenNotAvailableError, TokenRefreshError):
            auth_url, _ = orchestrator.start_authorization()
            # send the user to auth_url, then on callback:
            token = orchestrator.complete_authorization(code, state)
    """

    def __init__(self, store: TokenStore, client: AuthorizationClient):
        """
        Initialize the orchestrator.

        Args:
            store: Token persistence
            client: OAuth provider client
        """
        self.store = store
        self.client = client
        self._current_state: Optional[str] = None
        self._state_lock = threading.Lock()

    @property
    def flow_in_progress(self) -> bool:
        with self._state_lock:
            return self._current_state is not None

    def get_or_refresh_token(self) -> Token:
        """
        Return a usable stored token, refreshing it once if needed.

        Returns:
            Valid Token (the stored one, or a freshly refreshed and saved one)

        Raises:
            TokenNotAvailableError: No token stored, stored token unreadable,
                                    or expired without refresh token
            TokenRefreshError: Provider rejected the refresh
            TokenStorageError: Refreshed token could not be saved
        """
        try:
            token = self.store.load()
        except TokenStorageError as e:
            raise TokenNotAvailableError(f"Stored token could not be loaded: {e}") from e

        if token is None:
            raise TokenNotAvailableError("No token available")

        if token.is_valid():
            logger.debug("Stored token is valid")
            return token

        if not token.needs_refresh():
            logger.info("Stored token expired and has no refresh token")
            raise TokenNotAvailableError("Token expired and cannot be refreshed")

        logger.info("Stored token expired, refreshing")
        try:
            new_token = self.client.refresh(token)
        except TokenRefreshError:
            logger.warning("Token refresh failed, re-authorization required")
            raise
        except Exception as e:
            logger.warning(f"Token refresh failed, re-authorization required: {e}")
            raise TokenRefreshError(f"token refresh failed: {e}") from e

        self.store.save(new_token)
        return new_token

    def start_authorization(self) -> Tuple[str, str]:
        """
        Begin a new authorization flow.

        Returns:
            Tuple of (authorization URL, state)
        """
        state = secrets.token_urlsafe(STATE_BYTES)
        with self._state_lock:
            if self._current_state is not None:
                logger.debug("Discarding state of previous authorization flow")
            self._current_state = state

        return self.client.authorization_url(state), state

    def cancel_authorization(self) -> None:
        """
        Forget the flow in progress.

        Callbacks arriving afterwards fail with StateMismatchError, so a
        late redirect cannot save a token for an abandoned flow.
        """
        with self._state_lock:
            if self._current_state is not None:
                logger.info("Authorization flow cancelled")
            self._current_state = None

    def complete_authorization(self, code: str, state: str) -> Token:
        """
        Finish the flow started by start_authorization().

        A matching state is consumed before the code is exchanged, so the
        same callback cannot be exchanged twice.

        Args:
            code: Authorization code from the callback
            state: State from the callback

        Returns:
            The new Token (already saved)

        Raises:
            StateMismatchError: No flow in progress or state differs
            TokenExchangeError: Provider rejected the code
            TokenStorageError: Token could not be saved
        """
        with self._state_lock:
            if self._current_state is None or state != self._current_state:
                logger.warning("Callback state does not match authorization flow")
                raise StateMismatchError("state mismatch")
            self._current_state = None

        try:
            token = self.client.exchange(code)
        except TokenExchangeError:
            logger.error("Authorization code exchange failed")
            raise
        except Exception as e:
            logger.error(f"Authorization code exchange failed: {e}")
            raise TokenExchangeError(f"token exchange failed: {e}") from e

        self.store.save(token)
        logger.info("Authorization complete, token saved")
        return token
