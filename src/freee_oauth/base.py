"""
Collaborator interfaces for the authorization orchestrator.

The orchestrator only depends on these two abstractions, so tests can
swap in doubles for file and network I/O.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import Token


class TokenStore(ABC):
    """Persistence for the single stored token."""

    @abstractmethod
    def save(self, token: Token) -> None:
        """
        Persist a token, replacing any stored one.

        Raises:
            TokenStorageError: If the token cannot be written
        """
        pass

    @abstractmethod
    def load(self) -> Optional[Token]:
        """
        Load the stored token.

        Returns:
            The stored Token, or None if nothing is stored

        Raises:
            TokenStorageError: If stored data cannot be read or parsed
        """
        pass

    @abstractmethod
    def exists(self) -> bool:
        pass


class AuthorizationClient(ABC):
    """OAuth 2.0 provider operations."""

    @abstractmethod
    def authorization_url(self, state: str) -> str:
        """Build the provider authorization URL carrying the given state."""
        pass

    @abstractmethod
    def exchange(self, code: str) -> Token:
        """
        Exchange an authorization code for a token.

        Raises:
            TokenExchangeError: If the provider rejects the code or is unreachable
        """
        pass

    @abstractmethod
    def refresh(self, token: Token) -> Token:
        """
        Obtain a new token using the refresh token of an expired one.

        Raises:
            TokenRefreshError: If the provider rejects the refresh
        """
        pass
