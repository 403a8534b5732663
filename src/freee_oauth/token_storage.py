"""
Token storage for the freee OAuth flow.

This module provides file-based token persistence. Tokens are stored in
plaintext JSON with owner-only permissions (0600).
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .base import TokenStore
from .exceptions import TokenStorageError
from .models import Token

logger = logging.getLogger(__name__)


class TokenStorage(TokenStore):
    """
    File-based token storage (plaintext JSON).

    The file holds a single record:

        {"access_token": "...", "refresh_token": "...", "expiry": "2026-01-25T10:30:00+00:00"}
    """

    def __init__(self, token_file: str):
        """
        Initialize token storage.

        Args:
            token_file: Path to token storage file (e.g., token.json)
        """
        self.token_file = Path(token_file)

    def _set_secure_permissions(self) -> None:
        """Set file permissions to user-only read/write (600)."""
        try:
            self.token_file.chmod(0o600)
        except OSError as e:
            logger.warning(f"Could not set secure permissions: {e}")

    def save(self, token: Token) -> None:
        """
        Save token to file.

        Args:
            token: Token to save

        Raises:
            TokenStorageError: If save operation fails
        """
        try:
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(token.to_dict(), f, indent=2)

            # Existing files keep their old mode on open()
            self._set_secure_permissions()

            logger.info(f"Token saved to {self.token_file}")
        except OSError as e:
            logger.error(f"Failed to save token: {e}")
            raise TokenStorageError(f"Failed to save token: {e}") from e

    def load(self) -> Optional[Token]:
        """
        Load token from file.

        Returns:
            Token if file exists, None if there is no token file

        Raises:
            TokenStorageError: If the file cannot be read or is corrupted
        """
        if not self.token_file.exists():
            logger.debug(f"No token file found at {self.token_file}")
            return None

        try:
            with open(self.token_file, "r") as f:
                data = json.load(f)
            token = Token.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Invalid token file at {self.token_file}: {e}")
            raise TokenStorageError(f"Invalid token file at {self.token_file}") from e
        except OSError as e:
            logger.warning(f"Could not read token file: {e}")
            raise TokenStorageError(f"Could not read token file: {e}") from e

        logger.debug(f"Token loaded from {self.token_file}")
        return token

    def exists(self) -> bool:
        """
        Check if token file exists.

        Returns:
            True if token file exists, False otherwise
        """
        return self.token_file.exists()
