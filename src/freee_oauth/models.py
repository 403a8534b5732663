"""
Token value object for the freee OAuth flow.

Validity is always computed against the clock; nothing about a token's
state is stored besides its absolute expiry.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

# Tokens expiring within this window are already treated as invalid
EXPIRY_BUFFER = timedelta(minutes=5)

# Number of access token characters shown by masked_access_token()
MASKED_TOKEN_LENGTH = 20

# Fractional seconds; fromisoformat only takes 3 or 6 digits before 3.11
_FRACTION = re.compile(r"(?<=\d\d:\d\d:\d\d)\.(\d+)")


def _utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _fraction(match: "re.Match[str]") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into a timezone-aware datetime.

    Accepts a trailing "Z", naive timestamps (assumed UTC) and fractional
    seconds of any length (truncated to microseconds).

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION.sub(_fraction, value, count=1)
    return _utc(datetime.fromisoformat(value))


@dataclass(frozen=True)
class Token:
    """
    OAuth access token.

    Attributes:
        access_token: Bearer credential for API calls
        refresh_token: Credential for obtaining a new access token
                       (empty string means the token cannot be refreshed)
        expiry: Absolute expiry time (timezone-aware)
    """

    access_token: str
    refresh_token: str
    expiry: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "expiry", _utc(self.expiry))

    def __repr__(self) -> str:
        return (
            f"Token(access_token={self.masked_access_token()!r}, "
            f"refresh_token={'<set>' if self.has_refresh_token() else '<empty>'}, "
            f"expiry={self.expiry.isoformat()!r})"
        )

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the token can still be used.

        A token expiring within EXPIRY_BUFFER is considered invalid.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            True if now + EXPIRY_BUFFER is strictly before expiry
        """
        now = _utc(now) if now is not None else datetime.now(timezone.utc)
        return now + EXPIRY_BUFFER < self.expiry

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        """Check if the token is invalid but can be refreshed."""
        return not self.is_valid(now) and self.has_refresh_token()

    def has_refresh_token(self) -> bool:
        return self.refresh_token != ""

    def masked_access_token(self) -> str:
        """
        Access token shortened for display.

        Returns:
            The access token if it is at most MASKED_TOKEN_LENGTH characters,
            otherwise its first MASKED_TOKEN_LENGTH characters followed by "..."
        """
        if len(self.access_token) <= MASKED_TOKEN_LENGTH:
            return self.access_token
        return self.access_token[:MASKED_TOKEN_LENGTH] + "..."

    def to_dict(self) -> Dict[str, str]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with access_token, refresh_token and ISO 8601 expiry
        """
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        """
        Create Token from a dictionary written by to_dict().

        Raises:
            KeyError: If required fields are missing
            ValueError: If expiry is not a valid timestamp
            TypeError: If fields have wrong types
        """
        access_token = data["access_token"]
        refresh_token = data.get("refresh_token") or ""
        expiry = data["expiry"]
        for name, field in (
            ("access_token", access_token),
            ("refresh_token", refresh_token),
            ("expiry", expiry),
        ):
            if not isinstance(field, str):
                raise TypeError(f"{name} must be a string, got {type(field).__name__}")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expiry=parse_timestamp(expiry),
        )

    @classmethod
    def from_response(
        cls, data: Dict[str, Any], previous: Optional["Token"] = None
    ) -> "Token":
        """
        Create Token from a token endpoint response body.

        Args:
            data: Parsed JSON response (access_token, expires_in, refresh_token)
            previous: Token being refreshed; its refresh token is kept when
                      the response does not include a new one

        Raises:
            KeyError: If access_token or expires_in is missing
            ValueError: If expires_in is not a number
        """
        refresh_token = data.get("refresh_token") or ""
        if not refresh_token and previous is not None:
            refresh_token = previous.refresh_token

        expires_in = int(data["expires_in"])
        return cls(
            access_token=data["access_token"],
            refresh_token=refresh_token,
            expiry=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )
