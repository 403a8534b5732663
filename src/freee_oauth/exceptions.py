"""
OAuth exception classes for the freee authorization flow.

This module defines the exception hierarchy for all OAuth-related errors.
Token lifecycle errors (TokenNotAvailableError, TokenRefreshError) are
recoverable by starting a new authorization flow; everything else aborts
the current run.
"""


class FreeeOAuthError(Exception):
    """Base exception for all freee OAuth errors."""

    pass


class ConfigurationError(FreeeOAuthError):
    """OAuth configuration error (missing or invalid configuration)."""

    pass


class TokenNotAvailableError(FreeeOAuthError):
    """No usable token is stored (need to authorize)."""

    pass


class TokenRefreshError(FreeeOAuthError):
    """Failed to refresh access token using refresh token."""

    pass


class TokenExchangeError(FreeeOAuthError):
    """Failed to exchange authorization code for tokens."""

    pass


class TokenStorageError(FreeeOAuthError):
    """Token storage operation failed (file I/O error)."""

    pass


class CallbackServerError(FreeeOAuthError):
    """Local callback server could not be started or stopped."""

    pass


class AuthorizationError(FreeeOAuthError):
    """OAuth authorization flow error."""

    pass


class StateMismatchError(AuthorizationError):
    """Callback state does not match the flow in progress."""

    pass


class AuthorizationTimeoutError(AuthorizationError):
    """No callback was received before the flow timed out."""

    pass
