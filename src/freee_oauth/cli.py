"""
Command-line entry point for the freee OAuth flow.

Usage:
    export FREEE_CLIENT_ID="your-client-id"
    export FREEE_CLIENT_SECRET="your-client-secret"
    freee-oauth

Set FREEE_OAUTH_LOG_LEVEL (e.g. INFO, DEBUG) for diagnostic logging.
"""

import logging
import os
import sys

import click

from .config import FreeeOAuthConfig
from .exceptions import ConfigurationError, FreeeOAuthError
from .runner import AuthorizationRunner

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level_name = os.environ.get("FREEE_OAUTH_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING

    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    # werkzeug logs every request at INFO
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))


def _print_error(message: str) -> None:
    """Print error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


@click.command()
def main() -> None:
    """Obtain a freee API access token, authorizing in the browser if needed."""
    _configure_logging()

    try:
        config = FreeeOAuthConfig.from_env()
    except ConfigurationError as e:
        _print_error(str(e))
        sys.exit(1)

    try:
        AuthorizationRunner(config).run()
    except FreeeOAuthError as e:
        logger.debug("Authorization run failed", exc_info=True)
        _print_error(str(e))
        sys.exit(1)
