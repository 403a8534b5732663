"""
OAuth callback server for the freee authorization flow.

This module provides a local HTTP server that receives the browser redirect
at the end of the authorization flow. Every callback request is turned into
an AuthorizationOrchestrator.complete_authorization() call and its outcome
is handed to the waiting runner through a ResultChannel.

IMPORTANT: This server is designed for single-user, personal use. It runs
temporarily during the authorization flow and is stopped as soon as the
runner has a result.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Optional

from flask import Flask, Response, jsonify, request
from werkzeug.serving import BaseWSGIServer, make_server

from .config import FreeeOAuthConfig
from .exceptions import (
    AuthorizationError,
    CallbackServerError,
    FreeeOAuthError,
    StateMismatchError,
)
from .models import Token
from .orchestrator import AuthorizationOrchestrator

logger = logging.getLogger(__name__)


PAGE_TEMPLATE = """<html>
<head><title>{title}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1 style="color: {color};">{title}</h1>
    <p>{message}</p>
    <p style="margin-top: 30px; color: #666;">You can close this window and return to the terminal.</p>
</body>
</html>"""


@dataclass
class AuthorizationResult:
    """
    Outcome of one callback request.

    Attributes:
        token: Token obtained from the callback (if successful)
        error: Error that ended the callback (if failed)
    """

    token: Optional[Token] = None
    error: Optional[FreeeOAuthError] = None

    @property
    def success(self) -> bool:
        return self.token is not None


class ResultChannel:
    """
    One-slot handoff from the callback handler to the waiting runner.

    publish() never blocks: the first result is kept and any later one is
    dropped (and logged).
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[AuthorizationResult]" = queue.Queue(maxsize=1)

    def publish(self, result: AuthorizationResult) -> bool:
        """
        Offer a result to the runner.

        Returns:
            True if the result was accepted, False if one was already pending
        """
        try:
            self._queue.put_nowait(result)
        except queue.Full:
            logger.warning("Dropping callback result, a result is already pending")
            return False
        return True

    def wait(self, timeout: float) -> Optional[AuthorizationResult]:
        """
        Block until a result is published.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            The published result, or None on timeout
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None


class OAuthCallbackServer:
    """
    Local HTTP server to handle the OAuth callback.

    The server:
    1. Binds to the configured host and port
    2. Serves requests on a background thread
    3. Validates each callback through the orchestrator
    4. Publishes one result per callback to its ResultChannel
    5. Shuts down gracefully within a bounded time
    """

    def __init__(
        self,
        config: FreeeOAuthConfig,
        orchestrator: AuthorizationOrchestrator,
        channel: Optional[ResultChannel] = None,
    ):
        """
        Initialize callback server.

        Args:
            config: OAuth configuration with callback host, port and path
            orchestrator: Orchestrator holding the flow in progress
            channel: Result channel (creates a fresh one if not provided)
        """
        self.config = config
        self.orchestrator = orchestrator
        self.channel = channel or ResultChannel()
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

        self.app.add_url_rule(
            self.config.callback_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )
        self.app.add_url_rule(
            "/status", "oauth_status", self._handle_status, methods=["GET"]
        )

    @staticmethod
    def _page(title: str, message: str, status: int, color: str = "#d32f2f") -> Response:
        return Response(
            PAGE_TEMPLATE.format(title=title, message=message, color=color),
            status=status,
            content_type="text/html",
        )

    def _handle_callback(self) -> Response:
        """Handle OAuth callback from freee."""
        logger.info("Received OAuth callback")

        error = request.args.get("error")
        if error:
            error_desc = request.args.get("error_description", "")
            logger.error(f"OAuth error: {error} - {error_desc}")
            self.channel.publish(
                AuthorizationResult(error=AuthorizationError(f"{error}: {error_desc}"))
            )
            return self._page("Authorization Failed", "The authorization was not granted.", 400)

        code = request.args.get("code")
        if not code:
            logger.error("No authorization code in callback")
            self.channel.publish(
                AuthorizationResult(error=AuthorizationError("no authorization code received"))
            )
            return self._page("Authorization Failed", "No authorization code received.", 400)

        state = request.args.get("state", "")

        try:
            token = self.orchestrator.complete_authorization(code, state)
        except StateMismatchError as e:
            self.channel.publish(AuthorizationResult(error=e))
            return self._page("Authorization Failed", "Invalid state parameter.", 400)
        except FreeeOAuthError as e:
            logger.error(f"Token exchange failed: {e}")
            self.channel.publish(AuthorizationResult(error=e))
            return self._page("Authorization Failed", "Token exchange failed.", 500)
        except Exception as e:
            # The runner would otherwise wait for the full flow timeout
            logger.exception("Unexpected error while completing authorization")
            self.channel.publish(
                AuthorizationResult(error=FreeeOAuthError(f"token exchange failed: {e}"))
            )
            return self._page("Authorization Failed", "Token exchange failed.", 500)

        self.channel.publish(AuthorizationResult(token=token))
        return self._page(
            "Authorization Successful",
            "Your application has been authorized to access your freee account.",
            200,
            color="#4caf50",
        )

    def _handle_status(self) -> Response:
        """Status endpoint for debugging."""
        return jsonify({"status": "running", "waiting_for": "oauth_callback"})

    @property
    def port(self) -> int:
        """Port the server is bound to (resolves port 0 after start)."""
        if self._server is None:
            return self.config.callback_port
        return self._server.server_port

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Bind the server and serve requests in a background thread.

        Raises:
            CallbackServerError: If the port cannot be bound
        """
        if self._server is not None:
            raise CallbackServerError("Callback server already started")

        try:
            self._server = make_server(
                self.config.callback_host,
                self.config.callback_port,
                self.app,
                threaded=True,
            )
        except (OSError, SystemExit) as e:
            # werkzeug exits instead of raising when the port is taken
            raise CallbackServerError(
                f"Could not start callback server on "
                f"{self.config.callback_host}:{self.config.callback_port}: {e}"
            ) from e

        self._thread = threading.Thread(
            target=self._server.serve_forever, name="oauth-callback-server", daemon=True
        )
        self._thread.start()
        logger.info(f"OAuth callback server listening on port {self.port}")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the callback server.

        Args:
            timeout: Maximum seconds to wait for the server to finish
                     (defaults to config.shutdown_timeout_seconds)

        Raises:
            CallbackServerError: If the server did not stop in time
        """
        if self._server is None:
            return

        if timeout is None:
            timeout = self.config.shutdown_timeout_seconds

        server, thread = self._server, self._thread
        self._server = None
        self._thread = None

        logger.info("OAuth callback server shutting down")
        deadline = time.monotonic() + timeout
        shutdown = threading.Thread(target=server.shutdown, daemon=True)
        shutdown.start()
        shutdown.join(timeout)
        if thread is not None:
            thread.join(max(0.0, deadline - time.monotonic()))
        server.server_close()

        if shutdown.is_alive() or (thread is not None and thread.is_alive()):
            raise CallbackServerError(
                f"Callback server did not shut down within {timeout} seconds"
            )

    def wait_for_result(self, timeout: Optional[float] = None) -> Optional[AuthorizationResult]:
        """
        Wait for the first callback result.

        Args:
            timeout: Maximum seconds to wait (defaults to config.flow_timeout_seconds)

        Returns:
            AuthorizationResult, or None if no callback arrived in time
        """
        if timeout is None:
            timeout = self.config.flow_timeout_seconds
        logger.info(f"Waiting for OAuth callback (timeout: {timeout}s)")
        return self.channel.wait(timeout)
