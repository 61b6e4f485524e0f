"""Authentication utilities for Google Photos API."""

import logging
import threading
from concurrent.futures import Future
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from oauthlib.oauth2 import OAuth2Error

from google_photos_mirror.models import (
    AuthConfig,
    AuthorizationError,
    DecodeError,
    TransportError,
)

logger = logging.getLogger(__name__)

SUCCESS_PAGE = (
    b"<html><body><h1>Authorization complete</h1>"
    b"<p>You may now close this window.</p></body></html>"
)
FAILURE_PAGE = (
    b"<html><body><h1>Authorization failed</h1>"
    b"<p>Return to the terminal for details.</p></body></html>"
)


class AuthState(str, Enum):
    """Progress of a TokenAuthorizer."""
    IDLE = "idle"
    AWAITING_CODE = "awaiting_code"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class AuthenticatedClient:
    """HTTP client that sends the access token and refreshes it when expired.

    The token lives inside the wrapped AuthorizedSession, which checks the
    credentials before every request and refreshes them with the refresh
    token once they have expired.
    """

    def __init__(self, session: requests.Session):
        self._session = session

    def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Issue a GET request.

        Raises:
            AuthorizationError: If the access token could not be refreshed
            TransportError: If the request failed or returned a non-2xx status
        """
        try:
            response = self._session.get(url, params=params)
        except GoogleAuthError as e:
            raise AuthorizationError(f"Failed to refresh access token: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if not response.ok:
            raise TransportError(
                f"GET {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a URL and decode its JSON body."""
        response = self.get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {url} is not valid JSON: {e}") from e

    def get_content(self, url: str) -> bytes:
        """GET a URL and return the whole body."""
        return self.get(url).content

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()


class _CallbackHandler(BaseHTTPRequestHandler):
    """Handles the OAuth redirect sent by the browser."""

    def do_GET(self):
        query = parse_qs(urlsplit(self.path).query)
        accepted = self.server.receiver.deliver(query)

        self.send_response(200 if accepted else 400)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(SUCCESS_PAGE if accepted else FAILURE_PAGE)

        self.server.receiver.shutdown_async()

    def log_message(self, format, *args):
        logger.debug("Callback listener: %s", format % args)


class CallbackCodeReceiver:
    """Receives the authorization code on a short-lived local HTTP listener.

    The listener runs on a background thread. The first request hands its
    ``code`` parameter to :meth:`wait` through a one-shot future and starts
    shutting the listener down without waiting for it to finish.
    """

    def __init__(self, host: str = "localhost", port: int = 8080):
        self.host = host
        self._port = port
        self._expected_state: Optional[str] = None
        self._code: "Future[str]" = Future()
        self._server: Optional[HTTPServer] = None
        self._shutdown_lock = threading.Lock()
        self._shutting_down = False
        self.stopped = threading.Event()

    @classmethod
    def from_redirect_uri(cls, redirect_uri: str) -> "CallbackCodeReceiver":
        """Create a receiver bound to the host and port of a redirect URI."""
        parts = urlsplit(redirect_uri)
        port = parts.port or (443 if parts.scheme == "https" else 80)
        return cls(host=parts.hostname or "localhost", port=port)

    @property
    def port(self) -> int:
        """Port the listener is bound to (resolved once started)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self._port

    def start(self, expected_state: Optional[str] = None) -> None:
        """Bind the listener and start serving on a daemon thread.

        Raises:
            AuthorizationError: If the port cannot be bound
        """
        self._expected_state = expected_state
        try:
            server = HTTPServer((self.host, self._port), _CallbackHandler)
        except OSError as e:
            raise AuthorizationError(
                f"Cannot listen for the callback on {self.host}:{self._port}: {e}"
            ) from e
        server.receiver = self
        self._server = server
        threading.Thread(
            target=server.serve_forever, name="oauth-callback", daemon=True
        ).start()
        logger.debug("Listening for the OAuth callback on %s:%d", self.host, self.port)

    def deliver(self, query: Dict[str, List[str]]) -> bool:
        """Resolve the pending code from a callback query.

        Only the first callback counts; later ones are ignored.

        Returns:
            True if the request carried a usable code
        """
        if self._code.done():
            logger.debug("Ignoring callback received after the code was handed over")
            return self._code.exception() is None

        error = _first(query, "error")
        code = _first(query, "code")
        state = _first(query, "state")
        if error:
            self._code.set_exception(AuthorizationError(f"Authorization denied: {error}"))
        elif not code:
            self._code.set_exception(
                AuthorizationError("Callback request carried no authorization code")
            )
        elif self._expected_state and state != self._expected_state:
            self._code.set_exception(AuthorizationError("Callback state does not match request"))
        else:
            self._code.set_result(code)
        return self._code.exception() is None

    def wait(self) -> str:
        """Block until the callback arrives. There is no timeout."""
        return self._code.result()

    def shutdown_async(self) -> None:
        """Stop the listener on a separate thread without waiting for it."""
        with self._shutdown_lock:
            if self._server is None or self._shutting_down:
                return
            self._shutting_down = True
        threading.Thread(target=self._shutdown, name="oauth-callback-shutdown", daemon=True).start()

    def _shutdown(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self.stopped.set()
        logger.debug("Callback listener stopped")

    def close(self) -> None:
        """Stop the listener if it is still running."""
        self.shutdown_async()


class ManualCodeReceiver:
    """Reads the authorization code typed in by the operator."""

    def __init__(
        self,
        read_line: Callable[[str], str] = input,
        prompt: str = "Enter the authorization code: ",
    ):
        self._read_line = read_line
        self._prompt = prompt

    def start(self, expected_state: Optional[str] = None) -> None:
        pass

    def wait(self) -> str:
        try:
            code = self._read_line(self._prompt).strip()
        except EOFError as e:
            raise AuthorizationError("No authorization code entered") from e
        if not code:
            raise AuthorizationError("No authorization code entered")
        return code

    def close(self) -> None:
        pass


class TokenAuthorizer:
    """Runs the OAuth2 authorization-code grant and yields an authenticated client."""

    def __init__(
        self,
        config: AuthConfig,
        receiver=None,
        announce: Callable[[str], None] = print,
    ):
        """Initialize the authorizer.

        Args:
            config: OAuth client settings
            receiver: Code receiving strategy; defaults to a local listener
                on the redirect URI's port
            announce: Called with the line telling the operator where to go
        """
        self.config = config
        self.receiver = receiver or CallbackCodeReceiver.from_redirect_uri(config.redirect_uri)
        self.state = AuthState.IDLE
        self._announce = announce

    def create_flow(self) -> Flow:
        """Build the oauthlib flow for the configured client."""
        return Flow.from_client_config(
            self.config.to_client_config(),
            scopes=list(self.config.scopes),
            redirect_uri=self.config.redirect_uri,
        )

    def authorize(self) -> AuthenticatedClient:
        """Obtain a token, blocking until the operator completes consent.

        Returns:
            Client that refreshes its access token as needed

        Raises:
            AuthorizationError: If the code cannot be obtained or exchanged
        """
        flow = self.create_flow()
        try:
            code = self._obtain_code(flow)
            self.state = AuthState.EXCHANGING
            credentials = self._exchange(flow, code)
        except AuthorizationError:
            self.state = AuthState.FAILED
            raise

        self.state = AuthState.AUTHENTICATED
        logger.info("Authorization complete")
        return AuthenticatedClient(AuthorizedSession(credentials))

    def _obtain_code(self, flow: Flow) -> str:
        # Offline access so that a refresh token is issued.
        url, state = flow.authorization_url(access_type="offline", prompt="consent")
        self.receiver.start(state)
        try:
            self.state = AuthState.AWAITING_CODE
            self._announce(f"Visit the URL for the auth dialog: {url}")
            return self.receiver.wait()
        except KeyboardInterrupt as e:
            raise AuthorizationError("Authorization cancelled") from e
        finally:
            self.receiver.close()

    def _exchange(self, flow: Flow, code: str) -> Credentials:
        try:
            flow.fetch_token(code=code)
        except (OAuth2Error, requests.RequestException, ValueError, Warning) as e:
            raise AuthorizationError(f"Failed to exchange authorization code: {e}") from e
        return flow.credentials


def _first(query: Dict[str, List[str]], key: str) -> Optional[str]:
    values = query.get(key)
    return values[0] if values else None
