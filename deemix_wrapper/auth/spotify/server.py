"""Loopback listener that catches the Spotify authorization redirect."""

from __future__ import annotations

import contextlib
import logging
import socket
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Iterator

from deemix_wrapper.auth.spotify.constants import FAILURE_HTML, SUCCESS_HTML
from deemix_wrapper.auth.spotify.errors import AuthorizationRejectedError, CallbackServerError
from deemix_wrapper.auth.spotify.models import AuthorizationSession
from deemix_wrapper.auth.spotify.pkce import _parse_callback_query

logger = logging.getLogger(__name__)


class _OAuthHandler(BaseHTTPRequestHandler):
    """Local callback HTTP handler."""

    server_version = "DeemixWrapperOAuth/1.0"
    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:  # noqa: N802
        try:
            url = urllib.parse.urlparse(self.path)
            if url.path != self.server.callback_path:
                self._reply(404, b"Not found")
                return

            session: AuthorizationSession = self.server.session
            if session.completion.done():
                self._reply(410, b"Authorization already completed")
                return

            code, state, error = _parse_callback_query(url.query)

            if state != session.oauth_state:
                logger.warning("Ignoring callback with mismatching state")
                self._reply(400, b"State mismatch")
                return

            if error:
                session.fail(AuthorizationRejectedError(f"Spotify denied the authorization: {error}"))
                self._reply(400, FAILURE_HTML.encode("utf-8"), html=True)
                return

            if not code:
                self._reply(400, b"Missing code")
                return

            session.resolve(code)
            self._reply(200, SUCCESS_HTML.encode("utf-8"), html=True)
        except Exception:
            logger.exception("Callback handler failed")
            self._reply(500, b"Internal error")

    def _reply(self, status: int, body: bytes, html: bool = False) -> None:
        self.send_response(status)
        content_type = "text/html; charset=utf-8" if html else "text/plain; charset=utf-8"
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)
        self.close_connection = True

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A003
        # Access logs would print the authorization code.
        return


class _OAuthServer(HTTPServer):
    """OAuth callback server bound to one authorization session."""

    def __init__(
        self,
        server_address: tuple[Any, ...],
        session: AuthorizationSession,
        callback_path: str,
    ):
        super().__init__(server_address, _OAuthHandler)
        self.session = session
        self.callback_path = callback_path
        self.thread: threading.Thread | None = None


def _start_local_server(
    host: str,
    port: int,
    callback_path: str,
    session: AuthorizationSession,
) -> tuple[_OAuthServer | None, str | None]:
    """Start the callback server on the first address ``host`` resolves to."""
    try:
        addrinfos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except OSError as exc:
        return None, f"Failed to resolve {host}: {exc}"

    last_error: OSError | None = None
    for family, _socktype, _proto, _canonname, sockaddr in addrinfos:
        try:
            # localhost may resolve to ::1 first; bind with the matching family.
            class _AddrOAuthServer(_OAuthServer):
                address_family = family

            server = _AddrOAuthServer(sockaddr, session, callback_path)
            server.thread = threading.Thread(target=server.serve_forever, kwargs={"poll_interval": 0.1}, daemon=True)
            server.thread.start()
            logger.debug("Callback server listening on %s", sockaddr)
            return server, None
        except OSError as exc:
            last_error = exc
            continue

    if last_error:
        return None, f"Local callback server failed to start: {last_error}"
    return None, "Local callback server failed to start: unknown error"


def _stop_local_server(server: _OAuthServer) -> None:
    server.shutdown()
    server.server_close()
    if server.thread is not None:
        server.thread.join()
    logger.debug("Callback server stopped")


@contextlib.contextmanager
def callback_listener(
    host: str,
    port: int,
    callback_path: str,
    session: AuthorizationSession,
) -> Iterator[_OAuthServer]:
    """Bind the listener for one session and release the port on every exit path."""
    server, error = _start_local_server(host, port, callback_path, session)
    if server is None:
        raise CallbackServerError(error or "Local callback server failed to start")
    try:
        yield server
    finally:
        _stop_local_server(server)
