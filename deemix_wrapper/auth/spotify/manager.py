"""Spotify credential lifecycle: PKCE login, refresh and persistence."""

from __future__ import annotations

import logging
import time
import urllib.parse
import webbrowser
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Iterable

import httpx

from deemix_wrapper.auth.spotify.constants import (
    AUTH_TIMEOUT_SEC,
    AUTHORIZE_URL,
    REDIRECT_URI,
    SCOPES,
    TOKEN_URL,
)
from deemix_wrapper.auth.spotify.errors import (
    AuthorizationError,
    AuthorizationRejectedError,
    AuthorizationTimeoutError,
    ConfigurationError,
    CredentialError,
    PersistenceError,
    RefreshRejectedError,
)
from deemix_wrapper.auth.spotify.models import AuthorizationSession, AuthState, ClientIdentity, Credential
from deemix_wrapper.auth.spotify.pkce import _build_authorize_url, _create_state, _generate_pkce
from deemix_wrapper.auth.spotify.server import callback_listener
from deemix_wrapper.auth.spotify.storage import CredentialStore

logger = logging.getLogger(__name__)


class CredentialManager:
    """Owns the Spotify token pair and the flows that produce it.

    Not reentrant: one caller drives it at a time.
    """

    def __init__(
        self,
        identity: ClientIdentity,
        store: CredentialStore,
        *,
        redirect_uri: str = REDIRECT_URI,
        scopes: Iterable[str] = SCOPES,
        timeout: float = AUTH_TIMEOUT_SEC,
        authorize_url: str = AUTHORIZE_URL,
        token_url: str = TOKEN_URL,
        transport: httpx.BaseTransport | None = None,
        on_auth: Callable[[str], object] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.identity = identity
        self.store = store
        self.redirect_uri = redirect_uri
        self.scopes = tuple(scopes)
        self.timeout = timeout
        self.authorize_url = authorize_url
        self.token_url = token_url
        self._transport = transport
        self._on_auth = on_auth or webbrowser.open
        self._clock = clock

        self._credential: Credential | None = None
        self._state = AuthState.NO_CREDENTIAL
        self._failure: CredentialError | None = None
        self._loaded = False

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def ensure_authorized(self) -> str:
        """Return a usable access token, running login or refresh as needed."""
        if self._state is AuthState.FAILED and self._failure is not None:
            raise self._failure

        if not self._loaded:
            self._load()

        if self._credential is None:
            return self.authorize().access_token
        if self._credential.is_expired(self._clock()):
            logger.debug("Access token expired, refreshing")
            return self.refresh().access_token
        return self._credential.access_token

    def authorize(self) -> Credential:
        """Run the authorization-code flow with PKCE and persist the result."""
        listen_on = _split_redirect_uri(self.redirect_uri)
        verifier, challenge = _generate_pkce()
        session = AuthorizationSession(
            code_verifier=verifier,
            code_challenge=challenge,
            oauth_state=_create_state(),
        )
        url = _build_authorize_url(
            self.authorize_url,
            self.identity.client_id,
            self.redirect_uri,
            challenge,
            session.oauth_state,
            self.scopes,
        )
        self._state = AuthState.AUTHORIZING

        try:
            code = self._wait_for_code(session, url, listen_on)
            credential = self._exchange_code_for_token(code, session.code_verifier)
        except AuthorizationError as exc:
            self._fail(exc)
            raise

        self._persist(credential)
        return credential

    def refresh(self) -> Credential:
        """Exchange the stored refresh token for a new token pair."""
        if not self._loaded:
            self._load()
        if self._credential is None:
            return self.authorize()

        self._state = AuthState.REFRESHING
        try:
            credential = self._refresh_token(self._credential)
        except AuthorizationError as exc:
            # The stored record stays as-is so the user can re-authorize by hand.
            self._fail(exc)
            raise

        self._persist(credential)
        return credential

    def reset(self) -> None:
        """Leave the FAILED state and re-read the credentials file on next use."""
        self._failure = None
        self._credential = None
        self._loaded = False
        self._state = AuthState.NO_CREDENTIAL

    def logout(self) -> bool:
        """Forget the cached credential. Returns False if none was stored."""
        removed = self.store.clear()
        self.reset()
        return removed

    def _load(self) -> None:
        self._credential = self.store.load()
        self._loaded = True
        self._state = AuthState.AUTHORIZED if self._credential else AuthState.NO_CREDENTIAL

    def _fail(self, exc: AuthorizationError) -> None:
        self._state = AuthState.FAILED
        self._failure = exc
        logger.debug("Authorization failed in state %s: %s", exc.state.value, exc)

    def _persist(self, credential: Credential) -> None:
        try:
            self.store.save(credential)
        except PersistenceError as exc:
            self._state = AuthState.FAILED
            self._failure = exc
            logger.error("Obtained a new Spotify token but could not save it to %s", self.store.path)
            raise
        self._credential = credential
        self._loaded = True
        self._state = AuthState.AUTHORIZED

    def _wait_for_code(
        self,
        session: AuthorizationSession,
        url: str,
        listen_on: tuple[str, int, str],
    ) -> str:
        host, port, path = listen_on
        with callback_listener(host, port, path, session):
            self._on_auth(url)
            try:
                return session.completion.result(timeout=self.timeout)
            except FutureTimeoutError:
                raise AuthorizationTimeoutError(
                    f"No authorization callback received within {self.timeout:g} seconds"
                ) from None

    def _exchange_code_for_token(self, code: str, verifier: str) -> Credential:
        data = {
            "grant_type": "authorization_code",
            "client_id": self.identity.client_id,
            "code": code,
            "code_verifier": verifier,
            "redirect_uri": self.redirect_uri,
        }
        payload = self._post_token(data, AuthorizationRejectedError, "Token exchange failed")
        try:
            return Credential.from_token_response(payload, now=self._clock())
        except ValueError as exc:
            raise AuthorizationRejectedError(f"Token exchange failed: {exc}") from exc

    def _refresh_token(self, current: Credential) -> Credential:
        data = {
            "grant_type": "refresh_token",
            "refresh_token": current.refresh_token,
            "client_id": self.identity.client_id,
        }
        payload = self._post_token(data, RefreshRejectedError, "Token refresh failed")
        try:
            return Credential.from_token_response(payload, now=self._clock(), previous=current)
        except ValueError as exc:
            raise RefreshRejectedError(f"Token refresh failed: {exc}") from exc

    def _post_token(
        self,
        data: dict[str, str],
        error_cls: type[AuthorizationError],
        message: str,
    ) -> dict[str, Any]:
        try:
            with httpx.Client(timeout=30.0, transport=self._transport) as client:
                response = client.post(
                    self.token_url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as exc:
            raise error_cls(f"{message}: {exc}") from exc

        if response.status_code != 200:
            raise error_cls(f"{message}: {response.status_code} {response.text}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise error_cls(f"{message}: response was not JSON") from exc
        if not isinstance(payload, dict):
            raise error_cls(f"{message}: response was not an object")
        return payload


def _split_redirect_uri(redirect_uri: str) -> tuple[str, int, str]:
    parsed = urllib.parse.urlparse(redirect_uri)
    if not parsed.hostname or not parsed.port:
        raise ConfigurationError(f"Redirect URI needs an explicit host and port: {redirect_uri}")
    return parsed.hostname, parsed.port, parsed.path or "/"
