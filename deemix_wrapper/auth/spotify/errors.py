"""Errors raised by the Spotify credential lifecycle."""

from __future__ import annotations

from pathlib import Path

from deemix_wrapper.auth.spotify.models import AuthState


class CredentialError(Exception):
    """Base class for credential errors."""


class ConfigurationError(CredentialError):
    """Required configuration (the client id) is missing."""


class PersistenceError(CredentialError):
    """The credential file could not be read or written."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class AuthorizationError(CredentialError):
    """A flow ended in the FAILED state.

    ``state`` is the sub-state the manager was in when it failed, either
    ``AuthState.AUTHORIZING`` or ``AuthState.REFRESHING``.
    """

    state = AuthState.AUTHORIZING

    def __init__(self, message: str, state: AuthState | None = None):
        super().__init__(message)
        if state is not None:
            self.state = state


class AuthorizationTimeoutError(AuthorizationError):
    """No callback reached the loopback listener in time."""


class AuthorizationRejectedError(AuthorizationError):
    """The provider refused the authorization or the code exchange."""


class CallbackServerError(AuthorizationError):
    """The loopback listener could not be bound."""


class RefreshRejectedError(AuthorizationError):
    """The refresh token was rejected (revoked or invalid grant)."""

    state = AuthState.REFRESHING
