"""Spotify OAuth (authorization code + PKCE) credential management."""

from deemix_wrapper.auth.spotify.errors import (
    AuthorizationError,
    AuthorizationRejectedError,
    AuthorizationTimeoutError,
    CallbackServerError,
    ConfigurationError,
    CredentialError,
    PersistenceError,
    RefreshRejectedError,
)
from deemix_wrapper.auth.spotify.manager import CredentialManager
from deemix_wrapper.auth.spotify.models import AuthState, ClientIdentity, Credential
from deemix_wrapper.auth.spotify.storage import CredentialStore

__all__ = [
    "AuthState",
    "AuthorizationError",
    "AuthorizationRejectedError",
    "AuthorizationTimeoutError",
    "CallbackServerError",
    "ClientIdentity",
    "ConfigurationError",
    "Credential",
    "CredentialError",
    "CredentialManager",
    "CredentialStore",
    "PersistenceError",
    "RefreshRejectedError",
]
