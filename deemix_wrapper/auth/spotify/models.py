"""Spotify OAuth data models."""

from __future__ import annotations

import os
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from deemix_wrapper.auth.spotify.constants import EXPIRY_SKEW_SEC

_CORE_FIELDS = ("access_token", "refresh_token", "expires_at", "token_type", "scope")


class AuthState(str, Enum):
    """Lifecycle states of the credential manager."""

    NO_CREDENTIAL = "no_credential"
    AUTHORIZING = "authorizing"
    AUTHORIZED = "authorized"
    REFRESHING = "refreshing"
    FAILED = "failed"


class SessionStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    FAILED = "failed"


@dataclass
class Credential:
    """Spotify token pair as stored in the credentials file.

    ``expires_at`` is a unix timestamp in seconds. ``extra`` keeps keys this
    version does not know about so they survive a rewrite.
    """

    access_token: str
    refresh_token: str
    expires_at: float
    token_type: str = "Bearer"
    scope: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: float | None = None, skew: float = EXPIRY_SKEW_SEC) -> bool:
        now = time.time() if now is None else now
        return self.expires_at - now <= skew

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "access_token": self.access_token,
                "refresh_token": self.refresh_token,
                "expires_at": self.expires_at,
                "token_type": self.token_type,
            }
        )
        if self.scope:
            payload["scope"] = self.scope
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credential":
        """Build a credential from a stored record.

        Accepts either ``expires_at`` or the ``created_at`` + ``expires_in``
        pair written by older versions of the tool.
        """
        access = data.get("access_token")
        refresh = data.get("refresh_token")
        if not access or not refresh:
            raise ValueError("Credential record is missing tokens")

        if "expires_at" in data:
            expires_at = float(data["expires_at"])
        elif "created_at" in data and "expires_in" in data:
            created = datetime.fromisoformat(str(data["created_at"]).replace("Z", "+00:00"))
            expires_at = created.timestamp() + float(data["expires_in"])
        else:
            raise ValueError("Credential record has no expiry")

        extra = {
            key: value
            for key, value in data.items()
            if key not in _CORE_FIELDS and key not in ("created_at", "expires_in")
        }
        return cls(
            access_token=str(access),
            refresh_token=str(refresh),
            expires_at=expires_at,
            token_type=str(data.get("token_type") or "Bearer"),
            scope=data.get("scope"),
            extra=extra,
        )

    @classmethod
    def from_token_response(
        cls,
        payload: dict[str, Any],
        now: float,
        previous: "Credential | None" = None,
    ) -> "Credential":
        """Build a full replacement record from a token endpoint response.

        Spotify may omit ``refresh_token`` on refresh; the previous one is kept
        in that case.
        """
        access = payload.get("access_token")
        refresh = payload.get("refresh_token") or (previous.refresh_token if previous else None)
        expires_in = payload.get("expires_in")
        if not access or not refresh or not isinstance(expires_in, (int, float)):
            raise ValueError("Token response missing fields")
        return cls(
            access_token=str(access),
            refresh_token=str(refresh),
            expires_at=now + float(expires_in),
            token_type=str(payload.get("token_type") or "Bearer"),
            scope=payload.get("scope") or (previous.scope if previous else None),
            extra=dict(previous.extra) if previous else {},
        )


@dataclass
class AuthorizationSession:
    """One in-flight authorization attempt.

    ``completion`` resolves exactly once, with the authorization code or with
    the exception the callback carried.
    """

    code_verifier: str
    code_challenge: str
    oauth_state: str
    status: SessionStatus = SessionStatus.PENDING
    completion: Future = field(default_factory=Future)

    def resolve(self, code: str) -> bool:
        if self.completion.done():
            return False
        self.status = SessionStatus.RECEIVED
        self.completion.set_result(code)
        return True

    def fail(self, exc: BaseException) -> bool:
        if self.completion.done():
            return False
        self.status = SessionStatus.FAILED
        self.completion.set_exception(exc)
        return True


@dataclass(frozen=True)
class ClientIdentity:
    """Spotify application identity, read once at startup."""

    client_id: str = field(repr=False)

    @classmethod
    def from_env(cls, name: str = "SPOTIFY_CLIENT_ID", environ: Mapping[str, str] | None = None) -> "ClientIdentity":
        # Imported here: errors depends on this module for AuthState.
        from deemix_wrapper.auth.spotify.errors import ConfigurationError

        environ = os.environ if environ is None else environ
        value = (environ.get(name) or "").strip()
        if not value:
            raise ConfigurationError(
                f"Please set {name} via environment variables before starting the program"
            )
        return cls(client_id=value)
