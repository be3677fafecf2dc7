"""PKCE and authorization helpers."""

from __future__ import annotations

import base64
import hashlib
import os
import urllib.parse
from typing import Iterable


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _derive_challenge(verifier: str) -> str:
    return _base64url(hashlib.sha256(verifier.encode("utf-8")).digest())


def _generate_pkce() -> tuple[str, str]:
    # 64 random bytes -> 86 url-safe characters, inside RFC 7636's 43..128.
    verifier = _base64url(os.urandom(64))
    return verifier, _derive_challenge(verifier)


def _create_state() -> str:
    return _base64url(os.urandom(16))


def _build_authorize_url(
    authorize_url: str,
    client_id: str,
    redirect_uri: str,
    challenge: str,
    state: str,
    scopes: Iterable[str],
) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "code_challenge": challenge,
        "code_challenge_method": "S256",
        "scope": " ".join(scopes),
        "state": state,
    }
    return f"{authorize_url}?{urllib.parse.urlencode(params)}"


def _parse_callback_query(query: str) -> tuple[str | None, str | None, str | None]:
    """Return ``(code, state, error)`` from a redirect query string."""
    qs = urllib.parse.parse_qs(query)
    return (
        qs.get("code", [None])[0],
        qs.get("state", [None])[0],
        qs.get("error", [None])[0],
    )
