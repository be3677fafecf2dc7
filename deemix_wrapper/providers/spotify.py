"""Spotify Web API client for playlist mirroring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from deemix_wrapper.auth.spotify.manager import CredentialManager

logger = logging.getLogger(__name__)

SPOTIFY_API_URL = "https://api.spotify.com/v1"
# The add-items endpoint accepts at most this many URIs per request.
MAX_ITEMS_PER_REQUEST = 100


class SpotifyAPIError(Exception):
    """Non-success response from the Web API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Spotify API error {status_code}: {message}")
        self.status_code = status_code


@dataclass(frozen=True)
class SpotifyTrack:
    artist: str | None
    name: str | None
    id: str | None
    uri: str | None

    def __str__(self) -> str:
        return f"{self.artist} - {self.name}"


@dataclass(frozen=True)
class SpotifyPlaylist:
    name: str | None
    id: str | None
    uri: str | None

    def __str__(self) -> str:
        return f"{self.name}"


class SpotifyClient:
    """Calls the Web API with a bearer token from a CredentialManager.

    A 401 triggers one refresh and one replay of the request.
    """

    def __init__(
        self,
        credentials: CredentialManager,
        base_url: str = SPOTIFY_API_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.credentials = credentials
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    def search_tracks(self, query: str, limit: int = 10) -> list[SpotifyTrack]:
        payload = self._request("GET", "/search", params={"q": query, "type": "track", "limit": limit})
        items = ((payload.get("tracks") or {}).get("items")) or []
        return [_track_from_api(item) for item in items]

    def current_user_playlists(self, limit: int = 50) -> list[SpotifyPlaylist]:
        payload = self._request("GET", "/me/playlists", params={"limit": limit})
        return [
            SpotifyPlaylist(name=item.get("name"), id=item.get("id"), uri=item.get("uri"))
            for item in payload.get("items") or []
        ]

    def add_items(self, playlist_id: str, uris: list[str]) -> None:
        for start in range(0, len(uris), MAX_ITEMS_PER_REQUEST):
            chunk = uris[start:start + MAX_ITEMS_PER_REQUEST]
            self._request("POST", f"/playlists/{playlist_id}/tracks", json={"uris": chunk})
            logger.debug("Added %d items to playlist %s", len(chunk), playlist_id)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
            token = self.credentials.ensure_authorized()
            response = client.request(method, path, headers=_auth_header(token), **kwargs)
            if response.status_code == 401:
                logger.debug("Access token rejected, refreshing")
                token = self.credentials.refresh().access_token
                response = client.request(method, path, headers=_auth_header(token), **kwargs)

        if response.status_code >= 400:
            raise SpotifyAPIError(response.status_code, _error_message(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise SpotifyAPIError(response.status_code, "response was not JSON") from exc


def _auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error")
    except ValueError:
        return response.text
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error or response.text)


def _track_from_api(item: dict[str, Any]) -> SpotifyTrack:
    artists = item.get("artists") or []
    return SpotifyTrack(
        artist=artists[0].get("name") if artists else None,
        name=item.get("name"),
        id=item.get("id"),
        uri=item.get("uri"),
    )
