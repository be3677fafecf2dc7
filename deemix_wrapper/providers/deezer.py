"""Deezer public search API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEEZER_API_URL = "https://api.deezer.com"


class SearchError(Exception):
    """The search API returned an unusable response."""


@dataclass(frozen=True)
class Track:
    """A Deezer search hit."""

    title: str | None
    artist: str | None
    link: str | None
    album_cover: str | None = None

    def __str__(self) -> str:
        return f"{self.artist} - {self.title}"

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Track":
        return cls(
            title=item.get("title"),
            artist=(item.get("artist") or {}).get("name"),
            link=item.get("link"),
            album_cover=(item.get("album") or {}).get("cover_big"),
        )


class DeezerClient:
    """Searches Deezer tracks by title."""

    def __init__(
        self,
        base_url: str = DEEZER_API_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    def search_tracks(self, title: str, limit: int = 10) -> list[Track]:
        """Return up to ``limit`` tracks matching ``title``; empty when nothing matched."""
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                response = client.get("/search/track", params={"q": title, "limit": limit})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise SearchError(f"Deezer search failed: {exc}") from exc
        except ValueError as exc:
            raise SearchError("Deezer returned a response that is not JSON.") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        if data is None:
            raise SearchError("Received an empty response from deezer API.")

        logger.debug("Deezer returned %d tracks for %r", len(data), title)
        return [Track.from_api(item) for item in data]
