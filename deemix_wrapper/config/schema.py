"""Configuration schema."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from deemix_wrapper.auth.spotify.constants import AUTH_TIMEOUT_SEC
from deemix_wrapper.utils.helpers import get_cache_path


@dataclass
class Config:
    """deemix-wrapper settings. Every field can be set in config.json."""

    client_id_env: str = "SPOTIFY_CLIENT_ID"
    callback_host: str = "localhost"
    callback_port: int = 5000
    callback_path: str = "/callback"
    auth_timeout: float = AUTH_TIMEOUT_SEC
    search_limit: int = 10
    deemix_path: str = "deemix"
    viu_path: str = "viu"
    cache_dir: str | None = None

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.callback_host}:{self.callback_port}{self.callback_path}"

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser() if self.cache_dir else get_cache_path()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

