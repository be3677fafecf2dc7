"""Filesystem helpers."""

import os
from pathlib import Path

APP_DIR_NAME = "deemix-wrapper"


def ensure_dir(path: Path) -> Path:
    """Create ``path`` if needed and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def _xdg_root(env_name: str, fallback: str) -> Path:
    value = os.environ.get(env_name)
    if value:
        return Path(value).expanduser()
    return Path.home() / fallback


def get_cache_path() -> Path:
    """Per-user cache directory, e.g. ~/.cache/deemix-wrapper."""
    return _xdg_root("XDG_CACHE_HOME", ".cache") / APP_DIR_NAME


def get_config_dir() -> Path:
    """Per-user config directory, e.g. ~/.config/deemix-wrapper."""
    return _xdg_root("XDG_CONFIG_HOME", ".config") / APP_DIR_NAME
