"""Credential file storage."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path

from deemix_wrapper.auth.spotify.constants import TOKEN_FILENAME
from deemix_wrapper.auth.spotify.errors import PersistenceError
from deemix_wrapper.auth.spotify.models import Credential
from deemix_wrapper.utils.helpers import ensure_dir, get_cache_path

logger = logging.getLogger(__name__)


def _get_token_path(cache_dir: Path | None = None) -> Path:
    return (cache_dir or get_cache_path()) / TOKEN_FILENAME


class CredentialStore:
    """Single-record JSON file holding the Spotify token pair.

    The whole file is replaced on every save, so readers see either the old
    record or the new one.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or _get_token_path()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Credential | None:
        """Return the stored credential, or None if missing or corrupt.

        Raises PersistenceError when the file exists but cannot be read.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Cannot read credentials file {self.path}: {exc}", self.path) from exc

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("Credential file is not a JSON object")
            return Credential.from_dict(data)
        except (ValueError, TypeError) as exc:
            logger.warning("Ignoring unreadable credentials file %s: %s", self.path, exc)
            return None

    def save(self, credential: Credential) -> None:
        """Atomically replace the credentials file."""
        payload = json.dumps(credential.to_dict(), ensure_ascii=True, indent=2)
        tmp_name: str | None = None
        try:
            ensure_dir(self.path.parent)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(payload)
                fp.flush()
                os.fsync(fp.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(f"Cannot write credentials file {self.path}: {exc}", self.path) from exc
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
        logger.debug("Saved credentials to %s", self.path)

    def clear(self) -> bool:
        """Delete the credentials file. Returns False if there was none."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise PersistenceError(f"Cannot remove credentials file {self.path}: {exc}", self.path) from exc
        return True

