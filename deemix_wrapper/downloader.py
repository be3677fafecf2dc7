"""
Hand-off to external programs: deemix for downloads, viu for cover previews.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from typing import Iterable

import httpx

logger = logging.getLogger(__name__)


class DownloaderError(Exception):
    """The downloader executable could not be started."""


def run_deemix(links: Iterable[str], executable: str = "deemix") -> int:
    """Run deemix with the given track links and return its exit code."""
    cmd = [executable, *links]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, check=False)
    except FileNotFoundError as exc:
        raise DownloaderError(f"{executable} not found. Install it with: pip install deemix") from exc
    return result.returncode


def preview_thumbnail(
    url: str | None,
    executable: str = "viu",
    transport: httpx.BaseTransport | None = None,
) -> bool:
    """Show an album cover in the terminal. Returns False if it could not be shown."""
    if not url or shutil.which(executable) is None:
        return False
    try:
        with httpx.Client(timeout=10.0, transport=transport, follow_redirects=True) as client:
            response = client.get(url)
        response.raise_for_status()
        with tempfile.NamedTemporaryFile(suffix=".jpg") as image:
            image.write(response.content)
            image.flush()
            result = subprocess.run([executable, "-w", "40", image.name], check=False, timeout=30)
    except (httpx.HTTPError, OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("Thumbnail preview failed: %s", exc)
        return False
    return result.returncode == 0
