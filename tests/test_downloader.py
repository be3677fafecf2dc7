import subprocess

import pytest

import deemix_wrapper.downloader as downloader
from deemix_wrapper.downloader import DownloaderError, preview_thumbnail, run_deemix


def test_run_deemix_passes_links_and_returns_code(monkeypatch) -> None:
    captured = {}

    def fake_run(cmd, check=False):
        captured["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 2)

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)

    code = run_deemix(["https://www.deezer.com/track/1", "https://www.deezer.com/track/2"], "/opt/deemix")

    assert code == 2
    assert captured["cmd"] == ["/opt/deemix", "https://www.deezer.com/track/1", "https://www.deezer.com/track/2"]


def test_run_deemix_missing_executable(monkeypatch) -> None:
    def fake_run(cmd, check=False):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(downloader.subprocess, "run", fake_run)

    with pytest.raises(DownloaderError):
        run_deemix(["https://www.deezer.com/track/1"])


def test_preview_is_skipped_without_viu(monkeypatch) -> None:
    monkeypatch.setattr(downloader.shutil, "which", lambda _name: None)

    assert preview_thumbnail("https://cdn/cover.jpg") is False
    assert preview_thumbnail(None) is False
