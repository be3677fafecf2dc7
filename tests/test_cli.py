import json

import httpx
import pytest
import typer
from typer.testing import CliRunner

import deemix_wrapper.cli.commands as commands
from deemix_wrapper.providers.deezer import DeezerClient, Track
from deemix_wrapper.providers.spotify import SpotifyPlaylist, SpotifyTrack

runner = CliRunner()

TRACKS = [
    Track(title="Teardrop", artist="Massive Attack", link="https://www.deezer.com/track/1"),
    Track(title="Teardrop (Live)", artist="Massive Attack", link="https://www.deezer.com/track/2"),
]


class FakeDeezer:
    results: dict[str, list[Track]] = {}

    def search_tracks(self, title: str, limit: int = 10) -> list[Track]:
        return self.results.get(title, [])


@pytest.fixture
def downloads(isolated_dirs, monkeypatch):
    calls = []

    def fake_run_deemix(links, executable="deemix"):
        calls.append((list(links), executable))
        return 0

    FakeDeezer.results = {"teardrop": TRACKS}
    monkeypatch.setattr(commands, "DeezerClient", FakeDeezer)
    monkeypatch.setattr(commands, "run_deemix", fake_run_deemix)
    return calls


def test_pick_accepts_one_based_numbers() -> None:
    options = ["a", "b", "c"]

    assert commands.pick(options, "1") == "a"
    assert commands.pick(options, " 3 ") == "c"
    assert commands.pick(options, "0") is None
    assert commands.pick(options, "4") is None
    assert commands.pick(options, "b") is None


def test_get_without_sync_downloads_selected_track(downloads) -> None:
    result = runner.invoke(commands.app, ["get", "teardrop", "--no-sync"], input="2\n")

    assert result.exit_code == 0, result.output
    assert downloads == [(["https://www.deezer.com/track/2"], "deemix")]


def test_get_reprompts_on_invalid_choice(downloads) -> None:
    result = runner.invoke(commands.app, ["get", "teardrop", "--no-sync"], input="9\n1\n")

    assert result.exit_code == 0, result.output
    assert "Invalid choice" in result.output
    assert downloads == [(["https://www.deezer.com/track/1"], "deemix")]


def test_get_with_no_matches_exits_cleanly(downloads) -> None:
    result = runner.invoke(commands.app, ["get", "zzz", "--no-sync"])

    assert result.exit_code == 0
    assert 'No songs found matching the given title: "zzz"' in result.output
    assert "No songs to download. Exiting..." in result.output
    assert downloads == []


def test_get_requires_client_id_when_syncing(downloads, monkeypatch) -> None:
    monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)

    result = runner.invoke(commands.app, ["get", "teardrop"])

    assert result.exit_code == 1
    assert "SPOTIFY_CLIENT_ID" in result.output
    assert downloads == []


def test_get_reports_network_failure(downloads, monkeypatch) -> None:
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no network", request=request)

    monkeypatch.setattr(commands, "DeezerClient", lambda: DeezerClient(transport=httpx.MockTransport(offline)))

    result = runner.invoke(commands.app, ["get", "teardrop", "--no-sync"])

    assert result.exit_code == 1
    assert "no network" in result.output
    assert downloads == []


def test_fatal_errors_maps_http_errors_to_exit_code() -> None:
    with pytest.raises(typer.Exit) as excinfo:
        with commands._fatal_errors():
            raise httpx.ReadTimeout("timed out")
    assert excinfo.value.exit_code == 1


def test_login_with_unusable_callback_port_exits(isolated_dirs, monkeypatch) -> None:
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
    config_dir = isolated_dirs / "config" / "deemix-wrapper"
    config_dir.mkdir(parents=True)
    (config_dir / "config.json").write_text(json.dumps({"callbackPort": 0}))

    result = runner.invoke(commands.app, ["login"])

    assert result.exit_code == 1
    assert "explicit host and port" in result.output


def test_verbose_flag_is_accepted(downloads) -> None:
    result = runner.invoke(commands.app, ["-V", "get", "teardrop", "--no-sync"], input="1\n")

    assert result.exit_code == 0, result.output
    assert len(downloads) == 1

def test_get_propagates_deemix_exit_code(downloads, monkeypatch) -> None:
    monkeypatch.setattr(commands, "run_deemix", lambda links, executable="deemix": 3)

    result = runner.invoke(commands.app, ["get", "teardrop", "--no-sync"], input="1\n")

    assert result.exit_code == 3


class FakeSpotify:
    def __init__(self) -> None:
        self.searches: list[str] = []
        self.added: list[tuple[str, list[str]]] = []

    def current_user_playlists(self):
        return [SpotifyPlaylist(name="Mix", id="p1", uri="spotify:playlist:p1")]

    def search_tracks(self, query: str, limit: int = 10):
        self.searches.append(query)
        return [SpotifyTrack(artist="Massive Attack", name=query, id="t1", uri=f"spotify:track:{query}")]

    def add_items(self, playlist_id: str, uris: list[str]) -> None:
        self.added.append((playlist_id, uris))


def test_sync_to_playlist_allows_new_search_term(monkeypatch) -> None:
    spotify = FakeSpotify()
    # playlist 1, "Track not found" (option 2), new term, then the first match.
    answers = iter(["1", "2", "teardrop remastered", "1"])
    monkeypatch.setattr(commands.typer, "prompt", lambda *_args, **_kwargs: next(answers))

    added = commands.sync_to_playlist(spotify, [TRACKS[0]])

    assert added == 1
    assert spotify.searches == ["Teardrop", "teardrop remastered"]
    assert spotify.added == [("p1", ["spotify:track:teardrop remastered"])]


def test_sync_to_playlist_without_playlists_exits(monkeypatch) -> None:
    spotify = FakeSpotify()
    monkeypatch.setattr(spotify, "current_user_playlists", lambda: [])

    with pytest.raises(commands.typer.Exit) as excinfo:
        commands.sync_to_playlist(spotify, TRACKS)
    assert excinfo.value.exit_code == 1


def test_status_reports_credentials(isolated_dirs, monkeypatch) -> None:
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
    cache = isolated_dirs / "cache" / "deemix-wrapper"
    cache.mkdir(parents=True)
    (cache / "credentials.json").write_text(json.dumps({
        "access_token": "a",
        "refresh_token": "r",
        "expires_at": 0,
    }))

    result = runner.invoke(commands.app, ["status"])

    assert result.exit_code == 0, result.output
    assert "expired" in result.output


def test_logout_removes_credentials(isolated_dirs) -> None:
    cache = isolated_dirs / "cache" / "deemix-wrapper"
    cache.mkdir(parents=True)
    (cache / "credentials.json").write_text("{}")

    result = runner.invoke(commands.app, ["logout"])

    assert result.exit_code == 0
    assert not (cache / "credentials.json").exists()
    assert "No cached credentials" in runner.invoke(commands.app, ["logout"]).output
