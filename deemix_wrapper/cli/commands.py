"""CLI commands for deemix-wrapper."""

import contextlib
import logging
import webbrowser
from typing import Iterator, Sequence, TypeVar

import httpx
import typer
from rich.console import Console
from rich.table import Table

from deemix_wrapper import __logo__, __version__
from deemix_wrapper.auth.spotify import (
    AuthorizationError,
    AuthorizationRejectedError,
    AuthorizationTimeoutError,
    CallbackServerError,
    ClientIdentity,
    ConfigurationError,
    CredentialManager,
    CredentialStore,
    PersistenceError,
    RefreshRejectedError,
)
from deemix_wrapper.auth.spotify.constants import TOKEN_FILENAME
from deemix_wrapper.config.loader import get_config_path, load_config
from deemix_wrapper.config.schema import Config
from deemix_wrapper.downloader import DownloaderError, preview_thumbnail, run_deemix
from deemix_wrapper.providers.deezer import DeezerClient, SearchError, Track
from deemix_wrapper.providers.spotify import SpotifyAPIError, SpotifyClient, SpotifyTrack

app = typer.Typer(
    name="deemix-wrapper",
    help=f"{__logo__} deemix-wrapper - search tracks, sync them to Spotify, download with deemix",
    no_args_is_help=True,
)

console = Console()

T = TypeVar("T")

_NOT_FOUND = SpotifyTrack(artist="Track not found", name="Modify search term", id=None, uri=None)


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} deemix-wrapper v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Verbose output"),
):
    """deemix-wrapper - search, sync and download tracks."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


# ============================================================================
# Selection
# ============================================================================


def pick(options: Sequence[T], raw: str) -> T | None:
    """Return the option a 1-based answer refers to, or None if it is not valid."""
    try:
        index = int(raw.strip())
    except ValueError:
        return None
    if 1 <= index <= len(options):
        return options[index - 1]
    return None


def _prompt_choice(title: str, options: Sequence[T]) -> T:
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Choice")
    for number, option in enumerate(options, start=1):
        table.add_row(str(number), str(option))
    console.print(table)

    while True:
        choice = pick(options, typer.prompt("Choice", default="1"))
        if choice is not None:
            return choice
        console.print(f"[yellow]Invalid choice, enter a number from 1 to {len(options)}[/yellow]")


def _select_spotify_track(spotify: SpotifyClient, term: str, limit: int) -> SpotifyTrack | None:
    """Let the user pick the Spotify match for ``term``, re-searching on request."""
    while True:
        results = spotify.search_tracks(term, limit=limit)
        if not results:
            console.print(f"[yellow]No Spotify results for \"{term}\"[/yellow]")
            return None
        choice = _prompt_choice("Select song to add to spotify playlist", [*results, _NOT_FOUND])
        if choice is not _NOT_FOUND:
            return choice
        term = typer.prompt("Enter new search term")


def sync_to_playlist(spotify: SpotifyClient, tracks: Sequence[Track], limit: int = 10) -> int:
    """Mirror the selected tracks into a playlist the user picks. Returns items added."""
    playlists = spotify.current_user_playlists()
    if not playlists:
        console.print("[red]No playlists found. Exiting...[/red]")
        raise typer.Exit(1)

    playlist = _prompt_choice("Select playlist", playlists)
    if playlist.id is None:
        console.print("[red]Error: Playlist ID is missing[/red]")
        raise typer.Exit(1)

    uris: list[str] = []
    for track in tracks:
        match = _select_spotify_track(spotify, track.title or "", limit)
        if match is not None and match.uri:
            uris.append(match.uri)

    if uris:
        spotify.add_items(playlist.id, uris)
        console.print(f"[green]✓[/green] Added {len(uris)} track(s) to {playlist}")
    return len(uris)


# ============================================================================
# Credentials
# ============================================================================


def _show_auth_url(url: str) -> None:
    console.print("Opening Spotify authorization in your browser...")
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error:
        opened = False
    if not opened:
        console.print(f"Unable to open URL, manually open: [cyan]{url}[/cyan]")


def _credential_store(config: Config) -> CredentialStore:
    return CredentialStore(config.cache_path / TOKEN_FILENAME)


def _build_credential_manager(config: Config) -> CredentialManager:
    identity = ClientIdentity.from_env(config.client_id_env)
    return CredentialManager(
        identity,
        _credential_store(config),
        redirect_uri=config.redirect_uri,
        timeout=config.auth_timeout,
        on_auth=_show_auth_url,
    )


@contextlib.contextmanager
def _fatal_errors() -> Iterator[None]:
    """Turn expected failures into a console message and exit code 1."""
    try:
        yield
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except AuthorizationTimeoutError as e:
        console.print(f"[red]Error: {e}.[/red]")
        console.print("Run [cyan]deemix-wrapper login[/cyan] and finish the browser flow in time.")
        raise typer.Exit(1)
    except CallbackServerError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Free the callback port or change callbackPort in the config file.")
        raise typer.Exit(1)
    except AuthorizationRejectedError as e:
        console.print(f"[red]Error: Spotify rejected the authorization: {e}[/red]")
        raise typer.Exit(1)
    except RefreshRejectedError as e:
        console.print(f"[red]Error: the stored Spotify token was rejected: {e}[/red]")
        console.print("Run [cyan]deemix-wrapper login[/cyan] to authorize again.")
        raise typer.Exit(1)
    except AuthorizationError as e:
        console.print(f"[red]Error ({e.state.value}): {e}[/red]")
        raise typer.Exit(1)
    except PersistenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except (SearchError, SpotifyAPIError, DownloaderError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: network request failed: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def get(
    titles: list[str] = typer.Argument(..., help="Song titles to search for"),
    no_sync: bool = typer.Option(False, "--no-sync", help="Do not add the tracks to a Spotify playlist"),
    preview: bool = typer.Option(False, "--preview", help="Show album covers with viu"),
):
    """Search tracks, optionally add them to a Spotify playlist, then download them."""
    config = load_config()

    with _fatal_errors():
        manager = None
        if not no_sync:
            manager = _build_credential_manager(config)
            manager.ensure_authorized()

        deezer = DeezerClient()
        selected: list[Track] = []
        for title in titles:
            tracks = deezer.search_tracks(title, limit=config.search_limit)
            if not tracks:
                console.print(f"No songs found matching the given title: \"{title}\"")
                continue
            choice = _prompt_choice(f"Results for \"{title}\"", tracks)
            if preview:
                preview_thumbnail(choice.album_cover, config.viu_path)
            selected.append(choice)

        if not selected:
            console.print("No songs to download. Exiting...")
            raise typer.Exit(0)

        if manager is not None:
            sync_to_playlist(SpotifyClient(manager), selected, limit=config.search_limit)

        links = [track.link for track in selected if track.link]
        code = run_deemix(links, config.deemix_path)

    if code != 0:
        console.print(f"[red]deemix exited with code {code}[/red]")
        raise typer.Exit(code)


@app.command()
def login():
    """Authorize deemix-wrapper with Spotify in the browser."""
    config = load_config()
    with _fatal_errors():
        manager = _build_credential_manager(config)
        manager.authorize()
    console.print(f"[green]✓[/green] Spotify credentials saved to {manager.store.path}")


@app.command()
def logout():
    """Remove the cached Spotify credentials."""
    config = load_config()
    store = _credential_store(config)
    with _fatal_errors():
        removed = store.clear()
    if removed:
        console.print(f"[green]✓[/green] Removed {store.path}")
    else:
        console.print("[dim]No cached credentials[/dim]")


@app.command()
def status():
    """Show deemix-wrapper status."""
    config_path = get_config_path()
    config = load_config()
    store = _credential_store(config)

    console.print(f"{__logo__} deemix-wrapper Status\n")

    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[dim]defaults[/dim]'}")
    console.print(f"Redirect URI: {config.redirect_uri}")

    try:
        ClientIdentity.from_env(config.client_id_env)
        console.print(f"{config.client_id_env}: [green]✓[/green]")
    except ConfigurationError:
        console.print(f"{config.client_id_env}: [red]not set[/red]")

    with _fatal_errors():
        credential = store.load()
    if credential is None:
        console.print(f"Credentials: {store.path} [dim]not found[/dim]")
    elif credential.is_expired():
        console.print(f"Credentials: {store.path} [yellow]expired (will refresh)[/yellow]")
    else:
        console.print(f"Credentials: {store.path} [green]✓[/green]")


if __name__ == "__main__":
    app()
