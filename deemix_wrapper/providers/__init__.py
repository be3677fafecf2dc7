"""Music service clients."""

from deemix_wrapper.providers.deezer import DeezerClient, SearchError, Track
from deemix_wrapper.providers.spotify import SpotifyAPIError, SpotifyClient, SpotifyPlaylist, SpotifyTrack

__all__ = [
    "DeezerClient",
    "SearchError",
    "SpotifyAPIError",
    "SpotifyClient",
    "SpotifyPlaylist",
    "SpotifyTrack",
    "Track",
]
