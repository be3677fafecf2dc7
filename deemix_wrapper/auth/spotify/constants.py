"""Spotify OAuth constants."""

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
REDIRECT_URI = "http://localhost:5000/callback"
SCOPES = (
    "playlist-read-private",
    "playlist-read-collaborative",
    "playlist-modify-private",
    "playlist-modify-public",
)

TOKEN_FILENAME = "credentials.json"
AUTH_TIMEOUT_SEC = 10.0
# Refresh this many seconds before the recorded expiry.
EXPIRY_SKEW_SEC = 60
SUCCESS_HTML = (
    "<!doctype html>"
    "<html lang=\"en\">"
    "<head>"
    "<meta charset=\"utf-8\" />"
    "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />"
    "<title>Spotify authorization complete</title>"
    "</head>"
    "<body>"
    "<p>Spotify authorization complete. Return to your terminal to continue.</p>"
    "</body>"
    "</html>"
)
FAILURE_HTML = (
    "<!doctype html>"
    "<html lang=\"en\">"
    "<head><meta charset=\"utf-8\" /><title>Spotify authorization failed</title></head>"
    "<body><p>Spotify authorization failed. Check your terminal for details.</p></body>"
    "</html>"
)
