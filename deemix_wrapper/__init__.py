"""
deemix-wrapper - search tracks, mirror them to Spotify and download with deemix.
"""

__version__ = "0.1.0"
__logo__ = "🎵"
