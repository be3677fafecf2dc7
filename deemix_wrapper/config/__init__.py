"""Configuration module for deemix-wrapper."""

from deemix_wrapper.auth.spotify.models import ClientIdentity
from deemix_wrapper.config.loader import get_config_path, load_config
from deemix_wrapper.config.schema import Config

__all__ = ["ClientIdentity", "Config", "get_config_path", "load_config"]
