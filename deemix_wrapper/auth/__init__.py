"""Authentication modules."""

from deemix_wrapper.auth.spotify import CredentialManager, CredentialStore

__all__ = [
    "CredentialManager",
    "CredentialStore",
]
