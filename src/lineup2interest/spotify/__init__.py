"""Spotify module initialization."""

from .client import SpotifyClient, build_listening_profile

__all__ = [
    "SpotifyClient",
    "build_listening_profile",
]
