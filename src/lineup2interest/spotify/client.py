"""Spotify listening data client.

Builds a ListeningProfile from:
- the user's top artists (rank order and genres)
- the user's top tracks (contributing artists)
- recently played tracks (per-artist play counts)
"""

from collections import Counter
from pathlib import Path
from typing import Any

import spotipy
from spotipy.oauth2 import SpotifyOAuth

from ..logging import get_logger
from ..models import ArtistIdentity, ListeningProfile, TopArtist, TopTrack

logger = get_logger(__name__)


def build_listening_profile(
    top_artists: list[dict[str, Any]],
    top_tracks: list[dict[str, Any]],
    recent_items: list[dict[str, Any]],
    max_genres: int = 20,
) -> ListeningProfile:
    """Assemble a ListeningProfile from raw Spotify API items."""
    genre_counts: Counter[str] = Counter()
    for artist in top_artists:
        genre_counts.update(artist.get("genres", []))

    play_counts: Counter[str] = Counter()
    for item in recent_items:
        for artist in item.get("track", {}).get("artists", []):
            if artist.get("id"):
                play_counts[artist["id"]] += 1

    return ListeningProfile(
        top_artists=[
            TopArtist(id=artist["id"], name=artist["name"], rank=position)
            for position, artist in enumerate(top_artists, 1)
        ],
        top_tracks=[
            TopTrack(
                id=track["id"],
                name=track["name"],
                artists=[
                    ArtistIdentity(id=a["id"], name=a["name"])
                    for a in track.get("artists", [])
                    if a.get("id")
                ],
            )
            for track in top_tracks
        ],
        top_genres=[genre for genre, _ in genre_counts.most_common(max_genres)],
        recent_play_counts=dict(play_counts),
    )


class SpotifyClient:
    """Read-only Spotify client for a user's listening data.

    Wraps spotipy with structured logging.
    """

    SCOPE = "user-top-read user-read-recently-played"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str = "http://127.0.0.1:8888/callback",
        cache_path: Path | None = None,
    ):
        """Initialize the Spotify client.

        Args:
            client_id: Spotify application client ID
            client_secret: Spotify application client secret
            redirect_uri: OAuth redirect URI
            cache_path: Path for token cache file
        """
        auth_manager = SpotifyOAuth(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scope=self.SCOPE,
            cache_path=str(cache_path) if cache_path else None,
            open_browser=True,
        )

        self._client = spotipy.Spotify(auth_manager=auth_manager)
        self._user_id: str | None = None

        logger.info("spotify_client_initialized")

    @property
    def user_id(self) -> str:
        """Get the current user's Spotify ID."""
        if not self._user_id:
            user = self._client.current_user()
            self._user_id = user["id"]
            logger.info("spotify_user_authenticated", user_id=self._user_id)
        return self._user_id

    def get_listening_profile(
        self, time_range: str = "medium_term", limit: int = 50
    ) -> ListeningProfile:
        """Fetch the current user's listening profile.

        Args:
            time_range: Spotify affinity window (short_term, medium_term, long_term)
            limit: Maximum top artists / top tracks / recent plays to fetch (max 50)

        Returns:
            ListeningProfile for the authenticated user
        """
        logger.info("fetching_listening_profile", time_range=time_range, limit=limit)

        top_artists = self._client.current_user_top_artists(limit=limit, time_range=time_range)
        top_tracks = self._client.current_user_top_tracks(limit=limit, time_range=time_range)
        recent = self._client.current_user_recently_played(limit=limit)

        profile = build_listening_profile(
            top_artists.get("items", []),
            top_tracks.get("items", []),
            recent.get("items", []),
        )

        logger.info(
            "listening_profile_fetched",
            top_artists=len(profile.top_artists),
            top_tracks=len(profile.top_tracks),
            genres=len(profile.top_genres),
        )
        return profile
