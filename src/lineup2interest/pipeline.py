"""Pipeline orchestrator for lineup2interest.

Coordinates the full flow:
1. Sync upcoming festivals and lineups from the festival source
2. Fetch the user's listening profile from Spotify
3. Match the user's artists against the festival artist catalog
4. Recalculate the user's interest in every upcoming festival
"""

import asyncio
from datetime import date, timedelta

from .cache import Cache
from .config import Settings, get_settings
from .db import Database
from .interest import InterestCalculator
from .logging import configure_logging, get_logger
from .matching import ArtistMatcher
from .matching.matcher import FESTIVAL_ARTISTS_CACHE_KEY
from .models import ArtistMapping, ListeningProfile, UserFestivalInterest
from .sources import EdmTrainSource, FestivalSource
from .spotify import SpotifyClient
from .store import Store

logger = get_logger(__name__)


class Pipeline:
    """Owns and wires every lineup2interest component."""

    def __init__(
        self,
        settings: Settings | None = None,
        festival_source: FestivalSource | None = None,
        spotify: SpotifyClient | None = None,
    ):
        """Initialize the pipeline.

        Args:
            settings: Optional settings override
            festival_source: Optional festival source override
            spotify: Optional Spotify client override
        """
        self.settings = settings or get_settings()

        configure_logging(
            level=self.settings.log_level,
            format=self.settings.log_format,
        )

        self.database = Database(self.settings.database_path)
        self.cache = Cache(self.database)
        self.store = Store(self.database)
        self.matcher = ArtistMatcher(
            self.store,
            cache=self.cache,
            threshold=self.settings.fuzzy_match_threshold,
        )
        self.calculator = InterestCalculator(
            self.store,
            self.matcher,
            festival_genres=self.settings.festival_genres,
        )

        # External clients are created lazily to defer API keys and OAuth
        self._festival_source = festival_source
        self._spotify = spotify

        logger.info("pipeline_initialized", database=str(self.settings.database_path))

    @property
    def festival_source(self) -> FestivalSource:
        if not self._festival_source:
            if not self.settings.edmtrain_api_key:
                raise ValueError("EDMTRAIN_API_KEY is not set")
            self._festival_source = EdmTrainSource(
                api_key=self.settings.edmtrain_api_key,
                cache=self.cache,
                base_url=self.settings.edmtrain_base_url,
            )
        return self._festival_source

    @property
    def spotify(self) -> SpotifyClient:
        if not self._spotify:
            if not self.settings.spotify_client_id or not self.settings.spotify_client_secret:
                raise ValueError("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set")
            self._spotify = SpotifyClient(
                client_id=self.settings.spotify_client_id,
                client_secret=self.settings.spotify_client_secret,
                redirect_uri=self.settings.spotify_redirect_uri,
                cache_path=self.settings.token_cache_path,
            )
        return self._spotify

    async def sync_festivals(self, today: date | None = None) -> int:
        """Store upcoming festivals and their lineups. Returns festivals synced."""
        start = today or date.today()
        end = start + timedelta(days=30 * self.settings.months_ahead)

        festivals = await self.festival_source.get_festivals(start, end)

        synced = 0
        for festival, lineup in festivals:
            try:
                await self.store.upsert_festival(festival, lineup)
            except Exception as e:
                logger.error("festival_sync_failed", festival_id=festival.id, error=str(e))
                continue
            synced += 1

        # The artist catalog changed; force the matcher to reload it
        await self.cache.delete(FESTIVAL_ARTISTS_CACHE_KEY)

        logger.info("festivals_synced", synced=synced, fetched=len(festivals))
        return synced

    async def fetch_profile(self) -> tuple[str, ListeningProfile]:
        """Get the authenticated Spotify user's ID and listening profile."""
        user_id = await asyncio.to_thread(lambda: self.spotify.user_id)
        profile = await asyncio.to_thread(self.spotify.get_listening_profile)
        return user_id, profile

    async def match_profile(self, profile: ListeningProfile) -> list[ArtistMapping]:
        """Match every artist in a listening profile against the festival catalog."""
        candidates = await self.matcher.load_catalog()
        if not candidates:
            logger.warning("festival_catalog_empty")
            return []
        return await self.matcher.match_artists(profile.streaming_artists())

    async def refresh_user(
        self,
        user_id: str,
        profile: ListeningProfile,
        today: date | None = None,
    ) -> list[UserFestivalInterest]:
        """Match a user's artists and recalculate their festival interests."""
        logger.info("refresh_start", user_id=user_id)

        mappings = await self.match_profile(profile)
        interests = await self.calculator.recalculate_user_interests(user_id, profile, today)

        logger.info(
            "refresh_complete",
            user_id=user_id,
            mappings=len(mappings),
            interests=len(interests),
        )
        return interests

    async def close(self) -> None:
        """Close the festival source's HTTP client if one was opened."""
        if isinstance(self._festival_source, EdmTrainSource):
            await self._festival_source.close()
