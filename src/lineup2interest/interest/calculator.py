"""Festival interest calculation.

Turns a user's listening profile plus stored artist mappings into one
UserFestivalInterest per festival and persists it.
"""

from datetime import date, datetime

from ..logging import get_logger
from ..matching import ArtistMatcher
from ..models import InterestLevel, LineupEntry, ListeningProfile, UserFestivalInterest
from ..store import Store
from .scoring import (
    build_matched_artist_details,
    calculate_genre_alignment,
    calculate_score_breakdown,
    interest_level_for,
)

logger = get_logger(__name__)

DEFAULT_FESTIVAL_GENRES = ("electronic", "edm", "house", "techno", "dubstep", "trance")


class InterestCalculator:
    """Computes and stores per-user festival interest."""

    def __init__(
        self,
        store: Store,
        matcher: ArtistMatcher,
        festival_genres: list[str] | tuple[str, ...] = DEFAULT_FESTIVAL_GENRES,
    ):
        """Initialize the calculator.

        Args:
            store: Persistence gateway for lineups and interests
            matcher: Artist matcher used to read stored mappings
            festival_genres: Genres assumed for every festival
        """
        self.store = store
        self.matcher = matcher
        self.festival_genres = list(festival_genres)

    def infer_festival_genres(self, lineup: list[LineupEntry]) -> list[str]:
        # TODO: derive genres per lineup artist once a genre source keyed by
        # festival artist exists; every festival gets the same set until then.
        return self.festival_genres

    async def calculate_festival_interest(
        self,
        user_id: str,
        festival_id: str,
        profile: ListeningProfile,
    ) -> UserFestivalInterest | None:
        """Calculate and store a user's interest in one festival.

        Returns None when the lineup is empty or no lineup artist is matched.
        Store errors propagate.
        """
        lineup = await self.store.get_lineup(festival_id)
        if not lineup:
            logger.info("festival_lineup_empty", festival_id=festival_id)
            return None

        lineup_artist_ids = {entry.festival_artist_id for entry in lineup}
        mappings = await self.matcher.get_mappings_for_streaming_artists(
            profile.streaming_artist_ids()
        )
        matched = [m for m in mappings if m.festival_artist_id in lineup_artist_ids]

        if not matched:
            logger.info("festival_no_matched_artists", festival_id=festival_id)
            return None

        breakdown = calculate_score_breakdown(
            profile, [m.streaming_artist_id for m in matched]
        )
        genre_alignment = calculate_genre_alignment(
            profile.top_genres, self.infer_festival_genres(lineup)
        )

        # Genre alignment is reported on its own and does not feed the level
        score = breakdown.total
        interest = UserFestivalInterest(
            user_id=user_id,
            festival_id=festival_id,
            interest_level=interest_level_for(score),
            interest_score=score,
            matched_artists=len(matched),
            genre_alignment_score=genre_alignment,
            matched_artist_details=build_matched_artist_details(matched, profile),
            calculated_at=datetime.now(),
        )

        await self.store.upsert_interest(interest)

        logger.info(
            "festival_interest_calculated",
            user_id=user_id,
            festival_id=festival_id,
            score=score,
            level=interest.interest_level.value,
            matched_artists=len(matched),
            top_artists_match=breakdown.top_artists_match,
            top_tracks_artist_match=breakdown.top_tracks_artist_match,
            listening_frequency=breakdown.listening_frequency,
            genre_alignment=genre_alignment,
        )
        return interest

    async def calculate_interests_for_festivals(
        self,
        user_id: str,
        festival_ids: list[str],
        profile: ListeningProfile,
    ) -> list[UserFestivalInterest]:
        """Calculate interests for several festivals, skipping any that fail."""
        interests: list[UserFestivalInterest] = []

        for festival_id in festival_ids:
            try:
                interest = await self.calculate_festival_interest(user_id, festival_id, profile)
            except Exception as e:
                logger.error(
                    "festival_interest_failed",
                    user_id=user_id,
                    festival_id=festival_id,
                    error=str(e),
                )
                continue
            if interest:
                interests.append(interest)

        logger.info(
            "festival_interests_calculated",
            user_id=user_id,
            calculated=len(interests),
            festivals=len(festival_ids),
        )
        return interests

    async def get_user_interests(self, user_id: str) -> list[UserFestivalInterest]:
        return await self.store.list_interests(user_id)

    async def get_user_interests_by_level(
        self, user_id: str, level: InterestLevel
    ) -> list[UserFestivalInterest]:
        return await self.store.list_interests(user_id, level)

    async def recalculate_user_interests(
        self,
        user_id: str,
        profile: ListeningProfile,
        today: date | None = None,
    ) -> list[UserFestivalInterest]:
        """Recalculate interests for every festival starting today or later."""
        festival_ids = await self.store.list_upcoming_festival_ids(today or date.today())
        logger.info("recalculating_interests", user_id=user_id, festivals=len(festival_ids))
        return await self.calculate_interests_for_festivals(user_id, festival_ids, profile)
