"""Pure scoring functions for festival interest.

Score components (max points):
- Top artists matched: 8 per artist, first 5 matched top artists (40)
- Top-track artists matched: 6 per distinct artist, up to 5 (30)
- Genre match: always 0 here; genre alignment is reported separately (20)
- Listening frequency: plays / 10 per artist, capped at 2 each and 10 total (10)
"""

from ..models import (
    ArtistMapping,
    InterestLevel,
    InterestScoreBreakdown,
    ListeningProfile,
    MatchedArtistDetail,
)

TOP_ARTIST_POINTS = 8
TOP_ARTIST_LIMIT = 5
TOP_ARTISTS_MAX = 40

TOP_TRACK_ARTIST_POINTS = 6
TOP_TRACK_ARTIST_LIMIT = 5

PLAYS_PER_POINT = 10
FREQUENCY_PER_ARTIST_MAX = 2
FREQUENCY_MAX = 10

GENRE_POINTS = 4
GENRE_MAX = 20

HIGH_INTEREST_THRESHOLD = 60
MEDIUM_INTEREST_THRESHOLD = 30


def calculate_score_breakdown(
    profile: ListeningProfile, matched_streaming_ids: list[str]
) -> InterestScoreBreakdown:
    """Score a user's overlap with a lineup from the matched streaming artist IDs."""
    matched = set(matched_streaming_ids)

    # Top artists stay in the user's rank order
    top_artist_matches = [a for a in profile.top_artists if a.id in matched][:TOP_ARTIST_LIMIT]
    top_artists_match = min(len(top_artist_matches) * TOP_ARTIST_POINTS, TOP_ARTISTS_MAX)

    top_track_artists = {
        artist.id
        for track in profile.top_tracks
        for artist in track.artists
        if artist.id in matched
    }
    top_tracks_artist_match = (
        min(len(top_track_artists), TOP_TRACK_ARTIST_LIMIT) * TOP_TRACK_ARTIST_POINTS
    )

    genre_match = 0

    frequency = 0.0
    for artist_id in matched_streaming_ids:
        play_count = profile.recent_play_counts.get(artist_id, 0)
        frequency += min(play_count / PLAYS_PER_POINT, FREQUENCY_PER_ARTIST_MAX)
    listening_frequency = min(frequency, FREQUENCY_MAX)

    return InterestScoreBreakdown(
        top_artists_match=top_artists_match,
        top_tracks_artist_match=top_tracks_artist_match,
        genre_match=genre_match,
        listening_frequency=listening_frequency,
        total=top_artists_match + top_tracks_artist_match + genre_match + listening_frequency,
    )


def build_matched_artist_details(
    mappings: list[ArtistMapping], profile: ListeningProfile
) -> list[MatchedArtistDetail]:
    top_artists = {artist.id: artist for artist in profile.top_artists}
    top_track_artist_ids = {
        artist.id for track in profile.top_tracks for artist in track.artists
    }

    details = []
    for mapping in mappings:
        top_artist = top_artists.get(mapping.streaming_artist_id)
        details.append(
            MatchedArtistDetail(
                streaming_artist_id=mapping.streaming_artist_id,
                streaming_artist_name=mapping.streaming_artist_name,
                festival_artist_id=mapping.festival_artist_id,
                festival_artist_name=mapping.festival_artist_name,
                user_play_count=profile.recent_play_counts.get(mapping.streaming_artist_id, 0),
                user_rank=(top_artist.rank or 0) if top_artist else 0,
                is_top_artist=top_artist is not None,
                is_top_track_artist=mapping.streaming_artist_id in top_track_artist_ids,
            )
        )
    return details


def calculate_genre_alignment(user_genres: list[str], festival_genres: list[str]) -> float:
    """Score genre overlap, 4 points per festival genre found in any user genre.

    Matching is case-insensitive substring containment, so a user genre of
    "deep house" counts for the festival genre "house".
    """
    if not user_genres or not festival_genres:
        return 0

    normalized_user = [g.lower() for g in user_genres]
    matches = sum(
        1
        for festival_genre in (g.lower() for g in festival_genres)
        if any(festival_genre in user_genre for user_genre in normalized_user)
    )
    return min(matches * GENRE_POINTS, GENRE_MAX)


def interest_level_for(score: float) -> InterestLevel:
    if score >= HIGH_INTEREST_THRESHOLD:
        return InterestLevel.HIGH
    if score >= MEDIUM_INTEREST_THRESHOLD:
        return InterestLevel.MEDIUM
    return InterestLevel.LOW
