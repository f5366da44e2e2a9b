"""Pydantic data models for lineup2interest.

Two artist identity spaces meet here: the streaming catalog (Spotify) and
the festival catalog (EDMTrain). There is no shared key between them;
ArtistMapping is the only bridge.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class MatchMethod(str, Enum):
    """How a streaming artist was resolved to a festival artist."""

    EXACT = "exact"
    NORMALIZED = "normalized"
    FUZZY = "fuzzy"
    MANUAL = "manual"

    @property
    def is_verified(self) -> bool:
        """Only exact and manual matches are trusted without review."""
        return self in (MatchMethod.EXACT, MatchMethod.MANUAL)


class InterestLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ArtistIdentity(BaseModel):
    """An artist as known by one catalog. IDs are catalog-scoped."""

    id: str = Field(description="Catalog-scoped artist ID")
    name: str = Field(description="Display name in that catalog")


class ArtistMapping(BaseModel):
    """A persisted equivalence between a streaming artist and a festival artist."""

    streaming_artist_id: str = Field(description="Spotify artist ID (unique)")
    streaming_artist_name: str = Field(description="Spotify display name")
    festival_artist_id: str = Field(description="EDMTrain artist ID")
    festival_artist_name: str = Field(description="EDMTrain display name")
    match_confidence: float = Field(ge=0.0, le=1.0, description="Match confidence (0.0-1.0)")
    match_method: MatchMethod
    verified: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MappingStats(BaseModel):
    """Counts over the mapping table."""

    total: int = 0
    verified: int = 0
    by_method: dict[str, int] = Field(default_factory=dict)


class TopArtist(BaseModel):
    id: str
    name: str
    rank: int | None = Field(default=None, description="1-based position in the user's top artists")


class TopTrack(BaseModel):
    id: str
    name: str
    artists: list[ArtistIdentity] = Field(default_factory=list)


class ListeningProfile(BaseModel):
    """A user's listening signals, already aggregated by the provider.

    top_artists is in the user's rank order and is never re-sorted.
    """

    top_artists: list[TopArtist] = Field(default_factory=list)
    top_tracks: list[TopTrack] = Field(default_factory=list)
    top_genres: list[str] = Field(default_factory=list)
    recent_play_counts: dict[str, int] = Field(
        default_factory=dict, description="Streaming artist ID -> recent play count"
    )

    def streaming_artist_ids(self) -> list[str]:
        """Artist IDs from top artists and top-track contributors, first occurrence order."""
        ids = [artist.id for artist in self.top_artists]
        ids.extend(artist.id for track in self.top_tracks for artist in track.artists)
        return list(dict.fromkeys(ids))

    def streaming_artists(self) -> list[ArtistIdentity]:
        """Distinct artists from top artists and top tracks, first occurrence order."""
        seen: dict[str, ArtistIdentity] = {}
        for artist in self.top_artists:
            seen.setdefault(artist.id, ArtistIdentity(id=artist.id, name=artist.name))
        for track in self.top_tracks:
            for artist in track.artists:
                seen.setdefault(artist.id, artist)
        return list(seen.values())


class Festival(BaseModel):
    """A festival from the festival-listing catalog."""

    id: str = Field(description="Festival-catalog event ID")
    name: str
    location: str | None = None
    city: str | None = None
    state: str | None = None
    venue_name: str | None = None
    start_date: date
    end_date: date | None = None
    ages: str | None = None
    link: str | None = None
    is_festival: bool = True
    is_livestream: bool = False


class LineupEntry(BaseModel):
    """One artist on a festival lineup."""

    festival_id: str
    festival_artist_id: str
    artist_name: str
    is_b2b: bool = Field(default=False, description="Shares a back-to-back set")
    set_time: str | None = None
    set_date: date | None = None
    stage: str | None = None


class InterestScoreBreakdown(BaseModel):
    """Weighted components of an interest score. total is their sum."""

    top_artists_match: float = Field(default=0.0, ge=0.0, le=40.0)
    top_tracks_artist_match: float = Field(default=0.0, ge=0.0, le=30.0)
    genre_match: float = Field(default=0.0, ge=0.0, le=20.0)
    listening_frequency: float = Field(default=0.0, ge=0.0, le=10.0)
    total: float = Field(default=0.0, ge=0.0, le=100.0)


class MatchedArtistDetail(BaseModel):
    """Per-artist explanation embedded in a UserFestivalInterest."""

    streaming_artist_id: str
    streaming_artist_name: str
    festival_artist_id: str
    festival_artist_name: str
    user_play_count: int = 0
    user_rank: int = Field(default=0, description="Rank in the user's top artists, 0 if absent")
    is_top_artist: bool = False
    is_top_track_artist: bool = False


class UserFestivalInterest(BaseModel):
    """A user's computed interest in one festival."""

    user_id: str
    festival_id: str
    interest_level: InterestLevel
    interest_score: float = Field(ge=0.0, le=100.0)
    matched_artists: int = Field(ge=0, description="Number of matched lineup artists")
    genre_alignment_score: float = Field(default=0.0, ge=0.0, le=20.0)
    matched_artist_details: list[MatchedArtistDetail] = Field(default_factory=list)
    calculated_at: datetime
