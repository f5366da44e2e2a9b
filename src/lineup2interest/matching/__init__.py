"""Artist matching between the streaming and festival catalogs."""

from .index import CandidateIndex, IndexHit
from .matcher import ArtistMatcher
from .normalize import normalize_artist_name
from .similarity import fuzzy_similarity, match_confidence

__all__ = [
    "ArtistMatcher",
    "CandidateIndex",
    "IndexHit",
    "fuzzy_similarity",
    "match_confidence",
    "normalize_artist_name",
]
