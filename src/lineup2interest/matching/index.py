"""Trigram index for approximate artist-name search over a candidate pool."""

from collections import defaultdict
from dataclasses import dataclass

from rapidfuzz import fuzz, process

from ..models import ArtistIdentity
from .normalize import normalize_artist_name


def trigrams(text: str) -> set[str]:
    """Character trigrams of ``text`` padded with spaces, so short names still index."""
    padded = f"  {text} "
    return {padded[i : i + 3] for i in range(len(padded) - 2)}


@dataclass(frozen=True)
class IndexHit:
    artist: ArtistIdentity
    confidence: float


class CandidateIndex:
    """Inverted trigram index over normalized festival artist names.

    A query only scores candidates sharing at least ``min_shared`` trigrams
    with it, then ranks them with rapidfuzz's token_sort_ratio so word order
    ("Tiesto & Hardwell" / "Hardwell & Tiesto") does not matter.

    The index is immutable; build a new one whenever the candidate pool
    changes.
    """

    def __init__(self, artists: list[ArtistIdentity], min_shared: int = 2):
        self.min_shared = min_shared
        self._artists: list[ArtistIdentity] = []
        self._normalized: list[str] = []
        self._postings: dict[str, list[int]] = defaultdict(list)

        for artist in artists:
            normalized = normalize_artist_name(artist.name)
            if not normalized:
                continue
            position = len(self._artists)
            self._artists.append(artist)
            self._normalized.append(normalized)
            for gram in trigrams(normalized):
                self._postings[gram].append(position)

    def __len__(self) -> int:
        return len(self._artists)

    def candidates(self, normalized_query: str) -> list[int]:
        """Positions of indexed artists sharing enough trigrams, in pool order."""
        shared: dict[int, int] = defaultdict(int)
        for gram in trigrams(normalized_query):
            for position in self._postings.get(gram, ()):
                shared[position] += 1
        return sorted(p for p, count in shared.items() if count >= self.min_shared)

    def best_match(self, name: str) -> IndexHit | None:
        """Best-scoring candidate for ``name`` with a [0, 1] confidence.

        Ties go to the candidate that appears first in the pool.
        """
        normalized_query = normalize_artist_name(name)
        if not normalized_query:
            return None

        positions = self.candidates(normalized_query)
        if not positions:
            return None

        choices = {position: self._normalized[position] for position in positions}
        result = process.extractOne(
            normalized_query, choices, scorer=fuzz.token_sort_ratio, processor=None
        )
        if result is None:
            return None

        _, score, position = result
        return IndexHit(artist=self._artists[position], confidence=score / 100.0)
