"""Artist matching engine.

Resolves streaming-catalog artists to festival-catalog artists using, in
order:
1. Exact match (case-insensitive), confidence 1.0
2. Normalized match, confidence 0.95
3. Indexed approximate search, accepted at >= threshold
4. Pairwise Levenshtein over every candidate, accepted at >= threshold

Exact and normalized matches take the first hit in candidate pool order.
Confirmed matches are persisted; misses are not, so a later run with a
larger pool can still succeed.
"""

from ..cache import Cache
from ..logging import get_logger
from ..models import ArtistIdentity, ArtistMapping, MappingStats, MatchMethod
from ..store import Store
from .index import CandidateIndex
from .similarity import (
    EXACT_CONFIDENCE,
    NORMALIZED_CONFIDENCE,
    fuzzy_similarity,
    is_exact_match,
    is_normalized_match,
)

logger = get_logger(__name__)

FESTIVAL_ARTISTS_CACHE_KEY = "festival_artists:all"


class ArtistMatcher:
    """Matches streaming artists against a pool of festival artists."""

    DEFAULT_THRESHOLD = 0.85
    CATALOG_TTL_SECONDS = 3600

    def __init__(
        self,
        store: Store,
        cache: Cache | None = None,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        """Initialize the matcher.

        Args:
            store: Persistence gateway holding the mapping table
            cache: Optional cache for the festival artist catalog
            threshold: Minimum confidence for fuzzy matches
        """
        self.store = store
        self.cache = cache
        self.threshold = threshold
        self._candidates: dict[str, str] = {}
        self._index: CandidateIndex | None = None

    @property
    def candidate_count(self) -> int:
        return len(self._candidates)

    def load_candidates(self, artists: list[ArtistIdentity]) -> None:
        """Replace the candidate pool and rebuild the search index.

        Pool order is kept; it decides ties between equally good candidates.
        """
        self._candidates = {artist.id: artist.name for artist in artists}
        self._index = CandidateIndex(
            [ArtistIdentity(id=id_, name=name) for id_, name in self._candidates.items()]
        )
        logger.info("candidates_loaded", count=len(self._candidates))

    async def load_catalog(self) -> int:
        """Load every festival artist from the lineup tables as the candidate pool."""
        artists: list[ArtistIdentity] | None = None
        if self.cache:
            cached = await self.cache.get(FESTIVAL_ARTISTS_CACHE_KEY)
            if cached is not None:
                artists = [ArtistIdentity.model_validate(a) for a in cached]

        if artists is None:
            artists = await self.store.list_festival_artists()
            if self.cache:
                await self.cache.set(
                    FESTIVAL_ARTISTS_CACHE_KEY,
                    [a.model_dump() for a in artists],
                    self.CATALOG_TTL_SECONDS,
                )

        self.load_candidates(artists)
        return len(artists)

    async def match_artist(
        self,
        streaming_artist_id: str,
        streaming_artist_name: str,
        candidates: list[ArtistIdentity] | None = None,
    ) -> ArtistMapping | None:
        """Match one streaming artist, returning the stored mapping or None.

        An existing mapping is returned as-is without re-matching. Store
        errors propagate to the caller.
        """
        existing = await self.store.get_mapping(streaming_artist_id)
        if existing is not None:
            logger.debug("mapping_cache_hit", streaming_artist_id=streaming_artist_id)
            return existing

        if candidates:
            self.load_candidates(candidates)

        match = self._find_match(streaming_artist_name)
        if match is None:
            logger.info(
                "artist_not_matched",
                streaming_artist_id=streaming_artist_id,
                artist=streaming_artist_name,
                candidates=len(self._candidates),
            )
            return None

        festival_artist, method, confidence = match
        mapping = await self.store.upsert_mapping(
            streaming_artist_id,
            streaming_artist_name,
            festival_artist.id,
            festival_artist.name,
            method,
            confidence,
        )
        logger.info(
            "artist_matched",
            artist=streaming_artist_name,
            festival_artist=festival_artist.name,
            method=method.value,
            confidence=round(confidence, 3),
        )
        return mapping

    def _find_match(self, name: str) -> tuple[ArtistIdentity, MatchMethod, float] | None:
        for festival_id, festival_name in self._candidates.items():
            if is_exact_match(name, festival_name):
                return (
                    ArtistIdentity(id=festival_id, name=festival_name),
                    MatchMethod.EXACT,
                    EXACT_CONFIDENCE,
                )

        for festival_id, festival_name in self._candidates.items():
            if is_normalized_match(name, festival_name):
                return (
                    ArtistIdentity(id=festival_id, name=festival_name),
                    MatchMethod.NORMALIZED,
                    NORMALIZED_CONFIDENCE,
                )

        if self._index is not None:
            hit = self._index.best_match(name)
            if hit and hit.confidence >= self.threshold:
                return hit.artist, MatchMethod.FUZZY, hit.confidence

        best: tuple[ArtistIdentity, float] | None = None
        for festival_id, festival_name in self._candidates.items():
            confidence = fuzzy_similarity(name, festival_name)
            if confidence >= self.threshold and (best is None or confidence > best[1]):
                best = ArtistIdentity(id=festival_id, name=festival_name), confidence

        if best:
            return best[0], MatchMethod.FUZZY, best[1]
        return None

    async def match_artists(
        self,
        streaming_artists: list[ArtistIdentity],
        candidates: list[ArtistIdentity] | None = None,
    ) -> list[ArtistMapping]:
        """Match a batch of streaming artists, skipping any that fail."""
        if candidates:
            self.load_candidates(candidates)

        mappings: list[ArtistMapping] = []
        for artist in streaming_artists:
            try:
                mapping = await self.match_artist(artist.id, artist.name)
            except Exception as e:
                logger.error(
                    "artist_match_failed",
                    streaming_artist_id=artist.id,
                    artist=artist.name,
                    error=str(e),
                )
                continue
            if mapping:
                mappings.append(mapping)

        logger.info("artists_matched", matched=len(mappings), total=len(streaming_artists))
        return mappings

    async def get_mappings_for_streaming_artists(
        self, streaming_artist_ids: list[str]
    ) -> list[ArtistMapping]:
        if not streaming_artist_ids:
            return []
        return await self.store.get_mappings(streaming_artist_ids)

    async def manual_mapping(
        self,
        streaming_artist_id: str,
        streaming_artist_name: str,
        festival_artist_id: str,
        festival_artist_name: str,
    ) -> ArtistMapping:
        """Create or overwrite a mapping by hand. Always verified."""
        mapping = await self.store.upsert_mapping(
            streaming_artist_id,
            streaming_artist_name,
            festival_artist_id,
            festival_artist_name,
            MatchMethod.MANUAL,
            EXACT_CONFIDENCE,
        )
        logger.info(
            "manual_mapping_saved",
            streaming_artist_id=streaming_artist_id,
            festival_artist_id=festival_artist_id,
        )
        return mapping

    async def delete_mapping(self, streaming_artist_id: str) -> bool:
        deleted = await self.store.delete_mapping(streaming_artist_id)
        logger.info("mapping_deleted", streaming_artist_id=streaming_artist_id, deleted=deleted)
        return deleted

    async def get_verified_mappings(self) -> list[ArtistMapping]:
        return await self.store.list_verified_mappings()

    async def get_mapping_stats(self) -> MappingStats:
        return await self.store.mapping_stats()
