import pytest

from lineup2interest.db import StoreError
from lineup2interest.matching import CandidateIndex
from lineup2interest.matching.matcher import FESTIVAL_ARTISTS_CACHE_KEY
from lineup2interest.models import ArtistIdentity, MatchMethod

from .conftest import make_festival

CANDIDATES = [
    ArtistIdentity(id="e1", name="Chainsmokers"),
    ArtistIdentity(id="e2", name="Kaskade"),
    ArtistIdentity(id="e3", name="Ilenium"),
    ArtistIdentity(id="e4", name="Zeds Dead"),
]


@pytest.mark.asyncio
async def test_exact_match_is_verified(matcher):
    mapping = await matcher.match_artist("s1", "KASKADE", CANDIDATES)

    assert mapping.festival_artist_id == "e2"
    assert mapping.match_method == MatchMethod.EXACT
    assert mapping.match_confidence == 1.0
    assert mapping.verified is True


@pytest.mark.asyncio
async def test_normalized_match_is_not_verified(matcher):
    mapping = await matcher.match_artist("s1", "The Chainsmokers", CANDIDATES)

    assert mapping.festival_artist_id == "e1"
    assert mapping.match_method == MatchMethod.NORMALIZED
    assert mapping.match_confidence == 0.95
    assert mapping.verified is False


@pytest.mark.asyncio
async def test_fuzzy_match_above_threshold(matcher):
    mapping = await matcher.match_artist("s1", "Illenium", CANDIDATES)

    assert mapping.festival_artist_id == "e3"
    assert mapping.match_method == MatchMethod.FUZZY
    assert 0.85 <= mapping.match_confidence < 1.0
    assert mapping.verified is False


@pytest.mark.asyncio
async def test_pairwise_fallback_keeps_best_candidate(matcher, monkeypatch):
    monkeypatch.setattr(CandidateIndex, "best_match", lambda self, name: None)
    candidates = [
        ArtistIdentity(id="far", name="Deadmaus5x"),
        ArtistIdentity(id="near", name="Deadmaus"),
    ]

    mapping = await matcher.match_artist("s1", "deadmau5", candidates)

    assert mapping.festival_artist_id == "near"
    assert mapping.match_method == MatchMethod.FUZZY
    assert mapping.match_confidence == pytest.approx(0.875)


@pytest.mark.asyncio
async def test_exact_match_takes_first_candidate_in_pool_order(matcher):
    candidates = [
        ArtistIdentity(id="later-id", name="REZZ"),
        ArtistIdentity(id="a-id", name="Rezz"),
    ]

    mapping = await matcher.match_artist("s1", "rezz", candidates)

    assert mapping.festival_artist_id == "later-id"


@pytest.mark.asyncio
async def test_no_match_returns_none_and_is_not_persisted(matcher, store):
    assert await matcher.match_artist("s1", "Zedd", CANDIDATES) is None
    assert await store.get_mapping("s1") is None

    # A bigger pool later can still match
    mapping = await matcher.match_artist(
        "s1", "Zedd", CANDIDATES + [ArtistIdentity(id="e9", name="Zedd")]
    )
    assert mapping.festival_artist_id == "e9"


@pytest.mark.asyncio
async def test_match_artist_is_idempotent(matcher):
    first = await matcher.match_artist("s1", "Kaskade", CANDIDATES)
    second = await matcher.match_artist(
        "s1", "Kaskade", [ArtistIdentity(id="other", name="Kaskade")]
    )

    assert second == first
    stats = await matcher.get_mapping_stats()
    assert stats.total == 1


@pytest.mark.asyncio
async def test_match_artist_propagates_store_errors(matcher, store, monkeypatch):
    async def broken(streaming_artist_id):
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "get_mapping", broken)

    with pytest.raises(StoreError):
        await matcher.match_artist("s1", "Kaskade", CANDIDATES)


@pytest.mark.asyncio
async def test_match_artists_continues_past_failures(matcher, store, monkeypatch):
    original = store.get_mapping

    async def flaky(streaming_artist_id):
        if streaming_artist_id == "s2":
            raise StoreError("disk I/O error")
        return await original(streaming_artist_id)

    monkeypatch.setattr(store, "get_mapping", flaky)

    mappings = await matcher.match_artists(
        [
            ArtistIdentity(id="s1", name="Kaskade"),
            ArtistIdentity(id="s2", name="Ilenium"),
            ArtistIdentity(id="s3", name="Zeds Dead"),
        ],
        CANDIDATES,
    )

    assert [m.streaming_artist_id for m in mappings] == ["s1", "s3"]


@pytest.mark.asyncio
async def test_match_artists_skips_unmatched(matcher):
    mappings = await matcher.match_artists(
        [ArtistIdentity(id="s1", name="Kaskade"), ArtistIdentity(id="s2", name="Taylor Swift")],
        CANDIDATES,
    )

    assert [m.streaming_artist_id for m in mappings] == ["s1"]


@pytest.mark.asyncio
async def test_manual_mapping_round_trip(matcher):
    await matcher.manual_mapping("s1", "Zedd", "e42", "ZEDD (DJ Set)")

    mappings = await matcher.get_mappings_for_streaming_artists(["s1"])

    assert len(mappings) == 1
    mapping = mappings[0]
    assert mapping.festival_artist_id == "e42"
    assert mapping.match_method == MatchMethod.MANUAL
    assert mapping.verified is True
    assert mapping.match_confidence == 1.0


@pytest.mark.asyncio
async def test_manual_mapping_overwrites_fuzzy_mapping(matcher):
    await matcher.match_artist("s1", "Illenium", CANDIDATES)
    await matcher.manual_mapping("s1", "Illenium", "e99", "ILLENIUM")

    stats = await matcher.get_mapping_stats()
    assert stats.total == 1
    assert stats.verified == 1
    assert stats.by_method == {"manual": 1}


@pytest.mark.asyncio
async def test_empty_id_list_skips_the_store(matcher, store, monkeypatch):
    async def unexpected(ids):
        raise AssertionError("store should not be queried")

    monkeypatch.setattr(store, "get_mappings", unexpected)

    assert await matcher.get_mappings_for_streaming_artists([]) == []


@pytest.mark.asyncio
async def test_delete_mapping(matcher):
    await matcher.manual_mapping("s1", "Zedd", "e42", "Zedd")

    assert await matcher.delete_mapping("s1") is True
    assert await matcher.delete_mapping("s1") is False
    assert await matcher.get_mappings_for_streaming_artists(["s1"]) == []


@pytest.mark.asyncio
async def test_mapping_stats_and_verified_mappings(matcher):
    await matcher.match_artists(
        [
            ArtistIdentity(id="s1", name="Kaskade"),
            ArtistIdentity(id="s2", name="The Chainsmokers"),
            ArtistIdentity(id="s3", name="Illenium"),
        ],
        CANDIDATES,
    )
    await matcher.manual_mapping("s4", "Zedd", "e42", "Zedd")

    stats = await matcher.get_mapping_stats()
    verified = await matcher.get_verified_mappings()

    assert stats.total == 4
    assert stats.verified == 2
    assert stats.by_method == {"exact": 1, "normalized": 1, "fuzzy": 1, "manual": 1}
    assert [m.streaming_artist_name for m in verified] == ["Kaskade", "Zedd"]


@pytest.mark.asyncio
async def test_load_catalog_reads_lineups_and_caches_them(matcher, store, cache):
    festival, lineup = make_festival("f1", [("e2", "Kaskade"), ("e3", "Ilenium")])
    await store.upsert_festival(festival, lineup)

    assert await matcher.load_catalog() == 2
    assert matcher.candidate_count == 2
    assert len(await cache.get(FESTIVAL_ARTISTS_CACHE_KEY)) == 2

    # Served from cache: new lineup rows are not seen until the key is dropped
    festival2, lineup2 = make_festival("f2", [("e7", "Rezz")])
    await store.upsert_festival(festival2, lineup2)
    assert await matcher.load_catalog() == 2

    await cache.delete(FESTIVAL_ARTISTS_CACHE_KEY)
    assert await matcher.load_catalog() == 3
