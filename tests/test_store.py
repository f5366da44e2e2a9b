from datetime import date

import pytest

from lineup2interest.models import Festival, LineupEntry, MatchMethod

from .conftest import make_festival


@pytest.mark.asyncio
async def test_festival_round_trip(store):
    festival = Festival(
        id="101",
        name="Electric Forest",
        location="Rothbury, MI",
        city="Rothbury",
        state="MI",
        venue_name="Double JJ Resort",
        start_date=date(2099, 6, 20),
        end_date=date(2099, 6, 23),
        ages="18+",
        link="https://edmtrain.com/michigan/electric-forest",
        is_festival=True,
    )
    lineup = [
        LineupEntry(festival_id="101", festival_artist_id="7", artist_name="Zedd", stage="Ranch Arena"),
        LineupEntry(festival_id="101", festival_artist_id="3", artist_name="Bonobo", is_b2b=True),
    ]

    await store.upsert_festival(festival, lineup)

    assert await store.get_festival("101") == festival
    assert await store.get_festival("nope") is None
    stored_lineup = await store.get_lineup("101")
    assert [e.artist_name for e in stored_lineup] == ["Bonobo", "Zedd"]
    assert stored_lineup[0].is_b2b is True
    assert stored_lineup[1].stage == "Ranch Arena"


@pytest.mark.asyncio
async def test_resync_replaces_lineup(store):
    await store.upsert_festival(*make_festival("f1", [("a", "Alpha"), ("b", "Beta")]))
    await store.upsert_festival(
        *make_festival("f1", [("b", "Beta"), ("c", "Gamma")], name="Renamed")
    )

    assert (await store.get_festival("f1")).name == "Renamed"
    assert [e.festival_artist_id for e in await store.get_lineup("f1")] == ["b", "c"]


@pytest.mark.asyncio
async def test_festival_artists_are_distinct_across_lineups(store):
    await store.upsert_festival(*make_festival("f1", [("a", "Alpha"), ("b", "Beta")]))
    await store.upsert_festival(*make_festival("f2", [("b", "Beta"), ("c", "Gamma")]))

    artists = await store.list_festival_artists()

    assert sorted(a.id for a in artists) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_upsert_mapping_keeps_created_at(store):
    first = await store.upsert_mapping("s1", "Zedd", "e1", "Zedd", MatchMethod.FUZZY, 0.9)
    second = await store.upsert_mapping("s1", "Zedd", "e2", "ZEDD", MatchMethod.EXACT, 1.0)

    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert second.festival_artist_id == "e2"
    assert second.verified is True
    assert (await store.mapping_stats()).total == 1


@pytest.mark.asyncio
async def test_get_mappings_for_unknown_ids(store):
    await store.upsert_mapping("s1", "Zedd", "e1", "Zedd", MatchMethod.EXACT, 1.0)

    mappings = await store.get_mappings(["s1", "s404"])

    assert [m.streaming_artist_id for m in mappings] == ["s1"]


@pytest.mark.asyncio
async def test_festival_artists_keep_first_seen_name(store):
    await store.upsert_festival(*make_festival("f1", [("b", "Zomboy"), ("a", "Alpha")]))
    await store.upsert_festival(*make_festival("f2", [("b", "Alpha Zomboy Tribute")]))

    artists = await store.list_festival_artists()

    assert [(a.id, a.name) for a in artists] == [("b", "Zomboy"), ("a", "Alpha")]
