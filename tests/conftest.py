from datetime import date

import pytest

from lineup2interest.cache import Cache
from lineup2interest.db import Database
from lineup2interest.interest import InterestCalculator
from lineup2interest.matching import ArtistMatcher
from lineup2interest.models import (
    ArtistIdentity,
    Festival,
    LineupEntry,
    ListeningProfile,
    TopArtist,
    TopTrack,
)
from lineup2interest.store import Store


@pytest.fixture
def database(tmp_path):
    return Database(tmp_path / "lineup2interest.db")


@pytest.fixture
def store(database):
    return Store(database)


@pytest.fixture
def cache(database):
    return Cache(database)


@pytest.fixture
def matcher(store, cache):
    return ArtistMatcher(store, cache=cache)


@pytest.fixture
def calculator(store, matcher):
    return InterestCalculator(store, matcher)


def make_festival(
    festival_id: str,
    artists: list[tuple[str, str]],
    start_date: date = date(2099, 7, 1),
    name: str | None = None,
) -> tuple[Festival, list[LineupEntry]]:
    festival = Festival(id=festival_id, name=name or f"Festival {festival_id}", start_date=start_date)
    lineup = [
        LineupEntry(festival_id=festival_id, festival_artist_id=artist_id, artist_name=artist_name)
        for artist_id, artist_name in artists
    ]
    return festival, lineup


def make_profile(
    top_artists: list[tuple[str, str]] = (),
    top_tracks: list[list[tuple[str, str]]] = (),
    genres: list[str] = (),
    plays: dict[str, int] | None = None,
) -> ListeningProfile:
    return ListeningProfile(
        top_artists=[
            TopArtist(id=artist_id, name=name, rank=rank)
            for rank, (artist_id, name) in enumerate(top_artists, 1)
        ],
        top_tracks=[
            TopTrack(
                id=f"track-{i}",
                name=f"Track {i}",
                artists=[ArtistIdentity(id=a_id, name=a_name) for a_id, a_name in artists],
            )
            for i, artists in enumerate(top_tracks)
        ],
        top_genres=list(genres),
        recent_play_counts=plays or {},
    )
