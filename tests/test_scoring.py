import pytest

from lineup2interest.interest import (
    calculate_genre_alignment,
    calculate_score_breakdown,
    interest_level_for,
)
from lineup2interest.interest.scoring import build_matched_artist_details
from lineup2interest.models import ArtistMapping, InterestLevel, MatchMethod

from .conftest import make_profile

FIVE_ARTISTS = [(f"s{i}", f"Artist {i}") for i in range(1, 6)]


def test_full_top_five_overlap_without_tracks_or_plays():
    profile = make_profile(top_artists=FIVE_ARTISTS, top_tracks=[[("x1", "Someone Else")]])

    breakdown = calculate_score_breakdown(profile, [a for a, _ in FIVE_ARTISTS])

    assert breakdown.top_artists_match == 40
    assert breakdown.top_tracks_artist_match == 0
    assert breakdown.genre_match == 0
    assert breakdown.listening_frequency == 0
    assert breakdown.total == 40
    assert interest_level_for(breakdown.total) == InterestLevel.MEDIUM


def test_top_artists_counts_only_first_five_matches():
    top = [(f"s{i}", f"Artist {i}") for i in range(1, 9)]
    profile = make_profile(top_artists=top)

    breakdown = calculate_score_breakdown(profile, [a for a, _ in top])

    assert breakdown.top_artists_match == 40


def test_top_track_artists_are_distinct_and_capped():
    tracks = [[("s1", "A"), ("s2", "B")], [("s1", "A")]] + [[(f"t{i}", "T")] for i in range(6)]
    profile = make_profile(top_tracks=tracks)

    assert calculate_score_breakdown(profile, ["s1", "s2"]).top_tracks_artist_match == 12
    assert (
        calculate_score_breakdown(profile, ["s1", "s2"] + [f"t{i}" for i in range(6)])
        .top_tracks_artist_match
        == 30
    )


def test_single_artist_frequency_is_capped_per_artist():
    profile = make_profile(top_artists=[("s1", "A")], plays={"s1": 50})

    breakdown = calculate_score_breakdown(profile, ["s1"])

    assert breakdown.listening_frequency == 2
    assert breakdown.total == 10


def test_frequency_total_is_capped_at_ten():
    ids = [f"s{i}" for i in range(8)]
    profile = make_profile(plays={artist_id: 100 for artist_id in ids})

    assert calculate_score_breakdown(profile, ids).listening_frequency == 10


def test_frequency_is_fractional_below_cap():
    profile = make_profile(plays={"s1": 5, "s2": 12})

    assert calculate_score_breakdown(profile, ["s1", "s2"]).listening_frequency == pytest.approx(1.7)


def test_breakdown_components_stay_bounded():
    top = [(f"s{i}", f"Artist {i}") for i in range(10)]
    profile = make_profile(
        top_artists=top,
        top_tracks=[[artist] for artist in top],
        plays={artist_id: 1000 for artist_id, _ in top},
    )

    breakdown = calculate_score_breakdown(profile, [a for a, _ in top])

    assert breakdown.top_artists_match == 40
    assert breakdown.top_tracks_artist_match == 30
    assert breakdown.listening_frequency == 10
    assert breakdown.total == 80
    assert breakdown.total == (
        breakdown.top_artists_match
        + breakdown.top_tracks_artist_match
        + breakdown.genre_match
        + breakdown.listening_frequency
    )


@pytest.mark.parametrize(
    "score, level",
    [
        (100, InterestLevel.HIGH),
        (60, InterestLevel.HIGH),
        (59.99, InterestLevel.MEDIUM),
        (30, InterestLevel.MEDIUM),
        (29.99, InterestLevel.LOW),
        (0, InterestLevel.LOW),
    ],
)
def test_interest_level_thresholds(score, level):
    assert interest_level_for(score) == level


def test_genre_alignment_uses_substring_containment():
    festival_genres = ["electronic", "edm", "house", "techno", "dubstep", "trance"]

    assert calculate_genre_alignment(["Deep House", "melodic techno", "pop"], festival_genres) == 8
    assert calculate_genre_alignment(["indie rock"], festival_genres) == 0
    assert calculate_genre_alignment([], festival_genres) == 0


def test_genre_alignment_is_capped():
    user = ["electronic", "edm", "house", "techno", "dubstep", "trance"]

    assert calculate_genre_alignment(user, user) == 20


def test_matched_artist_details():
    profile = make_profile(
        top_artists=[("s1", "Kaskade"), ("s2", "Rezz")],
        top_tracks=[[("s2", "Rezz")], [("s3", "Zedd")]],
        plays={"s2": 7},
    )
    mappings = [
        ArtistMapping(
            streaming_artist_id=artist_id,
            streaming_artist_name=name,
            festival_artist_id=f"e-{artist_id}",
            festival_artist_name=name,
            match_confidence=1.0,
            match_method=MatchMethod.EXACT,
        )
        for artist_id, name in [("s2", "Rezz"), ("s3", "Zedd")]
    ]

    rezz, zedd = build_matched_artist_details(mappings, profile)

    assert (rezz.user_rank, rezz.is_top_artist, rezz.is_top_track_artist, rezz.user_play_count) == (
        2,
        True,
        True,
        7,
    )
    assert (zedd.user_rank, zedd.is_top_artist, zedd.is_top_track_artist, zedd.user_play_count) == (
        0,
        False,
        True,
        0,
    )
