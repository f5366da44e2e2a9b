from lineup2interest.spotify import build_listening_profile


def artist(artist_id, name, genres=()):
    return {"id": artist_id, "name": name, "genres": list(genres)}


def track(track_id, *artists):
    return {"id": track_id, "name": f"Track {track_id}", "artists": list(artists)}


def test_build_listening_profile():
    top_artists = [
        artist("s1", "Fisher", ["tech house", "house"]),
        artist("s2", "Bonobo", ["downtempo", "house"]),
        artist("s3", "Zedd", ["edm"]),
    ]
    top_tracks = [
        track("t1", artist("s1", "Fisher"), artist("s9", "Aatig")),
        track("t2", {"id": None, "name": "Local Artist"}),
    ]
    recent = [
        {"track": track("r1", artist("s1", "Fisher"))},
        {"track": track("r2", artist("s1", "Fisher"), artist("s3", "Zedd"))},
        {"track": track("r3", artist("s3", "Zedd"))},
        {"track": track("r4", artist("s1", "Fisher"))},
    ]

    profile = build_listening_profile(top_artists, top_tracks, recent)

    assert [(a.id, a.rank) for a in profile.top_artists] == [("s1", 1), ("s2", 2), ("s3", 3)]
    assert [a.id for a in profile.top_tracks[0].artists] == ["s1", "s9"]
    assert profile.top_tracks[1].artists == []
    assert profile.top_genres[0] == "house"
    assert set(profile.top_genres) == {"house", "tech house", "downtempo", "edm"}
    assert profile.recent_play_counts == {"s1": 3, "s3": 2}
    assert profile.streaming_artist_ids() == ["s1", "s2", "s3", "s9"]


def test_genres_are_limited():
    top_artists = [artist(f"s{i}", f"Artist {i}", [f"genre {i}"]) for i in range(30)]

    profile = build_listening_profile(top_artists, [], [], max_genres=5)

    assert len(profile.top_genres) == 5


def test_empty_listening_data():
    profile = build_listening_profile([], [], [])

    assert profile.top_artists == []
    assert profile.top_genres == []
    assert profile.streaming_artist_ids() == []
