"""Persistence gateway for festivals, lineups, artist mappings and interests.

All writes that can repeat use INSERT ... ON CONFLICT DO UPDATE, so the
last write wins and rows are never duplicated. There is no versioning.
"""

import json
import sqlite3
from datetime import date, datetime

from .db import Database
from .models import (
    ArtistIdentity,
    ArtistMapping,
    Festival,
    InterestLevel,
    LineupEntry,
    MappingStats,
    MatchedArtistDetail,
    MatchMethod,
    UserFestivalInterest,
)


def _row_to_mapping(row: sqlite3.Row) -> ArtistMapping:
    return ArtistMapping(
        streaming_artist_id=row["streaming_artist_id"],
        streaming_artist_name=row["streaming_artist_name"],
        festival_artist_id=row["festival_artist_id"],
        festival_artist_name=row["festival_artist_name"],
        match_confidence=row["match_confidence"],
        match_method=MatchMethod(row["match_method"]),
        verified=bool(row["verified"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_lineup_entry(row: sqlite3.Row) -> LineupEntry:
    return LineupEntry(
        festival_id=row["festival_id"],
        festival_artist_id=row["festival_artist_id"],
        artist_name=row["artist_name"],
        is_b2b=bool(row["is_b2b"]),
        set_time=row["set_time"],
        set_date=date.fromisoformat(row["set_date"]) if row["set_date"] else None,
        stage=row["stage"],
    )


def _row_to_interest(row: sqlite3.Row) -> UserFestivalInterest:
    details = json.loads(row["matched_artist_details_json"])
    return UserFestivalInterest(
        user_id=row["user_id"],
        festival_id=row["festival_id"],
        interest_level=InterestLevel(row["interest_level"]),
        interest_score=row["interest_score"],
        matched_artists=row["matched_artists"],
        genre_alignment_score=row["genre_alignment_score"],
        matched_artist_details=[MatchedArtistDetail.model_validate(d) for d in details],
        calculated_at=datetime.fromisoformat(row["calculated_at"]),
    )


class Store:
    """Async persistence gateway over the lineup2interest database."""

    def __init__(self, database: Database):
        self.database = database

    # Artist mappings
    async def upsert_mapping(
        self,
        streaming_artist_id: str,
        streaming_artist_name: str,
        festival_artist_id: str,
        festival_artist_name: str,
        match_method: MatchMethod,
        match_confidence: float,
    ) -> ArtistMapping:
        """Insert or overwrite the mapping for a streaming artist."""
        now = datetime.now().isoformat()
        params = (
            streaming_artist_id,
            streaming_artist_name,
            festival_artist_id,
            festival_artist_name,
            match_confidence,
            match_method.value,
            int(match_method.is_verified),
            now,
            now,
        )

        def _upsert(conn):
            conn.execute(
                """
                INSERT INTO artist_mappings
                    (streaming_artist_id, streaming_artist_name, festival_artist_id,
                     festival_artist_name, match_confidence, match_method, verified,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (streaming_artist_id)
                DO UPDATE SET
                    streaming_artist_name = excluded.streaming_artist_name,
                    festival_artist_id = excluded.festival_artist_id,
                    festival_artist_name = excluded.festival_artist_name,
                    match_confidence = excluded.match_confidence,
                    match_method = excluded.match_method,
                    verified = excluded.verified,
                    updated_at = excluded.updated_at
                """,
                params,
            )
            return conn.execute(
                "SELECT * FROM artist_mappings WHERE streaming_artist_id = ?",
                (streaming_artist_id,),
            ).fetchone()

        return _row_to_mapping(await self.database.run(_upsert))

    async def get_mapping(self, streaming_artist_id: str) -> ArtistMapping | None:
        row = await self.database.run(
            lambda conn: conn.execute(
                "SELECT * FROM artist_mappings WHERE streaming_artist_id = ?",
                (streaming_artist_id,),
            ).fetchone()
        )
        return _row_to_mapping(row) if row else None

    async def get_mappings(self, streaming_artist_ids: list[str]) -> list[ArtistMapping]:
        """Bulk read mappings for the given streaming artist IDs."""
        placeholders = ", ".join("?" for _ in streaming_artist_ids)
        rows = await self.database.run(
            lambda conn: conn.execute(
                f"SELECT * FROM artist_mappings WHERE streaming_artist_id IN ({placeholders})",
                tuple(streaming_artist_ids),
            ).fetchall()
        )
        return [_row_to_mapping(row) for row in rows]

    async def delete_mapping(self, streaming_artist_id: str) -> bool:
        deleted = await self.database.run(
            lambda conn: conn.execute(
                "DELETE FROM artist_mappings WHERE streaming_artist_id = ?",
                (streaming_artist_id,),
            ).rowcount
        )
        return deleted > 0

    async def list_verified_mappings(self) -> list[ArtistMapping]:
        rows = await self.database.run(
            lambda conn: conn.execute(
                "SELECT * FROM artist_mappings WHERE verified = 1 ORDER BY streaming_artist_name"
            ).fetchall()
        )
        return [_row_to_mapping(row) for row in rows]

    async def mapping_stats(self) -> MappingStats:
        def _stats(conn):
            total = conn.execute("SELECT COUNT(*) FROM artist_mappings").fetchone()[0]
            verified = conn.execute(
                "SELECT COUNT(*) FROM artist_mappings WHERE verified = 1"
            ).fetchone()[0]
            by_method = conn.execute(
                "SELECT match_method, COUNT(*) AS count FROM artist_mappings GROUP BY match_method"
            ).fetchall()
            return total, verified, {row["match_method"]: row["count"] for row in by_method}

        total, verified, by_method = await self.database.run(_stats)
        return MappingStats(total=total, verified=verified, by_method=by_method)

    # Festivals and lineups
    async def upsert_festival(self, festival: Festival, lineup: list[LineupEntry]) -> None:
        """Insert or update a festival and replace its lineup."""
        synced_at = datetime.now().isoformat()

        def _upsert(conn):
            conn.execute(
                """
                INSERT INTO festivals
                    (id, name, location, city, state, venue_name, start_date, end_date,
                     ages, link, is_festival, is_livestream, last_synced)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (id)
                DO UPDATE SET
                    name = excluded.name,
                    location = excluded.location,
                    city = excluded.city,
                    state = excluded.state,
                    venue_name = excluded.venue_name,
                    start_date = excluded.start_date,
                    end_date = excluded.end_date,
                    ages = excluded.ages,
                    link = excluded.link,
                    is_festival = excluded.is_festival,
                    is_livestream = excluded.is_livestream,
                    last_synced = excluded.last_synced
                """,
                (
                    festival.id,
                    festival.name,
                    festival.location,
                    festival.city,
                    festival.state,
                    festival.venue_name,
                    festival.start_date.isoformat(),
                    festival.end_date.isoformat() if festival.end_date else None,
                    festival.ages,
                    festival.link,
                    int(festival.is_festival),
                    int(festival.is_livestream),
                    synced_at,
                ),
            )
            conn.execute("DELETE FROM festival_lineups WHERE festival_id = ?", (festival.id,))
            conn.executemany(
                """
                INSERT OR REPLACE INTO festival_lineups
                    (festival_id, festival_artist_id, artist_name, is_b2b, set_time, set_date, stage)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        festival.id,
                        entry.festival_artist_id,
                        entry.artist_name,
                        int(entry.is_b2b),
                        entry.set_time,
                        entry.set_date.isoformat() if entry.set_date else None,
                        entry.stage,
                    )
                    for entry in lineup
                ],
            )

        await self.database.run(_upsert)

    async def get_festival(self, festival_id: str) -> Festival | None:
        row = await self.database.run(
            lambda conn: conn.execute(
                "SELECT * FROM festivals WHERE id = ?", (festival_id,)
            ).fetchone()
        )
        if row is None:
            return None
        return Festival(
            id=row["id"],
            name=row["name"],
            location=row["location"],
            city=row["city"],
            state=row["state"],
            venue_name=row["venue_name"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]) if row["end_date"] else None,
            ages=row["ages"],
            link=row["link"],
            is_festival=bool(row["is_festival"]),
            is_livestream=bool(row["is_livestream"]),
        )

    async def get_lineup(self, festival_id: str) -> list[LineupEntry]:
        """Get a festival's lineup ordered by artist name."""
        rows = await self.database.run(
            lambda conn: conn.execute(
                "SELECT * FROM festival_lineups WHERE festival_id = ? ORDER BY artist_name",
                (festival_id,),
            ).fetchall()
        )
        return [_row_to_lineup_entry(row) for row in rows]

    async def list_upcoming_festival_ids(self, today: date) -> list[str]:
        """IDs of festivals starting today or later, soonest first."""
        rows = await self.database.run(
            lambda conn: conn.execute(
                "SELECT id FROM festivals WHERE start_date >= ? ORDER BY start_date",
                (today.isoformat(),),
            ).fetchall()
        )
        return [row["id"] for row in rows]

    async def list_festival_artists(self) -> list[ArtistIdentity]:
        """Distinct festival-catalog artists across all lineups, in first-seen order.

        Each artist keeps the name from the lineup row where it first appeared.
        """
        rows = await self.database.run(
            lambda conn: conn.execute(
                """
                SELECT l.festival_artist_id, l.artist_name
                FROM festival_lineups l
                JOIN (
                    SELECT MIN(id) AS first_id FROM festival_lineups GROUP BY festival_artist_id
                ) first_seen ON l.id = first_seen.first_id
                ORDER BY l.id
                """
            ).fetchall()
        )
        return [
            ArtistIdentity(id=row["festival_artist_id"], name=row["artist_name"]) for row in rows
        ]

    # User festival interests
    async def upsert_interest(self, interest: UserFestivalInterest) -> None:
        """Insert or overwrite the interest for (user_id, festival_id)."""
        details = json.dumps(
            [d.model_dump() for d in interest.matched_artist_details], default=str
        )

        def _upsert(conn):
            conn.execute(
                """
                INSERT INTO user_festival_interests
                    (user_id, festival_id, interest_level, interest_score, matched_artists,
                     genre_alignment_score, matched_artist_details_json, calculated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, festival_id)
                DO UPDATE SET
                    interest_level = excluded.interest_level,
                    interest_score = excluded.interest_score,
                    matched_artists = excluded.matched_artists,
                    genre_alignment_score = excluded.genre_alignment_score,
                    matched_artist_details_json = excluded.matched_artist_details_json,
                    calculated_at = excluded.calculated_at
                """,
                (
                    interest.user_id,
                    interest.festival_id,
                    interest.interest_level.value,
                    interest.interest_score,
                    interest.matched_artists,
                    interest.genre_alignment_score,
                    details,
                    interest.calculated_at.isoformat(),
                ),
            )

        await self.database.run(_upsert)

    async def list_interests(
        self, user_id: str, level: InterestLevel | None = None
    ) -> list[UserFestivalInterest]:
        """A user's interests, highest score first, optionally filtered by level."""
        if level is None:
            query = (
                "SELECT * FROM user_festival_interests WHERE user_id = ? "
                "ORDER BY interest_score DESC"
            )
            params: tuple = (user_id,)
        else:
            query = (
                "SELECT * FROM user_festival_interests WHERE user_id = ? AND interest_level = ? "
                "ORDER BY interest_score DESC"
            )
            params = (user_id, level.value)

        rows = await self.database.run(lambda conn: conn.execute(query, params).fetchall())
        return [_row_to_interest(row) for row in rows]
