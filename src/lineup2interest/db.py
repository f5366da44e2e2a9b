"""SQLite database handle shared by the cache and the persistence gateway.

Tables:
- festivals / festival_lineups: festival catalog rows
- artist_mappings: streaming artist → festival artist
- user_festival_interests: computed interest per (user, festival)
- api_cache: expiring key-value entries
"""

import asyncio
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, TypeVar

from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SCHEMA = """
    CREATE TABLE IF NOT EXISTS festivals (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        location TEXT,
        city TEXT,
        state TEXT,
        venue_name TEXT,
        start_date TEXT NOT NULL,
        end_date TEXT,
        ages TEXT,
        link TEXT,
        is_festival INTEGER NOT NULL DEFAULT 1,
        is_livestream INTEGER NOT NULL DEFAULT 0,
        last_synced TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS festival_lineups (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        festival_id TEXT NOT NULL REFERENCES festivals(id) ON DELETE CASCADE,
        festival_artist_id TEXT NOT NULL,
        artist_name TEXT NOT NULL,
        is_b2b INTEGER NOT NULL DEFAULT 0,
        set_time TEXT,
        set_date TEXT,
        stage TEXT,
        UNIQUE(festival_id, festival_artist_id)
    );

    CREATE TABLE IF NOT EXISTS artist_mappings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        streaming_artist_id TEXT NOT NULL UNIQUE,
        streaming_artist_name TEXT NOT NULL,
        festival_artist_id TEXT NOT NULL,
        festival_artist_name TEXT NOT NULL,
        match_confidence REAL NOT NULL,
        match_method TEXT NOT NULL,
        verified INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS user_festival_interests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        festival_id TEXT NOT NULL,
        interest_level TEXT NOT NULL,
        interest_score REAL NOT NULL,
        matched_artists INTEGER NOT NULL DEFAULT 0,
        genre_alignment_score REAL NOT NULL DEFAULT 0,
        matched_artist_details_json TEXT NOT NULL,
        calculated_at TEXT NOT NULL,
        UNIQUE(user_id, festival_id)
    );

    CREATE TABLE IF NOT EXISTS api_cache (
        cache_key TEXT PRIMARY KEY,
        cache_data TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_festivals_start_date
        ON festivals(start_date);
    CREATE INDEX IF NOT EXISTS idx_festival_lineups_festival
        ON festival_lineups(festival_id);
    CREATE INDEX IF NOT EXISTS idx_artist_mappings_festival
        ON artist_mappings(festival_artist_id);
    CREATE INDEX IF NOT EXISTS idx_user_interests_level
        ON user_festival_interests(user_id, interest_level);
    CREATE INDEX IF NOT EXISTS idx_api_cache_expires
        ON api_cache(expires_at);
"""


class StoreError(Exception):
    """A read or write against the database failed."""


class Database:
    """SQLite database with async access.

    Every public call runs the blocking sqlite work in a worker thread, so
    each persistence call is a suspension point for the event loop.
    Connections are opened per call and never shared across threads.
    """

    def __init__(self, db_path: Path):
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._ensure_db_exists()
        self._create_tables()

    def _ensure_db_exists(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with row factory and foreign keys enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def _create_tables(self) -> None:
        with self.connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    async def run(self, func: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``func`` with a fresh connection in a worker thread.

        The connection is committed when ``func`` returns. sqlite errors are
        raised as StoreError.
        """

        def _call() -> T:
            with self.connection() as conn:
                result = func(conn)
                conn.commit()
                return result

        try:
            return await asyncio.to_thread(_call)
        except sqlite3.Error as e:
            logger.error("database_call_failed", error=str(e), db_path=str(self.db_path))
            raise StoreError(str(e)) from e
