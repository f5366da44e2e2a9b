"""Expiring key-value cache backed by the api_cache table.

Used by the festival source to avoid repeated API calls and by the
matcher to avoid reloading the festival artist catalog on every run.
"""

import json
from datetime import datetime, timedelta
from typing import Any

from .db import Database
from .logging import get_logger

logger = get_logger(__name__)


class Cache:
    """SQLite-based cache for API responses and derived catalog data."""

    DEFAULT_TTL_SECONDS = 3600

    def __init__(self, database: Database, default_ttl_seconds: int | None = None):
        self.database = database
        self.default_ttl_seconds = default_ttl_seconds or self.DEFAULT_TTL_SECONDS

    async def get(self, key: str) -> Any | None:
        """Get a cached value, or None if missing or expired."""
        now = datetime.now().isoformat()

        def _get(conn):
            return conn.execute(
                "SELECT cache_data FROM api_cache WHERE cache_key = ? AND expires_at > ?",
                (key, now),
            ).fetchone()

        row = await self.database.run(_get)
        if row is None:
            return None
        logger.debug("cache_hit", key=key)
        return json.loads(row["cache_data"])

    async def set(self, key: str, data: Any, ttl_seconds: int | None = None) -> None:
        """Cache a JSON-serializable value, overwriting any existing entry."""
        ttl = ttl_seconds or self.default_ttl_seconds
        now = datetime.now()
        expires_at = (now + timedelta(seconds=ttl)).isoformat()
        payload = json.dumps(data, default=str)

        def _set(conn):
            conn.execute(
                """
                INSERT INTO api_cache (cache_key, cache_data, expires_at, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (cache_key)
                DO UPDATE SET cache_data = excluded.cache_data, expires_at = excluded.expires_at
                """,
                (key, payload, expires_at, now.isoformat()),
            )

        await self.database.run(_set)

    async def delete(self, key: str) -> None:
        await self.database.run(
            lambda conn: conn.execute("DELETE FROM api_cache WHERE cache_key = ?", (key,))
        )

    async def clear_expired(self) -> int:
        """Clear all expired entries. Returns count of deleted rows."""
        now = datetime.now().isoformat()
        deleted = await self.database.run(
            lambda conn: conn.execute(
                "DELETE FROM api_cache WHERE expires_at <= ?", (now,)
            ).rowcount
        )
        logger.info("cache_expired_cleared", deleted=deleted)
        return deleted

    async def clear_all(self) -> None:
        """Clear all cached data."""
        await self.database.run(lambda conn: conn.execute("DELETE FROM api_cache"))
