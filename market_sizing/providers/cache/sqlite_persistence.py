"""SQLite-backed persistence for the in-memory cache.

Keeps a copy of every cache entry in a local SQLite file so warm entries
survive a process restart.  Uses ``aiosqlite`` for async I/O.

Only :meth:`~SQLiteCachePersistence.initialize` raises (:class:`CacheError`).
Every other operation is best-effort: a failure is logged as a warning and
swallowed, because the in-memory cache remains the source of truth for
the running process.
"""

from __future__ import annotations

import fnmatch
import json
from pathlib import Path

import aiosqlite
import structlog

from market_sizing.interfaces.cache_provider import ICachePersistence
from market_sizing.models.cache import CacheEntry, Outcome
from market_sizing.utils.errors import CacheError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/cache.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS cache_entries (
    key         TEXT    PRIMARY KEY,
    value       TEXT,
    stored_at   REAL    NOT NULL,
    ttl_ms      INTEGER NOT NULL,
    outcome     TEXT    NOT NULL
);
"""

_UPSERT_SQL = """\
INSERT INTO cache_entries (key, value, stored_at, ttl_ms, outcome)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(key)
DO UPDATE SET value     = excluded.value,
              stored_at = excluded.stored_at,
              ttl_ms    = excluded.ttl_ms,
              outcome   = excluded.outcome;
"""

_SELECT_SQL = "SELECT key, value, stored_at, ttl_ms, outcome FROM cache_entries WHERE key = ?;"

# Errors a broken or unwritable database file can raise.
_DB_ERRORS = (aiosqlite.Error, OSError, ValueError, TypeError)
_PERSISTENCE_ERRORS = (CacheError, *_DB_ERRORS)


class SQLiteCachePersistence(ICachePersistence):
    """Stores cache entries as JSON rows keyed by cache key."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._initialized = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Create the table if it does not exist.

        Raises
        ------
        CacheError
            If the database file cannot be created or opened.
        """
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.commit()
        except _DB_ERRORS as exc:
            raise CacheError(f"Cannot open cache database {self._db_path}: {exc}") from exc
        self._initialized = True
        logger.info("cache_db_initialized", path=str(self._db_path))

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    # ------------------------------------------------------------------
    # ICachePersistence implementation
    # ------------------------------------------------------------------

    async def save(self, entry: CacheEntry) -> bool:
        try:
            await self._ensure_initialized()
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _UPSERT_SQL,
                    (
                        entry.key,
                        json.dumps(entry.value),
                        entry.stored_at,
                        entry.ttl_ms,
                        entry.outcome.value,
                    ),
                )
                await db.commit()
        except _PERSISTENCE_ERRORS as exc:
            logger.warning("cache_persist_failed", key=entry.key, error=str(exc))
            return False
        return True

    async def load(self, key: str) -> CacheEntry | None:
        try:
            await self._ensure_initialized()
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_SQL, (key,))
                row = await cursor.fetchone()
            if row is None:
                return None
            return CacheEntry(
                key=row["key"],
                value=json.loads(row["value"]) if row["value"] is not None else None,
                stored_at=row["stored_at"],
                ttl_ms=row["ttl_ms"],
                outcome=Outcome(row["outcome"]),
            )
        except _PERSISTENCE_ERRORS as exc:
            logger.warning("cache_load_failed", key=key, error=str(exc))
            return None

    async def remove(self, key: str) -> None:
        try:
            await self._ensure_initialized()
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                await db.commit()
        except _PERSISTENCE_ERRORS as exc:
            logger.warning("cache_remove_failed", key=key, error=str(exc))

    async def remove_matching(self, pattern: str) -> list[str]:
        try:
            await self._ensure_initialized()
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute("SELECT key FROM cache_entries")
                rows = await cursor.fetchall()
                matched = [row[0] for row in rows if fnmatch.fnmatchcase(row[0], pattern)]
                if matched:
                    await db.executemany(
                        "DELETE FROM cache_entries WHERE key = ?",
                        [(key,) for key in matched],
                    )
                    await db.commit()
        except _PERSISTENCE_ERRORS as exc:
            logger.warning("cache_invalidate_failed", pattern=pattern, error=str(exc))
            return []
        return matched

    async def clear(self) -> None:
        try:
            await self._ensure_initialized()
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("DELETE FROM cache_entries")
                await db.commit()
        except _PERSISTENCE_ERRORS as exc:
            logger.warning("cache_clear_failed", error=str(exc))

    async def purge_expired(self, now: float) -> int:
        """Delete rows whose expiry instant is strictly before *now*."""
        try:
            await self._ensure_initialized()
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "DELETE FROM cache_entries WHERE stored_at + ttl_ms / 1000.0 < ?",
                    (now,),
                )
                await db.commit()
                removed = cursor.rowcount
        except _PERSISTENCE_ERRORS as exc:
            logger.warning("cache_purge_failed", error=str(exc))
            return 0
        logger.debug("cache_purged", removed=removed)
        return removed
