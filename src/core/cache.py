"""
Persistent cache for OSS Index audit results.

Results are stored in a single SQLite database keyed by the case-folded
coordinate, together with the time they were inserted. Entries older than
the cache's TTL are treated as absent. The cache is single-process and
single-writer; concurrent runs against the same directory are not supported.
"""

import json
import logging
import shutil
import sqlite3
import time
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Callable, Generator, Iterable, Optional

from constants import CACHE_DB_FILE, DEFAULT_CACHE_TTL_HOURS
from core.exceptions import CacheCorrupt
from core.models import VulnerabilityRecord

logger = logging.getLogger(__name__)


class ResultCache:
    """
    TTL cache of VulnerabilityRecords backed by SQLite.

    Reads never modify the database. Writes replace entries wholesale.
    Any storage fault degrades to a cache miss so the caller refetches.
    """

    def __init__(
        self,
        cache_dir: Path,
        ttl: timedelta = timedelta(hours=DEFAULT_CACHE_TTL_HOURS),
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize result cache.

        Args:
            cache_dir: Directory holding the cache database
            ttl: How long an entry stays valid after insertion
            enabled: Whether caching is enabled
            clock: Returns the current time in epoch seconds
        """
        self.cache_dir = Path(cache_dir)
        self.cache_db = self.cache_dir / CACHE_DB_FILE
        self.ttl = ttl
        self.enabled = enabled
        self.clock = clock
        self.hits = 0
        self.misses = 0
        self._conn: Optional[sqlite3.Connection] = None

    def _setup_cache_dir(self) -> bool:
        """Create cache directory and table if they don't exist."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Cache directory: {self.cache_dir}")
            return True
        except OSError as e:
            logger.warning(f"Failed to create cache directory: {e}")
            return False

    @staticmethod
    def _init_schema(conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS audit_results (
                coordinate TEXT PRIMARY KEY,
                record TEXT NOT NULL,
                inserted_at REAL NOT NULL
            )
        """
        )
        conn.commit()

    @contextmanager
    def connection(self) -> Generator[Optional[sqlite3.Connection], None, None]:
        """
        Hold one database connection for the duration of the block.

        Nested uses share the outer connection. Yields None when the cache is
        disabled or the database cannot be opened. The connection is closed
        on every exit path of the outermost block.
        """
        if self._conn is not None:
            yield self._conn
            return

        if not self.enabled or not self._setup_cache_dir():
            yield None
            return

        conn = None
        try:
            conn = sqlite3.connect(self.cache_db)
            self._init_schema(conn)
        except sqlite3.Error as e:
            logger.warning(f"Failed to open cache database {self.cache_db}: {e}")
            if conn is not None:
                conn.close()
            yield None
            return

        self._conn = conn
        try:
            yield conn
        finally:
            self._conn = None
            conn.close()

    def _is_expired(self, inserted_at: float) -> bool:
        return self.clock() - inserted_at > self.ttl.total_seconds()

    @staticmethod
    def _decode(coordinate: str, payload: str) -> VulnerabilityRecord:
        try:
            return VulnerabilityRecord.from_dict(json.loads(payload))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise CacheCorrupt(f"Corrupted cache entry for {coordinate}: {e}") from e

    def get(self, keys: Iterable[str]) -> tuple[list[str], list[VulnerabilityRecord]]:
        """
        Partition keys into cache misses and cached records.

        Args:
            keys: Coordinate strings to look up

        Returns:
            Tuple of (missing keys in input order, cached records)
        """
        keys = list(keys)
        missing: list[str] = []
        hits: list[VulnerabilityRecord] = []

        with self.connection() as conn:
            if conn is None:
                self.misses += len(keys)
                return keys, hits

            for key in keys:
                try:
                    row = conn.execute(
                        "SELECT record, inserted_at FROM audit_results WHERE coordinate = ?",
                        (key.lower(),),
                    ).fetchone()
                except sqlite3.Error as e:
                    logger.warning(f"Unable to read cache entry for {key}: {e}")
                    row = None

                if row is None:
                    logger.debug(f"Cache miss for {key}")
                    missing.append(key)
                    self.misses += 1
                    continue

                payload, inserted_at = row
                if self._is_expired(inserted_at):
                    logger.debug(f"Cache entry expired for {key}")
                    missing.append(key)
                    self.misses += 1
                    continue

                try:
                    record = self._decode(key, payload)
                except CacheCorrupt as e:
                    logger.warning(str(e))
                    missing.append(key)
                    self.misses += 1
                    continue

                logger.debug(f"Cache hit for {key}")
                hits.append(record)
                self.hits += 1

        return missing, hits

    def put(self, records: Iterable[VulnerabilityRecord]) -> None:
        """
        Store records, replacing any existing entry for the same coordinate.

        All records are written in one transaction.

        Args:
            records: Audit results to cache
        """
        now = self.clock()
        rows = [
            (record.key, json.dumps(record.to_dict()), now)
            for record in records
        ]
        if not rows:
            return

        with self.connection() as conn:
            if conn is None:
                return
            try:
                with conn:
                    conn.executemany(
                        """
                        INSERT OR REPLACE INTO audit_results (coordinate, record, inserted_at)
                        VALUES (?, ?, ?)
                    """,
                        rows,
                    )
                logger.debug(f"Cached {len(rows)} audit results")
            except sqlite3.Error as e:
                logger.error(f"Failed to cache audit results: {e}")

    def clear(self) -> None:
        """
        Delete the cache directory and everything in it.

        Succeeds when the directory does not exist.
        """
        if not self.cache_dir.exists():
            logger.info(f"Cache directory {self.cache_dir} does not exist, nothing to clean")
            return

        shutil.rmtree(self.cache_dir)
        logger.info(f"Removed cache directory {self.cache_dir}")

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def summary(self) -> str:
        """Get cache usage summary."""
        if not self.enabled:
            return "Cache disabled"

        total = self.hits + self.misses
        if total == 0:
            return "No cache activity"

        return f"Cache: {self.hits} hits, {self.misses} misses ({self.hit_rate:.1f}% hit rate)"
