"""
SQLite persistence for feeds and notified-article keys.

A single connection is shared by both repositories and guarded by a lock,
so the fetch workers can query and mark articles concurrently.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

from feeder.errors import FeedAlreadyExistsError
from feeder.models import Feed, FeedType, SourceKind

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS feeds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL UNIQUE,
    feed_url TEXT NOT NULL,
    title TEXT NOT NULL,
    feed_type TEXT NOT NULL,
    source_type TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_feeds_url ON feeds(url);

CREATE TABLE IF NOT EXISTS notified_articles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cache_key TEXT NOT NULL UNIQUE,
    feed_id INTEGER NOT NULL,
    article_title TEXT,
    notified_at TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_notified_articles_cache_key ON notified_articles(cache_key);
"""

_FEED_COLUMNS = "id, url, feed_url, title, feed_type, source_type, created_at"

# SQLite's default limit on bound parameters is 999 on older builds.
_MAX_PARAMS = 500


class Storage:
    """Owns the SQLite connection. Pass ``":memory:"`` for a throwaway database."""

    def __init__(self, db_path: Union[str, Path] = "feeder.db"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._conn.executescript(SCHEMA)
        logger.debug("Opened database %s", self.db_path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection under the lock; commit on success, roll back on error."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def close(self) -> None:
        with self._lock:
            self._conn.close()


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------

def _row_to_feed(row: sqlite3.Row) -> Feed:
    return Feed(
        id=row["id"],
        url=row["url"],
        feed_url=row["feed_url"],
        title=row["title"],
        feed_type=FeedType.parse(row["feed_type"]),
        source_kind=SourceKind.parse(row["source_type"]),
        created_at=row["created_at"],
    )


class FeedRepository:
    def __init__(self, storage: Storage):
        self.storage = storage

    def add(self, feed: Feed) -> int:
        """
        Insert *feed* and return its new id.

        Raises:
            FeedAlreadyExistsError: If a feed with the same site URL exists.
        """
        with self.storage.transaction() as conn:
            exists = conn.execute("SELECT 1 FROM feeds WHERE url = ?", (feed.url,)).fetchone()
            if exists:
                raise FeedAlreadyExistsError(feed.url)
            cursor = conn.execute(
                "INSERT INTO feeds (url, feed_url, title, feed_type, source_type) VALUES (?, ?, ?, ?, ?)",
                (feed.url, feed.feed_url, feed.title, feed.feed_type.value, feed.source_kind.value),
            )
            return cursor.lastrowid

    def remove(self, feed_id: int) -> bool:
        """Delete a feed and its notified-article records. Returns False if absent."""
        with self.storage.transaction() as conn:
            cursor = conn.execute("DELETE FROM feeds WHERE id = ?", (feed_id,))
            return cursor.rowcount > 0

    def get_all(self) -> list[Feed]:
        """All feeds, newest first."""
        with self.storage.transaction() as conn:
            rows = conn.execute(
                f"SELECT {_FEED_COLUMNS} FROM feeds ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [_row_to_feed(row) for row in rows]

    def get_by_id(self, feed_id: int) -> Optional[Feed]:
        with self.storage.transaction() as conn:
            row = conn.execute(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE id = ?", (feed_id,)).fetchone()
        return _row_to_feed(row) if row else None

    def get_by_url(self, url: str) -> Optional[Feed]:
        with self.storage.transaction() as conn:
            row = conn.execute(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE url = ?", (url,)).fetchone()
        return _row_to_feed(row) if row else None

    def exists(self, url: str) -> bool:
        with self.storage.transaction() as conn:
            row = conn.execute("SELECT EXISTS(SELECT 1 FROM feeds WHERE url = ?)", (url,)).fetchone()
        return bool(row[0])


# ---------------------------------------------------------------------------
# Notified articles (dedup store)
# ---------------------------------------------------------------------------

class NotifiedArticleRepository:
    def __init__(self, storage: Storage):
        self.storage = storage

    def is_notified(self, cache_key: str) -> bool:
        with self.storage.transaction() as conn:
            row = conn.execute(
                "SELECT EXISTS(SELECT 1 FROM notified_articles WHERE cache_key = ?)", (cache_key,)
            ).fetchone()
        return bool(row[0])

    def mark_notified(self, cache_key: str, feed_id: int, article_title: str) -> None:
        """Record *cache_key* as delivered. Marking an existing key is a no-op."""
        with self.storage.transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO notified_articles (cache_key, feed_id, article_title) VALUES (?, ?, ?)",
                (cache_key, feed_id, article_title),
            )

    def get_unnotified(self, cache_keys: Sequence[str]) -> list[str]:
        """Return the keys from *cache_keys* not yet marked, in input order."""
        if not cache_keys:
            return []

        notified: set[str] = set()
        unique_keys = list(dict.fromkeys(cache_keys))
        with self.storage.transaction() as conn:
            for start in range(0, len(unique_keys), _MAX_PARAMS):
                chunk = unique_keys[start:start + _MAX_PARAMS]
                placeholders = ", ".join("?" for _ in chunk)
                rows = conn.execute(
                    f"SELECT cache_key FROM notified_articles WHERE cache_key IN ({placeholders})",
                    chunk,
                ).fetchall()
                notified.update(row[0] for row in rows)

        return [key for key in cache_keys if key not in notified]

    def count(self) -> int:
        with self.storage.transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM notified_articles").fetchone()[0]
