"""
SQLite-backed timetable cache with a fixed freshness window.

Records are append-only. Expired rows are swept before every freshness
check; lookup returns the newest row still inside the window.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 60.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS timetable (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bus_stop_no INTEGER NOT NULL,
    data BLOB NOT NULL,
    last_updated REAL NOT NULL DEFAULT (strftime('%s', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_timetable_stop_updated
    ON timetable (bus_stop_no, last_updated);
"""


class CacheStoreError(Exception):
    """Raised when the backing database cannot be read or written."""


class CacheStore:
    """
    Timetable records keyed by bus stop number.

    - sweep(): deletes rows older than the TTL.
    - lookup(): newest fresh payload for a stop, or None.
    - insert(): appends a payload stamped with the current time.

    A single connection is shared across threads; every statement runs
    under one lock.
    """

    def __init__(
        self, db_path: Union[str, Path], ttl: float = CACHE_TTL_SECONDS
    ) -> None:
        self.db_path = str(db_path)
        self._ttl = ttl
        self._lock = threading.Lock()
        self._clock = time.time  # overridable for testing
        try:
            self._conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,  # autocommit
            )
        except sqlite3.Error as exc:
            raise CacheStoreError(f"Cannot open cache database: {exc}") from exc

    @property
    def ttl(self) -> float:
        return self._ttl

    def init_schema(self) -> None:
        """Create the timetable table and index if they do not exist."""
        with self._lock:
            try:
                if self.db_path != ":memory:":
                    self._conn.execute("PRAGMA journal_mode=WAL")
                self._conn.executescript(_SCHEMA)
            except sqlite3.Error as exc:
                raise CacheStoreError(f"Schema creation failed: {exc}") from exc

    def _cutoff(self) -> float:
        return self._clock() - self._ttl

    def sweep(self) -> int:
        """Delete all expired rows. Returns the number removed."""
        with self._lock:
            try:
                cursor = self._conn.execute(
                    "DELETE FROM timetable WHERE last_updated < ?",
                    (self._cutoff(),),
                )
            except sqlite3.Error as exc:
                raise CacheStoreError(f"Sweep failed: {exc}") from exc
        if cursor.rowcount:
            logger.debug("Swept %d expired timetable rows", cursor.rowcount)
        return cursor.rowcount

    def lookup(self, bus_stop_no: int) -> Optional[bytes]:
        """Return the newest fresh payload for a stop, or None."""
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT data FROM timetable"
                    " WHERE bus_stop_no = ? AND last_updated >= ?"
                    " ORDER BY last_updated DESC, id DESC LIMIT 1",
                    (bus_stop_no, self._cutoff()),
                ).fetchone()
            except sqlite3.Error as exc:
                raise CacheStoreError(f"Lookup failed: {exc}") from exc
        if row is None:
            return None
        return bytes(row[0])

    def insert(self, bus_stop_no: int, payload: bytes) -> None:
        """Append a payload for a stop, stamped with the current time."""
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT INTO timetable (bus_stop_no, data, last_updated)"
                    " VALUES (?, ?, ?)",
                    (bus_stop_no, sqlite3.Binary(payload), self._clock()),
                )
            except sqlite3.Error as exc:
                raise CacheStoreError(f"Insert failed: {exc}") from exc

    def count(self, bus_stop_no: Optional[int] = None) -> int:
        """Number of stored rows, fresh or not, optionally for one stop."""
        sql = "SELECT COUNT(*) FROM timetable"
        params: tuple = ()
        if bus_stop_no is not None:
            sql += " WHERE bus_stop_no = ?"
            params = (bus_stop_no,)
        with self._lock:
            try:
                row = self._conn.execute(sql, params).fetchone()
            except sqlite3.Error as exc:
                raise CacheStoreError(f"Count failed: {exc}") from exc
        return row[0]

    def clear(self) -> None:
        """Remove all rows."""
        with self._lock:
            try:
                self._conn.execute("DELETE FROM timetable")
            except sqlite3.Error as exc:
                raise CacheStoreError(f"Clear failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "CacheStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
