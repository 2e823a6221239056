"""
Database support functions.
Any of the file system I/O for the metadata cache and the associated settings are in this single file.

Values are stored as text together with an absolute expiry time; an expired row
reads exactly like a missing one. It is deleted when read, and rows nobody reads
again are swept when the cache is opened and periodically from put().
"""

import os
import re
import functools
import sqlite3
import threading
import time

from loguru import logger

from config import settings

# -----------------------------------------------------------------------------
# SQLite configuration (from centralized settings)
DB_TIMEOUT = settings.db.timeout
DB_MAX_RETRIES = settings.db.max_retries
DB_RETRY_BASE_SLEEP = settings.db.retry_base_sleep


def _init_connection(conn: sqlite3.Connection, enable_wal: bool = False):
    """Initialize connection with optimal settings for concurrency."""
    # - busy_timeout: how long SQLite waits when encountering a locked DB
    # - synchronous: durability/performance tradeoff (WAL + NORMAL is common)
    # - journal_mode=WAL: enables concurrent readers + single writer
    conn.execute(f"PRAGMA busy_timeout={int(DB_TIMEOUT * 1000)}")  # milliseconds
    conn.execute("PRAGMA synchronous=NORMAL")
    if enable_wal:
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.OperationalError:
            # Another process may be changing journal mode or holding a lock.
            # We'll still benefit from busy_timeout + retry logic.
            pass


# -----------------------------------------------------------------------------
# Native SQLite key-value table with per-row expiry


# Valid table name pattern to prevent SQL injection
_VALID_TABLENAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _locked(method):
    """Serialize access to the shared connection (it is used from several threads)."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class SqliteKV:
    """
    A key-value store over a SQLite table with (key TEXT, value TEXT, expires_at REAL).
    Uses WAL mode and busy_timeout for better concurrency.

    ``expires_at`` is a unix timestamp; NULL means the row never expires. Expired
    rows that are never read again are swept by ``purge_expired``, which ``put``
    also runs every ``purge_interval_s`` seconds when that is set.
    """

    def __init__(
        self,
        db_path: str,
        tablename: str,
        flag: str = "r",
        autocommit: bool = True,
        clock=time.time,
        purge_interval_s: float | None = None,
    ):
        """
        Args:
            db_path: Path to SQLite database file
            tablename: Table name to use
            flag: 'r' for read-only, 'c' for read-write (create if needed)
            autocommit: If True, commit after each write operation
            clock: Callable returning the current unix time (injectable for tests)
            purge_interval_s: Sweep expired rows from put() at most this often (None or 0 disables)
        """
        if flag not in ("r", "c"):
            raise ValueError(f"Invalid flag '{flag}': must be 'r' (read-only) or 'c' (read-write/create)")

        if not _VALID_TABLENAME_RE.match(tablename or ""):
            raise ValueError(
                f"Invalid table name '{tablename}': must be alphanumeric with underscores, starting with letter or underscore"
            )

        self.db_path = db_path
        self.tablename = tablename
        self.flag = flag
        self.autocommit = autocommit
        self._clock = clock
        self._purge_interval_s = purge_interval_s
        self._last_purge = clock()
        self._lock = threading.RLock()
        self._conn = None
        self._closed = False

        if flag == "r":
            if not os.path.exists(db_path):
                raise FileNotFoundError(f"Database not found: {db_path}")
            self._conn = sqlite3.connect(
                f"file:{db_path}?mode=ro",
                uri=True,
                timeout=DB_TIMEOUT,
                check_same_thread=False,
            )
        else:
            # Create directory if needed (handle empty dirname case)
            db_dir = os.path.dirname(db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
            self._conn = sqlite3.connect(db_path, timeout=DB_TIMEOUT, check_same_thread=False)

        _init_connection(self._conn, enable_wal=(flag == "c"))

        if flag == "c":
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {tablename} (key TEXT PRIMARY KEY, value TEXT, expires_at REAL)"
            )
            if self.autocommit:
                self._conn.commit()
        else:
            cursor = self._conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (tablename,),
            )
            if cursor.fetchone() is None:
                self._conn.close()
                self._closed = True
                raise sqlite3.OperationalError(f"no such table: {tablename}")

    def _execute_with_retry(self, sql: str, params=()):
        for attempt in range(DB_MAX_RETRIES):
            try:
                return self._conn.execute(sql, params)
            except sqlite3.OperationalError as exc:
                msg = str(exc).lower()
                if "locked" in msg or "busy" in msg:
                    if attempt >= DB_MAX_RETRIES - 1:
                        raise
                    time.sleep(DB_RETRY_BASE_SLEEP * (2**attempt))
                    continue
                raise

    def _commit_with_retry(self):
        if not self._conn:
            return
        for attempt in range(DB_MAX_RETRIES):
            try:
                self._conn.commit()
                return
            except sqlite3.OperationalError as exc:
                msg = str(exc).lower()
                if "locked" in msg or "busy" in msg:
                    if attempt >= DB_MAX_RETRIES - 1:
                        raise
                    time.sleep(DB_RETRY_BASE_SLEEP * (2**attempt))
                    continue
                raise

    def _check_writable(self):
        if self.flag == "r":
            raise RuntimeError("Cannot write to read-only database")

    @_locked
    def _live_row(self, key: str):
        cursor = self._execute_with_retry(
            f"SELECT value, expires_at FROM {self.tablename} WHERE key = ?",
            (key,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and expires_at <= self._clock():
            if self.flag == "c":
                self._execute_with_retry(
                    f"DELETE FROM {self.tablename} WHERE key = ? AND expires_at = ?",
                    (key, expires_at),
                )
                if self.autocommit:
                    self._commit_with_retry()
            return None
        return value

    def get(self, key: str, default=None):
        """Get value by key, return default if missing or expired."""
        value = self._live_row(key)
        return default if value is None else value

    @_locked
    def put(self, key: str, value: str, ttl_s: float | None = None):
        """Insert or overwrite ``key``. ``ttl_s=None`` stores a row that never expires."""
        self._check_writable()
        expires_at = None if ttl_s is None else self._clock() + float(ttl_s)
        self._execute_with_retry(
            f"INSERT OR REPLACE INTO {self.tablename} (key, value, expires_at) VALUES (?, ?, ?)",
            (key, value, expires_at),
        )
        if self.autocommit:
            self._commit_with_retry()
        if self._purge_interval_s and (self._clock() - self._last_purge) >= self._purge_interval_s:
            self.purge_expired()

    @_locked
    def delete(self, key: str) -> bool:
        """Remove ``key``; returns False if it was not present."""
        self._check_writable()
        cursor = self._execute_with_retry(f"DELETE FROM {self.tablename} WHERE key = ?", (key,))
        if self.autocommit:
            self._commit_with_retry()
        return cursor.rowcount > 0

    @_locked
    def purge_expired(self) -> int:
        """Delete every expired row; returns the number removed."""
        self._check_writable()
        cursor = self._execute_with_retry(
            f"DELETE FROM {self.tablename} WHERE expires_at IS NOT NULL AND expires_at <= ?",
            (self._clock(),),
        )
        self._last_purge = self._clock()
        if self.autocommit:
            self._commit_with_retry()
        return cursor.rowcount

    @_locked
    def commit(self):
        """Commit pending changes."""
        self._commit_with_retry()

    def close(self):
        """Close the database connection."""
        # Use getattr to handle case where __init__ failed before setting attributes
        conn = getattr(self, "_conn", None)
        closed = getattr(self, "_closed", True)
        if conn and not closed:
            try:
                if self.flag == "c" and not self.autocommit:
                    self._commit_with_retry()
            finally:
                conn.close()
                self._closed = True
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __del__(self):
        """Ensure connection is closed when object is garbage collected."""
        self.close()


# -----------------------------------------------------------------------------
# Database accessor functions

METADATA_CACHE_TABLE = "metadata_cache"


def get_metadata_cache_db(flag="c", autocommit=True, db_path=None, clock=time.time):
    """
    Metadata cache table (key = namespaced source url, value = JSON text).
    Opening it read-write first sweeps rows that have already expired.
    """
    path = str(db_path or settings.metadata_cache_path)
    db = SqliteKV(
        path,
        METADATA_CACHE_TABLE,
        flag=flag,
        autocommit=autocommit,
        clock=clock,
        purge_interval_s=settings.metadata.cache_purge_interval,
    )
    if flag == "c":
        removed = db.purge_expired()
        if removed:
            logger.info(f"Purged {removed} expired rows from {METADATA_CACHE_TABLE}")
    return db
