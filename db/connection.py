"""
db/connection.py
----------------
Manages the database connection pool.

PostgreSQL URLs use psycopg2's SimpleConnectionPool for efficient connection
reuse. ``sqlite://`` URLs lend one sqlite3 connection to one borrower at a
time, wrapped so that it behaves like a psycopg2 connection (``%s``
placeholders, cursors usable in a ``with`` block); repositories therefore
write their SQL once.
"""

import sqlite3
import threading

import psycopg2
from psycopg2 import pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN
from utils.logger import get_logger

logger = get_logger(__name__)

POSTGRESQL = "postgresql"
SQLITE = "sqlite"

# Driver base exceptions that repositories translate into StoreError.
DB_ERRORS = (psycopg2.Error, sqlite3.Error)

_SQLITE_PREFIX = "sqlite://"

_pool = None
_backend: str | None = None


class _SQLiteCursor:
    """psycopg2-flavoured facade over a sqlite3 cursor."""

    def __init__(self, cursor: sqlite3.Cursor):
        self._cursor = cursor

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._cursor.close()

    def execute(self, sql: str, params: tuple = ()) -> None:
        self._cursor.execute(_to_qmark(sql), params)

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount


class _SQLiteConnection:
    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def cursor(self) -> _SQLiteCursor:
        return _SQLiteCursor(self._conn.cursor())

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


class _SQLitePool:
    """
    Pool-shaped holder of a single SQLite connection.

    A single connection keeps ``sqlite:///:memory:`` databases alive across
    calls. Borrowing holds the lock until putconn(), so every borrower owns
    the connection's transaction; a rollback never discards another
    caller's uncommitted statement.
    """

    def __init__(self, path: str):
        self.path = path
        self._conn = _SQLiteConnection(sqlite3.connect(path, check_same_thread=False))
        self._lock = threading.Lock()

    def getconn(self) -> _SQLiteConnection:
        self._lock.acquire()
        return self._conn

    def putconn(self, conn) -> None:
        self._lock.release()

    def closeall(self) -> None:
        with self._lock:
            self._conn.close()


def _to_qmark(sql: str) -> str:
    """Rewrite psycopg2 placeholders for sqlite3: ``%s`` -> ``?``, ``%%`` -> ``%``."""
    return "%".join(part.replace("%s", "?") for part in sql.split("%%"))


def _sqlite_path(url: str) -> str:
    """
    Extract the file path from ``sqlite:///<path>``.

    ``sqlite://`` and ``sqlite:///`` mean in-memory.

    Raises:
        ValueError: For ``sqlite://<path>``, which would otherwise silently
            fall back to an in-memory database.
    """
    rest = url[len(_SQLITE_PREFIX):]
    if rest and not rest.startswith("/"):
        raise ValueError(f"Invalid SQLite URL {url!r}: expected sqlite:///<path>")
    return rest[1:] or ":memory:"


def init_pool(
    min_conn: int = DB_POOL_MIN,
    max_conn: int = DB_POOL_MAX,
    database_url: str | None = None,
) -> None:
    """
    Initialize the database connection pool.

    Args:
        min_conn: Minimum number of connections to keep open (PostgreSQL only).
        max_conn: Maximum number of connections allowed (PostgreSQL only).
        database_url: Overrides ``config.DATABASE_URL``.

    Raises:
        psycopg2.OperationalError: If PostgreSQL is unreachable.
        sqlite3.Error: If the SQLite file cannot be opened.
        ValueError: If a SQLite URL is malformed.
    """
    global _pool, _backend
    if _pool is not None:
        return
    url = database_url or DATABASE_URL
    try:
        if url.startswith(_SQLITE_PREFIX):
            _pool = _SQLitePool(_sqlite_path(url))
            _backend = SQLITE
        else:
            _pool = pool.SimpleConnectionPool(min_conn, max_conn, url)
            _backend = POSTGRESQL
        logger.info(f"Database connection pool initialized successfully ({_backend}).")
    except DB_ERRORS as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise


def get_backend() -> str:
    """
    Name of the active backend.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _backend is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _backend


def get_connection():
    """
    Get a connection from the pool.

    Returns:
        A psycopg2 connection, or the shared SQLite connection wrapper.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    """
    Return a connection back to the pool.

    Args:
        conn: The connection obtained from get_connection().
    """
    if _pool is not None:
        _pool.putconn(conn)


def close_pool() -> None:
    """Close all connections in the pool."""
    global _pool, _backend
    if _pool is not None:
        _pool.closeall()
        _pool = None
        _backend = None
        logger.info("Database connection pool closed.")
