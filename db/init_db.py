"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import POSTGRESQL, get_backend, get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

# Parcel numbers are never reused: SERIAL never rewinds, and SQLite's
# AUTOINCREMENT keeps the high-water mark in sqlite_sequence.
POSTGRESQL_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS parcel (
        number          SERIAL PRIMARY KEY,
        client          INTEGER NOT NULL,
        status          TEXT NOT NULL,
        address         TEXT NOT NULL,
        created_at      TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_parcel_client ON parcel(client);",
)

SQLITE_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS parcel (
        number          INTEGER PRIMARY KEY AUTOINCREMENT,
        client          INTEGER NOT NULL,
        status          TEXT NOT NULL,
        address         TEXT NOT NULL,
        created_at      TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_parcel_client ON parcel(client);",
)


def create_tables() -> None:
    """
    Execute the schema SQL for the active backend.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    statements = POSTGRESQL_SCHEMA if get_backend() == POSTGRESQL else SQLITE_SCHEMA
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            for statement in statements:
                cur.execute(statement)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("Database schema created successfully.")
