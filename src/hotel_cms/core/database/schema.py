"""SQLite schema for the local offline cache.

The cache only mirrors data that also lives (or will live) in the remote
store, so a database from another schema version is dropped and rebuilt
instead of migrated.
"""

import sqlite3

from loguru import logger

SCHEMA_VERSION = 1

_TABLES = ("cache_records", "metadata")

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS cache_records (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_cache_records_updated ON cache_records(updated_at DESC);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(_SCHEMA_SQL)
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Stored schema version; None for a fresh database."""
    try:
        row = conn.execute("SELECT value FROM metadata WHERE key = 'schema_version'").fetchone()
    except sqlite3.OperationalError:
        return None
    return int(row[0]) if row else None


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Bring the cache database to SCHEMA_VERSION, discarding an incompatible one."""
    version = get_schema_version(conn)
    if version == SCHEMA_VERSION:
        return
    if version is not None:
        logger.info("Local cache has schema v{}, rebuilding as v{}", version, SCHEMA_VERSION)
        for table in _TABLES:
            conn.execute(f"DROP TABLE IF EXISTS {table}")
    create_schema(conn)
