"""
Database schema for pawndex.

One table keyed by repository identifier. Each row is an Entry: the
package as JSON (NULL until the repository has been scraped) and the
scrape-pending flag.

Unlike a cache, the index cannot be rebuilt from local data, so schema
changes must migrate rows instead of dropping tables.
"""

import sqlite3
from typing import List, Tuple

# Current schema version - increment when schema changes
# v1: Initial schema
CURRENT_VERSION = 1

SCHEMA_V1 = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

-- One entry per repository ever discovered or scraped
CREATE TABLE IF NOT EXISTS packages (
    identifier TEXT PRIMARY KEY,         -- owner/name, case-sensitive
    package TEXT,                        -- JSON, NULL until first scrape
    classification TEXT,                 -- copy of package.classification for queries
    marked BOOLEAN NOT NULL DEFAULT 0,   -- needs a scrape pass
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_packages_marked ON packages(marked);
CREATE INDEX IF NOT EXISTS idx_packages_classification ON packages(classification);
"""


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from database."""
    try:
        cursor = conn.execute(
            "SELECT MAX(version) FROM _schema_info"
        )
        result = cursor.fetchone()
        return result[0] if result[0] is not None else 0
    except sqlite3.OperationalError:
        # Table doesn't exist yet
        return 0


def apply_schema(conn: sqlite3.Connection, version: int = CURRENT_VERSION) -> None:
    """Apply every migration above the database's current version."""
    current = get_schema_version(conn)

    for migration_version, description, sql in get_migrations():
        if current < migration_version <= version:
            conn.executescript(sql)
            conn.execute(
                "INSERT OR REPLACE INTO _schema_info (version, description) VALUES (?, ?)",
                (migration_version, description)
            )

    conn.commit()


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Ensure database has current schema, migrating if necessary."""
    current = get_schema_version(conn)

    if current < CURRENT_VERSION:
        apply_schema(conn, CURRENT_VERSION)


def get_migrations() -> List[Tuple[int, str, str]]:
    """
    Get list of migrations.

    Returns:
        List of (version, description, sql) tuples
    """
    return [
        (1, "Initial schema", SCHEMA_V1),
    ]
