"""
SQLite connections for the package index.

WAL mode lets the lookup commands read while the daemon's scrape workers
write; every operation opens its own short-lived connection.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator

from .schema import ensure_schema

# Seconds a writer waits for another writer's lock before failing
BUSY_TIMEOUT = 30.0


def get_db_path(config: Optional[dict] = None) -> Path:
    """
    Resolve the index file: PAWNDEX_DB, then config['database']['path'],
    then ~/.pawndex/index.db.
    """
    if 'PAWNDEX_DB' in os.environ:
        return Path(os.environ['PAWNDEX_DB'])

    if config and config.get('database', {}).get('path'):
        return Path(config['database']['path']).expanduser()

    return Path.home() / '.pawndex' / 'index.db'


def connect(db_path: Path) -> sqlite3.Connection:
    """Open the index at db_path, creating the file and schema on first use."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    ensure_schema(conn)
    return conn


@contextmanager
def open_database(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    """
    Connection scoped to a with-block.

    Commits when the block exits cleanly, rolls back otherwise, and always
    closes the connection.
    """
    conn = connect(db_path)
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """
    Write transaction that takes the lock up front.

    BEGIN IMMEDIATE keeps a read-modify-write inside the block from
    interleaving with another writer.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise


def get_database_info(db_path: Path) -> dict:
    """Location, size, schema version and entry counts of the index."""
    db_path = Path(db_path)
    if not db_path.exists():
        return {'exists': False, 'path': str(db_path)}

    with open_database(db_path) as conn:
        entries = conn.execute("SELECT COUNT(*) FROM packages").fetchone()[0]
        marked = conn.execute("SELECT COUNT(*) FROM packages WHERE marked = 1").fetchone()[0]
        by_classification = {
            row['classification']: row['count']
            for row in conn.execute(
                "SELECT classification, COUNT(*) AS count FROM packages "
                "WHERE classification IS NOT NULL GROUP BY classification"
            )
        }
        schema_version = conn.execute("SELECT MAX(version) FROM _schema_info").fetchone()[0]

    file_size = db_path.stat().st_size
    return {
        'exists': True,
        'path': str(db_path),
        'size_bytes': file_size,
        'size_human': _human_size(file_size),
        'schema_version': schema_version or 0,
        'entries': entries,
        'marked': marked,
        'classifications': by_classification,
    }


def _human_size(size_bytes: int) -> str:
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
