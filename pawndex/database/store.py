"""
Package store for pawndex.

The store is the only state shared between the daemon's threads. Every
operation opens its own connection and runs in one SQLite transaction;
mutations are single-statement upserts, so a mark and a result commit on the
same identifier never overwrite each other's fields.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, List, Optional, Tuple

from ..domain.package import Entry, Package, parse_identifier
from ..errors import StoreError
from .connection import get_database_info, get_db_path, open_database, transaction

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _decode_package(identifier: str, raw: Optional[str]) -> Optional[Package]:
    if raw is None:
        return None
    try:
        return Package.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        raise StoreError(f"corrupt entry for {identifier}: {e}") from e


def _row_to_entry(row: sqlite3.Row) -> Entry:
    return Entry(
        identifier=row['identifier'],
        package=_decode_package(row['identifier'], row['package']),
        marked=bool(row['marked']),
        updated_at=row['updated_at'],
    )


class PackageStore:
    """
    Durable keyed table of Entries.

    Example:
        store = PackageStore(Path("~/.pawndex/index.db").expanduser())
        store.mark_for_scrape("Southclaws/samp-logger")
        for identifier in store.get_marked():
            ...
        store.set(package)
    """

    def __init__(self, db_path: Optional[Path] = None, config: Optional[dict] = None):
        self.db_path = Path(db_path) if db_path is not None else get_db_path(config)

    @contextmanager
    def _open(self, write: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection, translating SQLite failures to StoreError."""
        try:
            with open_database(self.db_path) as conn:
                if write:
                    with transaction(conn):
                        yield conn
                else:
                    yield conn
        except sqlite3.Error as e:
            raise StoreError(f"package store {self.db_path}: {e}") from e

    def get_all(self) -> List[Package]:
        """
        Every stored Package, marked or not.

        Entries still waiting for their first scrape have no Package and are
        left out. Read with a single statement, so the result is one
        consistent snapshot.
        """
        with self._open() as conn:
            rows = conn.execute(
                "SELECT identifier, package FROM packages "
                "WHERE package IS NOT NULL ORDER BY identifier"
            ).fetchall()
        return [_decode_package(row['identifier'], row['package']) for row in rows]

    def get(self, identifier: str) -> Tuple[Optional[Package], bool]:
        """
        Point lookup.

        Returns:
            (package, exists): exists is True for any Entry; package is None
            while the Entry has not been scraped successfully yet.
        """
        entry = self.get_entry(identifier)
        if entry is None:
            return None, False
        return entry.package, True

    def get_entry(self, identifier: str) -> Optional[Entry]:
        """Get the full Entry, including the pending flag."""
        with self._open() as conn:
            row = conn.execute(
                "SELECT identifier, package, marked, updated_at FROM packages WHERE identifier = ?",
                (identifier,)
            ).fetchone()
        return _row_to_entry(row) if row else None

    def get_entries(self, marked: Optional[bool] = None) -> List[Entry]:
        """List Entries, optionally only marked or only unmarked ones."""
        sql = "SELECT identifier, package, marked, updated_at FROM packages"
        params: tuple = ()
        if marked is not None:
            sql += " WHERE marked = ?"
            params = (1 if marked else 0,)
        sql += " ORDER BY identifier"

        with self._open() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_entry(row) for row in rows]

    def set(self, package: Package) -> None:
        """Insert or replace the Package for its identifier and clear the mark."""
        raw = json.dumps(package.to_dict(), ensure_ascii=False, sort_keys=True)
        with self._open(write=True) as conn:
            conn.execute(
                """INSERT INTO packages (identifier, package, classification, marked, updated_at)
                   VALUES (?, ?, ?, 0, ?)
                   ON CONFLICT(identifier) DO UPDATE SET
                       package = excluded.package,
                       classification = excluded.classification,
                       marked = 0,
                       updated_at = excluded.updated_at""",
                (package.identifier, raw, package.classification.value, _now())
            )
        logger.debug(f"Stored {package.identifier} ({package.classification.value})")

    def mark_for_scrape(self, identifier: str) -> None:
        """
        Flag an identifier for scraping.

        Creates a pending Entry with no Package if the identifier is new;
        otherwise only sets the flag and leaves the Package untouched.

        Raises:
            InvalidIdentifierError: identifier is not owner/name
        """
        parse_identifier(identifier)
        now = _now()
        with self._open(write=True) as conn:
            conn.execute(
                """INSERT INTO packages (identifier, marked, created_at, updated_at)
                   VALUES (?, 1, ?, ?)
                   ON CONFLICT(identifier) DO UPDATE SET
                       marked = 1,
                       updated_at = excluded.updated_at""",
                (identifier, now, now)
            )

    def unmark(self, identifier: str) -> bool:
        """
        Clear the scrape flag without touching the Package.

        Returns:
            True if an Entry was updated
        """
        with self._open(write=True) as conn:
            cursor = conn.execute(
                "UPDATE packages SET marked = 0, updated_at = ? WHERE identifier = ?",
                (_now(), identifier)
            )
            return cursor.rowcount > 0

    def get_marked(self) -> List[str]:
        """Snapshot of every identifier currently flagged for scraping."""
        with self._open() as conn:
            rows = conn.execute(
                "SELECT identifier FROM packages WHERE marked = 1 ORDER BY identifier"
            ).fetchall()
        return [row['identifier'] for row in rows]

    def count(self) -> int:
        """Total number of Entries."""
        with self._open() as conn:
            return conn.execute("SELECT COUNT(*) FROM packages").fetchone()[0]

    def count_marked(self) -> int:
        """Number of Entries waiting for a scrape."""
        with self._open() as conn:
            return conn.execute("SELECT COUNT(*) FROM packages WHERE marked = 1").fetchone()[0]

    def get_info(self) -> dict:
        """Location, size and entry counts of the underlying database."""
        try:
            return get_database_info(db_path=self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"package store {self.db_path}: {e}") from e
