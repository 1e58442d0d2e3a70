"""
Database module for pawndex.

Provides SQLite-based persistence for the package index.

Key components:
- connection: per-operation connections, write transactions, file info
- schema: Table definitions and schema versioning
- store: PackageStore, the keyed table of Entries the daemon works on
"""

from .connection import (
    get_db_path,
    get_database_info,
    open_database,
)
from .schema import CURRENT_VERSION, ensure_schema
from .store import PackageStore

__all__ = [
    # Connection
    'get_db_path',
    'get_database_info',
    'open_database',
    # Schema
    'ensure_schema',
    'CURRENT_VERSION',
    # Store
    'PackageStore',
]
