"""
Database connection management for tagregistry.

Provides context managers for connections and transactions.
Uses SQLite with WAL mode so readers get a consistent snapshot while a
writer is active.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator

from .schema import ensure_schema


def get_db_path(config: Optional[dict] = None) -> Path:
    """
    Get the database file path.

    Checks in order:
    1. TAGREGISTRY_DB environment variable
    2. config['database']['path'] if provided
    3. Default: ~/.tagregistry/registry.db

    Args:
        config: Optional configuration dictionary

    Returns:
        Path to database file
    """
    # Environment variable override
    if 'TAGREGISTRY_DB' in os.environ:
        return Path(os.environ['TAGREGISTRY_DB'])

    # Config override
    if config and 'database' in config and config['database'].get('path'):
        return Path(config['database']['path']).expanduser()

    # Default location
    return Path.home() / '.tagregistry' / 'registry.db'


def get_connection(
    db_path: Optional[Path] = None,
    config: Optional[dict] = None,
    read_only: bool = False
) -> sqlite3.Connection:
    """
    Get a database connection.

    Creates the database and applies schema if it doesn't exist.

    Args:
        db_path: Optional explicit path to database
        config: Optional configuration dictionary
        read_only: If True, open in read-only mode

    Returns:
        SQLite connection
    """
    if db_path is None:
        db_path = get_db_path(config)

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    timeout = 5.0
    if config:
        timeout = float(config.get('database', {}).get('busy_timeout_seconds', timeout))

    if read_only:
        uri = f"file:{db_path}?mode=ro"
        conn = sqlite3.connect(uri, uri=True, timeout=timeout)
    else:
        conn = sqlite3.connect(str(db_path), timeout=timeout)

    # Configure connection
    conn.row_factory = sqlite3.Row  # Enable dict-like access
    conn.execute("PRAGMA foreign_keys = ON")  # Enforce foreign keys

    if not read_only:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        ensure_schema(conn)

    return conn


class Database:
    """
    Database context manager for tagregistry.

    Usage:
        with Database() as db:
            db.execute("SELECT * FROM releases")
            for row in db.fetchall():
                print(row['tag_name'])

        # Or with explicit path
        with Database(db_path=Path("registry.db")) as db:
            ...
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        config: Optional[dict] = None,
        read_only: bool = False
    ):
        self.db_path = db_path
        self.config = config
        self.read_only = read_only
        self._conn: Optional[sqlite3.Connection] = None
        self._cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> 'Database':
        self._conn = get_connection(
            db_path=self.db_path,
            config=self.config,
            read_only=self.read_only
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._cursor:
            self._cursor.close()
        if self._conn:
            if exc_type is None and not self.read_only:
                self._conn.commit()
            else:
                self._conn.rollback()
            self._conn.close()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get the underlying connection."""
        if self._conn is None:
            raise RuntimeError("Database not connected. Use 'with Database() as db:'")
        return self._conn

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL statement."""
        self._cursor = self.conn.execute(sql, params)
        return self._cursor

    def fetchone(self) -> Optional[sqlite3.Row]:
        """Fetch one row from last query."""
        if self._cursor is None:
            return None
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        if self._cursor is None:
            return []
        return self._cursor.fetchall()

    def commit(self) -> None:
        """Commit current transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Rollback current transaction."""
        self.conn.rollback()

    @property
    def in_transaction(self) -> bool:
        return self.conn.in_transaction

    @property
    def lastrowid(self) -> Optional[int]:
        """Get last inserted row ID."""
        if self._cursor is None:
            return None
        return self._cursor.lastrowid

    @property
    def rowcount(self) -> int:
        """Get number of rows affected by last statement."""
        if self._cursor is None:
            return 0
        return self._cursor.rowcount


@contextmanager
def transaction(db: Database) -> Generator[None, None, None]:
    """
    Context manager for explicit write transactions.

    Usage:
        with Database() as db:
            with transaction(db):
                db.execute("INSERT ...")
                db.execute("UPDATE ...")
                # Commits on success, rolls back on exception
    """
    if not db.in_transaction:
        db.execute("BEGIN IMMEDIATE")
    try:
        yield
        db.commit()
    except BaseException:
        db.rollback()
        raise


@contextmanager
def read_transaction(db: Database) -> Generator[None, None, None]:
    """
    Hold one read transaction so every SELECT inside sees the same snapshot.

    Nested use inside an already-open transaction simply joins it.
    """
    if db.in_transaction:
        yield
        return
    db.execute("BEGIN DEFERRED")
    try:
        yield
    finally:
        if db.in_transaction:
            db.commit()


def get_database_info(config: Optional[dict] = None) -> dict:
    """
    Get information about the database.

    Returns:
        Dictionary with database stats
    """
    db_path = get_db_path(config)

    if not db_path.exists():
        return {
            'exists': False,
            'path': str(db_path),
        }

    with Database(db_path=db_path, config=config) as db:
        db.execute("SELECT COUNT(*) FROM repositories")
        row = db.fetchone()
        repo_count = row[0] if row else 0

        db.execute("SELECT COUNT(*) FROM releases")
        row = db.fetchone()
        release_count = row[0] if row else 0

        db.execute("SELECT MAX(version) FROM _schema_info")
        row = db.fetchone()
        schema_version = row[0] if row else 0

        return {
            'exists': True,
            'path': str(db_path),
            'size_bytes': db_path.stat().st_size,
            'schema_version': schema_version,
            'repositories': repo_count,
            'releases': release_count,
        }
