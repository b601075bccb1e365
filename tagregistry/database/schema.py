"""
Database schema for tagregistry.

This module defines the SQLite schema and handles migrations.
The schema is designed to:
- Keep release metadata durable (unlike a cache, it is never dropped)
- Enforce case-insensitive tag uniqueness per repository for tagged releases
- Serve newest-first listings straight off an index
"""

import logging
import sqlite3

logger = logging.getLogger(__name__)

# Current schema version - increment when schema changes
# v1: repositories + releases
# v2: releases.sha and releases.updated_at
CURRENT_VERSION = 2

SCHEMA_V1 = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

-- Repositories known to the registry
CREATE TABLE IF NOT EXISTS repositories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    default_branch TEXT NOT NULL DEFAULT 'main',
    path TEXT,                       -- Local checkout backing the tags
    is_private BOOLEAN DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (owner, name)
);

-- Release metadata
CREATE TABLE IF NOT EXISTS releases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repo_id INTEGER NOT NULL,
    tag_name TEXT NOT NULL,
    target TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    body TEXT NOT NULL DEFAULT '',
    is_draft BOOLEAN NOT NULL DEFAULT 0,
    is_prerelease BOOLEAN NOT NULL DEFAULT 0,
    has_tag BOOLEAN NOT NULL DEFAULT 0,
    publisher_id TEXT,
    created_at TIMESTAMP NOT NULL,
    FOREIGN KEY (repo_id) REFERENCES repositories(id) ON DELETE CASCADE
);

-- Listing order: created_at desc, id desc
CREATE INDEX IF NOT EXISTS idx_releases_repo_created
    ON releases(repo_id, created_at DESC, id DESC);

-- One tagged release per tag name (case-insensitive) per repository
CREATE UNIQUE INDEX IF NOT EXISTS idx_releases_repo_tag
    ON releases(repo_id, tag_name COLLATE NOCASE)
    WHERE has_tag = 1;
"""

MIGRATION_V2 = """
ALTER TABLE releases ADD COLUMN sha TEXT;
ALTER TABLE releases ADD COLUMN updated_at TIMESTAMP;
"""

MIGRATIONS = {
    2: (MIGRATION_V2, "releases.sha and releases.updated_at"),
}


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


def apply_schema(conn: sqlite3.Connection) -> None:
    """
    Apply schema to database.

    Release metadata is ground truth, so old databases are migrated
    forward step by step instead of being rebuilt.
    """
    current = get_schema_version(conn)

    if current == 0:
        conn.executescript(SCHEMA_V1 + MIGRATION_V2)
        conn.execute(
            "INSERT OR REPLACE INTO _schema_info (version, description) VALUES (?, ?)",
            (CURRENT_VERSION, "initial schema")
        )
        conn.commit()
        return

    for version in range(current + 1, CURRENT_VERSION + 1):
        script, description = MIGRATIONS[version]
        logger.info(f"Migrating schema {version - 1} -> {version}: {description}")
        conn.executescript(script)
        conn.execute(
            "INSERT OR REPLACE INTO _schema_info (version, description) VALUES (?, ?)",
            (version, description)
        )
    conn.commit()


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Ensure database has current schema."""
    if get_schema_version(conn) < CURRENT_VERSION:
        apply_schema(conn)
