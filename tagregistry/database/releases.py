"""
Release record store for tagregistry.

Durable storage of release metadata. The store enforces tag uniqueness
and ordering; it never filters by viewer and never touches the
version-control tag itself. Both are layered on top by the services.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..domain.release import Release
from ..exceptions import DuplicateTagError, NotFoundError
from .connection import Database

logger = logging.getLogger(__name__)

# Newest first; ties broken by id so the order is total
LIST_ORDER = "ORDER BY created_at DESC, id DESC"


def _format_ts(value: Optional[datetime]) -> str:
    """Store timestamps as naive UTC ISO strings so they sort lexically."""
    if value is None:
        value = datetime.now(timezone.utc)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec='microseconds')


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def record_to_release(record: Dict[str, Any]) -> Release:
    """Convert a database row to a Release."""
    return Release(
        id=record['id'],
        repo_id=record['repo_id'],
        tag_name=record['tag_name'],
        target=record['target'],
        title=record['title'] or "",
        body=record['body'] or "",
        is_draft=bool(record['is_draft']),
        is_prerelease=bool(record['is_prerelease']),
        has_tag=bool(record['has_tag']),
        publisher_id=record['publisher_id'],
        created_at=_parse_ts(record['created_at']),
        updated_at=_parse_ts(record.get('updated_at')),
        sha=record.get('sha'),
    )


def find_tagged_release(db: Database, repo_id: int, tag_name: str) -> Optional[Release]:
    """The release backed by tag_name (case-insensitive), if any."""
    db.execute(
        """SELECT * FROM releases
           WHERE repo_id = ? AND has_tag = 1 AND tag_name = ? COLLATE NOCASE""",
        (repo_id, tag_name)
    )
    row = db.fetchone()
    return record_to_release(dict(row)) if row else None


def _translate_integrity_error(exc: sqlite3.IntegrityError, repo_id: int, tag_name: str) -> Exception:
    message = str(exc)
    if 'UNIQUE' in message:
        return DuplicateTagError(tag_name)
    if 'FOREIGN KEY' in message:
        return NotFoundError("Repository", repo_id)
    return exc


def insert_release(
    db: Database,
    repo_id: int,
    tag_name: str,
    target: str,
    title: str,
    body: str = "",
    is_prerelease: bool = False,
    publish: bool = True,
    publisher_id: Optional[str] = None,
    sha: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> int:
    """
    Persist a new release record.

    A published release gets has_tag=1 and is_draft=0; a draft gets the
    opposite. Only tagged records take part in the uniqueness check.

    Returns:
        ID of the new release

    Raises:
        DuplicateTagError: A tagged release with the same name exists
    """
    if publish and find_tagged_release(db, repo_id, tag_name) is not None:
        raise DuplicateTagError(tag_name)

    created = _format_ts(created_at)
    try:
        db.execute(
            """INSERT INTO releases (
                   repo_id, tag_name, target, title, body,
                   is_draft, is_prerelease, has_tag, publisher_id,
                   created_at, updated_at, sha
               ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                repo_id, tag_name, target, title, body or "",
                not publish, is_prerelease, publish, publisher_id,
                created, created, sha,
            )
        )
    except sqlite3.IntegrityError as e:
        raise _translate_integrity_error(e, repo_id, tag_name) from e

    return db.lastrowid or 0


def update_release(db: Database, release: Release) -> None:
    """
    Write back the mutable fields of a release.

    Raises:
        DuplicateTagError: Publishing would collide with another tagged release
        NotFoundError: The release no longer exists
    """
    try:
        db.execute(
            """UPDATE releases SET
                   tag_name = ?, target = ?, title = ?, body = ?,
                   is_draft = ?, is_prerelease = ?, has_tag = ?,
                   sha = ?, updated_at = ?
               WHERE id = ? AND repo_id = ?""",
            (
                release.tag_name, release.target, release.title, release.body,
                release.is_draft, release.is_prerelease, release.has_tag,
                release.sha, _format_ts(release.updated_at),
                release.id, release.repo_id,
            )
        )
    except sqlite3.IntegrityError as e:
        raise _translate_integrity_error(e, release.repo_id, release.tag_name) from e

    if db.rowcount == 0:
        raise NotFoundError("Release", release.id)


def list_releases(db: Database, repo_id: int) -> List[Release]:
    """All releases of a repository, newest first. No filtering."""
    db.execute(
        f"SELECT * FROM releases WHERE repo_id = ? {LIST_ORDER}",
        (repo_id,)
    )
    return [record_to_release(dict(row)) for row in db.fetchall()]


def count_releases(db: Database, repo_id: int, include_drafts: bool = True) -> int:
    """Count releases, optionally leaving drafts out."""
    sql = "SELECT COUNT(*) AS count FROM releases WHERE repo_id = ?"
    if not include_drafts:
        sql += " AND is_draft = 0"
    db.execute(sql, (repo_id,))
    row = db.fetchone()
    return row['count'] if row else 0


def get_release_by_tag(db: Database, repo_id: int, tag_name: str) -> Release:
    """
    Get the release for a tag name (case-insensitive).

    The tagged record wins over drafts that reuse the same name; among
    drafts the newest wins.

    Raises:
        NotFoundError: No release uses this tag name
    """
    db.execute(
        """SELECT * FROM releases
            WHERE repo_id = ? AND tag_name = ? COLLATE NOCASE
            ORDER BY has_tag DESC, created_at DESC, id DESC
            LIMIT 1""",
        (repo_id, tag_name)
    )
    row = db.fetchone()
    if row is None:
        raise NotFoundError("Release", tag_name)
    return record_to_release(dict(row))


def get_release_by_id(db: Database, repo_id: int, release_id: int) -> Release:
    """
    Get a release by ID within a repository.

    Raises:
        NotFoundError: No such release in this repository
    """
    db.execute(
        "SELECT * FROM releases WHERE id = ? AND repo_id = ?",
        (release_id, repo_id)
    )
    row = db.fetchone()
    if row is None:
        raise NotFoundError("Release", release_id)
    return record_to_release(dict(row))


def delete_release(db: Database, repo_id: int, release_id: int) -> bool:
    """Remove a release record. The VCS tag is left alone."""
    db.execute(
        "DELETE FROM releases WHERE id = ? AND repo_id = ?",
        (release_id, repo_id)
    )
    deleted = db.rowcount > 0
    if deleted:
        logger.debug(f"Deleted release {release_id} from repository {repo_id}")
    return deleted


def delete_releases_for_tag(db: Database, repo_id: int, tag_name: str) -> int:
    """Remove the tagged release backed by tag_name. Returns rows deleted."""
    db.execute(
        """DELETE FROM releases
           WHERE repo_id = ? AND has_tag = 1 AND tag_name = ? COLLATE NOCASE""",
        (repo_id, tag_name)
    )
    return db.rowcount


def get_tagged_release_ids(db: Database, repo_id: int) -> Dict[str, int]:
    """Map of lower-cased tag name -> release id for tagged releases."""
    db.execute(
        "SELECT id, tag_name FROM releases WHERE repo_id = ? AND has_tag = 1",
        (repo_id,)
    )
    return {row['tag_name'].lower(): row['id'] for row in db.fetchall()}
