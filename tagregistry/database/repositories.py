"""
Repository registry operations for tagregistry.

Maps between RepositoryInfo domain objects and database records.
"""

from typing import Any, Dict, List, Optional

from ..domain.repository import RepositoryInfo
from ..exceptions import NotFoundError
from .connection import Database


def upsert_repository(
    db: Database,
    owner: str,
    name: str,
    default_branch: str = "main",
    path: Optional[str] = None,
    is_private: bool = False,
) -> int:
    """
    Insert or update a repository.

    Returns:
        Row ID of the inserted/updated repository
    """
    db.execute(
        "SELECT id FROM repositories WHERE owner = ? AND name = ?",
        (owner, name)
    )
    existing = db.fetchone()

    if existing:
        repo_id = existing['id']
        db.execute(
            """UPDATE repositories SET default_branch = ?, path = ?, is_private = ?
               WHERE id = ?""",
            (default_branch, path, is_private, repo_id)
        )
        return repo_id

    db.execute(
        """INSERT INTO repositories (owner, name, default_branch, path, is_private)
           VALUES (?, ?, ?, ?, ?)""",
        (owner, name, default_branch, path, is_private)
    )
    return db.lastrowid or 0


def record_to_repository(record: Dict[str, Any]) -> RepositoryInfo:
    """Convert a database row to a RepositoryInfo."""
    return RepositoryInfo(
        id=record['id'],
        owner=record['owner'],
        name=record['name'],
        default_branch=record['default_branch'],
        path=record['path'],
        is_private=bool(record['is_private']),
    )


def get_repository(db: Database, repo_id: int) -> RepositoryInfo:
    """
    Get repository by ID.

    Raises:
        NotFoundError: If no such repository is registered
    """
    db.execute("SELECT * FROM repositories WHERE id = ?", (repo_id,))
    row = db.fetchone()
    if row is None:
        raise NotFoundError("Repository", repo_id)
    return record_to_repository(dict(row))


def get_repository_by_name(db: Database, full_name: str) -> RepositoryInfo:
    """
    Get repository by "owner/name".

    Raises:
        NotFoundError: If no such repository is registered
    """
    owner, _, name = full_name.strip('/').partition('/')
    db.execute(
        "SELECT * FROM repositories WHERE owner = ? AND name = ?",
        (owner, name)
    )
    row = db.fetchone()
    if row is None:
        raise NotFoundError("Repository", full_name)
    return record_to_repository(dict(row))


def list_repositories(db: Database) -> List[RepositoryInfo]:
    """All registered repositories, ordered by owner/name."""
    db.execute("SELECT * FROM repositories ORDER BY owner, name")
    return [record_to_repository(dict(row)) for row in db.fetchall()]


def delete_repository(db: Database, repo_id: int) -> bool:
    """Delete a repository and (by cascade) its releases."""
    db.execute("DELETE FROM repositories WHERE id = ?", (repo_id,))
    return db.rowcount > 0
