"""
Version-control collaborator for tagregistry.

The registry never creates git objects itself; it asks a VersionControl
to resolve targets and to create, delete and list tags. Two
implementations ship here:

- GitVersionControl: runs git in the repository's local checkout
- InMemoryVersionControl: dictionaries only, for tests and embedding
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

from ..exceptions import (
    DuplicateTagError,
    InvalidTargetError,
    NotFoundError,
    VersionControlError,
)
from .git_client import GitClient, GitTag

logger = logging.getLogger(__name__)


class VersionControl(Protocol):
    """What the registry needs from the version-control object store."""

    def resolve_commitish(self, repo_id: int, ref: str) -> str:
        """Return the commit hash for ref, or raise InvalidTargetError."""
        ...

    def create_tag(self, repo_id: int, tag_name: str, commit: str) -> None:
        """Create tag_name at commit; DuplicateTagError if it exists."""
        ...

    def delete_tag(self, repo_id: int, tag_name: str) -> None:
        """Delete tag_name; NotFoundError if it does not exist."""
        ...

    def tag_exists(self, repo_id: int, tag_name: str) -> bool:
        ...

    def list_tags(self, repo_id: int) -> List[GitTag]:
        ...


class GitVersionControl:
    """
    VersionControl backed by local git checkouts.

    Args:
        path_for: Maps a repository id to the path of its checkout
        client: GitClient to run commands with
    """

    def __init__(self, path_for: Callable[[int], Optional[str]], client: Optional[GitClient] = None):
        self.path_for = path_for
        self.git = client or GitClient()

    def _path(self, repo_id: int) -> str:
        path = self.path_for(repo_id)
        if not path:
            raise VersionControlError(f"Repository {repo_id} has no local checkout configured")
        if not self.git.is_git_repo(path):
            raise VersionControlError(f"Not a git repository: {path}")
        return path

    def resolve_commitish(self, repo_id: int, ref: str) -> str:
        sha = self.git.rev_parse(self._path(repo_id), ref)
        if sha is None:
            raise InvalidTargetError(ref)
        return sha

    def tag_exists(self, repo_id: int, tag_name: str) -> bool:
        wanted = tag_name.lower()
        return any(tag.name.lower() == wanted for tag in self.git.tags(self._path(repo_id)))

    def create_tag(self, repo_id: int, tag_name: str, commit: str) -> None:
        path = self._path(repo_id)
        if self.tag_exists(repo_id, tag_name):
            raise DuplicateTagError(tag_name)
        ok, err = self.git.create_tag(path, tag_name, commit)
        if not ok:
            raise VersionControlError(f"Failed to create tag {tag_name}: {err}")
        logger.info(f"Created tag {tag_name} at {commit[:12]} in {path}")

    def delete_tag(self, repo_id: int, tag_name: str) -> None:
        path = self._path(repo_id)
        if not self.tag_exists(repo_id, tag_name):
            raise NotFoundError("Tag", tag_name)
        ok, err = self.git.delete_tag(path, tag_name)
        if not ok:
            raise VersionControlError(f"Failed to delete tag {tag_name}: {err}")
        logger.info(f"Deleted tag {tag_name} in {path}")

    def list_tags(self, repo_id: int) -> List[GitTag]:
        return self.git.tags(self._path(repo_id))


class InMemoryVersionControl:
    """
    VersionControl kept in dictionaries.

    Refs (branches or commit hashes) are registered with add_ref(); tags
    created through the registry resolve like any other ref.

    Example:
        vcs = InMemoryVersionControl()
        vcs.add_ref(1, "master", "65f1bf27bc3bf70f64657658635e66094edbcb4d")
        vcs.create_tag(1, "v1.1", vcs.resolve_commitish(1, "master"))
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.refs: Dict[int, Dict[str, str]] = {}
        self.tags: Dict[int, Dict[str, GitTag]] = {}

    def add_ref(self, repo_id: int, ref: str, commit: str) -> None:
        self.refs.setdefault(repo_id, {})[ref] = commit

    def resolve_commitish(self, repo_id: int, ref: str) -> str:
        refs = self.refs.get(repo_id, {})
        if ref in refs:
            return refs[ref]
        tag = self.tags.get(repo_id, {}).get(ref)
        if tag is not None:
            return tag.commit
        # A full or abbreviated hash of a known commit
        if len(ref) >= 7:
            for commit in refs.values():
                if commit.startswith(ref):
                    return commit
        raise InvalidTargetError(ref)

    def tag_exists(self, repo_id: int, tag_name: str) -> bool:
        wanted = tag_name.lower()
        return any(name.lower() == wanted for name in self.tags.get(repo_id, {}))

    def create_tag(self, repo_id: int, tag_name: str, commit: str, date: Optional[datetime] = None) -> None:
        if self.tag_exists(repo_id, tag_name):
            raise DuplicateTagError(tag_name)
        self.tags.setdefault(repo_id, {})[tag_name] = GitTag(
            name=tag_name,
            commit=commit,
            date=date or self.clock(),
        )

    def delete_tag(self, repo_id: int, tag_name: str) -> None:
        tags = self.tags.get(repo_id, {})
        for name in list(tags):
            if name.lower() == tag_name.lower():
                del tags[name]
                return
        raise NotFoundError("Tag", tag_name)

    def list_tags(self, repo_id: int) -> List[GitTag]:
        return sorted(self.tags.get(repo_id, {}).values(), key=lambda t: t.name)
