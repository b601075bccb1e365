"""
Repository domain object for tagregistry.

The registry does not own repositories; it only needs enough of one
to build links (owner/name), pick the compare fallback (default branch)
and find the checkout that backs its tags.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote


def path_segment(ref: str) -> str:
    """Percent-quote a tag or branch name for use in a link path."""
    return quote(ref, safe='/')


@dataclass(frozen=True)
class RepositoryInfo:
    """Repository as seen by the release registry."""
    id: int
    owner: str
    name: str
    default_branch: str = "main"
    path: Optional[str] = None
    is_private: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def link(self) -> str:
        """Site-relative link, e.g. /user2/repo1."""
        return f"/{self.owner}/{self.name}"

    def release_link(self, tag_name: str) -> str:
        return f"{self.link}/releases/tag/{path_segment(tag_name)}"

    def tag_delete_link(self, tag_name: str) -> str:
        return f"{self.link}/tags/{path_segment(tag_name)}/delete"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'owner': self.owner,
            'name': self.name,
            'full_name': self.full_name,
            'default_branch': self.default_branch,
            'path': self.path,
            'is_private': self.is_private,
        }
