"""
Tag domain objects for tagregistry.

A tag is an immutable named pointer to a commit in the version-control
store. It may exist with or without a release record attached.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidTagNameError


# Characters git refuses in ref names (see git-check-ref-format)
_FORBIDDEN_CHARS = re.compile(r'[\x00-\x20\x7f~^:?*\[\\]')


def validate_tag_name(tag_name: str) -> str:
    """
    Check that a tag name is usable as refs/tags/<name>.

    Returns the stripped name.

    Raises:
        InvalidTagNameError: If git would reject the name
    """
    name = (tag_name or "").strip()
    if not name:
        raise InvalidTagNameError(tag_name, "Tag name is required")
    if _FORBIDDEN_CHARS.search(name):
        raise InvalidTagNameError(name, "Tag name contains forbidden characters")
    if '..' in name or '@{' in name or '//' in name or name == '@':
        raise InvalidTagNameError(name)
    if name.startswith(('-', '/', '.')) or name.endswith(('/', '.', '.lock')):
        raise InvalidTagNameError(name)
    if any(part.startswith('.') or part.endswith('.lock') for part in name.split('/')):
        raise InvalidTagNameError(name)
    return name


@dataclass(frozen=True)
class TagInfo:
    """A row of the tag listing."""
    name: str
    commit: str
    date: Optional[datetime] = None
    release_id: Optional[int] = None
    delete_url: str = ""

    @property
    def has_release(self) -> bool:
        return self.release_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'commit': self.commit,
            'date': self.date.isoformat() if self.date else None,
            'release_id': self.release_id,
            'delete_url': self.delete_url,
        }


def sort_tags_newest_first(tags: List[TagInfo]) -> List[TagInfo]:
    """Order by commit date descending, name ascending on ties."""
    by_name = sorted(tags, key=lambda t: t.name)
    return sorted(by_name, key=_timestamp, reverse=True)


def _timestamp(tag: TagInfo) -> float:
    return tag.date.timestamp() if tag.date else float('-inf')
