"""
Domain layer for tagregistry.

Contains pure domain objects with no I/O or side effects:
- Release: Release metadata record and its display state
- Reference: Compare anchor (TagRef or BranchRef)
- RepositoryInfo: The slice of a repository the registry needs
- TagInfo: A row of the tag listing
- Capability: Viewer access level

These objects are immutable and provide to_dict() for JSONL output.
"""

from .release import (
    Release,
    ReleaseState,
    LabelPolicy,
    DEFAULT_LABEL_POLICY,
    Reference,
    TagRef,
    BranchRef,
)
from .repository import RepositoryInfo
from .tag import TagInfo, validate_tag_name, sort_tags_newest_first
from .permission import Capability

__all__ = [
    'Release',
    'ReleaseState',
    'LabelPolicy',
    'DEFAULT_LABEL_POLICY',
    'Reference',
    'TagRef',
    'BranchRef',
    'RepositoryInfo',
    'TagInfo',
    'validate_tag_name',
    'sort_tags_newest_first',
    'Capability',
]
