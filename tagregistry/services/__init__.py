"""
Service layer for tagregistry.

Contains business logic that orchestrates domain objects and infrastructure:
- ReleaseService: Release lifecycle and listings
- TagService: Tag listing and tag-only operations
- visibility, pagination, latest, compare: the listing pipeline stages

Services are the primary API for commands to use.
"""

from .release_service import ReleaseService, ReleaseListing, ReleaseSnapshot, take_snapshot
from .tag_service import TagService
from .visibility import can_see_drafts, filter_visible
from .pagination import Page, paginate
from .latest import LatestRelease, resolve_latest
from .compare import CompareOption, CompareRow, build_compare_matrix, distinct_tags

__all__ = [
    'ReleaseService',
    'ReleaseListing',
    'ReleaseSnapshot',
    'take_snapshot',
    'TagService',
    'can_see_drafts',
    'filter_visible',
    'Page',
    'paginate',
    'LatestRelease',
    'resolve_latest',
    'CompareOption',
    'CompareRow',
    'build_compare_matrix',
    'distinct_tags',
]
