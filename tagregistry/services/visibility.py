"""
Draft visibility and access checks for tagregistry.

Drafts are hidden from viewers without write access. The filter runs
before pagination, so the same repository yields different totals and
page boundaries for different viewers.
"""

from typing import Iterable, Optional, Tuple

from ..domain.permission import Capability
from ..domain.release import Release
from ..exceptions import PermissionDeniedError
from ..infra.permissions import PermissionProvider


def can_see_drafts(capability: Capability) -> bool:
    """Write or admin access is required to see drafts."""
    return capability.can_write


def filter_visible(releases: Iterable[Release], can_see_drafts: bool) -> Tuple[Release, ...]:
    """Drop drafts unless the viewer may see them. Order is preserved."""
    if can_see_drafts:
        return tuple(releases)
    return tuple(release for release in releases if not release.is_draft)


def require_read(permissions: PermissionProvider, viewer_id: Optional[str], repo_id: int) -> Capability:
    capability = permissions.capability(viewer_id, repo_id)
    if not capability.can_read:
        raise PermissionDeniedError(f"{viewer_id or 'anonymous'} cannot read repository {repo_id}")
    return capability


def require_write(permissions: PermissionProvider, viewer_id: Optional[str], repo_id: int) -> Capability:
    capability = permissions.capability(viewer_id, repo_id)
    if not capability.can_write:
        raise PermissionDeniedError(f"{viewer_id or 'anonymous'} cannot write to repository {repo_id}")
    return capability
