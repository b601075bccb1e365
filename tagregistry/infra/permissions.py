"""
Permission collaborator for tagregistry.

The registry asks a PermissionProvider what a viewer may do on a
repository and derives draft visibility from the answer.
"""

import logging
from typing import Callable, Dict, Iterable, Optional, Protocol

from ..domain.permission import Capability
from ..domain.repository import RepositoryInfo

logger = logging.getLogger(__name__)


class PermissionProvider(Protocol):
    """What the registry needs from the permission service."""

    def capability(self, viewer_id: Optional[str], repo_id: int) -> Capability:
        ...


class ConfigPermissionProvider:
    """
    Capabilities derived from repository ownership and configured grants.

    Rules, first match wins:
    - site admins get ADMIN everywhere
    - the repository owner gets ADMIN
    - an explicit grant ("owner/name" -> {user: level}) applies
    - everyone else, anonymous viewers included, gets READ on public
      repositories and NONE on private ones

    Args:
        repository_for: Looks up a repository by id
        grants: {"owner/name": {"user": "write", ...}, ...}
        site_admins: Users with ADMIN on every repository
    """

    def __init__(
        self,
        repository_for: Callable[[int], RepositoryInfo],
        grants: Optional[Dict[str, Dict[str, str]]] = None,
        site_admins: Iterable[str] = (),
    ):
        self.repository_for = repository_for
        self.grants = grants or {}
        self.site_admins = frozenset(site_admins)

    @classmethod
    def from_config(cls, repository_for: Callable[[int], RepositoryInfo], config: dict) -> 'ConfigPermissionProvider':
        permissions = config.get('permissions', {})
        return cls(
            repository_for,
            grants=permissions.get('grants', {}),
            site_admins=permissions.get('site_admins', []),
        )

    def capability(self, viewer_id: Optional[str], repo_id: int) -> Capability:
        repo = self.repository_for(repo_id)
        default = Capability.NONE if repo.is_private else Capability.READ

        if not viewer_id:
            return default
        if viewer_id in self.site_admins or viewer_id == repo.owner:
            return Capability.ADMIN

        level = self.grants.get(repo.full_name, {}).get(viewer_id)
        if level is None:
            return default
        try:
            return Capability.parse(level)
        except ValueError:
            logger.warning(f"Ignoring unknown capability {level!r} for {viewer_id} on {repo.full_name}")
            return default
