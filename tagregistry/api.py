"""
High-level Python API for tagregistry.

Wires the database, the version-control and permission collaborators and
the services together from configuration.

Example:
    import tagregistry

    with tagregistry.Registry() as reg:
        repo_id = reg.add_repository("user2", "repo1", default_branch="master",
                                     path="~/src/repo1")
        reg.releases.create_release(repo_id, "v1.1", "master", "v1.1",
                                    publisher_id="user2")
        listing = reg.releases.list_releases(repo_id, viewer_id="user4")
        for release, compare in listing.rows():
            print(release.tag_name, compare.pairs())

    # Tests and embedders can inject their own collaborators
    with tagregistry.Registry(db_path=tmp / "r.db", vcs=InMemoryVersionControl()) as reg:
        ...
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import RegistrySettings, load_config
from .database import Database
from .database import releases as release_store
from .database import repositories as repo_store
from .database.connection import transaction
from .domain.repository import RepositoryInfo
from .infra.git_client import GitClient
from .infra.permissions import ConfigPermissionProvider, PermissionProvider
from .infra.version_control import GitVersionControl, VersionControl
from .services import ReleaseService, TagService

logger = logging.getLogger(__name__)


class Registry:
    """
    Release & tag registry bound to one database.

    Use as a context manager; the database connection lives for the
    duration of the with-block.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        db_path: Optional[Path] = None,
        vcs: Optional[VersionControl] = None,
        permissions: Optional[PermissionProvider] = None,
    ):
        self.config = config if config is not None else load_config()
        self.settings = RegistrySettings.from_config(self.config)
        self._db = Database(db_path=db_path, config=self.config)
        self._vcs = vcs
        self._permissions = permissions
        self.releases: ReleaseService
        self.tags: TagService

    def __enter__(self) -> 'Registry':
        db = self._db.__enter__()
        if self._vcs is None:
            timeout = int(self.config.get('git', {}).get('timeout_seconds', 30))
            self._vcs = GitVersionControl(self._checkout_path, GitClient(timeout=timeout))
        if self._permissions is None:
            self._permissions = ConfigPermissionProvider.from_config(self.repository, self.config)
        self.releases = ReleaseService(db, self._vcs, self._permissions, self.settings)
        self.tags = TagService(db, self._vcs, self._permissions)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._db.__exit__(exc_type, exc_val, exc_tb)

    @property
    def db(self) -> Database:
        return self._db

    def repository(self, repo_id: int) -> RepositoryInfo:
        return repo_store.get_repository(self._db, repo_id)

    def find_repository(self, full_name: str) -> RepositoryInfo:
        return repo_store.get_repository_by_name(self._db, full_name)

    def add_repository(
        self,
        owner: str,
        name: str,
        default_branch: str = "main",
        path: Optional[str] = None,
        is_private: bool = False,
    ) -> int:
        """Register (or update) a repository. Returns its id."""
        if path:
            path = str(Path(path).expanduser().resolve())
        with transaction(self._db):
            repo_id = repo_store.upsert_repository(
                self._db, owner, name, default_branch, path, is_private
            )
        logger.info(f"Registered repository {owner}/{name} (id={repo_id})")
        return repo_id

    def remove_repository(self, full_name: str) -> int:
        """
        Unregister a repository and drop its release records.

        Tags in the checkout are left alone.

        Returns:
            Number of release records removed
        """
        repo = self.find_repository(full_name)
        with transaction(self._db):
            removed = release_store.count_releases(self._db, repo.id)
            repo_store.delete_repository(self._db, repo.id)
        logger.info(f"Removed repository {full_name} ({removed} release record(s))")
        return removed

    def _checkout_path(self, repo_id: int) -> Optional[str]:
        return self.repository(repo_id).path
