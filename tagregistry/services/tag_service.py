"""
Tag service for tagregistry.

Lists every version-control tag of a repository, whether or not a
release is attached, and creates or deletes tags directly.
"""

import logging
from typing import List, Optional

from ..database import releases as store
from ..database.connection import Database, transaction
from ..database.repositories import get_repository
from ..domain.tag import TagInfo, sort_tags_newest_first, validate_tag_name
from ..exceptions import DuplicateTagError
from ..infra.permissions import PermissionProvider
from ..infra.version_control import VersionControl
from .visibility import require_read, require_write

logger = logging.getLogger(__name__)


class TagService:
    """
    Tag listing and tag-only operations.

    Example:
        with Database() as db:
            tags = TagService(db, vcs, permissions).list_tags(1)
            print([tag.name for tag in tags])
    """

    def __init__(self, db: Database, vcs: VersionControl, permissions: PermissionProvider):
        self.db = db
        self.vcs = vcs
        self.permissions = permissions

    def list_tags(self, repo_id: int, viewer_id: Optional[str] = None) -> List[TagInfo]:
        """
        All tags of the repository, newest tag commit first, name ascending on ties.

        Each entry carries the delete link and the id of the tagged
        release backed by it, if there is one.
        """
        require_read(self.permissions, viewer_id, repo_id)
        repository = get_repository(self.db, repo_id)
        release_ids = store.get_tagged_release_ids(self.db, repo_id)

        tags = [
            TagInfo(
                name=tag.name,
                commit=tag.commit,
                date=tag.date,
                release_id=release_ids.get(tag.name.lower()),
                delete_url=repository.tag_delete_link(tag.name),
            )
            for tag in self.vcs.list_tags(repo_id)
        ]
        return sort_tags_newest_first(tags)

    def create_tag(
        self,
        repo_id: int,
        tag_name: str,
        target: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> str:
        """
        Create a tag with no release attached.

        Returns:
            The commit the tag points to
        """
        if actor_id is not None:
            require_write(self.permissions, actor_id, repo_id)

        tag_name = validate_tag_name(tag_name)
        repository = get_repository(self.db, repo_id)
        target = (target or "").strip() or repository.default_branch
        sha = self.vcs.resolve_commitish(repo_id, target)

        if self.vcs.tag_exists(repo_id, tag_name):
            raise DuplicateTagError(tag_name)
        self.vcs.create_tag(repo_id, tag_name, sha)
        logger.info(f"Created tag {tag_name} at {target} in {repository.full_name}")
        return sha

    def delete_tag(self, repo_id: int, tag_name: str, actor_id: Optional[str] = None) -> int:
        """
        Delete a tag and the release backed by it.

        Drafts that merely reuse the name are kept; they still have no tag.

        Returns:
            Number of release records removed

        Raises:
            NotFoundError: The tag does not exist
        """
        if actor_id is not None:
            require_write(self.permissions, actor_id, repo_id)

        with transaction(self.db):
            removed = store.delete_releases_for_tag(self.db, repo_id, tag_name)
            self.vcs.delete_tag(repo_id, tag_name)

        logger.info(f"Deleted tag {tag_name} ({removed} release record(s) removed)")
        return removed
