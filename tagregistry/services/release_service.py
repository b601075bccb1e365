"""
Release service for tagregistry.

Owns the release lifecycle (create, edit, publish, delete) and the
listing pipeline:

    snapshot -> visibility filter -> paginate -> latest banner -> compare matrix

Every stage of one listing works on the same immutable ReleaseSnapshot,
read inside a single read transaction, so the total count, the page rows
and the compare links can never disagree with each other.
"""

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple

from ..config import RegistrySettings
from ..database import releases as store
from ..database.connection import Database, read_transaction, transaction
from ..database.repositories import get_repository
from ..domain.release import DEFAULT_LABEL_POLICY, LabelPolicy, Release
from ..domain.repository import RepositoryInfo
from ..domain.tag import validate_tag_name
from ..exceptions import (
    DuplicateTagError,
    EmptyTitleError,
    InvalidTagNameError,
    PermissionDeniedError,
)
from ..infra.permissions import PermissionProvider
from ..infra.version_control import VersionControl
from .compare import CompareRow, build_compare_matrix
from .latest import LatestRelease, resolve_latest
from .pagination import Page, paginate
from .visibility import can_see_drafts, filter_visible, require_read, require_write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseSnapshot:
    """All releases of one repository as of one read transaction."""
    repository: RepositoryInfo
    releases: Tuple[Release, ...]


@dataclass(frozen=True)
class ReleaseListing:
    """Everything a release list page shows."""
    repository: RepositoryInfo
    page: Page[Release]
    latest: Optional[LatestRelease]
    compare: Tuple[CompareRow, ...]
    can_see_drafts: bool
    label_policy: LabelPolicy = DEFAULT_LABEL_POLICY

    @property
    def releases(self) -> Tuple[Release, ...]:
        return self.page.items

    @property
    def total_count(self) -> int:
        return self.page.total_count

    def label_of(self, release: Release) -> str:
        return self.label_policy.label_of(release)

    def rows(self) -> Iterator[Tuple[Release, CompareRow]]:
        return zip(self.page.items, self.compare)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repository': self.repository.full_name,
            **self.page.to_dict(),
            'latest': self.latest.to_dict() if self.latest else None,
            'releases': [
                {
                    **release.to_dict(self.label_policy),
                    'url': self.repository.release_link(release.tag_name),
                    'compare': row.to_dict()['options'],
                }
                for release, row in self.rows()
            ],
        }


def take_snapshot(db: Database, repo_id: int) -> ReleaseSnapshot:
    """Read the repository and its ordered releases in one transaction."""
    with read_transaction(db):
        repository = get_repository(db, repo_id)
        releases = tuple(store.list_releases(db, repo_id))
    return ReleaseSnapshot(repository=repository, releases=releases)


class ReleaseService:
    """
    Release lifecycle and listings for repositories in one database.

    Example:
        with Database() as db:
            service = ReleaseService(db, vcs, permissions)
            release_id = service.create_release(1, "v1.0", "main", "First", publisher_id="user2")
            listing = service.list_releases(1, viewer_id="user4")
    """

    def __init__(
        self,
        db: Database,
        vcs: VersionControl,
        permissions: PermissionProvider,
        settings: Optional[RegistrySettings] = None,
    ):
        self.db = db
        self.vcs = vcs
        self.permissions = permissions
        self.settings = settings or RegistrySettings()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_releases(
        self,
        repo_id: int,
        viewer_id: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ReleaseListing:
        """
        One page of releases as the viewer is allowed to see them.

        Args:
            repo_id: Repository to list
            viewer_id: Viewer, None for anonymous
            page: 1-indexed page; pages past the end are empty
            page_size: Override of the configured default page size

        Raises:
            PermissionDeniedError: Viewer cannot read the repository
            NotFoundError: Unknown repository
        """
        capability = require_read(self.permissions, viewer_id, repo_id)
        drafts_visible = can_see_drafts(capability)
        size = self.settings.page_size(page_size)

        snapshot = take_snapshot(self.db, repo_id)
        visible = filter_visible(snapshot.releases, drafts_visible)
        current = paginate(visible, page, size)
        latest = resolve_latest(visible, self.settings.label_policy)
        compare = build_compare_matrix(
            current.items,
            visible,
            snapshot.repository.link,
            snapshot.repository.default_branch,
        )

        return ReleaseListing(
            repository=snapshot.repository,
            page=current,
            latest=latest,
            compare=tuple(compare),
            can_see_drafts=drafts_visible,
            label_policy=self.settings.label_policy,
        )

    def get_release(self, repo_id: int, tag_name: str, viewer_id: Optional[str] = None) -> Release:
        """
        Single release by tag name.

        Raises:
            NotFoundError: No release uses this tag
            PermissionDeniedError: The release is a draft the viewer cannot see
        """
        capability = require_read(self.permissions, viewer_id, repo_id)
        release = store.get_release_by_tag(self.db, repo_id, tag_name)
        if release.is_draft and not can_see_drafts(capability):
            raise PermissionDeniedError(f"Release {tag_name} is a draft")
        return release

    def label_of(self, release: Release) -> str:
        return self.settings.label_policy.label_of(release)

    def release_dict(self, release: Release) -> Dict[str, Any]:
        """Release as a dict, labelled by the configured policy."""
        return release.to_dict(self.settings.label_policy)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_release(
        self,
        repo_id: int,
        tag_name: str,
        target: Optional[str],
        title: str,
        body: str = "",
        is_prerelease: bool = False,
        publish: bool = True,
        publisher_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """
        Create a release, tagging the target first when publishing.

        The VCS tag is created before the record is committed. If the
        record cannot be stored, a tag created by this call is deleted
        again so no orphan is left behind. A concurrent publish that
        committed a release for the same tag first keeps the tag, and this
        call fails with DuplicateTagError. An existing tag with no release
        attached is adopted rather than recreated.

        Args:
            target: Branch or commit to tag; the default branch when empty
            publish: False saves a draft with no tag

        Returns:
            ID of the new release

        Raises:
            InvalidTagNameError, EmptyTitleError, InvalidTargetError,
            DuplicateTagError, PermissionDeniedError, NotFoundError
        """
        if publisher_id is not None:
            require_write(self.permissions, publisher_id, repo_id)

        tag_name = validate_tag_name(tag_name)
        if not (title or "").strip():
            raise EmptyTitleError(tag_name)

        repository = get_repository(self.db, repo_id)
        target = (target or "").strip() or repository.default_branch
        sha = self.vcs.resolve_commitish(repo_id, target)

        created_tag = False
        if publish:
            if store.find_tagged_release(self.db, repo_id, tag_name) is not None:
                raise DuplicateTagError(tag_name)
            created_tag = self._ensure_tag(repo_id, tag_name, sha)
            if not created_tag:
                sha = self.vcs.resolve_commitish(repo_id, tag_name)

        try:
            with transaction(self.db):
                release_id = store.insert_release(
                    self.db,
                    repo_id,
                    tag_name,
                    target,
                    title.strip(),
                    body=body or "",
                    is_prerelease=is_prerelease,
                    publish=publish,
                    publisher_id=publisher_id,
                    sha=sha,
                    created_at=created_at,
                )
        except DuplicateTagError:
            # A concurrent publish won the tag; it is theirs now
            raise
        except BaseException:
            if created_tag:
                self._rollback_tag(repo_id, tag_name)
            raise

        kind = "release" if publish else "draft"
        logger.info(f"Created {kind} {tag_name} (id={release_id}) in {repository.full_name}")
        return release_id

    def update_release(
        self,
        repo_id: int,
        release_id: int,
        actor_id: Optional[str] = None,
        title: Optional[str] = None,
        body: Optional[str] = None,
        is_prerelease: Optional[bool] = None,
        tag_name: Optional[str] = None,
        target: Optional[str] = None,
    ) -> Release:
        """
        Edit release metadata.

        Tag name and target can only change while the release has no tag.

        Returns:
            The updated release
        """
        if actor_id is not None:
            require_write(self.permissions, actor_id, repo_id)

        release = store.get_release_by_id(self.db, repo_id, release_id)
        changes: Dict[str, Any] = {}

        if title is not None:
            if not title.strip():
                raise EmptyTitleError(release.tag_name)
            changes['title'] = title.strip()
        if body is not None:
            changes['body'] = body
        if is_prerelease is not None:
            changes['is_prerelease'] = is_prerelease

        if tag_name is not None or target is not None:
            if release.has_tag:
                raise InvalidTagNameError(release.tag_name, "Cannot retarget a tagged release")
            if tag_name is not None:
                changes['tag_name'] = validate_tag_name(tag_name)
            if target is not None:
                changes['target'] = target.strip()
                changes['sha'] = self.vcs.resolve_commitish(repo_id, changes['target'])

        updated = dataclasses.replace(release, updated_at=None, **changes)
        with transaction(self.db):
            store.update_release(self.db, updated)
        return store.get_release_by_id(self.db, repo_id, release_id)

    def publish_release(self, repo_id: int, release_id: int, actor_id: Optional[str] = None) -> Release:
        """
        Turn a draft into a published release, creating its tag.

        Publishing an already published release is a no-op.
        """
        if actor_id is not None:
            require_write(self.permissions, actor_id, repo_id)

        release = store.get_release_by_id(self.db, repo_id, release_id)
        if not release.is_draft and release.has_tag:
            return release
        if not release.title.strip():
            raise EmptyTitleError(release.tag_name)

        sha = self.vcs.resolve_commitish(repo_id, release.target)
        if store.find_tagged_release(self.db, repo_id, release.tag_name) is not None:
            raise DuplicateTagError(release.tag_name)
        created_tag = self._ensure_tag(repo_id, release.tag_name, sha)
        if not created_tag:
            sha = self.vcs.resolve_commitish(repo_id, release.tag_name)

        published = dataclasses.replace(
            release, is_draft=False, has_tag=True, sha=sha, updated_at=None
        )
        try:
            with transaction(self.db):
                store.update_release(self.db, published)
        except DuplicateTagError:
            raise
        except BaseException:
            if created_tag:
                self._rollback_tag(repo_id, release.tag_name)
            raise

        logger.info(f"Published release {release.tag_name} (id={release_id})")
        return store.get_release_by_id(self.db, repo_id, release_id)

    def delete_release(
        self,
        repo_id: int,
        release_id: int,
        actor_id: Optional[str] = None,
        delete_tag: bool = False,
    ) -> bool:
        """
        Delete a release record and, optionally, its VCS tag.

        The record is only removed if the tag deletion (when requested)
        succeeds.

        Returns:
            True if a record was deleted
        """
        if actor_id is not None:
            require_write(self.permissions, actor_id, repo_id)

        release = store.get_release_by_id(self.db, repo_id, release_id)
        with transaction(self.db):
            deleted = store.delete_release(self.db, repo_id, release_id)
            if delete_tag and release.has_tag and self.vcs.tag_exists(repo_id, release.tag_name):
                self.vcs.delete_tag(repo_id, release.tag_name)

        logger.info(f"Deleted release {release.tag_name} (id={release_id}, tag deleted: {delete_tag and release.has_tag})")
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_tag(self, repo_id: int, tag_name: str, sha: str) -> bool:
        """Create the tag unless it already exists. True if created here."""
        if self.vcs.tag_exists(repo_id, tag_name):
            logger.debug(f"Tag {tag_name} already exists, attaching release to it")
            return False
        self.vcs.create_tag(repo_id, tag_name, sha)
        return True

    def _rollback_tag(self, repo_id: int, tag_name: str) -> None:
        """Delete a tag this call created, unless another release now owns it."""
        try:
            if store.find_tagged_release(self.db, repo_id, tag_name) is not None:
                logger.warning(f"Tag {tag_name} was claimed by another release, keeping it")
                return
            logger.warning(f"Release record for {tag_name} not stored, removing tag")
            self.vcs.delete_tag(repo_id, tag_name)
        except Exception as e:
            logger.error(f"Could not roll back tag {tag_name}: {e}")
