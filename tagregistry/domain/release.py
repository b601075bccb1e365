"""
Release domain object for tagregistry.

A Release is the metadata record describing a published or draft
version of a repository, optionally backed by a version-control tag.

Releases are immutable value objects. To "edit" one, build a new
instance with dataclasses.replace() and hand it to the store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class ReleaseState(Enum):
    """Display state of a release."""
    DRAFT = "draft"
    PRERELEASE = "prerelease"
    STABLE = "stable"


@dataclass(frozen=True)
class TagRef:
    """Comparison anchor pointing at a tag."""
    name: str

    @property
    def kind(self) -> str:
        return "tag"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BranchRef:
    """Comparison anchor pointing at a branch (untagged drafts)."""
    name: str

    @property
    def kind(self) -> str:
        return "branch"

    def __str__(self) -> str:
        return self.name


Reference = Union[TagRef, BranchRef]


@dataclass(frozen=True)
class LabelPolicy:
    """
    Maps a release's flags to its display state.

    Precedence is draft, then prerelease, then stable. When a release is
    both a draft and a prerelease, draft wins unless draft_over_prerelease
    is turned off in configuration.
    """
    draft_over_prerelease: bool = True

    def state_of(self, release: 'Release') -> ReleaseState:
        if release.is_draft and release.is_prerelease:
            if self.draft_over_prerelease:
                return ReleaseState.DRAFT
            return ReleaseState.PRERELEASE
        if release.is_draft:
            return ReleaseState.DRAFT
        if release.is_prerelease:
            return ReleaseState.PRERELEASE
        return ReleaseState.STABLE

    def label_of(self, release: 'Release') -> str:
        return self.state_of(release).value


DEFAULT_LABEL_POLICY = LabelPolicy()


@dataclass(frozen=True)
class Release:
    """
    Immutable release record.

    Attributes:
        id: Row id, monotonically increasing
        repo_id: Owning repository
        tag_name: Tag name; for untagged drafts this is the tag the draft
            will get once published
        target: Branch or commit the tag points to (or will point to)
        title: Release title
        body: Release notes (markdown)
        is_draft: Not yet published
        is_prerelease: Published (or to be published) as not yet stable
        has_tag: A version-control tag exists for tag_name
        publisher_id: Who created the release
        created_at: Creation time, primary ordering key
        sha: Commit the target resolved to at creation/publish time
    """

    id: int
    repo_id: int
    tag_name: str
    target: str
    title: str
    body: str = ""
    is_draft: bool = False
    is_prerelease: bool = False
    has_tag: bool = True
    publisher_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sha: Optional[str] = None

    @property
    def state(self) -> ReleaseState:
        """State under the default label policy; services use the configured one."""
        return DEFAULT_LABEL_POLICY.state_of(self)

    @property
    def label(self) -> str:
        return self.state.value

    def ref(self, default_branch: str) -> Reference:
        """Comparison anchor: the tag if it exists, else the default branch."""
        if self.has_tag:
            return TagRef(self.tag_name)
        return BranchRef(default_branch)

    def to_dict(self, policy: LabelPolicy = DEFAULT_LABEL_POLICY) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization, labelled by `policy`."""
        return {
            'id': self.id,
            'repo_id': self.repo_id,
            'tag_name': self.tag_name,
            'target': self.target,
            'title': self.title,
            'body': self.body,
            'is_draft': self.is_draft,
            'is_prerelease': self.is_prerelease,
            'has_tag': self.has_tag,
            'label': policy.label_of(self),
            'publisher_id': self.publisher_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'sha': self.sha,
        }

    def __str__(self) -> str:
        return f"{self.tag_name} ({self.label})"
