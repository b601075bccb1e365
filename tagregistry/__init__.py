"""
tagregistry - Release & tag registry for hosted git repositories.

tagregistry keeps version-tagged release metadata for repositories:
draft/prerelease/stable state, per-viewer draft visibility, consistent
pagination, the latest-release banner, and the compare link matrix that
lets a viewer diff any two tagged revisions.

Quick Start:
    import tagregistry

    with tagregistry.Registry() as reg:
        repo_id = reg.add_repository("user2", "repo1", default_branch="master",
                                     path="~/src/repo1")
        reg.releases.create_release(repo_id, "v1.1", "master", "Version 1.1",
                                    publisher_id="user2")
        listing = reg.releases.list_releases(repo_id, viewer_id="user4", page=1)
        print(listing.total_count, listing.latest.label)

Domain Objects:
    Release - Release metadata record
    RepositoryInfo - Repository link, default branch, checkout
    TagInfo - A row of the tag listing

Services:
    ReleaseService - Lifecycle and listings
    TagService - Tag listing and tag-only operations
"""

__version__ = "0.3.0"

# High-level API
from .api import Registry

# Domain objects
from .domain import (
    Release,
    ReleaseState,
    LabelPolicy,
    TagRef,
    BranchRef,
    RepositoryInfo,
    TagInfo,
    Capability,
)

# Services (for advanced use)
from .services import (
    ReleaseService,
    ReleaseListing,
    TagService,
)

# Collaborators
from .infra import (
    VersionControl,
    GitVersionControl,
    InMemoryVersionControl,
    PermissionProvider,
    ConfigPermissionProvider,
)

# Errors
from .exceptions import (
    RegistryError,
    DuplicateTagError,
    InvalidTargetError,
    InvalidTagNameError,
    EmptyTitleError,
    PermissionDeniedError,
    NotFoundError,
    VersionControlError,
)

# Configuration
from .config import load_config, save_config, RegistrySettings

__all__ = [
    "__version__",
    "Registry",
    "Release",
    "ReleaseState",
    "LabelPolicy",
    "TagRef",
    "BranchRef",
    "RepositoryInfo",
    "TagInfo",
    "Capability",
    "ReleaseService",
    "ReleaseListing",
    "TagService",
    "VersionControl",
    "GitVersionControl",
    "InMemoryVersionControl",
    "PermissionProvider",
    "ConfigPermissionProvider",
    "RegistryError",
    "DuplicateTagError",
    "InvalidTargetError",
    "InvalidTagNameError",
    "EmptyTitleError",
    "PermissionDeniedError",
    "NotFoundError",
    "VersionControlError",
    "load_config",
    "save_config",
    "RegistrySettings",
]
