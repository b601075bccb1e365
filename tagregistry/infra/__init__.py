"""
Infrastructure layer for tagregistry.

Contains abstractions for external systems:
- GitClient: Git command execution
- VersionControl: Target resolution and tag management
- PermissionProvider: Viewer capabilities

These provide clean interfaces that can be swapped for fakes in tests.
"""

from .git_client import GitClient, GitTag
from .version_control import VersionControl, GitVersionControl, InMemoryVersionControl
from .permissions import PermissionProvider, ConfigPermissionProvider

__all__ = [
    'GitClient',
    'GitTag',
    'VersionControl',
    'GitVersionControl',
    'InMemoryVersionControl',
    'PermissionProvider',
    'ConfigPermissionProvider',
]
