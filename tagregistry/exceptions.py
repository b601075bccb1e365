"""
Registry errors for tagregistry.

Every error raised by the store and the services is a recoverable,
per-request outcome. Validation errors (duplicate tag, unresolvable
target, empty title) are meant to be shown back to the user so they
can re-submit; not-found and permission errors are mapped to
"not found"/"forbidden" by whatever boundary sits in front of us.

All of them are CommandErrors so the CLI can turn them into exit codes.
"""

from typing import Optional

from .exit_codes import (
    CommandError,
    DATA_ERROR,
    NOT_FOUND,
    PERMISSION_ERROR,
    VCS_ERROR,
)


class RegistryError(CommandError):
    """Base class for release/tag registry failures."""


class DuplicateTagError(RegistryError):
    """A tagged release (or VCS tag) with this name already exists."""
    def __init__(self, tag_name: str):
        super().__init__(f"Tag already exists: {tag_name}", DATA_ERROR)
        self.tag_name = tag_name


class InvalidTargetError(RegistryError):
    """The target commit-ish could not be resolved."""
    def __init__(self, target: str):
        super().__init__(f"Target not found: {target}", DATA_ERROR)
        self.target = target


class InvalidTagNameError(RegistryError):
    """The tag name is not usable as a git ref name."""
    def __init__(self, tag_name: str, reason: str = "invalid tag name"):
        super().__init__(f"{reason}: {tag_name!r}", DATA_ERROR)
        self.tag_name = tag_name


class EmptyTitleError(RegistryError):
    """A release requires a title."""
    def __init__(self, tag_name: Optional[str] = None):
        message = "Release title is required"
        if tag_name:
            message += f" ({tag_name})"
        super().__init__(message, DATA_ERROR)
        self.tag_name = tag_name


class PermissionDeniedError(RegistryError):
    """Viewer lacks the capability needed for this operation."""
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, PERMISSION_ERROR)


class NotFoundError(RegistryError):
    """Unknown repository, release or tag."""
    def __init__(self, kind: str, identifier: object):
        super().__init__(f"{kind} not found: {identifier}", NOT_FOUND)
        self.kind = kind
        self.identifier = identifier


class VersionControlError(RegistryError):
    """The version-control collaborator failed."""
    def __init__(self, message: str):
        super().__init__(message, VCS_ERROR)
