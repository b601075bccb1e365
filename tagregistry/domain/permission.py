"""
Viewer capability levels.

Computed outside the registry by the permission service; the registry
only consumes them.
"""

from enum import Enum


class Capability(Enum):
    """Access level of a viewer on a repository."""
    NONE = "none"
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str) -> 'Capability':
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown capability: {value!r}") from None

    @property
    def can_read(self) -> bool:
        return self is not Capability.NONE

    @property
    def can_write(self) -> bool:
        return self in (Capability.WRITE, Capability.ADMIN)
