"""
Latest-release banner for tagregistry.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from ..domain.release import DEFAULT_LABEL_POLICY, LabelPolicy, Release


@dataclass(frozen=True)
class LatestRelease:
    """The newest visible release and its display label."""
    release: Release
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.release.id,
            'tag_name': self.release.tag_name,
            'title': self.release.title,
            'label': self.label,
        }


def resolve_latest(
    visible: Sequence[Release],
    policy: LabelPolicy = DEFAULT_LABEL_POLICY,
) -> Optional[LatestRelease]:
    """
    First element of the filtered, unpaginated, newest-first list.

    Returns None when nothing is visible.
    """
    if not visible:
        return None
    latest = visible[0]
    return LatestRelease(release=latest, label=policy.label_of(latest))
