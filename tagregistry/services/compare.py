"""
Compare link matrix for tagregistry.

Every release row on a listing page carries a dropdown of compare
targets. The dropdown lists each distinct tag T of the *visible* release
set (not just the current page), newest first, and links

    {repo_link}/compare/{t}...{ref(row)}

where ref(row) is the row's tag, or the default branch for a draft that
has no tag yet. The dropdown content is therefore the same on every row;
only the right-hand side of each URL changes.

Example (tags v0.0.1 newer than v1.1, plus an untagged draft, default
branch "master"):

    v0.0.1 row: v0.0.1 -> /compare/v0.0.1...v0.0.1, v1.1 -> /compare/v1.1...v0.0.1
    draft row:  v0.0.1 -> /compare/v0.0.1...master, v1.1 -> /compare/v1.1...master
    v1.1 row:   v0.0.1 -> /compare/v0.0.1...v1.1,   v1.1 -> /compare/v1.1...v1.1
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from ..domain.release import BranchRef, Reference, Release, TagRef
from ..domain.repository import path_segment


@dataclass(frozen=True)
class CompareOption:
    """One entry of a compare dropdown."""
    label: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {'label': self.label, 'url': self.url}


@dataclass(frozen=True)
class CompareRow:
    """The compare dropdown of one release row."""
    release_id: int
    ref: Reference
    options: Tuple[CompareOption, ...]

    def pairs(self) -> List[Tuple[str, str]]:
        return [(option.label, option.url) for option in self.options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'release_id': self.release_id,
            'ref': self.ref.name,
            'ref_type': self.ref.kind,
            'options': [option.to_dict() for option in self.options],
        }


def distinct_tags(visible: Iterable[Release]) -> Tuple[str, ...]:
    """
    Tag names of tagged releases in list order, first occurrence kept
    (names compare case-insensitively, like the tags themselves).

    Untagged drafts never contribute, even if they already carry the
    name they will be tagged with.
    """
    seen = set()
    tags = []
    for release in visible:
        key = release.tag_name.lower()
        if not release.has_tag or key in seen:
            continue
        seen.add(key)
        tags.append(release.tag_name)
    return tuple(tags)


def compare_url(repo_link: str, base: str, head: Reference) -> str:
    """{repo_link}/compare/{base}...{head}"""
    if isinstance(head, TagRef):
        head_name = head.name
    elif isinstance(head, BranchRef):
        head_name = head.name
    else:
        raise TypeError(f"Unsupported reference: {head!r}")
    return f"{repo_link}/compare/{path_segment(base)}...{path_segment(head_name)}"


def build_compare_row(
    release: Release,
    tags: Sequence[str],
    repo_link: str,
    default_branch: str,
) -> CompareRow:
    ref = release.ref(default_branch)
    options = tuple(
        CompareOption(label=tag, url=compare_url(repo_link, tag, ref))
        for tag in tags
    )
    return CompareRow(release_id=release.id, ref=ref, options=options)


def build_compare_matrix(
    rows: Iterable[Release],
    visible: Sequence[Release],
    repo_link: str,
    default_branch: str,
) -> List[CompareRow]:
    """
    Compare dropdowns for the rendered rows.

    Args:
        rows: Releases rendered on the current page, in display order
        visible: The whole filtered release list the page was cut from;
            it defines the tag universe
        repo_link: Repository link prefix, e.g. "/user2/repo1"
        default_branch: Fallback ref for untagged drafts

    Returns:
        One CompareRow per rendered row, in the same order
    """
    tags = distinct_tags(visible)
    return [
        build_compare_row(release, tags, repo_link, default_branch)
        for release in rows
    ]
