"""
Pagination for tagregistry listings.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, Sequence, Tuple, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of an ordered result set."""
    items: Tuple[T, ...]
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page': self.page,
            'page_size': self.page_size,
            'total_count': self.total_count,
            'total_pages': self.total_pages,
        }


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """
    Slice items[(page-1)*page_size : page*page_size].

    Pages past the end come back empty rather than failing; pages below 1
    are read as page 1.

    Raises:
        ValueError: If page_size is not positive
    """
    if page_size < 1:
        raise ValueError(f"page size must be positive, got {page_size}")
    page = max(page, 1)

    total_count = len(items)
    total_pages = math.ceil(total_count / page_size)
    start = (page - 1) * page_size

    return Page(
        items=tuple(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=total_pages,
    )
