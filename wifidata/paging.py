"""Paginated envelopes shared by every list-returning operation."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, Generic, List, Sequence, TypeVar

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Page",
    "PageRequest",
    "build_page",
]

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Zero-based page index, requested size and sort field."""

    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    sort: str = "id"

    def __post_init__(self):
        if self.page < 0:
            raise ValueError(f"page must be >= 0, got {self.page}")
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    content: List[T]
    total_elements: int
    total_pages: int
    current_page: int
    page_size: int
    first: bool
    last: bool

    def __iter__(self):
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)

    def to_dict(self) -> dict[str, Any]:
        """Response envelope; items are serialized through their ``to_dict``."""

        return {
            "content": [_item_to_dict(item) for item in self.content],
            "total_elements": self.total_elements,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
            "page_size": self.page_size,
            "first": self.first,
            "last": self.last,
        }

    def to_df(self, columns: list[str] | None = None):
        """Materialize the page content as a pandas DataFrame.

        Parameters
        ----------
        columns : list[str] | None
            Optional subset of columns to retain, in the given order.
        """

        import pandas as pd

        df = pd.DataFrame([_item_to_dict(item) for item in self.content])
        if columns is not None:
            keep = [c for c in columns if c in df.columns]
            df = df.loc[:, keep]
        return df


def _item_to_dict(item: Any) -> Any:
    if hasattr(item, "to_dict"):
        return item.to_dict()
    return item


def build_page(
    content: Sequence[T], total_count: int, page_index: int, page_size: int
) -> Page[T]:
    """Derive the pagination metadata for one slice of a larger result.

    ``page_size`` is the requested size and drives ``total_pages``; the
    envelope's ``page_size`` reports how many items ``content`` holds.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if page_index < 0:
        raise ValueError(f"page_index must be >= 0, got {page_index}")
    if total_count < 0:
        raise ValueError(f"total_count must be >= 0, got {total_count}")

    items = list(content)
    total_pages = math.ceil(total_count / page_size) if total_count else 0
    return Page(
        content=items,
        total_elements=total_count,
        total_pages=total_pages,
        current_page=page_index,
        page_size=len(items),
        first=page_index == 0,
        last=page_index >= total_pages - 1,
    )
