# clinic_console/services/pagination.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageWindow:
    """
    Page arithmetic shared by every list screen.

    `start_index` / `end_index` are 1-based and inclusive, the way the
    "Showing a-b of n" footer reads. Both are 0 for an empty list.
    """
    current_page: int
    items_per_page: int
    total_items: int

    def __post_init__(self) -> None:
        if self.items_per_page < 1:
            raise ValueError("items_per_page must be >= 1")
        total = max(int(self.total_items), 0)
        object.__setattr__(self, "total_items", total)
        last = max(self.total_pages, 1)
        page = min(max(int(self.current_page), 1), last)
        object.__setattr__(self, "current_page", page)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.items_per_page)

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.items_per_page

    @property
    def limit(self) -> int:
        return self.items_per_page

    @property
    def start_index(self) -> int:
        if self.total_items == 0:
            return 0
        return self.offset + 1

    @property
    def end_index(self) -> int:
        return min(self.current_page * self.items_per_page, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def visible_pages(self, window: int = 5) -> List[int]:
        if self.total_pages == 0:
            return []
        window = max(1, min(window, self.total_pages))
        start = self.current_page - window // 2
        start = max(1, min(start, self.total_pages - window + 1))
        return list(range(start, start + window))

    def summary(self) -> str:
        return f"Showing {self.start_index}-{self.end_index} of {self.total_items}"


def paginate(items: Sequence[T], page: int, per_page: int) -> List[T]:
    w = PageWindow(page, per_page, len(items))
    return list(items[w.offset:w.offset + w.limit])
