"""
Offset pagination over in-memory sequences.

Works with anything supporting ``len()`` and slicing (lists, tuples,
query objects implementing both). Other iterables are materialized.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from starlette.datastructures import URL


@dataclass(frozen=True)
class Page:
    """One page of a paginated collection."""

    items: Any
    current_page: int
    per_page: int
    total_count: int

    @property
    def total_pages(self) -> int:
        if self.total_count == 0:
            return 1
        return math.ceil(self.total_count / self.per_page)

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def _to_positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def paginate(
    collection: Any,
    page: Any = None,
    per_page: Any = None,
    default_per_page: int = 25,
    max_per_page: int | None = 100,
) -> Page:
    """
    Slice ``collection`` to one page.

    ``page`` and ``per_page`` may be strings (query parameters); invalid
    or non-positive values fall back to 1 and ``default_per_page``.
    ``per_page`` is capped at ``max_per_page``.
    """
    if not (hasattr(collection, "__len__") and hasattr(collection, "__getitem__")):
        collection = list(collection or [])

    current = _to_positive_int(page, 1)
    size = _to_positive_int(per_page, default_per_page)
    if max_per_page:
        size = min(size, max_per_page)

    offset = (current - 1) * size
    return Page(
        items=collection[offset:offset + size],
        current_page=current,
        per_page=size,
        total_count=len(collection),
    )


def pagination_meta(page: Page) -> dict[str, int]:
    return {
        "current_page": page.current_page,
        "total_pages": page.total_pages,
        "total_count": page.total_count,
        "per_page": page.per_page,
    }


def pagination_links(page: Page, url: URL | str | None) -> dict[str, str]:
    """
    Page links built from the request URL, replacing its ``page`` parameter.

    ``prev`` and ``next`` are present only when those pages exist.
    """
    if url is None:
        return {}
    base = url if isinstance(url, URL) else URL(str(url))

    def link(number: int) -> str:
        return str(base.include_query_params(page=number))

    links = {
        "self": link(page.current_page),
        "first": link(1),
        "last": link(page.total_pages),
    }
    if page.has_prev:
        links["prev"] = link(page.current_page - 1)
    if page.has_next:
        links["next"] = link(page.current_page + 1)
    return links
