"""Client-side search and paging over a fully fetched collection."""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Sequence, TypeVar

T = TypeVar("T")

PAGE_SIZES = (3, 6, 9, 15)


def _contains(value: Any, needle: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, str):
        value = str(value)
    return needle in value.lower()


def filter_records(
    records: list[T],
    query: str | None,
    fields: Iterable[Callable[[T], Any]],
) -> list[T]:
    """Keep records where any field contains ``query`` (case-insensitive).

    A blank query returns ``records`` itself. Field getters may return None
    for missing values; such a field never matches.
    """
    if not query or not query.strip():
        return records
    needle = query.lower()
    getters = list(fields)
    return [record for record in records if any(_contains(get(record), needle) for get in getters)]


def page_count(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max(1, math.ceil(total / page_size))


def paginate(rows: Sequence[T], page: int, page_size: int) -> list[T]:
    """Rows of a 1-based page; pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    start = (page - 1) * page_size
    return list(rows[start:start + page_size])
