from __future__ import annotations

from typing import Iterable, List, Sequence, TypeVar

T = TypeVar("T")

HOUSE_SEARCH_FIELDS = ("name", "address")
INSPECTION_SEARCH_FIELDS = ("title", "notes")


def matches(item, query: str, fields: Sequence[str]) -> bool:
    """Case-insensitive substring match against any of fields."""
    needle = query.lower()
    for name in fields:
        value = getattr(item, name, None)
        if value and needle in value.lower():
            return True
    return False


def filter_items(items: Iterable[T], query: str, fields: Sequence[str]) -> List[T]:
    """
    Filtered copy of items for display. An empty query keeps everything in
    its original order; the input is never modified.
    """
    if not query:
        return list(items)
    return [item for item in items if matches(item, query, fields)]
