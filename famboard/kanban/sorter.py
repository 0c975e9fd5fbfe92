"""Deterministic ordering of items inside one column."""
from datetime import date
from typing import Iterable, List, Tuple

from .schema import KanbanItem


def sort_key(item: KanbanItem) -> Tuple:
    """Overdue first, then by date (dateless last), priority, title, id."""
    return (
        not item.is_overdue,
        item.date is None,
        item.date or date.min,
        item.priority.rank,
        item.title.casefold(),
        item.title,
        item.id,
    )


def sort_items(items: Iterable[KanbanItem]) -> List[KanbanItem]:
    return sorted(items, key=sort_key)
