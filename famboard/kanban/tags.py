"""
Dynamic tag columns.

The column set comes from the data: one column per distinct tag (sorted
alphabetically, colored by position), plus a permanent `untagged` column.
An item with several tags is placed in every matching column.
"""
import logging
from typing import Dict, Iterable, List

from .schema import UNTAGGED_COLUMN, Column, KanbanItem, tag_column
from .sorter import sort_items

logger = logging.getLogger(__name__)


def unique_tags(items: Iterable[KanbanItem]) -> List[str]:
    """Union of all tags across items, alphabetical (case-insensitive, then exact)."""
    found = {tag for item in items for tag in (item.tags or ())}
    return sorted(found, key=lambda tag: (tag.casefold(), tag))


def tag_column_ids(item: KanbanItem) -> List[str]:
    """Every column id an item belongs to in tag mode."""
    if not item.tags:
        return [UNTAGGED_COLUMN.id]
    return [tag_column(tag, 0).id for tag in dict.fromkeys(item.tags)]


def group_items_by_tag(items: List[KanbanItem]) -> List[Column]:
    """Build tag columns from scratch; empty tag columns are dropped, `untagged` is kept."""
    logger.debug(f"Grouping {len(items)} items by tag")

    by_tag: Dict[str, Column] = {
        tag: tag_column(tag, index).build()
        for index, tag in enumerate(unique_tags(items))
    }
    untagged = UNTAGGED_COLUMN.build()

    for item in items:
        if not item.tags:
            untagged.items.append(item)
            continue
        for tag in dict.fromkeys(item.tags):
            by_tag[tag].items.append(item)

    columns = [col for col in by_tag.values() if col.items]
    columns.append(untagged)
    for col in columns:
        col.items = sort_items(col.items)

    logger.debug(f"Tag grouping: {len(columns) - 1} tag columns, {len(untagged.items)} untagged")
    return columns
