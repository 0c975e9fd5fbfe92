"""
Column classifier.

Assigns every item to its column(s) for the active group-by mode:
  - time:     done / later / overdue|past / today / tomorrow / this-week
  - status:   the task's status (inbox when unset); non-tasks are all "active"
  - priority: the item's priority value
  - tag:      one column per tag (see tags.py)

Placement never fails: an id with no matching column falls back to the last
column of the mode and is logged.
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Tuple

from .dates import SUNDAY, time_column_id, time_column_range, today_for
from .schema import (
    PRIORITY_COLUMNS,
    STATUS_COLUMNS,
    TIME_COLUMNS,
    Column,
    ColumnDef,
    GroupBy,
    KanbanItem,
    TaskStatus,
)
from .sorter import sort_items
from .tags import group_items_by_tag, tag_column_ids

logger = logging.getLogger(__name__)

COLUMN_DEFS: Dict[GroupBy, Tuple[ColumnDef, ...]] = {
    GroupBy.TIME: TIME_COLUMNS,
    GroupBy.STATUS: STATUS_COLUMNS,
    GroupBy.PRIORITY: PRIORITY_COLUMNS,
}


def _time_column(item: KanbanItem, today: date, week_starts_on: int) -> str:
    return time_column_id(item.date, item.is_completed, item.is_task, today, week_starts_on)


def _status_column(item: KanbanItem) -> str:
    # Events and birthdays have no workflow of their own.
    if not item.is_task:
        return TaskStatus.ACTIVE.value
    return item.status or TaskStatus.INBOX.value


def column_ids_for_item(
    item: KanbanItem,
    group_by: GroupBy,
    today: date,
    week_starts_on: int = SUNDAY,
) -> List[str]:
    """Column ids for an item. Exactly one id except in tag mode."""
    if group_by is GroupBy.TIME:
        return [_time_column(item, today, week_starts_on)]
    if group_by is GroupBy.STATUS:
        return [_status_column(item)]
    if group_by is GroupBy.PRIORITY:
        return [item.priority.value]
    if group_by is GroupBy.TAG:
        return tag_column_ids(item)
    logger.warning(f"Unknown group_by {group_by!r} for {item.id}, using 'later'")
    return ["later"]


def column_id_for_item(
    item: KanbanItem,
    group_by: GroupBy,
    today: date,
    week_starts_on: int = SUNDAY,
) -> str:
    return column_ids_for_item(item, group_by, today, week_starts_on)[0]


def build_columns(group_by: GroupBy, today: date, week_starts_on: int = SUNDAY) -> List[Column]:
    """Fresh, empty columns for a predefined (non-tag) mode."""
    defs = COLUMN_DEFS.get(group_by, TIME_COLUMNS)
    if defs is TIME_COLUMNS:
        return [d.build(time_column_range(d.id, today, week_starts_on)) for d in defs]
    return [d.build() for d in defs]


def group_items_into_columns(
    items: List[KanbanItem],
    group_by: GroupBy,
    now: datetime,
    week_starts_on: int = SUNDAY,
) -> List[Column]:
    """Partition items into sorted columns for the given mode."""
    if group_by is GroupBy.TAG:
        return group_items_by_tag(items)

    today = today_for(now)
    columns = build_columns(group_by, today, week_starts_on)
    by_id = {col.id: col for col in columns}

    for item in items:
        column_id = column_id_for_item(item, group_by, today, week_starts_on)
        column = by_id.get(column_id)
        if column is None:
            logger.warning(
                f"Item {item.id} has no matching column {column_id!r}, "
                f"placing it in {columns[-1].id!r}"
            )
            column = columns[-1]
        column.items.append(item)

    for column in columns:
        column.items = sort_items(column.items)

    logger.debug(f"Grouped {len(items)} items into {len(columns)} {group_by.value} columns")
    return columns
