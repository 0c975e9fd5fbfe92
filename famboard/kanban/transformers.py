"""
Source record → KanbanItem transformers.

One pure function per source type. Each takes the record and the current
instant and returns exactly one item; missing optional fields become None or
defaults, never errors.

Tasks can be *overdue* (owed work that slipped). Events, synced events and
birthdays can only be *past* (they already happened). A task is never past and
an event is never overdue.
"""
import logging
from datetime import datetime
from typing import List, Optional

from .dates import local_day, today_for
from .schema import (
    BirthdayRecord,
    EventRecord,
    ExternalEventRecord,
    ItemType,
    KanbanFilters,
    KanbanItem,
    Priority,
    Snapshot,
    TaskRecord,
    TaskStatus,
)

logger = logging.getLogger(__name__)


def transform_task(task: TaskRecord, now: datetime) -> KanbanItem:
    today = today_for(now)
    is_completed = task.status == TaskStatus.DONE.value
    is_overdue = bool(task.due_date and not is_completed and task.due_date < today)

    meta = {}
    if task.goal_id:
        meta["goal_id"] = task.goal_id

    return KanbanItem(
        id=f"task-{task.id}",
        type=ItemType.TASK,
        source_id=task.id,
        title=task.title,
        description=task.description or None,
        date=task.due_date,
        is_all_day=True,
        status=task.status,
        priority=Priority.from_number(task.priority),
        is_completed=is_completed,
        is_overdue=is_overdue,
        is_past=False,
        color=task.project.color if task.project else None,
        assignee=task.assignee,
        project=task.project,
        tags=tuple(task.tags) if task.tags else None,
        meta=meta,
        source=task,
    )


def transform_event(event: EventRecord, now: datetime) -> KanbanItem:
    """Family event. Keeps its clock times unless it is all-day."""
    day = local_day(event.start_time, now) if event.start_time else None
    is_past = bool(day and day < today_for(now))
    timed = not event.is_all_day

    return KanbanItem(
        id=f"event-{event.id}",
        type=ItemType.EVENT,
        source_id=event.id,
        title=event.title,
        description=event.description or None,
        date=day,
        start_time=event.start_time if timed else None,
        end_time=event.end_time if timed else None,
        is_all_day=event.is_all_day,
        priority=Priority.NONE,
        is_overdue=False,
        is_past=is_past,
        color=event.color or (event.assignee.color if event.assignee else None),
        icon=event.icon,
        location=event.location,
        assignee=event.assignee,
        source=event,
    )


def transform_external_event(event: ExternalEventRecord, now: datetime) -> KanbanItem:
    """Synced calendar event. Always read-only."""
    day = local_day(event.start_time, now) if event.start_time else None
    is_past = bool(day and day < today_for(now))
    timed = not event.is_all_day

    meta = {}
    if event.calendar_name:
        meta["calendar_name"] = event.calendar_name

    return KanbanItem(
        id=f"external-{event.id}",
        type=ItemType.EXTERNAL,
        source_id=event.id,
        title=event.title,
        description=event.description or None,
        date=day,
        start_time=event.start_time if timed else None,
        end_time=event.end_time if timed else None,
        is_all_day=event.is_all_day,
        priority=Priority.NONE,
        is_overdue=False,
        is_past=is_past,
        color=event.color or event.calendar_color,
        location=event.location,
        meta=meta,
        source=event,
    )


def transform_birthday(birthday: BirthdayRecord, now: datetime) -> KanbanItem:
    day = birthday.display_date
    is_past = bool(day and day < today_for(now))

    meta = {}
    if birthday.age_turning is not None:
        meta["age_turning"] = birthday.age_turning

    return KanbanItem(
        id=f"birthday-{birthday.source_type}-{birthday.source_id}",
        type=ItemType.BIRTHDAY,
        source_id=birthday.source_id,
        title=f"🎂 {birthday.name}'s Birthday",
        date=day,
        is_all_day=True,
        priority=Priority.NONE,
        is_overdue=False,
        is_past=is_past,
        icon="🎂",
        meta=meta,
        source=birthday,
    )


def build_items(snapshot: Snapshot, now: datetime, filters: Optional[KanbanFilters] = None) -> List[KanbanItem]:
    """Flatten a snapshot into items, skipping types the filters exclude."""
    filters = filters or KanbanFilters()
    items: List[KanbanItem] = []

    if filters.includes(ItemType.TASK):
        items.extend(transform_task(t, now) for t in snapshot.tasks)
    if filters.includes(ItemType.EVENT):
        items.extend(transform_event(e, now) for e in snapshot.events)
    if filters.includes(ItemType.EXTERNAL):
        items.extend(transform_external_event(e, now) for e in snapshot.external_events)
    if filters.includes(ItemType.BIRTHDAY):
        items.extend(transform_birthday(b, now) for b in snapshot.birthdays)

    logger.debug(f"Built {len(items)} board items from snapshot")
    return items
