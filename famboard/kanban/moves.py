"""
Move resolver: drop gesture → field-update intent.

Given the dropped item, the destination column and the active group-by mode,
decide the single update to write to the item's source record:

  task  / time      done → CompleteTask; dated column → SetTaskDueDate (+reactivate)
  task  / status    SetTaskStatus (completion timestamp follows `done`)
  task  / priority  SetTaskPriority
  event / time      RescheduleEvent (same time of day, new date)
  anything else     NotApplicable (accepted, nothing to write)

Read-only items (synced events, birthdays) raise NotMovableError.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar, Dict, Optional

from .dates import date_for_column, today_for
from .schema import EventRecord, GroupBy, ItemType, KanbanItem, Priority, TaskStatus

logger = logging.getLogger(__name__)


class KanbanError(Exception):
    """Base class for board domain errors."""
    pass


class NotMovableError(KanbanError):
    """Raised when a drop targets an item that cannot be edited."""

    def __init__(self, item: KanbanItem):
        super().__init__("This item cannot be moved")
        self.item_id = item.id
        self.item_type = item.type


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Intents
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass(frozen=True)
class MoveIntent:
    """One targeted update against the record identified by `source_id`."""
    kind: ClassVar[str] = ""
    table: ClassVar[Optional[str]] = None

    item_id: str
    source_id: str

    def changes(self) -> Dict[str, Any]:
        """Column → new value, already in storage form."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "table": self.table,
            "item_id": self.item_id,
            "source_id": self.source_id,
            "changes": self.changes(),
        }


@dataclass(frozen=True)
class CompleteTask(MoveIntent):
    kind: ClassVar[str] = "complete_task"
    table: ClassVar[Optional[str]] = "tasks"

    completed_at: datetime

    def changes(self) -> Dict[str, Any]:
        return {"status": TaskStatus.DONE.value, "completed_at": _iso(self.completed_at)}


@dataclass(frozen=True)
class SetTaskDueDate(MoveIntent):
    """New due date; a task that was done is reactivated in the same write."""
    kind: ClassVar[str] = "set_task_due_date"
    table: ClassVar[Optional[str]] = "tasks"

    due_date: date
    reactivate: bool = False

    def changes(self) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"due_date": self.due_date.isoformat(), "completed_at": None}
        if self.reactivate:
            changes["status"] = TaskStatus.ACTIVE.value
        return changes


@dataclass(frozen=True)
class SetTaskStatus(MoveIntent):
    kind: ClassVar[str] = "set_task_status"
    table: ClassVar[Optional[str]] = "tasks"

    status: TaskStatus
    completed_at: Optional[datetime] = None

    def changes(self) -> Dict[str, Any]:
        return {"status": self.status.value, "completed_at": _iso(self.completed_at)}


@dataclass(frozen=True)
class SetTaskPriority(MoveIntent):
    kind: ClassVar[str] = "set_task_priority"
    table: ClassVar[Optional[str]] = "tasks"

    priority: int

    def changes(self) -> Dict[str, Any]:
        return {"priority": self.priority}


@dataclass(frozen=True)
class RescheduleEvent(MoveIntent):
    kind: ClassVar[str] = "reschedule_event"
    table: ClassVar[Optional[str]] = "family_events"

    new_start: datetime
    new_end: Optional[datetime] = None

    def changes(self) -> Dict[str, Any]:
        changes: Dict[str, Any] = {"start_time": self.new_start.isoformat()}
        if self.new_end is not None:
            changes["end_time"] = self.new_end.isoformat()
        return changes


@dataclass(frozen=True)
class NotApplicable(MoveIntent):
    """The move is accepted but there is no field to change."""
    kind: ClassVar[str] = "not_applicable"

    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Resolution
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _skip(item: KanbanItem, reason: str) -> NotApplicable:
    logger.info(f"Move of {item.id} not applicable: {reason}")
    return NotApplicable(item_id=item.id, source_id=item.source_id, reason=reason)


def _resolve_task_time(item: KanbanItem, to_column_id: str, now: datetime) -> MoveIntent:
    if to_column_id == "done":
        # Completing never rewrites the due date.
        return CompleteTask(item_id=item.id, source_id=item.source_id, completed_at=now)

    new_date = date_for_column(to_column_id, today_for(now))
    if new_date is None:
        return _skip(item, f"column {to_column_id!r} has no date to assign")

    return SetTaskDueDate(
        item_id=item.id,
        source_id=item.source_id,
        due_date=new_date,
        reactivate=item.is_completed,
    )


def _resolve_task_status(item: KanbanItem, to_column_id: str, now: datetime) -> MoveIntent:
    if not TaskStatus.is_valid(to_column_id):
        logger.warning(f"Drop target {to_column_id!r} is not a task status")
        return _skip(item, f"{to_column_id!r} is not a task status")

    status = TaskStatus(to_column_id)
    return SetTaskStatus(
        item_id=item.id,
        source_id=item.source_id,
        status=status,
        completed_at=now if status is TaskStatus.DONE else None,
    )


def _resolve_task_priority(item: KanbanItem, to_column_id: str) -> MoveIntent:
    return SetTaskPriority(
        item_id=item.id,
        source_id=item.source_id,
        priority=Priority.from_str(to_column_id).number,
    )


def _resolve_event_time(item: KanbanItem, to_column_id: str, now: datetime) -> MoveIntent:
    if to_column_id == "done":
        return _skip(item, "events cannot be completed")

    new_date = date_for_column(to_column_id, today_for(now))
    if new_date is None:
        return _skip(item, f"column {to_column_id!r} has no date to assign")

    source = item.source
    if not isinstance(source, EventRecord) or source.start_time is None:
        return _skip(item, "event has no start time")

    start = source.start_time
    if start.tzinfo is not None and now.tzinfo is not None:
        start = start.astimezone(now.tzinfo)
    # Same wall-clock time; a named zone picks the UTC offset of the new date.
    new_start = datetime.combine(new_date, start.time(), tzinfo=start.tzinfo)

    new_end = None
    end = source.end_time
    if end is not None and (end.tzinfo is None) == (start.tzinfo is None):
        new_end = new_start + (end - start)

    return RescheduleEvent(
        item_id=item.id,
        source_id=item.source_id,
        new_start=new_start,
        new_end=new_end,
    )


def resolve_move(item: KanbanItem, to_column_id: str, group_by: GroupBy, now: datetime) -> MoveIntent:
    """
    Translate a drop into exactly one intent.

    Raises NotMovableError for read-only items; every other combination
    resolves, possibly to NotApplicable.
    """
    if not item.is_editable:
        logger.warning(f"Rejected move of read-only item {item.id}")
        raise NotMovableError(item)

    logger.info(f"Resolving move of {item.id} to {to_column_id!r} ({group_by.value} mode)")

    if item.type is ItemType.TASK:
        if group_by is GroupBy.TIME:
            return _resolve_task_time(item, to_column_id, now)
        if group_by is GroupBy.STATUS:
            return _resolve_task_status(item, to_column_id, now)
        if group_by is GroupBy.PRIORITY:
            return _resolve_task_priority(item, to_column_id)
        return _skip(item, f"tasks have no field to change in {group_by.value} mode")

    if item.type is ItemType.EVENT and group_by is GroupBy.TIME:
        return _resolve_event_time(item, to_column_id, now)

    return _skip(item, f"{item.type.value} items have no field to change in {group_by.value} mode")
