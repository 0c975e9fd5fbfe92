"""
Kanban board schema.

Four source record types feed the board:
  Task → KanbanItem(type=task)         editable, completable
  FamilyEvent → KanbanItem(type=event) editable
  ExternalEvent → KanbanItem(type=external)  read-only (synced calendar)
  Birthday → KanbanItem(type=birthday)       read-only

A KanbanItem is a single tagged record (discriminated by `type`), rebuilt from
fresh snapshots on every render and never mutated. Columns are derived too.
"""
from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, List, Dict, Any, Tuple


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Enums
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ItemType(Enum):
    """Discriminator for the unified item."""
    TASK = "task"
    EVENT = "event"          # Family event (native, editable)
    EXTERNAL = "external"    # Synced calendar event (read-only)
    BIRTHDAY = "birthday"    # Family member / contact birthday (read-only)

    @classmethod
    def from_str(cls, value: str) -> Optional["ItemType"]:
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            return None


class Priority(Enum):
    """Display priority. Always populated; non-tasks use NONE."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @classmethod
    def from_str(cls, value: str) -> "Priority":
        try:
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return cls.NONE

    @classmethod
    def from_number(cls, value: Optional[int]) -> "Priority":
        """Tasks store priority as 1 (low), 2 (medium), 3 (high); anything else is none."""
        return _PRIORITY_BY_NUMBER.get(value, cls.NONE)

    @property
    def number(self) -> int:
        return _NUMBER_BY_PRIORITY[self]

    @property
    def rank(self) -> int:
        """Sort rank, high first."""
        return _RANK_BY_PRIORITY[self]


_PRIORITY_BY_NUMBER = {1: Priority.LOW, 2: Priority.MEDIUM, 3: Priority.HIGH}
_NUMBER_BY_PRIORITY = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1, Priority.NONE: 0}
_RANK_BY_PRIORITY = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2, Priority.NONE: 3}


class TaskStatus(Enum):
    """Task workflow states (also the status-mode column ids)."""
    INBOX = "inbox"
    ACTIVE = "active"
    WAITING_FOR = "waiting_for"
    SOMEDAY = "someday"
    DONE = "done"

    @classmethod
    def from_str(cls, value: str) -> "TaskStatus":
        try:
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return cls.INBOX

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in {s.value for s in cls}


class GroupBy(Enum):
    """How the board organizes its columns."""
    TIME = "time"
    STATUS = "status"
    PRIORITY = "priority"
    TAG = "tag"

    @classmethod
    def from_str(cls, value: str) -> "GroupBy":
        try:
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return cls.TIME


class TimeScope(Enum):
    """Outer date window used to bound fetched records."""
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @classmethod
    def from_str(cls, value: str) -> "TimeScope":
        try:
            return cls[value.upper()]
        except (KeyError, AttributeError):
            return cls.WEEK


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Parsing helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (or pass through a datetime). Bad input → None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    try:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date. Bad input → None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _isoformat(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Source records (read-only snapshots from the datastore)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass(frozen=True)
class Assignee:
    id: str
    name: str
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Assignee"]:
        if not data or not data.get("id"):
            return None
        return cls(id=str(data["id"]), name=data.get("name") or "", color=data.get("color"))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass(frozen=True)
class ProjectRef:
    id: str
    title: str
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ProjectRef"]:
        if not data or not data.get("id"):
            return None
        return cls(id=str(data["id"]), title=data.get("title") or "", color=data.get("color"))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "color": self.color}


@dataclass
class TaskRecord:
    """A household task as stored."""
    id: str
    title: str
    description: Optional[str] = None
    status: Optional[str] = None          # see TaskStatus; None means never triaged
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    priority: Optional[int] = None        # 1=low 2=medium 3=high, 0/None=none
    tags: List[str] = field(default_factory=list)
    assigned_to_id: Optional[str] = None
    project_id: Optional[str] = None
    goal_id: Optional[str] = None
    assignee: Optional[Assignee] = None
    project: Optional[ProjectRef] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        """Deserialize from a row/dict. Joined `assigned_to` and `project` dicts are optional."""
        try:
            priority = int(data["priority"]) if data.get("priority") is not None else None
        except (TypeError, ValueError):
            priority = None
        tags = data.get("tags") or []
        if not isinstance(tags, (list, tuple)):
            tags = []
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            description=data.get("description") or None,
            status=data.get("status") or None,
            due_date=parse_date(data.get("due_date")),
            completed_at=parse_datetime(data.get("completed_at")),
            priority=priority,
            tags=[str(t) for t in tags if str(t).strip()],
            assigned_to_id=data.get("assigned_to_id"),
            project_id=data.get("project_id"),
            goal_id=data.get("goal_id"),
            assignee=Assignee.from_dict(data.get("assigned_to")),
            project=ProjectRef.from_dict(data.get("project")),
        )


@dataclass
class EventRecord:
    """A family calendar event (owned by this app, editable)."""
    id: str
    title: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_all_day: bool = False
    description: Optional[str] = None
    location: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    assignee: Optional[Assignee] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventRecord":
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            start_time=parse_datetime(data.get("start_time")),
            end_time=parse_datetime(data.get("end_time")),
            is_all_day=bool(data.get("is_all_day", False)),
            description=data.get("description") or None,
            location=data.get("location") or None,
            color=data.get("color") or None,
            icon=data.get("icon") or None,
            assignee=Assignee.from_dict(data.get("assignee")),
        )


@dataclass
class ExternalEventRecord:
    """An event synced from an external calendar subscription."""
    id: str
    title: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_all_day: bool = False
    description: Optional[str] = None
    location: Optional[str] = None
    color: Optional[str] = None
    calendar_name: Optional[str] = None
    calendar_color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExternalEventRecord":
        subscription = data.get("subscription") or {}
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            start_time=parse_datetime(data.get("start_time")),
            end_time=parse_datetime(data.get("end_time")),
            is_all_day=bool(data.get("is_all_day", False)),
            description=data.get("description") or None,
            location=data.get("location") or None,
            color=data.get("color") or None,
            calendar_name=data.get("calendar_name") or subscription.get("calendar_name"),
            calendar_color=data.get("calendar_color") or subscription.get("calendar_color"),
        )


@dataclass
class BirthdayRecord:
    """One birthday occurrence inside a queried date range."""
    source_type: str            # "family_member" or "contact"
    source_id: str
    name: str
    birthday_date: Optional[date] = None   # original date of birth
    display_date: Optional[date] = None    # the occurrence inside the range
    age_turning: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BirthdayRecord":
        try:
            age = int(data["age_turning"]) if data.get("age_turning") is not None else None
        except (TypeError, ValueError):
            age = None
        return cls(
            source_type=data.get("source_type") or "family_member",
            source_id=str(data.get("source_id", "")),
            name=data.get("name") or "",
            birthday_date=parse_date(data.get("birthday_date")),
            display_date=parse_date(data.get("display_date")),
            age_turning=age,
        )


@dataclass
class Snapshot:
    """Everything fetched for one render."""
    tasks: List[TaskRecord] = field(default_factory=list)
    events: List[EventRecord] = field(default_factory=list)
    external_events: List[ExternalEventRecord] = field(default_factory=list)
    birthdays: List[BirthdayRecord] = field(default_factory=list)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Unified item
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


# (editable, completable) per type. Never derived from record data.
CAPABILITIES: Dict[ItemType, Tuple[bool, bool]] = {
    ItemType.TASK: (True, True),
    ItemType.EVENT: (True, False),
    ItemType.EXTERNAL: (False, False),
    ItemType.BIRTHDAY: (False, False),
}


@dataclass(frozen=True)
class KanbanItem:
    """Unified board item wrapping one source record."""

    id: str                         # "{type}-{source_id}"
    type: ItemType
    source_id: str
    title: str
    description: Optional[str] = None

    # Temporal
    date: Optional[date] = None
    start_time: Optional[datetime] = None   # timed, non-all-day items only
    end_time: Optional[datetime] = None
    is_all_day: bool = True

    # Classification
    status: Optional[str] = None            # tasks only
    priority: Priority = Priority.NONE
    is_completed: bool = False
    is_overdue: bool = False                # tasks only
    is_past: bool = False                   # events/external/birthdays only

    # Display hints
    color: Optional[str] = None
    icon: Optional[str] = None
    location: Optional[str] = None
    assignee: Optional[Assignee] = None
    project: Optional[ProjectRef] = None
    tags: Optional[Tuple[str, ...]] = None  # tasks only
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)

    source: Any = field(default=None, repr=False, compare=False)

    @property
    def is_task(self) -> bool:
        return self.type is ItemType.TASK

    @property
    def is_editable(self) -> bool:
        return CAPABILITIES[self.type][0]

    @property
    def is_completable(self) -> bool:
        return CAPABILITIES[self.type][1]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view (the source record is not included)."""
        return {
            "id": self.id,
            "type": self.type.value,
            "source_id": self.source_id,
            "title": self.title,
            "description": self.description,
            "date": _isoformat(self.date),
            "start_time": _isoformat(self.start_time),
            "end_time": _isoformat(self.end_time),
            "is_all_day": self.is_all_day,
            "status": self.status,
            "priority": self.priority.value,
            "is_completed": self.is_completed,
            "is_overdue": self.is_overdue,
            "is_past": self.is_past,
            "is_editable": self.is_editable,
            "is_completable": self.is_completable,
            "color": self.color,
            "icon": self.icon,
            "location": self.location,
            "assignee": self.assignee.to_dict() if self.assignee else None,
            "project": self.project.to_dict() if self.project else None,
            "tags": list(self.tags) if self.tags else [],
            "meta": dict(self.meta),
        }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Columns
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day interval."""
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class Column:
    """A board column holding ordered items."""
    id: str
    title: str
    color: Optional[str] = None
    icon: Optional[str] = None
    items: List[KanbanItem] = field(default_factory=list)
    accepts_drop: bool = True
    date_range: Optional[DateRange] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "color": self.color,
            "icon": self.icon,
            "accepts_drop": self.accepts_drop,
            "date_range": self.date_range.to_dict() if self.date_range else None,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class ColumnDef:
    """Static column definition; `build()` makes a fresh Column."""
    id: str
    title: str
    color: str
    icon: str
    accepts_drop: bool = True

    def build(self, date_range: Optional[DateRange] = None) -> Column:
        return Column(
            id=self.id,
            title=self.title,
            color=self.color,
            icon=self.icon,
            accepts_drop=self.accepts_drop,
            date_range=date_range,
        )


# Past holds events/birthdays that already happened (neutral history).
# Overdue holds tasks that were not done (actionable). Nothing can be dropped into Past.
TIME_COLUMNS: Tuple[ColumnDef, ...] = (
    ColumnDef("past", "Past", "neutral", "📜", accepts_drop=False),
    ColumnDef("overdue", "Overdue", "red", "⚠️"),
    ColumnDef("today", "Today", "blue", "☀️"),
    ColumnDef("tomorrow", "Tomorrow", "indigo", "📅"),
    ColumnDef("this-week", "This Week", "purple", "📆"),
    ColumnDef("later", "Later", "neutral", "🔮"),
    ColumnDef("done", "Done", "green", "✅"),
)

STATUS_COLUMNS: Tuple[ColumnDef, ...] = (
    ColumnDef("inbox", "Inbox", "neutral", "📥"),
    ColumnDef("active", "Active", "blue", "🎯"),
    ColumnDef("waiting_for", "Waiting For", "amber", "⏳"),
    ColumnDef("someday", "Someday", "purple", "✨"),
    ColumnDef("done", "Done", "green", "✅"),
)

PRIORITY_COLUMNS: Tuple[ColumnDef, ...] = (
    ColumnDef("high", "High Priority", "red", "🔴"),
    ColumnDef("medium", "Medium Priority", "amber", "🟡"),
    ColumnDef("low", "Low Priority", "blue", "🔵"),
    ColumnDef("none", "No Priority", "neutral", "⚪"),
)

UNTAGGED_COLUMN = ColumnDef("untagged", "Untagged", "neutral", "📋")

TAG_COLUMN_COLORS: Tuple[str, ...] = ("blue", "green", "purple", "amber", "red", "indigo", "neutral")

TAG_COLUMN_PREFIX = "tag-"


def tag_column(tag: str, color_index: int) -> ColumnDef:
    """Column definition for one tag; color cycles through TAG_COLUMN_COLORS."""
    return ColumnDef(
        id=f"{TAG_COLUMN_PREFIX}{tag}",
        title=tag,
        color=TAG_COLUMN_COLORS[color_index % len(TAG_COLUMN_COLORS)],
        icon="🏷️",
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Board configuration (supplied per render)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


ALL_ITEM_TYPES: Tuple[ItemType, ...] = tuple(ItemType)


@dataclass(frozen=True)
class KanbanFilters:
    assignee_id: Optional[str] = None
    project_id: Optional[str] = None
    show_completed: bool = False
    include_types: Tuple[ItemType, ...] = ALL_ITEM_TYPES

    def includes(self, item_type: ItemType) -> bool:
        return item_type in self.include_types


@dataclass(frozen=True)
class KanbanConfig:
    group_by: GroupBy = GroupBy.TIME
    time_scope: TimeScope = TimeScope.WEEK
    filters: KanbanFilters = field(default_factory=KanbanFilters)
