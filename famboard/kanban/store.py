"""
Household datastore (SQLite).

Holds tasks, family events, synced external events, and the people whose
birthdays show on the board. The board only reads snapshots from here and
writes back single-record field updates (see moves.py).
"""
import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .moves import MoveIntent, NotApplicable, SetTaskStatus, CompleteTask
from .schema import (
    BirthdayRecord,
    EventRecord,
    ExternalEventRecord,
    KanbanFilters,
    TaskRecord,
    TaskStatus,
    parse_date,
)

logger = logging.getLogger(__name__)

# Tables an intent may touch, and whether they carry updated_at.
WRITABLE_TABLES = {"tasks": True, "family_events": True}


class StoreError(Exception):
    """A datastore read or write failed."""
    pass


class RecordNotFound(StoreError):
    """An update targeted a record id that does not exist."""
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


@contextmanager
def _session(db_path: str) -> Iterator[sqlite3.Connection]:
    """Open a connection with FK enforcement and WAL mode; commit or roll back; always close."""
    conn = None
    try:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        if conn is not None:
            conn.rollback()
        raise StoreError(str(e)) from e
    finally:
        if conn is not None:
            conn.close()


def _birthday_in_year(birthday: date, year: int) -> date:
    """The day a birthday falls on in `year` (29 Feb → 28 Feb in common years)."""
    try:
        return birthday.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


class HouseholdStore:
    """SQLite-backed store for the household records shown on the board."""

    def __init__(self, db_path: str = None):
        """Initialize store and create tables if needed."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "famboard" / "famboard.db")
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        """Create tables if they don't exist."""
        with _session(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS family_members (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    color TEXT,
                    birthday TEXT          -- YYYY-MM-DD
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS contacts (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    birthday TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    color TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT DEFAULT 'inbox',
                    due_date TEXT,         -- YYYY-MM-DD
                    completed_at TEXT,
                    priority INTEGER DEFAULT 0,
                    tags TEXT,             -- JSON list
                    assigned_to_id TEXT REFERENCES family_members(id),
                    project_id TEXT REFERENCES projects(id),
                    goal_id TEXT,
                    deleted_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS family_events (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    is_all_day INTEGER DEFAULT 0,
                    location TEXT,
                    color TEXT,
                    icon TEXT,
                    assigned_to TEXT REFERENCES family_members(id),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS calendar_subscriptions (
                    id TEXT PRIMARY KEY,
                    calendar_name TEXT NOT NULL,
                    calendar_color TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS external_events (
                    id TEXT PRIMARY KEY,
                    subscription_id TEXT REFERENCES calendar_subscriptions(id),
                    title TEXT NOT NULL,
                    description TEXT,
                    location TEXT,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    is_all_day INTEGER DEFAULT 0,
                    color TEXT
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due_date)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_start ON family_events(start_time)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_external_start ON external_events(start_time)")

    # ──────────────────────────────────────────
    # Writes (seeding / sync)
    # ──────────────────────────────────────────

    @staticmethod
    def _upsert(conn: sqlite3.Connection, table: str, row: Dict[str, Any]) -> None:
        columns = list(row)
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in ("id", "created_at"))
        conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            [row[c] for c in columns],
        )

    def save_member(self, member_id: str, name: str, color: str = None, birthday: date = None) -> None:
        with _session(self.db_path) as conn:
            self._upsert(conn, "family_members", {
                "id": member_id, "name": name, "color": color, "birthday": _iso(birthday),
            })

    def save_contact(self, contact_id: str, name: str, birthday: date = None) -> None:
        with _session(self.db_path) as conn:
            self._upsert(conn, "contacts", {"id": contact_id, "name": name, "birthday": _iso(birthday)})

    def save_project(self, project_id: str, title: str, color: str = None) -> None:
        with _session(self.db_path) as conn:
            self._upsert(conn, "projects", {"id": project_id, "title": title, "color": color})

    def save_subscription(self, subscription_id: str, calendar_name: str, calendar_color: str = None) -> None:
        with _session(self.db_path) as conn:
            self._upsert(conn, "calendar_subscriptions", {
                "id": subscription_id, "calendar_name": calendar_name, "calendar_color": calendar_color,
            })

    def save_task(self, task: TaskRecord) -> None:
        now = _now_iso()
        with _session(self.db_path) as conn:
            self._upsert(conn, "tasks", {
                "id": task.id,
                "title": task.title,
                "description": task.description,
                "status": task.status,
                "due_date": _iso(task.due_date),
                "completed_at": _iso(task.completed_at),
                "priority": task.priority if task.priority is not None else 0,
                "tags": json.dumps(list(task.tags or [])),
                "assigned_to_id": task.assigned_to_id,
                "project_id": task.project_id,
                "goal_id": task.goal_id,
                "created_at": now,
                "updated_at": now,
            })

    def save_event(self, event: EventRecord, assigned_to: str = None) -> None:
        if event.start_time is None:
            raise StoreError(f"Event {event.id} has no start time")
        now = _now_iso()
        with _session(self.db_path) as conn:
            self._upsert(conn, "family_events", {
                "id": event.id,
                "title": event.title,
                "description": event.description,
                "start_time": event.start_time.isoformat(),
                "end_time": _iso(event.end_time),
                "is_all_day": 1 if event.is_all_day else 0,
                "location": event.location,
                "color": event.color,
                "icon": event.icon,
                "assigned_to": assigned_to or (event.assignee.id if event.assignee else None),
                "created_at": now,
                "updated_at": now,
            })

    def save_external_event(self, event: ExternalEventRecord, subscription_id: str = None) -> None:
        if event.start_time is None:
            raise StoreError(f"External event {event.id} has no start time")
        with _session(self.db_path) as conn:
            self._upsert(conn, "external_events", {
                "id": event.id,
                "subscription_id": subscription_id,
                "title": event.title,
                "description": event.description,
                "location": event.location,
                "start_time": event.start_time.isoformat(),
                "end_time": _iso(event.end_time),
                "is_all_day": 1 if event.is_all_day else 0,
                "color": event.color,
            })

    def delete_task(self, task_id: str) -> None:
        """Soft delete: the task disappears from every fetch."""
        with _session(self.db_path) as conn:
            conn.execute(
                "UPDATE tasks SET deleted_at = ?, updated_at = ? WHERE id = ?",
                (_now_iso(), _now_iso(), task_id),
            )

    # ──────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────

    _TASK_SELECT = """
        SELECT t.*,
               m.name AS assignee_name, m.color AS assignee_color,
               p.title AS project_title, p.color AS project_color
        FROM tasks t
        LEFT JOIN family_members m ON m.id = t.assigned_to_id
        LEFT JOIN projects p ON p.id = t.project_id
    """

    _EVENT_SELECT = """
        SELECT e.*, m.name AS assignee_name, m.color AS assignee_color
        FROM family_events e
        LEFT JOIN family_members m ON m.id = e.assigned_to
    """

    def get_task(self, task_id: str) -> Optional[TaskRecord]:
        with _session(self.db_path) as conn:
            row = conn.execute(
                self._TASK_SELECT + " WHERE t.id = ? AND t.deleted_at IS NULL", (task_id,)
            ).fetchone()
        return self._row_to_task(row) if row else None

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        with _session(self.db_path) as conn:
            row = conn.execute(self._EVENT_SELECT + " WHERE e.id = ?", (event_id,)).fetchone()
        return self._row_to_event(row) if row else None

    def fetch_tasks(self, since: date, filters: Optional[KanbanFilters] = None) -> List[TaskRecord]:
        """Live tasks due on/after `since` or undated, honoring the board filters."""
        filters = filters or KanbanFilters()
        clauses = ["t.deleted_at IS NULL", "(t.due_date >= ? OR t.due_date IS NULL)"]
        params: List[Any] = [since.isoformat()]
        if not filters.show_completed:
            clauses.append("(t.status IS NULL OR t.status != ?)")
            params.append(TaskStatus.DONE.value)
        if filters.assignee_id:
            clauses.append("t.assigned_to_id = ?")
            params.append(filters.assignee_id)
        if filters.project_id:
            clauses.append("t.project_id = ?")
            params.append(filters.project_id)

        sql = self._TASK_SELECT + " WHERE " + " AND ".join(clauses) + \
            " ORDER BY t.due_date IS NULL, t.due_date, t.id"
        with _session(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        logger.debug(f"Fetched {len(rows)} tasks since {since}")
        return [self._row_to_task(r) for r in rows]

    def fetch_events(self, start: date, end: date) -> List[EventRecord]:
        """Family events whose start falls in [start, end] (by stored calendar day)."""
        with _session(self.db_path) as conn:
            rows = conn.execute(
                self._EVENT_SELECT +
                " WHERE substr(e.start_time, 1, 10) BETWEEN ? AND ? ORDER BY e.start_time, e.id",
                (start.isoformat(), end.isoformat()),
            ).fetchall()
        logger.debug(f"Fetched {len(rows)} family events for {start}..{end}")
        return [self._row_to_event(r) for r in rows]

    def fetch_external_events(self, start: date, end: date) -> List[ExternalEventRecord]:
        with _session(self.db_path) as conn:
            rows = conn.execute("""
                SELECT x.*, s.calendar_name, s.calendar_color
                FROM external_events x
                LEFT JOIN calendar_subscriptions s ON s.id = x.subscription_id
                WHERE substr(x.start_time, 1, 10) BETWEEN ? AND ?
                ORDER BY x.start_time, x.id
            """, (start.isoformat(), end.isoformat())).fetchall()
        logger.debug(f"Fetched {len(rows)} external events for {start}..{end}")
        return [ExternalEventRecord.from_dict(dict(r)) for r in rows]

    def birthdays_in_range(self, start: date, end: date) -> List[BirthdayRecord]:
        """Every member/contact birthday occurring inside [start, end]."""
        with _session(self.db_path) as conn:
            people = [
                ("family_member", r) for r in
                conn.execute("SELECT id, name, birthday FROM family_members WHERE birthday IS NOT NULL")
            ] + [
                ("contact", r) for r in
                conn.execute("SELECT id, name, birthday FROM contacts WHERE birthday IS NOT NULL")
            ]

        birthdays = []
        for source_type, row in people:
            born = parse_date(row["birthday"])
            if born is None:
                logger.warning(f"Skipping unreadable birthday for {source_type} {row['id']}")
                continue
            for year in range(start.year, end.year + 1):
                occurs = _birthday_in_year(born, year)
                if start <= occurs <= end and year >= born.year:
                    birthdays.append(BirthdayRecord(
                        source_type=source_type,
                        source_id=row["id"],
                        name=row["name"],
                        birthday_date=born,
                        display_date=occurs,
                        age_turning=year - born.year,
                    ))
        birthdays.sort(key=lambda b: (b.display_date, b.name))
        return birthdays

    # ──────────────────────────────────────────
    # Board updates
    # ──────────────────────────────────────────

    def apply(self, intent: MoveIntent) -> bool:
        """
        Write one move intent to its source record.

        Returns False when there was nothing to write (NotApplicable).
        Raises RecordNotFound if the record is gone, StoreError on failure.
        """
        if isinstance(intent, NotApplicable) or intent.table is None:
            return False
        if intent.table not in WRITABLE_TABLES:
            raise StoreError(f"Intent {intent.kind} targets unknown table {intent.table!r}")

        changes = dict(intent.changes())
        if WRITABLE_TABLES[intent.table]:
            changes["updated_at"] = _now_iso()
        assignments = ", ".join(f"{column} = ?" for column in changes)

        try:
            with _session(self.db_path) as conn:
                cur = conn.execute(
                    f"UPDATE {intent.table} SET {assignments} WHERE id = ?",
                    [*changes.values(), intent.source_id],
                )
                updated = cur.rowcount
        except StoreError as e:
            logger.error(f"Failed to apply {intent.kind} to {intent.table}/{intent.source_id}: {e}")
            raise

        if updated == 0:
            raise RecordNotFound(f"{intent.table} record {intent.source_id} not found")
        logger.info(f"Applied {intent.kind} to {intent.table}/{intent.source_id}")
        return True

    def complete_task(self, task_id: str, now: datetime) -> bool:
        return self.apply(CompleteTask(item_id=f"task-{task_id}", source_id=task_id, completed_at=now))

    def uncomplete_task(self, task_id: str) -> bool:
        return self.apply(SetTaskStatus(item_id=f"task-{task_id}", source_id=task_id, status=TaskStatus.ACTIVE))

    # ──────────────────────────────────────────
    # Row conversion
    # ──────────────────────────────────────────

    def _row_to_task(self, row: sqlite3.Row) -> TaskRecord:
        data = dict(row)
        try:
            data["tags"] = json.loads(data["tags"]) if data.get("tags") else []
        except (json.JSONDecodeError, TypeError):
            data["tags"] = []
        if data.get("assigned_to_id"):
            data["assigned_to"] = {
                "id": data["assigned_to_id"],
                "name": data.get("assignee_name"),
                "color": data.get("assignee_color"),
            }
        if data.get("project_id"):
            data["project"] = {
                "id": data["project_id"],
                "title": data.get("project_title"),
                "color": data.get("project_color"),
            }
        return TaskRecord.from_dict(data)

    def _row_to_event(self, row: sqlite3.Row) -> EventRecord:
        data = dict(row)
        if data.get("assigned_to"):
            data["assignee"] = {
                "id": data["assigned_to"],
                "name": data.get("assignee_name"),
                "color": data.get("assignee_color"),
            }
        return EventRecord.from_dict(data)
