"""
Tests for record → KanbanItem transformers.
"""
from datetime import date, datetime, timezone

from famboard.kanban.schema import (
    Assignee,
    BirthdayRecord,
    EventRecord,
    ExternalEventRecord,
    ItemType,
    KanbanFilters,
    Priority,
    ProjectRef,
    Snapshot,
    TaskRecord,
)
from famboard.kanban.transformers import (
    build_items,
    transform_birthday,
    transform_event,
    transform_external_event,
    transform_task,
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tasks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_transform_task(now):
    task = TaskRecord(
        id="7",
        title="Pay rent",
        status="active",
        due_date=date(2024, 6, 11),
        priority=3,
        tags=["bills"],
        goal_id="g1",
        assignee=Assignee(id="m1", name="Alex"),
        project=ProjectRef(id="p1", title="Finance", color="green"),
    )
    item = transform_task(task, now)
    assert item.id == "task-7"
    assert item.type is ItemType.TASK
    assert item.date == date(2024, 6, 11)
    assert item.priority is Priority.HIGH
    assert item.is_overdue
    assert not item.is_past
    assert not item.is_completed
    assert item.is_all_day
    assert item.tags == ("bills",)
    assert item.color == "green"
    assert item.meta == {"goal_id": "g1"}
    assert item.source is task


def test_done_task_is_never_overdue(now):
    task = TaskRecord(id="1", title="Old", status="done", due_date=date(2024, 1, 1))
    item = transform_task(task, now)
    assert item.is_completed
    assert not item.is_overdue


def test_task_due_today_is_not_overdue(now):
    item = transform_task(TaskRecord(id="1", title="t", due_date=date(2024, 6, 12)), now)
    assert not item.is_overdue


def test_task_without_optional_fields(now):
    item = transform_task(TaskRecord(id="1", title="Bare"), now)
    assert item.date is None
    assert item.priority is Priority.NONE
    assert item.tags is None
    assert item.status is None
    assert item.description is None
    assert not item.is_overdue


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Events
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_transform_timed_event(now):
    event = EventRecord(
        id="e1",
        title="Dentist",
        start_time=datetime(2024, 6, 13, 15, 0, tzinfo=timezone.utc),
        end_time=datetime(2024, 6, 13, 16, 0, tzinfo=timezone.utc),
        location="Main St",
        assignee=Assignee(id="m1", name="Alex", color="#00f"),
    )
    item = transform_event(event, now)
    assert item.id == "event-e1"
    assert item.date == date(2024, 6, 13)
    assert item.start_time == event.start_time
    assert item.end_time == event.end_time
    assert not item.is_all_day
    assert item.color == "#00f"
    assert item.priority is Priority.NONE
    assert not item.is_overdue
    assert not item.is_past


def test_all_day_event_drops_clock_times(now):
    event = EventRecord(
        id="e2",
        title="Holiday",
        start_time=datetime(2024, 6, 10, 0, 0, tzinfo=timezone.utc),
        is_all_day=True,
        color="amber",
    )
    item = transform_event(event, now)
    assert item.is_all_day
    assert item.start_time is None
    assert item.end_time is None
    assert item.is_past
    assert not item.is_overdue
    assert item.color == "amber"


def test_transform_external_event(now):
    event = ExternalEventRecord(
        id="x1",
        title="Team game",
        start_time=datetime(2024, 6, 14, 17, 0, tzinfo=timezone.utc),
        calendar_name="Soccer",
        calendar_color="teal",
    )
    item = transform_external_event(event, now)
    assert item.id == "external-x1"
    assert item.type is ItemType.EXTERNAL
    assert item.color == "teal"
    assert item.meta == {"calendar_name": "Soccer"}
    assert not item.is_editable


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Birthdays
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_transform_birthday(now):
    birthday = BirthdayRecord(
        source_type="contact",
        source_id="c9",
        name="Grandma",
        birthday_date=date(1950, 6, 10),
        display_date=date(2024, 6, 10),
        age_turning=74,
    )
    item = transform_birthday(birthday, now)
    assert item.id == "birthday-contact-c9"
    assert item.title == "🎂 Grandma's Birthday"
    assert item.date == date(2024, 6, 10)
    assert item.is_past
    assert item.is_all_day
    assert item.meta == {"age_turning": 74}
    assert not item.is_editable


def test_member_and_contact_birthdays_do_not_collide(now):
    a = transform_birthday(BirthdayRecord("family_member", "1", "A", display_date=date(2024, 6, 14)), now)
    b = transform_birthday(BirthdayRecord("contact", "1", "B", display_date=date(2024, 6, 14)), now)
    assert a.id != b.id


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Snapshot
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _snapshot():
    return Snapshot(
        tasks=[TaskRecord(id="1", title="t")],
        events=[EventRecord(id="1", title="e", start_time=datetime(2024, 6, 12, 9, tzinfo=timezone.utc))],
        external_events=[ExternalEventRecord(id="1", title="x", start_time=datetime(2024, 6, 12, tzinfo=timezone.utc))],
        birthdays=[BirthdayRecord("family_member", "1", "Kid", display_date=date(2024, 6, 12))],
    )


def test_build_items_one_per_record(now):
    items = build_items(_snapshot(), now)
    assert [i.id for i in items] == ["task-1", "event-1", "external-1", "birthday-family_member-1"]
    assert len({i.id for i in items}) == len(items)


def test_build_items_respects_type_filter(now):
    filters = KanbanFilters(include_types=(ItemType.TASK, ItemType.BIRTHDAY))
    items = build_items(_snapshot(), now, filters)
    assert {i.type for i in items} == {ItemType.TASK, ItemType.BIRTHDAY}


def test_empty_snapshot(now):
    assert build_items(Snapshot(), now) == []


def test_overdue_and_past_are_exclusive(now):
    snapshot = _snapshot()
    snapshot.tasks.append(TaskRecord(id="2", title="late", due_date=date(2024, 6, 1)))
    snapshot.events.append(EventRecord(id="2", title="gone", start_time=datetime(2024, 6, 1, tzinfo=timezone.utc)))
    for item in build_items(snapshot, now):
        assert not (item.is_overdue and item.is_past)
        if item.is_overdue:
            assert item.type is ItemType.TASK
