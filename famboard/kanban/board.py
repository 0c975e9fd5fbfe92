"""
Board service: connects the datastore to the pure board pipeline.

  columns():  snapshot → items → columns (grouped + sorted), recomputed in full
  move():     item + destination → intent → one datastore write → "item_moved"
  drop():     the drag-gesture contract (find item, check target, then move)

Nothing is cached between calls; after a move the caller simply asks for
columns() again.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .classifier import group_items_into_columns
from .config import Settings
from .dates import fetch_windows
from .moves import KanbanError, MoveIntent, NotMovableError, resolve_move
from .schema import Column, GroupBy, KanbanConfig, KanbanItem, Snapshot
from .store import HouseholdStore
from .transformers import build_items

logger = logging.getLogger(__name__)


class DropRejected(KanbanError):
    """The drag target cannot take this drop (unknown item or non-accepting column)."""
    pass


@dataclass(frozen=True)
class MoveResult:
    """A resolved move and whether the store changed a record for it."""
    intent: MoveIntent
    written: bool


def find_item(columns: List[Column], item_id: str) -> Optional[KanbanItem]:
    for column in columns:
        for item in column.items:
            if item.id == item_id:
                return item
    return None


class KanbanBoard:
    """Builds board columns from the store and routes drops to updates."""

    def __init__(self, store: HouseholdStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings()
        self.subscribers: Dict[str, list] = {}  # event_type -> list of callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        self.subscribers.setdefault(event_type, []).append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers."""
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception(f"Error in {event_type} callback")

    # ──────────────────────────────────────────
    # Read path
    # ──────────────────────────────────────────

    def load_snapshot(self, config: KanbanConfig, now: datetime) -> Snapshot:
        """Fetch the four source collections for one render."""
        scope_range, task_since, event_since = fetch_windows(
            config.time_scope,
            now,
            task_lookback_days=self.settings.task_lookback_days,
            event_lookback_days=self.settings.event_lookback_days,
            week_starts_on=self.settings.week_starts_on,
        )
        return Snapshot(
            tasks=self.store.fetch_tasks(task_since, config.filters),
            events=self.store.fetch_events(event_since, scope_range.end),
            external_events=self.store.fetch_external_events(event_since, scope_range.end),
            birthdays=self.store.birthdays_in_range(scope_range.start, scope_range.end),
        )

    def items(self, config: KanbanConfig, now: datetime) -> List[KanbanItem]:
        return build_items(self.load_snapshot(config, now), now, config.filters)

    def columns(self, config: KanbanConfig, now: datetime) -> List[Column]:
        items = self.items(config, now)
        logger.debug(f"Grouping {len(items)} items by {config.group_by.value}")
        return group_items_into_columns(items, config.group_by, now, self.settings.week_starts_on)

    # ──────────────────────────────────────────
    # Write path
    # ──────────────────────────────────────────

    def move(self, item: KanbanItem, to_column_id: str, group_by: GroupBy, now: datetime) -> MoveResult:
        """
        Resolve and persist one move.

        NotMovableError is raised before anything is written. Store failures
        propagate; there is no local state to roll back.
        """
        intent = resolve_move(item, to_column_id, group_by, now)
        written = self.store.apply(intent)
        self._emit("item_moved", item_id=item.id, to_column=to_column_id, intent=intent, written=written)
        return MoveResult(intent=intent, written=written)

    def drop(
        self,
        columns: List[Column],
        item_id: str,
        to_column_id: str,
        group_by: GroupBy,
        now: datetime,
    ) -> Optional[MoveResult]:
        """
        Handle a finished drag on the currently rendered columns.

        Returns None when the drop lands back in the item's own column.
        Raises NotMovableError for read-only items and DropRejected for an
        unknown item or a column that does not accept drops.
        """
        item = find_item(columns, item_id)
        if item is None:
            raise DropRejected(f"Item {item_id} is not on the board")
        if not item.is_editable:
            raise NotMovableError(item)

        target = next((c for c in columns if c.id == to_column_id), None)
        if target is None or not target.accepts_drop:
            logger.warning(f"Column {to_column_id!r} does not accept drops")
            raise DropRejected(f"Column {to_column_id} does not accept drops")

        if any(i.id == item_id for i in target.items):
            logger.info(f"Dropped {item_id} into its own column, no change")
            return None

        return self.move(item, to_column_id, group_by, now)

    def complete_task(self, task_id: str, now: datetime) -> bool:
        written = self.store.complete_task(task_id, now)
        self._emit("task_completed", task_id=task_id)
        return written

    def uncomplete_task(self, task_id: str) -> bool:
        written = self.store.uncomplete_task(task_id)
        self._emit("task_uncompleted", task_id=task_id)
        return written
