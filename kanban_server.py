#!/usr/bin/env python3
"""
famboard Kanban Server
----------------------
JSON API over the household store: builds board columns on every request and
turns drops into single-record updates.

Usage:
    python kanban_server.py --config config.yaml
    FAMBOARD_DB=/tmp/famboard.db FAMBOARD_API_SECRET=... python kanban_server.py

API:
    GET  /api/health
    GET  /api/board?group_by=time&scope=week&assignee=&project=&show_completed=0&types=task,event
         → { columns, group_by, time_scope, range, stats }
    POST /api/move                       (X-API-Key)
         JSON body: { item_id, to_column, group_by, scope?, ...filters }
         → { moved, intent }
    POST /api/tasks/<task_id>/complete   (X-API-Key)
    POST /api/tasks/<task_id>/uncomplete (X-API-Key)
"""

import argparse
import hmac
import logging
import os
import sys
from datetime import datetime
from functools import wraps
from typing import Any, Dict

from flask import Flask, jsonify, request

from famboard.kanban.board import DropRejected, KanbanBoard, find_item
from famboard.kanban.config import Settings
from famboard.kanban.dates import time_scope_range
from famboard.kanban.moves import NotMovableError
from famboard.kanban.schema import (
    ALL_ITEM_TYPES,
    GroupBy,
    ItemType,
    KanbanConfig,
    KanbanFilters,
    TimeScope,
)
from famboard.kanban.store import HouseholdStore, RecordNotFound, StoreError

app = Flask(__name__)
logger = logging.getLogger("kanban_server")

TRUTHY = {"1", "true", "yes", "y", "on"}


# ── Config ───────────────────────────────────────────────────────────────────

def get_settings() -> Settings:
    return Settings.load()


def get_board() -> KanbanBoard:
    settings = get_settings()
    return KanbanBoard(HouseholdStore(settings.db_path), settings)


def _now(settings: Settings) -> datetime:
    """Current time in the household timezone."""
    return settings.now()


def _parse_config(args: Dict[str, Any], settings: Settings) -> KanbanConfig:
    """Board configuration from query args or a JSON body."""
    group_by = args.get("group_by")
    scope = args.get("scope")

    types_raw = args.get("types")
    if isinstance(types_raw, str):
        types_raw = [t for t in types_raw.split(",") if t.strip()]
    include_types = tuple(
        t for t in (ItemType.from_str(v) for v in (types_raw or [])) if t is not None
    ) or ALL_ITEM_TYPES

    show_completed = args.get("show_completed", False)
    if isinstance(show_completed, str):
        show_completed = show_completed.strip().lower() in TRUTHY

    return KanbanConfig(
        group_by=GroupBy.from_str(group_by) if group_by else settings.group_by,
        time_scope=TimeScope.from_str(scope) if scope else settings.time_scope,
        filters=KanbanFilters(
            assignee_id=args.get("assignee") or None,
            project_id=args.get("project") or None,
            show_completed=bool(show_completed),
            include_types=include_types,
        ),
    )


# ── Auth ─────────────────────────────────────────────────────────────────────

def require_api_key(f):
    """Decorator: reject requests without a valid X-API-Key header."""
    @wraps(f)
    def decorated(*args, **kwargs):
        secret = get_settings().api_secret
        if not secret:
            return jsonify({"error": "API secret not set"}), 503
        provided = request.headers.get("X-API-Key", "").strip()
        if not hmac.compare_digest(provided, secret):
            code = 401 if not provided else 403
            return jsonify({"error": "Unauthorized"}), code
        return f(*args, **kwargs)
    return decorated


@app.errorhandler(StoreError)
def handle_store_error(e):
    logger.error(f"Store failure: {e}")
    return jsonify({"error": "Storage failure"}), 500


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/api/health")
def api_health():
    return jsonify({"status": "ok"})


@app.route("/api/board")
def api_board():
    board = get_board()
    config = _parse_config(request.args.to_dict(), board.settings)
    now = _now(board.settings)
    columns = board.columns(config, now)

    items = {item.id: item for col in columns for item in col.items}
    stats = {
        "total": len(items),
        "overdue": sum(1 for item in items.values() if item.is_overdue),
        "by_column": {col.id: len(col.items) for col in columns},
    }

    return jsonify({
        "columns":    [col.to_dict() for col in columns],
        "group_by":   config.group_by.value,
        "time_scope": config.time_scope.value,
        "range":      time_scope_range(config.time_scope, now, board.settings.week_starts_on).to_dict(),
        "stats":      stats,
    })


@app.route("/api/move", methods=["POST"])
@require_api_key
def api_move():
    data = request.get_json(force=True, silent=True) or {}
    item_id = str(data.get("item_id", "")).strip()
    to_column = str(data.get("to_column", "")).strip()
    if not item_id or not to_column:
        return jsonify({"error": "item_id and to_column are required"}), 400

    board = get_board()
    config = _parse_config(data, board.settings)
    now = _now(board.settings)
    columns = board.columns(config, now)

    if find_item(columns, item_id) is None:
        return jsonify({"error": f"Item {item_id} not found"}), 404

    try:
        result = board.drop(columns, item_id, to_column, config.group_by, now)
    except NotMovableError as e:
        return jsonify({"error": str(e), "item_id": e.item_id}), 403
    except DropRejected as e:
        return jsonify({"error": str(e)}), 409
    except RecordNotFound as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "moved":  result.written if result else False,
        "intent": result.intent.to_dict() if result else None,
    })


@app.route("/api/tasks/<task_id>/complete", methods=["POST"])
@require_api_key
def api_complete_task(task_id):
    board = get_board()
    try:
        board.complete_task(task_id, _now(board.settings))
    except RecordNotFound as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"task_id": task_id, "status": "done"})


@app.route("/api/tasks/<task_id>/uncomplete", methods=["POST"])
@require_api_key
def api_uncomplete_task(task_id):
    try:
        get_board().uncomplete_task(task_id)
    except RecordNotFound as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"task_id": task_id, "status": "active"})


# ── Main ─────────────────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="famboard Kanban API server")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--host", help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, help="Port (overrides config)")
    args = parser.parse_args()

    settings = Settings.load(args.config)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [famboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if args.config:
        # Route handlers reload settings per request.
        os.environ["FAMBOARD_CONFIG"] = args.config

    if not settings.api_secret:
        logger.warning("FAMBOARD_API_SECRET not set: write endpoints will answer 503")

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info(f"Starting famboard API on {host}:{port} (db={settings.db_path})")
    app.run(host=host, port=port)


if __name__ == "__main__":
    main()
