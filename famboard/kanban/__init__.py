# Kanban board: unified items, column grouping, ordering, and drag-drop moves
#
# Components:
#   schema.py       - Data model (KanbanItem, Column, source records, enums)
#   transformers.py - Task/event/external/birthday records -> KanbanItem
#   dates.py        - Time scope ranges and time-column dates
#   classifier.py   - Column assignment per group-by mode
#   tags.py         - Dynamic tag columns
#   sorter.py       - Deterministic ordering inside a column
#   moves.py        - Drop -> field-update intent
#   store.py        - SQLite datastore collaborator
#   board.py        - Pipeline + drop handling + subscribers
#   config.py       - YAML/env settings
