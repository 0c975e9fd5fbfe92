"""famboard: household organizer backend (kanban aggregation engine)."""

__version__ = "0.3.0"
