"""Adapters for persisting EventMet snapshots."""

from .memory import InMemorySnapshotStore
from .sqlalchemy_store import SQLAlchemySnapshotStore, create_event_metrics_table

__all__ = ["InMemorySnapshotStore", "SQLAlchemySnapshotStore", "create_event_metrics_table"]
