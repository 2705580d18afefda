"""In-process snapshot store for tests, demos and single-worker services."""

import copy
import logging
from typing import Dict, Optional

from ..models import MetricsSnapshot, empty_snapshot

logger = logging.getLogger(__name__)


class InMemorySnapshotStore:
    """Keeps one snapshot per event in a dict, copying on every read and write."""

    def __init__(self):
        self._snapshots: Dict[str, MetricsSnapshot] = {}

    def get(self, event_id: str) -> Optional[MetricsSnapshot]:
        snapshot = self._snapshots.get(event_id)
        return copy.deepcopy(snapshot) if snapshot is not None else None

    def create(self, event_id: str, tenant_id: str) -> MetricsSnapshot:
        if event_id not in self._snapshots:
            logger.debug("Creating empty metrics snapshot", extra={"event_id": event_id})
            self._snapshots[event_id] = empty_snapshot(event_id, tenant_id)
        return copy.deepcopy(self._snapshots[event_id])

    def put(self, snapshot: MetricsSnapshot) -> None:
        self._snapshots[snapshot.event_id] = copy.deepcopy(snapshot)

    def __len__(self) -> int:
        return len(self._snapshots)
