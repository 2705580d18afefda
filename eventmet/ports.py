"""Port definitions for snapshot persistence and time."""

from typing import Optional, Protocol

from .models import MetricsSnapshot


class SnapshotStore(Protocol):
    """Repository interface that adapters can implement for any backend."""

    def get(self, event_id: str) -> Optional[MetricsSnapshot]:
        """Return the stored snapshot for an event, or None."""

    def create(self, event_id: str, tenant_id: str) -> MetricsSnapshot:
        """Store an empty snapshot unless one exists; return the stored one."""

    def put(self, snapshot: MetricsSnapshot) -> None:
        """Durably replace the stored snapshot for ``snapshot.event_id``."""


class Clock(Protocol):
    def now(self) -> str:
        """Return the current instant as an ISO-8601 string."""
