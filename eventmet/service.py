"""Application service orchestrating validation, the update engine and a store."""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Union

from .clock import SystemClock
from .engine import download_delta, page_view_delta
from .errors import SnapshotNotFoundError
from .models import MetricsDelta, MetricsSnapshot, Tier
from .ports import Clock, SnapshotStore
from .projection import FreeView, MetricsView, project, resolve_tier
from .queries import compute_engagement_summary, empty_engagement_summary
from .validation import validate_create_metrics, validate_download, validate_page_view

logger = logging.getLogger(__name__)


class MetricsService:
    """
    Facade that records interactions and serves tier-gated metrics.

    Read-modify-write cycles are serialized per event with an in-process
    lock. Deployments with several worker processes must also serialize in
    the store.
    """

    def __init__(
        self,
        store: SnapshotStore,
        clock: Optional[Clock] = None,
        top_country_limit: int = 5,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.top_country_limit = top_country_limit
        self._locks: Dict[str, "_EventLock"] = {}
        self._locks_guard = threading.Lock()

    def initialize_metrics(self, cmd: Any) -> MetricsSnapshot:
        command = validate_create_metrics(cmd)
        with self._event_lock(command.event_id):
            return self.store.create(command.event_id, command.tenant_id)

    def track_page_view(self, cmd: Any, audit: bool = True) -> MetricsSnapshot:
        command = validate_page_view(cmd)
        with self._event_lock(command.event_id):
            current = self._load(command.event_id)
            delta = page_view_delta(current, command, self.clock, audit=audit)
            return self._commit(current, delta)

    def track_download(self, cmd: Any, audit: bool = True) -> MetricsSnapshot:
        command = validate_download(cmd)
        with self._event_lock(command.event_id):
            current = self._load(command.event_id)
            delta = download_delta(current, command, self.clock, audit=audit)
            return self._commit(current, delta)

    def get_metrics(self, event_id: str, tier: Union[Tier, str]) -> MetricsView:
        resolved = resolve_tier(tier)
        return project(self._load(event_id), resolved)

    def get_raw_metrics(self, event_id: str) -> MetricsSnapshot:
        return self._load(event_id)

    def get_engagement_summary(self, event_id: str, tier: Union[Tier, str]) -> Dict:
        """Premium dashboard summary; free tenants get the basic view only."""
        resolved = resolve_tier(tier)
        snapshot = self.store.get(event_id)
        if snapshot is None:
            if resolved is Tier.FREE:
                return FreeView(page_views=0, total_slide_downloads=0).to_dict()
            return empty_engagement_summary(event_id)

        if resolved is Tier.FREE:
            return project(snapshot, resolved).to_dict()
        return compute_engagement_summary(snapshot, top_country_limit=self.top_country_limit)

    def _load(self, event_id: str) -> MetricsSnapshot:
        snapshot = self.store.get(event_id)
        if snapshot is None:
            raise SnapshotNotFoundError(event_id)
        return snapshot

    def _commit(self, current: MetricsSnapshot, delta: MetricsDelta) -> MetricsSnapshot:
        updated = delta.apply_to(current, updated_at=self.clock.now())
        self.store.put(updated)
        logger.debug(
            "Applied metrics delta: %s",
            ", ".join(delta.changed_fields()),
            extra={"event_id": current.event_id},
        )
        return updated

    @contextmanager
    def _event_lock(self, event_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(event_id)
            if entry is None:
                entry = self._locks[event_id] = _EventLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[event_id]


class _EventLock:
    """A per-event lock and the number of callers holding or awaiting it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0
