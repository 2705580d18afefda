"""Pure functions that turn one interaction into a snapshot delta.

None of these functions mutate the snapshot they are given. Callers merge
the returned ``MetricsDelta`` and persist the result, serializing
read-modify-write cycles per event.
"""

from collections import deque
from typing import Dict, Optional, Union

from .models import (
    TIMELINE_LIMIT,
    ActorType,
    DeviceType,
    MetricsDelta,
    MetricsSnapshot,
    TimelineEntry,
)
from .ports import Clock
from .validation import DownloadCommand, PageViewCommand


def increment_page_view(
    snapshot: MetricsSnapshot,
    visitor_key: Optional[str] = None,
    seen_at: Optional[str] = None,
) -> MetricsDelta:
    """Count one page view and refresh the visitor's last-seen time."""
    if not visitor_key:
        return MetricsDelta(page_views=snapshot.page_views + 1)

    if seen_at is None:
        raise ValueError("seen_at is required when visitor_key is given")
    unique_visitors = dict(snapshot.unique_visitors)
    unique_visitors[visitor_key] = seen_at
    return MetricsDelta(page_views=snapshot.page_views + 1, unique_visitors=unique_visitors)


def increment_download(snapshot: MetricsSnapshot, slide_id: str, speech_id: str) -> MetricsDelta:
    """Count one slide download against the aggregate, the slide and its speech."""
    return MetricsDelta(
        total_slide_downloads=snapshot.total_slide_downloads + 1,
        per_slide_downloads=_incremented(snapshot.per_slide_downloads, slide_id),
        per_speech_downloads=_incremented(snapshot.per_speech_downloads, speech_id),
    )


def add_geographic_data(snapshot: MetricsSnapshot, country_code: str) -> MetricsDelta:
    return MetricsDelta(geographic_data=_incremented(snapshot.geographic_data, country_code))


def add_device_type(snapshot: MetricsSnapshot, device_type: Union[DeviceType, str]) -> MetricsDelta:
    key = DeviceType(device_type).value
    return MetricsDelta(device_types=_incremented(snapshot.device_types, key))


def add_timeline_entry(snapshot: MetricsSnapshot, entry: TimelineEntry) -> MetricsDelta:
    """Append an entry, dropping the oldest ones beyond ``TIMELINE_LIMIT``."""
    timeline = deque(snapshot.access_timeline, maxlen=TIMELINE_LIMIT)
    timeline.append(entry)
    return MetricsDelta(access_timeline=tuple(timeline))


def page_view_delta(
    snapshot: MetricsSnapshot,
    command: PageViewCommand,
    clock: Clock,
    audit: bool = True,
) -> MetricsDelta:
    """Build the full delta for a validated page view."""
    now = clock.now()
    delta = increment_page_view(snapshot, command.visitor_key, seen_at=now)

    metadata = command.metadata
    if metadata is not None:
        if metadata.country_code:
            delta = delta.merge(add_geographic_data(snapshot, metadata.country_code))
        if metadata.device_type is not None:
            delta = delta.merge(add_device_type(snapshot, metadata.device_type))

    if audit:
        entry = TimelineEntry(timestamp=now, actor_type=ActorType.ANONYMOUS.value, action="view")
        delta = delta.merge(add_timeline_entry(snapshot, entry))
    return delta


def download_delta(
    snapshot: MetricsSnapshot,
    command: DownloadCommand,
    clock: Clock,
    audit: bool = True,
) -> MetricsDelta:
    """Build the full delta for a validated slide download."""
    delta = increment_download(snapshot, command.slide_id, command.speech_id)
    if audit:
        entry = TimelineEntry(
            timestamp=clock.now(),
            actor_type=ActorType(command.actor_type).value,
            action="download",
        )
        delta = delta.merge(add_timeline_entry(snapshot, entry))
    return delta


def _incremented(counts: Dict[str, int], key: str) -> Dict[str, int]:
    updated = dict(counts)
    updated[key] = updated.get(key, 0) + 1
    return updated
