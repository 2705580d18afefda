"""Core domain models for per-event engagement metrics."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

TIMELINE_LIMIT = 100


class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class ActorType(str, Enum):
    ORGANIZER = "organizer"
    PARTICIPANT = "participant"
    ANONYMOUS = "anonymous"
    ADMIN = "admin"


class Tier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


@dataclass(frozen=True)
class TimelineEntry:
    """A single access event kept in the bounded activity timeline."""

    timestamp: str
    actor_type: str
    action: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "timestamp": self.timestamp,
            "actor_type": self.actor_type,
            "action": self.action,
        }


@dataclass
class MetricsSnapshot:
    """
    Complete metrics state of one event.

    Counter mappings keep insertion order, which is the iteration order used
    by every tie-break in the query functions. ``unique_visitors`` maps a
    hashed visitor key to its last-seen timestamp and has no eviction policy.
    """

    event_id: str
    tenant_id: str
    page_views: int = 0
    total_slide_downloads: int = 0
    unique_visitors: Dict[str, str] = field(default_factory=dict)
    per_slide_downloads: Dict[str, int] = field(default_factory=dict)
    per_speech_downloads: Dict[str, int] = field(default_factory=dict)
    geographic_data: Dict[str, int] = field(default_factory=dict)
    device_types: Dict[str, int] = field(default_factory=dict)
    access_timeline: Tuple[TimelineEntry, ...] = ()
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "tenant_id": self.tenant_id,
            "page_views": self.page_views,
            "total_slide_downloads": self.total_slide_downloads,
            "unique_visitors": dict(self.unique_visitors),
            "per_slide_downloads": dict(self.per_slide_downloads),
            "per_speech_downloads": dict(self.per_speech_downloads),
            "geographic_data": dict(self.geographic_data),
            "device_types": dict(self.device_types),
            "access_timeline": [entry.to_dict() for entry in self.access_timeline],
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetricsSnapshot":
        return cls(
            event_id=str(data["event_id"]),
            tenant_id=str(data["tenant_id"]),
            page_views=int(data.get("page_views") or 0),
            total_slide_downloads=int(data.get("total_slide_downloads") or 0),
            unique_visitors=_str_mapping(data.get("unique_visitors")),
            per_slide_downloads=_int_mapping(data.get("per_slide_downloads")),
            per_speech_downloads=_int_mapping(data.get("per_speech_downloads")),
            geographic_data=_int_mapping(data.get("geographic_data")),
            device_types=_int_mapping(data.get("device_types")),
            access_timeline=_timeline(data.get("access_timeline")),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class MetricsDelta:
    """
    Field-level changes proposed for a snapshot.

    ``None`` leaves a field untouched. Mapping and timeline values replace the
    stored value wholesale.
    """

    page_views: Optional[int] = None
    total_slide_downloads: Optional[int] = None
    unique_visitors: Optional[Dict[str, str]] = None
    per_slide_downloads: Optional[Dict[str, int]] = None
    per_speech_downloads: Optional[Dict[str, int]] = None
    geographic_data: Optional[Dict[str, int]] = None
    device_types: Optional[Dict[str, int]] = None
    access_timeline: Optional[Tuple[TimelineEntry, ...]] = None

    def changed_fields(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def merge(self, other: "MetricsDelta") -> "MetricsDelta":
        """Combine with another delta computed from the same snapshot."""
        return replace(self, **{name: getattr(other, name) for name in other.changed_fields()})

    def apply_to(self, snapshot: MetricsSnapshot, updated_at: Optional[str] = None) -> MetricsSnapshot:
        """Return a new snapshot with this delta merged in."""
        changes: Dict[str, Any] = {name: getattr(self, name) for name in self.changed_fields()}
        if updated_at is not None:
            changes["updated_at"] = updated_at
        return replace(snapshot, **changes)


def empty_snapshot(event_id: str, tenant_id: str) -> MetricsSnapshot:
    """Return the zeroed snapshot an event starts with."""
    return MetricsSnapshot(event_id=event_id, tenant_id=tenant_id)


_TIMELINE_KEYS = ("timestamp", "actor_type", "action")


def _int_mapping(raw) -> Dict[str, int]:
    if not isinstance(raw, Mapping):
        return {}
    counts: Dict[str, int] = {}
    for key, value in raw.items():
        if isinstance(value, bool):
            continue
        try:
            count = int(value)
        except (TypeError, ValueError):
            continue
        if count >= 0:
            counts[str(key)] = count
    return counts


def _str_mapping(raw) -> Dict[str, str]:
    if not isinstance(raw, Mapping):
        return {}
    return {str(key): str(value) for key, value in raw.items() if value is not None}


def _timeline(raw) -> Tuple[TimelineEntry, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(
        TimelineEntry(**{key: str(entry[key]) for key in _TIMELINE_KEYS})
        for entry in raw
        if isinstance(entry, Mapping) and all(entry.get(key) is not None for key in _TIMELINE_KEYS)
    )
