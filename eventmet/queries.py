"""Read-only computations over a metrics snapshot."""

from typing import Dict, List, Optional, Tuple

from .models import DeviceType, MetricsSnapshot


def unique_visitor_count(snapshot: MetricsSnapshot) -> int:
    return len(snapshot.unique_visitors)


def most_downloaded_slide(snapshot: MetricsSnapshot) -> Optional[Tuple[str, int]]:
    """
    Return the slide with the highest download count.

    Ties go to the slide recorded first, following the mapping's insertion
    order. Returns None when nothing was downloaded.
    """
    best: Optional[Tuple[str, int]] = None
    for slide_id, count in snapshot.per_slide_downloads.items():
        if best is None or count > best[1]:
            best = (slide_id, count)
    return best


def slide_download_count(snapshot: MetricsSnapshot, slide_id: str) -> int:
    return snapshot.per_slide_downloads.get(slide_id, 0)


def speech_download_count(snapshot: MetricsSnapshot, speech_id: str) -> int:
    """Downloads of every slide attributed to ``speech_id``."""
    return snapshot.per_speech_downloads.get(speech_id, 0)


def top_countries(snapshot: MetricsSnapshot, limit: int = 5) -> List[Tuple[str, int]]:
    """Countries by visit count, descending; equal counts keep insertion order."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValueError(f"limit must be a non-negative integer, got {limit!r}")
    ranked = sorted(snapshot.geographic_data.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def device_breakdown(snapshot: MetricsSnapshot) -> Dict[str, int]:
    return {device.value: snapshot.device_types.get(device.value, 0) for device in DeviceType}


def compute_engagement_summary(snapshot: MetricsSnapshot, top_country_limit: int = 5) -> Dict:
    """Compute the premium dashboard summary for one event."""
    most_downloaded = most_downloaded_slide(snapshot)
    last_entry = snapshot.access_timeline[-1] if snapshot.access_timeline else None

    return {
        "event_id": snapshot.event_id,
        "updated_at": snapshot.updated_at,
        "overview": {
            "page_views": snapshot.page_views,
            "total_slide_downloads": snapshot.total_slide_downloads,
            "unique_visitors": unique_visitor_count(snapshot),
        },
        "downloads": {
            "most_downloaded_slide": (
                {"slide_id": most_downloaded[0], "count": most_downloaded[1]}
                if most_downloaded
                else None
            ),
            "slides_downloaded": len(snapshot.per_slide_downloads),
            "speeches_downloaded": len(snapshot.per_speech_downloads),
        },
        "audience": {
            "top_countries": [
                {"country_code": code, "count": count}
                for code, count in top_countries(snapshot, top_country_limit)
            ],
            "devices": device_breakdown(snapshot),
        },
        "activity": {
            "timeline_length": len(snapshot.access_timeline),
            "last_entry": last_entry.to_dict() if last_entry else None,
        },
    }


def empty_engagement_summary(event_id: Optional[str] = None) -> Dict:
    """Return empty engagement summary structure."""
    return {
        "event_id": event_id,
        "updated_at": None,
        "overview": {
            "page_views": 0,
            "total_slide_downloads": 0,
            "unique_visitors": 0,
        },
        "downloads": {
            "most_downloaded_slide": None,
            "slides_downloaded": 0,
            "speeches_downloaded": 0,
        },
        "audience": {
            "top_countries": [],
            "devices": {device.value: 0 for device in DeviceType},
        },
        "activity": {
            "timeline_length": 0,
            "last_entry": None,
        },
    }
