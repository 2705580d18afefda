"""EventMet - per-event engagement metrics with tier-gated views."""

from .engine import (
    add_device_type,
    add_geographic_data,
    add_timeline_entry,
    download_delta,
    increment_download,
    increment_page_view,
    page_view_delta,
)
from .errors import EventMetError, SnapshotNotFoundError, UnknownTierError, ValidationError
from .models import TIMELINE_LIMIT, MetricsDelta, MetricsSnapshot, Tier, TimelineEntry, empty_snapshot
from .projection import FreeView, PremiumView, project
from .queries import (
    compute_engagement_summary,
    device_breakdown,
    most_downloaded_slide,
    slide_download_count,
    speech_download_count,
    top_countries,
    unique_visitor_count,
)
from .service import MetricsService
from .validation import validate_create_metrics, validate_download, validate_page_view

__all__ = [
    "MetricsService",
    "MetricsSnapshot",
    "MetricsDelta",
    "TimelineEntry",
    "Tier",
    "TIMELINE_LIMIT",
    "empty_snapshot",
    "validate_create_metrics",
    "validate_page_view",
    "validate_download",
    "increment_page_view",
    "increment_download",
    "add_geographic_data",
    "add_device_type",
    "add_timeline_entry",
    "page_view_delta",
    "download_delta",
    "project",
    "FreeView",
    "PremiumView",
    "unique_visitor_count",
    "most_downloaded_slide",
    "slide_download_count",
    "speech_download_count",
    "top_countries",
    "device_breakdown",
    "compute_engagement_summary",
    "EventMetError",
    "ValidationError",
    "UnknownTierError",
    "SnapshotNotFoundError",
]

__version__ = "0.1.0"
