"""Error types raised by EventMet."""

from typing import Any


class EventMetError(Exception):
    code = "eventmet_error"


class ValidationError(EventMetError, ValueError):
    """An incoming interaction command was malformed; nothing was mutated."""

    code = "validation_error"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class UnknownTierError(EventMetError, ValueError):
    code = "unknown_tier"

    def __init__(self, tier: Any):
        self.tier = tier
        super().__init__(f"Unknown subscription tier: {tier!r}")


class SnapshotNotFoundError(EventMetError, LookupError):
    code = "snapshot_not_found"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event metrics not found: {event_id}")
