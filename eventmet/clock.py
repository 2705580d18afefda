"""Clock implementations used to stamp visitor and timeline entries."""

from datetime import datetime, timedelta, timezone
from typing import Optional


class SystemClock:
    """UTC wall clock."""

    def now(self) -> str:
        return datetime.now(timezone.utc).isoformat()


class FixedClock:
    """
    Deterministic clock for tests and replays.

    Every read returns ``start`` advanced by ``step`` times the number of
    previous reads.
    """

    def __init__(self, start: datetime, step: Optional[timedelta] = None):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._next = start
        self.step = step if step is not None else timedelta(0)

    def now(self) -> str:
        current = self._next
        self._next = current + self.step
        return current.isoformat()
