"""SQLAlchemy snapshot store for EventMet."""

import json
import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from ..models import MetricsSnapshot, empty_snapshot

logger = logging.getLogger(__name__)

# JSON columns are TEXT so key order survives a round trip; tie-breaks in the
# query functions depend on it.
EVENT_METRICS_DDL = """
CREATE TABLE IF NOT EXISTS event_metrics (
    event_id VARCHAR(36) PRIMARY KEY,
    tenant_id VARCHAR(36) NOT NULL,
    page_views INTEGER NOT NULL DEFAULT 0 CHECK (page_views >= 0),
    total_slide_downloads INTEGER NOT NULL DEFAULT 0 CHECK (total_slide_downloads >= 0),
    unique_visitors TEXT NOT NULL DEFAULT '{}',
    per_slide_downloads TEXT NOT NULL DEFAULT '{}',
    per_speech_downloads TEXT NOT NULL DEFAULT '{}',
    geographic_data TEXT NOT NULL DEFAULT '{}',
    device_types TEXT NOT NULL DEFAULT '{}',
    access_timeline TEXT NOT NULL DEFAULT '[]',
    updated_at VARCHAR(64)
)
"""

_JSON_OBJECT_COLUMNS = (
    "unique_visitors",
    "per_slide_downloads",
    "per_speech_downloads",
    "geographic_data",
    "device_types",
)


def create_event_metrics_table(bind: Union[Session, Connection]) -> None:
    bind.execute(text(EVENT_METRICS_DDL))


class SQLAlchemySnapshotStore:
    """Reads and writes ``event_metrics`` rows and maps them to snapshots."""

    def __init__(self, db: Session, autocommit: bool = True):
        self.db = db
        self.autocommit = autocommit

    def get(self, event_id: str) -> Optional[MetricsSnapshot]:
        row = self.db.execute(
            text(
                """
                SELECT event_id, tenant_id, page_views, total_slide_downloads,
                       unique_visitors, per_slide_downloads, per_speech_downloads,
                       geographic_data, device_types, access_timeline, updated_at
                FROM event_metrics
                WHERE event_id = :event_id
                """
            ),
            {"event_id": event_id},
        ).fetchone()
        if row is None:
            return None

        data: Dict[str, Any] = {
            "event_id": row.event_id,
            "tenant_id": row.tenant_id,
            "page_views": row.page_views,
            "total_slide_downloads": row.total_slide_downloads,
            "access_timeline": _parse_json(row.access_timeline, list),
            "updated_at": row.updated_at,
        }
        for column in _JSON_OBJECT_COLUMNS:
            data[column] = _parse_json(getattr(row, column), dict)
        return MetricsSnapshot.from_dict(data)

    def create(self, event_id: str, tenant_id: str) -> MetricsSnapshot:
        existing = self.get(event_id)
        if existing is not None:
            return existing

        snapshot = empty_snapshot(event_id, tenant_id)
        self.db.execute(
            text(
                """
                INSERT INTO event_metrics (event_id, tenant_id)
                VALUES (:event_id, :tenant_id)
                """
            ),
            {"event_id": event_id, "tenant_id": tenant_id},
        )
        self._commit()
        logger.info("Initialized event metrics", extra={"event_id": event_id})
        return snapshot

    def put(self, snapshot: MetricsSnapshot) -> None:
        params = _row_params(snapshot)
        result = self.db.execute(
            text(
                """
                UPDATE event_metrics
                SET page_views = :page_views,
                    total_slide_downloads = :total_slide_downloads,
                    unique_visitors = :unique_visitors,
                    per_slide_downloads = :per_slide_downloads,
                    per_speech_downloads = :per_speech_downloads,
                    geographic_data = :geographic_data,
                    device_types = :device_types,
                    access_timeline = :access_timeline,
                    updated_at = :updated_at
                WHERE event_id = :event_id
                """
            ),
            params,
        )
        if result.rowcount == 0:
            self.db.execute(
                text(
                    """
                    INSERT INTO event_metrics (
                        event_id, tenant_id, page_views, total_slide_downloads,
                        unique_visitors, per_slide_downloads, per_speech_downloads,
                        geographic_data, device_types, access_timeline, updated_at
                    ) VALUES (
                        :event_id, :tenant_id, :page_views, :total_slide_downloads,
                        :unique_visitors, :per_slide_downloads, :per_speech_downloads,
                        :geographic_data, :device_types, :access_timeline, :updated_at
                    )
                    """
                ),
                params,
            )
        self._commit()

    def _commit(self) -> None:
        if self.autocommit:
            self.db.commit()


def _row_params(snapshot: MetricsSnapshot) -> Dict[str, Any]:
    row = snapshot.to_dict()
    for column in _JSON_OBJECT_COLUMNS + ("access_timeline",):
        row[column] = json.dumps(row[column])
    return row


def _parse_json(raw, expected_type):
    if raw is None:
        return expected_type()
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed JSON column value")
            return expected_type()
    if isinstance(raw, expected_type):
        return raw
    return expected_type()
