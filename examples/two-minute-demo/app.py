"""Two-minute EventMet demo: FastAPI backend over a snapshot store."""

import hashlib
from random import Random
from typing import Any, Dict
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker

from eventmet import MetricsService
from eventmet.adapters import InMemorySnapshotStore, SQLAlchemySnapshotStore, create_event_metrics_table
from eventmet.config import get_settings
from eventmet.errors import SnapshotNotFoundError, UnknownTierError, ValidationError
from eventmet.log_config import configure_logging

settings = get_settings()
logger = configure_logging(settings.ENV, settings.LOG_LEVEL)

RNG = Random(42)
DEMO_TENANT_ID = str(UUID(int=RNG.getrandbits(128), version=4))
DEMO_EVENT_ID = str(UUID(int=RNG.getrandbits(128), version=4))


def _build_store():
    if not settings.DATABASE_URL:
        return InMemorySnapshotStore()
    engine = create_engine(settings.DATABASE_URL)
    session = scoped_session(sessionmaker(bind=engine))
    create_event_metrics_table(session)
    session.commit()
    logger.info("Using SQL snapshot store")
    return SQLAlchemySnapshotStore(session)


app = FastAPI(title="EventMet Two-Minute Demo", version="0.1.0")
service = MetricsService(_build_store(), top_country_limit=settings.DEFAULT_TOP_COUNTRIES)


def _hash_client(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


def _seed_demo_event() -> None:
    service.initialize_metrics({"event_id": DEMO_EVENT_ID, "tenant_id": DEMO_TENANT_ID})

    speeches = [str(UUID(int=RNG.getrandbits(128), version=4)) for _ in range(3)]
    slides = {speech: [str(UUID(int=RNG.getrandbits(128), version=4)) for _ in range(2)] for speech in speeches}
    countries = ["IT", "US", "FR", "DE", "ES", "GB"]
    devices = ["mobile", "tablet", "desktop"]

    for idx in range(180):
        service.track_page_view(
            {
                "event_id": DEMO_EVENT_ID,
                "visitor_key": _hash_client(f"10.0.0.{idx % 60}"),
                "metadata": {
                    "country_code": RNG.choice(countries),
                    "device_type": RNG.choice(devices),
                },
            }
        )

    for _ in range(75):
        speech_id = RNG.choice(speeches)
        service.track_download(
            {
                "event_id": DEMO_EVENT_ID,
                "slide_id": RNG.choice(slides[speech_id]),
                "speech_id": speech_id,
                "actor_type": RNG.choice(["participant", "anonymous"]),
            }
        )


_seed_demo_event()


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "demo": "eventmet-two-minute", "event_id": DEMO_EVENT_ID}


@app.post("/api/events/{event_id}/views")
def track_view(event_id: str, payload: Dict[str, Any], request: Request) -> dict:
    command = {**payload, "event_id": event_id}
    if "visitor_key" not in command and request.client is not None:
        command["visitor_key"] = _hash_client(request.client.host)
    try:
        snapshot = service.track_page_view(command)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail={"field": exc.field, "reason": exc.reason})
    except SnapshotNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"page_views": snapshot.page_views}


@app.post("/api/events/{event_id}/downloads")
def track_download(event_id: str, payload: Dict[str, Any]) -> dict:
    try:
        snapshot = service.track_download({**payload, "event_id": event_id})
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail={"field": exc.field, "reason": exc.reason})
    except SnapshotNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"total_slide_downloads": snapshot.total_slide_downloads}


@app.get("/api/events/{event_id}/metrics")
def metrics(event_id: str, tier: str = "free") -> dict:
    try:
        return service.get_metrics(event_id, tier).to_dict()
    except UnknownTierError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SnapshotNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@app.get("/api/events/{event_id}/summary")
def summary(event_id: str, tier: str = "premium") -> dict:
    try:
        return service.get_engagement_summary(event_id, tier)
    except UnknownTierError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
