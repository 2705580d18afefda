from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from eventmet.clock import FixedClock
from eventmet.engine import (
    add_device_type,
    add_geographic_data,
    add_timeline_entry,
    download_delta,
    increment_download,
    increment_page_view,
    page_view_delta,
)
from eventmet.models import TIMELINE_LIMIT, MetricsSnapshot, TimelineEntry, empty_snapshot
from eventmet.queries import unique_visitor_count
from eventmet.validation import validate_download, validate_page_view

EVENT_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"
TENANT_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
SLIDE_ID = "16fd2706-8baf-433b-82eb-8c7fada847da"
SPEECH_ID = "886313e1-3b8a-5372-9b90-0c9aee199e5d"
START = datetime(2026, 1, 8, 12, 0, tzinfo=timezone.utc)


def _snapshot() -> MetricsSnapshot:
    return empty_snapshot(EVENT_ID, TENANT_ID)


def test_download_on_empty_snapshot_creates_counters():
    snapshot = _snapshot()

    updated = increment_download(snapshot, "s1", "q1").apply_to(snapshot)

    assert updated.total_slide_downloads == 1
    assert updated.per_slide_downloads == {"s1": 1}
    assert updated.per_speech_downloads == {"q1": 1}


def test_download_always_touches_aggregate_and_slide_together():
    delta = increment_download(_snapshot(), "s1", "q1")

    assert set(delta.changed_fields()) == {
        "total_slide_downloads",
        "per_slide_downloads",
        "per_speech_downloads",
    }


def test_engine_never_mutates_input_snapshot():
    snapshot = _snapshot()
    snapshot.per_slide_downloads["s1"] = 2
    snapshot.total_slide_downloads = 2
    before = snapshot.to_dict()

    increment_download(snapshot, "s1", "q1")
    add_geographic_data(snapshot, "IT")
    add_device_type(snapshot, "mobile")
    increment_page_view(snapshot, "visitor", seen_at="2026-01-08T12:00:00+00:00")
    add_timeline_entry(snapshot, TimelineEntry("2026-01-08T12:00:00+00:00", "anonymous", "view"))

    assert snapshot.to_dict() == before


def test_page_view_without_visitor_only_counts_view():
    delta = increment_page_view(_snapshot())

    assert delta.changed_fields() == ["page_views"]
    assert delta.page_views == 1


def test_page_view_with_visitor_requires_timestamp():
    with pytest.raises(ValueError):
        increment_page_view(_snapshot(), visitor_key="abc")


def test_repeated_visitor_updates_last_seen():
    snapshot = _snapshot()
    snapshot = increment_page_view(snapshot, "v1", seen_at="2026-01-08T12:00:00+00:00").apply_to(snapshot)
    snapshot = increment_page_view(snapshot, "v1", seen_at="2026-01-08T13:00:00+00:00").apply_to(snapshot)

    assert snapshot.unique_visitors == {"v1": "2026-01-08T13:00:00+00:00"}
    assert snapshot.page_views == 2


def test_geographic_and_device_counters_start_at_zero():
    snapshot = _snapshot()
    snapshot = add_geographic_data(snapshot, "IT").apply_to(snapshot)
    snapshot = add_geographic_data(snapshot, "IT").apply_to(snapshot)
    snapshot = add_device_type(snapshot, "desktop").apply_to(snapshot)

    assert snapshot.geographic_data == {"IT": 2}
    assert snapshot.device_types == {"desktop": 1}


def test_add_device_type_rejects_unknown_category():
    with pytest.raises(ValueError):
        add_device_type(_snapshot(), "smartwatch")


def test_timeline_keeps_most_recent_hundred_entries():
    snapshot = _snapshot()
    for idx in range(101):
        entry = TimelineEntry(timestamp=f"t{idx}", actor_type="anonymous", action=f"a{idx}")
        snapshot = add_timeline_entry(snapshot, entry).apply_to(snapshot)

    assert len(snapshot.access_timeline) == 100
    assert snapshot.access_timeline[0].action == "a1"
    assert snapshot.access_timeline[-1].action == "a100"


def test_page_view_delta_applies_metadata_and_audit_entry():
    clock = FixedClock(START)
    command = validate_page_view(
        {
            "event_id": EVENT_ID,
            "visitor_key": "v1",
            "metadata": {"country_code": "US", "device_type": "mobile"},
        }
    )

    updated = page_view_delta(_snapshot(), command, clock).apply_to(_snapshot())

    assert updated.page_views == 1
    assert updated.unique_visitors == {"v1": START.isoformat()}
    assert updated.geographic_data == {"US": 1}
    assert updated.device_types == {"mobile": 1}
    assert updated.access_timeline == (
        TimelineEntry(timestamp=START.isoformat(), actor_type="anonymous", action="view"),
    )


def test_page_view_delta_without_audit_leaves_timeline():
    command = validate_page_view({"event_id": EVENT_ID})

    delta = page_view_delta(_snapshot(), command, FixedClock(START), audit=False)

    assert delta.changed_fields() == ["page_views"]


def test_download_delta_records_actor_in_timeline():
    command = validate_download(
        {"event_id": EVENT_ID, "slide_id": SLIDE_ID, "speech_id": SPEECH_ID, "actor_type": "organizer"}
    )

    updated = download_delta(_snapshot(), command, FixedClock(START)).apply_to(_snapshot())

    assert updated.total_slide_downloads == 1
    assert updated.per_slide_downloads == {SLIDE_ID: 1}
    assert updated.per_speech_downloads == {SPEECH_ID: 1}
    assert updated.access_timeline[-1] == TimelineEntry(
        timestamp=START.isoformat(), actor_type="organizer", action="download"
    )


def test_fixed_clock_advances_by_step():
    clock = FixedClock(datetime(2026, 1, 8, 12, 0), step=timedelta(seconds=30))

    assert clock.now() == "2026-01-08T12:00:00+00:00"
    assert clock.now() == "2026-01-08T12:00:30+00:00"


@given(st.lists(st.tuples(st.sampled_from(["s1", "s2", "s3"]), st.sampled_from(["q1", "q2"])), max_size=60))
def test_download_totals_match_per_slide_sum(downloads):
    snapshot = _snapshot()
    for slide_id, speech_id in downloads:
        snapshot = increment_download(snapshot, slide_id, speech_id).apply_to(snapshot)
        assert snapshot.total_slide_downloads == sum(snapshot.per_slide_downloads.values())
        assert snapshot.total_slide_downloads == sum(snapshot.per_speech_downloads.values())

    assert snapshot.total_slide_downloads == len(downloads)


@given(st.integers(min_value=0, max_value=250))
def test_timeline_bound_holds_for_any_sequence(count):
    snapshot = _snapshot()
    for idx in range(count):
        entry = TimelineEntry(timestamp=f"t{idx}", actor_type="anonymous", action=f"a{idx}")
        snapshot = add_timeline_entry(snapshot, entry).apply_to(snapshot)
        assert len(snapshot.access_timeline) <= TIMELINE_LIMIT

    expected = [f"a{idx}" for idx in range(max(0, count - TIMELINE_LIMIT), count)]
    assert [entry.action for entry in snapshot.access_timeline] == expected


@given(st.integers(min_value=1, max_value=40))
def test_same_visitor_counts_once(visits):
    clock = FixedClock(START, step=timedelta(minutes=1))
    command = validate_page_view({"event_id": EVENT_ID, "visitor_key": "hashed-visitor"})
    snapshot = _snapshot()
    for _ in range(visits):
        snapshot = page_view_delta(snapshot, command, clock, audit=False).apply_to(snapshot)

    assert unique_visitor_count(snapshot) == 1
    assert snapshot.page_views == visits
