import pytest

from eventmet.errors import ValidationError
from eventmet.models import ActorType, DeviceType
from eventmet.validation import (
    PageViewCommand,
    validate_create_metrics,
    validate_download,
    validate_page_view,
)

EVENT_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"
TENANT_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
SLIDE_ID = "16fd2706-8baf-433b-82eb-8c7fada847da"
SPEECH_ID = "886313e1-3b8a-5372-9b90-0c9aee199e5d"


def test_validate_page_view_minimal_command():
    command = validate_page_view({"event_id": EVENT_ID})

    assert command.event_id == EVENT_ID
    assert command.visitor_key is None
    assert command.metadata is None


def test_validate_page_view_with_metadata():
    command = validate_page_view(
        {
            "event_id": EVENT_ID,
            "visitor_key": "a3f5c9",
            "metadata": {"user_agent": "Mozilla/5.0", "country_code": "Atlantis", "device_type": "tablet"},
        }
    )

    assert command.visitor_key == "a3f5c9"
    assert command.metadata.country_code == "Atlantis"
    assert command.metadata.device_type is DeviceType.TABLET


def test_validate_page_view_keeps_identifier_as_given():
    upper = EVENT_ID.upper()

    assert validate_page_view({"event_id": upper}).event_id == upper


def test_validate_page_view_requires_event_id():
    with pytest.raises(ValidationError) as exc_info:
        validate_page_view({"visitor_key": "abc"})

    assert exc_info.value.field == "event_id"


def test_validate_page_view_rejects_malformed_event_id():
    with pytest.raises(ValidationError) as exc_info:
        validate_page_view({"event_id": "not-a-uuid"})

    assert exc_info.value.field == "event_id"
    assert exc_info.value.reason == "Invalid event ID"


def test_identifiers_with_trailing_newline_are_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_page_view({"event_id": EVENT_ID + "\n"})
    assert exc_info.value.field == "event_id"

    with pytest.raises(ValidationError) as exc_info:
        validate_download(
            {"event_id": EVENT_ID, "slide_id": SLIDE_ID + "\n", "speech_id": SPEECH_ID, "actor_type": "admin"}
        )
    assert exc_info.value.field == "slide_id"


def test_validate_page_view_rejects_unknown_device_type():
    with pytest.raises(ValidationError) as exc_info:
        validate_page_view({"event_id": EVENT_ID, "metadata": {"device_type": "smartwatch"}})

    assert exc_info.value.field == "metadata.device_type"


def test_validate_page_view_rejects_non_mapping_input():
    with pytest.raises(ValidationError) as exc_info:
        validate_page_view("event")

    assert exc_info.value.field == "command"


def test_validate_page_view_passes_built_command_through():
    command = PageViewCommand(event_id=EVENT_ID)

    assert validate_page_view(command) is command


def test_validate_download_basic():
    command = validate_download(
        {
            "event_id": EVENT_ID,
            "slide_id": SLIDE_ID,
            "speech_id": SPEECH_ID,
            "actor_type": "participant",
            "metadata": {"visitor_key": "ff00", "user_agent": "curl/8.0"},
        }
    )

    assert command.slide_id == SLIDE_ID
    assert command.speech_id == SPEECH_ID
    assert command.actor_type is ActorType.PARTICIPANT
    assert command.metadata.visitor_key == "ff00"


def test_validate_download_rejects_unknown_actor_type():
    with pytest.raises(ValidationError) as exc_info:
        validate_download(
            {"event_id": EVENT_ID, "slide_id": SLIDE_ID, "speech_id": SPEECH_ID, "actor_type": "guest"}
        )

    assert exc_info.value.field == "actor_type"


def test_validate_download_reports_first_offending_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_download({"event_id": EVENT_ID, "speech_id": "bad", "actor_type": "guest"})

    assert exc_info.value.field == "slide_id"


def test_validate_download_rejects_malformed_speech_id():
    with pytest.raises(ValidationError) as exc_info:
        validate_download(
            {"event_id": EVENT_ID, "slide_id": SLIDE_ID, "speech_id": "q1", "actor_type": "admin"}
        )

    assert exc_info.value.field == "speech_id"
    assert exc_info.value.reason == "Invalid speech ID"


def test_validate_create_metrics_rejects_bad_tenant():
    with pytest.raises(ValidationError) as exc_info:
        validate_create_metrics({"event_id": EVENT_ID, "tenant_id": "tenant-1"})

    assert exc_info.value.field == "tenant_id"
    assert exc_info.value.reason == "Invalid tenant ID"


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_page_view({})
