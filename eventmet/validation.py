"""Validation of incoming interaction commands."""

import re
from typing import Any, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import ActorType, DeviceType

_UUID_RE = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)

CommandT = TypeVar("CommandT", bound=BaseModel)


def _require_uuid(value: str, label: str) -> str:
    if not _UUID_RE.fullmatch(value):
        raise ValueError(f"Invalid {label}")
    return value


class CreateMetricsCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    tenant_id: str

    @field_validator("event_id", "tenant_id")
    @classmethod
    def ids_are_uuids(cls, value: str, info: ValidationInfo) -> str:
        return _require_uuid(value, info.field_name.replace("_id", " ID"))


class PageViewMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_agent: Optional[str] = None
    country_code: Optional[str] = None
    device_type: Optional[DeviceType] = None


class PageViewCommand(BaseModel):
    """A page view; ``visitor_key`` is already hashed by the caller."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    visitor_key: Optional[str] = None
    metadata: Optional[PageViewMetadata] = None

    @field_validator("event_id")
    @classmethod
    def event_id_is_uuid(cls, value: str) -> str:
        return _require_uuid(value, "event ID")


class DownloadMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    visitor_key: Optional[str] = None
    user_agent: Optional[str] = None


class DownloadCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    slide_id: str
    speech_id: str
    actor_type: ActorType
    metadata: Optional[DownloadMetadata] = None

    @field_validator("event_id", "slide_id", "speech_id")
    @classmethod
    def ids_are_uuids(cls, value: str, info: ValidationInfo) -> str:
        return _require_uuid(value, info.field_name.replace("_id", " ID"))


def validate_create_metrics(cmd: Union[CreateMetricsCommand, Any]) -> CreateMetricsCommand:
    return _validate(CreateMetricsCommand, cmd)


def validate_page_view(cmd: Union[PageViewCommand, Any]) -> PageViewCommand:
    return _validate(PageViewCommand, cmd)


def validate_download(cmd: Union[DownloadCommand, Any]) -> DownloadCommand:
    return _validate(DownloadCommand, cmd)


def _validate(model: Type[CommandT], cmd: Any) -> CommandT:
    if isinstance(cmd, model):
        return cmd
    try:
        return model.model_validate(cmd)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        raise ValidationError(_field_path(first["loc"]), _reason(first)) from exc


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc) or "command"


def _reason(error: dict) -> str:
    ctx = error.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    return error["msg"]
