import logging
import datetime as dt
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .levels import Level


def as_mapping(value: Any, name: str) -> Dict[str, Any]:
    """Copy of ``value`` with string keys, non-mappings kept under ``name``."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items()}
    return {name: value}


class LogEvent(BaseModel):
    """One logged occurrence, read-only once built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    level: Level
    message: str
    datetime: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    channel: str = "app"
    context: Dict[str, Any] = Field(default_factory=dict)
    extra: Dict[str, Any] = Field(default_factory=dict)
    formatted: str = ""

    @field_validator("context", "extra", mode="before")
    @classmethod
    def _string_keys(cls, value, info):
        return as_mapping(value, info.field_name)

    @property
    def level_name(self) -> str:
        return self.level.name

    @classmethod
    def from_record(cls, record: logging.LogRecord, formatted: str = "") -> "LogEvent":
        context = as_mapping(getattr(record, "context", None), "context")
        extra = as_mapping(getattr(record, "extra", None), "extra")
        if record.exc_info and record.exc_info[1] is not None:
            context.setdefault("exception", record.exc_info[1])
        return cls(
            level=Level.from_levelno(record.levelno),
            message=record.getMessage(),
            datetime=dt.datetime.fromtimestamp(record.created, tz=dt.timezone.utc),
            channel=record.name or "app",
            context=context,
            extra=extra,
            formatted=formatted or record.getMessage(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "context": self.context,
            "level": self.level.value,
            "level_name": self.level_name,
            "channel": self.channel,
            "datetime": self.datetime,
            "extra": self.extra,
        }


class FormatterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    use_attachment: bool = True
    use_short_attachment: bool = False
    include_context_and_extra: bool = True
    exclude_fields: Tuple[str, ...] = ()


class NotificationConfig(BaseModel):
    """Comma separated Google Chat user ids to mention, per level name."""

    model_config = ConfigDict(frozen=True)

    default: Optional[str] = ""
    debug: Optional[str] = ""
    info: Optional[str] = ""
    notice: Optional[str] = ""
    warning: Optional[str] = ""
    error: Optional[str] = ""
    critical: Optional[str] = ""
    alert: Optional[str] = ""
    emergency: Optional[str] = ""

    def ids_for(self, level: Level) -> str:
        level_ids = (getattr(self, level.name.lower(), "") or "").strip()
        ids = (self.default or "").strip()
        if ids and level_ids:
            return f"{ids},{level_ids}"
        return ids or level_ids
