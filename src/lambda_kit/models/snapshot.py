"""
Snapshot and log record models.

A RequestSnapshot is captured once per invocation and never changes; a
LogRecord is one structured diagnostic raised while the invocation runs.
"""

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Annotated, Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

# Lambda context attributes copied into the snapshot
CONTEXT_ATTRIBUTES = (
    'function_name',
    'function_version',
    'invoked_function_arn',
    'memory_limit_in_mb',
    'aws_request_id',
    'log_group_name',
    'log_stream_name',
)


def context_to_dict(context: Any) -> Dict[str, Any]:
    """Copy the public Lambda context attributes into a plain dict."""
    if context is None:
        return {}
    if isinstance(context, dict):
        return dict(context)

    snapshot = {}
    for name in CONTEXT_ATTRIBUTES:
        value = getattr(context, name, None)
        snapshot[name] = value if isinstance(value, (str, int, float, bool, type(None))) else str(value)
    return snapshot


def freeze(value: Any) -> Any:
    """Read-only view of nested mappings and lists."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Plain dict/list copy of a frozen value."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


class RequestSnapshot(BaseModel):
    """Masked, read-only copy of the inbound event and invocation context."""

    model_config = ConfigDict(frozen=True)

    event: Annotated[Mapping[str, Any], Field(
        default_factory=dict,
        validate_default=True,
        description='Inbound event with sensitive fields masked'
    )]

    context: Annotated[Mapping[str, Any], Field(
        default_factory=dict,
        validate_default=True,
        description='Lambda context attributes'
    )]

    @field_validator('event', 'context', mode='after')
    @classmethod
    def _freeze(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(value)

    def to_dict(self) -> Dict[str, Any]:
        """Mutable, JSON-ready copy of the snapshot."""
        return {'event': thaw(self.event), 'context': thaw(self.context)}


def _parse_time(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            # fromisoformat only learned the Z suffix in 3.11
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


class LogRecord(BaseModel):
    """
    One structured diagnostic; unknown fields are kept as extras.

    Callers may override ``level``, ``time`` and ``functionName`` with any
    value. A ``time`` that is not an ISO-8601 string is kept as given and the
    record falls back to its creation time for the CloudWatch timestamp.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    level: str = 'ERROR'
    time: Union[datetime, str] = Field(default_factory=lambda: datetime.now(timezone.utc))
    function_name: Optional[str] = Field(default=None, alias='functionName')

    _created_at: datetime = PrivateAttr(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('level', mode='before')
    @classmethod
    def _level_as_text(cls, value: Any) -> str:
        return 'ERROR' if value is None else str(value)

    @field_validator('time', mode='before')
    @classmethod
    def _time_or_raw_text(cls, value: Any) -> Union[datetime, str]:
        parsed = _parse_time(value)
        return parsed if parsed is not None else str(value)

    @field_validator('function_name', mode='before')
    @classmethod
    def _function_name_as_text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @property
    def timestamp_ms(self) -> int:
        """Record time as epoch milliseconds, naive times taken as UTC."""
        moment = self.time if isinstance(self.time, datetime) else self._created_at
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return int(moment.timestamp() * 1000)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True)
