"""Event payloads, recorded events and the outcomes of reads and subscriptions."""

from __future__ import annotations

import enum
import json
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar, Union

from esdbkit.positions import Position

JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"

A = TypeVar("A")

BytesLike = Union[str, bytes, bytearray, memoryview]


def _to_bytes(name: str, value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{name} must be str or bytes, got {type(value).__name__}")


def _json_bytes(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class Credentials:
    """Login and password used to authenticate a request."""

    login: bytes
    password: bytes = field(repr=False)

    def __post_init__(self) -> None:
        for item in fields(self):
            object.__setattr__(self, item.name, _to_bytes(item.name, getattr(self, item.name)))

    def to_dict(self) -> Dict[str, str]:
        return {item.name: getattr(self, item.name).decode() for item in fields(self)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Credentials:
        values = []
        for item in fields(cls):
            key = item.name
            if key not in data:
                raise ValueError(f"missing field '{key}'")
            value = data[key]
            if not isinstance(value, str):
                raise TypeError(f"field '{key}': expected an ASCII string")
            values.append(value)
        return cls(*values)


@dataclass(frozen=True)
class EventData:
    """An event about to be sent to the server."""

    payload: bytes
    metadata: Dict[str, str]
    id: Optional[uuid.UUID] = None
    custom_metadata: Optional[bytes] = None

    @property
    def event_type(self) -> str:
        return self.metadata["type"]

    @property
    def content_type(self) -> str:
        return self.metadata["content-type"]

    @classmethod
    def json(cls, event_type: str, payload: Any) -> EventData:
        """Create an event whose payload is ``payload`` encoded as JSON."""
        return cls(
            payload=_json_bytes(payload),
            metadata={"type": str(event_type), "content-type": JSON_CONTENT_TYPE},
        )

    @classmethod
    def binary(cls, event_type: str, payload: BytesLike) -> EventData:
        """Create an event with a raw binary payload."""
        return cls(
            payload=_to_bytes("payload", payload),
            metadata={"type": str(event_type), "content-type": BINARY_CONTENT_TYPE},
        )

    def with_id(self, value: uuid.UUID) -> EventData:
        """Return a copy carrying ``value`` as its id; otherwise an id is generated."""
        if not isinstance(value, uuid.UUID):
            raise TypeError(f"id must be a UUID, got {type(value).__name__}")
        return replace(self, id=value)

    def with_json_metadata(self, payload: Any) -> EventData:
        """Return a copy with ``payload`` encoded as JSON as its user metadata."""
        return replace(self, custom_metadata=_json_bytes(payload))

    def with_metadata(self, payload: BytesLike) -> EventData:
        """Return a copy with raw binary user metadata."""
        return replace(self, custom_metadata=_to_bytes("metadata", payload))


@dataclass(frozen=True)
class RecordedEvent:
    """A previously written event."""

    stream_id: str
    id: uuid.UUID
    revision: int
    event_type: str
    data: bytes
    metadata: Dict[str, str]
    custom_metadata: bytes
    is_json: bool
    position: Position
    created: datetime

    def as_json(self) -> Any:
        """Decode the payload as JSON."""
        return json.loads(self.data)


@dataclass(frozen=True)
class ResolvedEvent:
    """A single event, or a link event together with the event it resolves to."""

    event: Optional[RecordedEvent] = None
    link: Optional[RecordedEvent] = None
    commit_position: Optional[int] = None

    def is_resolved(self) -> bool:
        """True for a link event that came with its resolved event."""
        return self.event is not None and self.link is not None

    def original_event(self) -> RecordedEvent:
        """The link if there is one, otherwise the event."""
        if self.link is not None:
            return self.link
        if self.event is not None:
            return self.event
        raise ValueError("resolved event holds neither an event nor a link")

    def original_stream_id(self) -> str:
        return self.original_event().stream_id


@dataclass(frozen=True)
class ReadEventResult:
    """The result of looking up a specific event number in a stream."""

    stream_id: str
    event_number: int
    event: ResolvedEvent


@dataclass(frozen=True)
class ReadEventStatus(Generic[A]):
    """The outcome of reading a single event."""

    class Kind(enum.Enum):
        NOT_FOUND = "NotFound"
        NO_STREAM = "NoStream"
        DELETED = "Deleted"
        SUCCESS = "Success"

    kind: ReadEventStatus.Kind
    value: Optional[A] = None

    @classmethod
    def not_found(cls) -> ReadEventStatus:
        return cls(cls.Kind.NOT_FOUND)

    @classmethod
    def no_stream(cls) -> ReadEventStatus:
        return cls(cls.Kind.NO_STREAM)

    @classmethod
    def deleted(cls) -> ReadEventStatus:
        return cls(cls.Kind.DELETED)

    @classmethod
    def success(cls, value: A) -> ReadEventStatus[A]:
        return cls(cls.Kind.SUCCESS, value)

    @property
    def is_success(self) -> bool:
        return self.kind is ReadEventStatus.Kind.SUCCESS


class ReadStreamError(Exception):
    """An error that arose while reading a stream."""

    class Kind(enum.Enum):
        NO_STREAM = "NoStream"
        STREAM_DELETED = "StreamDeleted"
        NOT_MODIFIED = "NotModified"
        ERROR = "Error"
        ACCESS_DENIED = "AccessDenied"

    def __init__(self, kind: ReadStreamError.Kind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


@dataclass(frozen=True)
class SubscriptionEvent:
    """A notification delivered by a regular subscription."""

    class Kind(enum.Enum):
        CONFIRMED = "Confirmed"
        EVENT_APPEARED = "EventAppeared"
        CHECKPOINT = "Checkpoint"
        FIRST_STREAM_POSITION = "FirstStreamPosition"
        LAST_STREAM_POSITION = "LastStreamPosition"
        LAST_ALL_POSITION = "LastAllPosition"
        CAUGHT_UP = "CaughtUp"
        FELL_BEHIND = "FellBehind"

    kind: SubscriptionEvent.Kind
    value: Union[str, ResolvedEvent, Position, int, None] = None

    @classmethod
    def confirmed(cls, subscription_id: str) -> SubscriptionEvent:
        return cls(cls.Kind.CONFIRMED, subscription_id)

    @classmethod
    def event_appeared(cls, event: ResolvedEvent) -> SubscriptionEvent:
        return cls(cls.Kind.EVENT_APPEARED, event)

    @classmethod
    def checkpoint(cls, position: Position) -> SubscriptionEvent:
        return cls(cls.Kind.CHECKPOINT, position)

    @classmethod
    def first_stream_position(cls, revision: int) -> SubscriptionEvent:
        return cls(cls.Kind.FIRST_STREAM_POSITION, revision)

    @classmethod
    def last_stream_position(cls, revision: int) -> SubscriptionEvent:
        return cls(cls.Kind.LAST_STREAM_POSITION, revision)

    @classmethod
    def last_all_position(cls, position: Position) -> SubscriptionEvent:
        return cls(cls.Kind.LAST_ALL_POSITION, position)

    @classmethod
    def caught_up(cls) -> SubscriptionEvent:
        return cls(cls.Kind.CAUGHT_UP)

    @classmethod
    def fell_behind(cls) -> SubscriptionEvent:
        return cls(cls.Kind.FELL_BEHIND)


@dataclass(frozen=True)
class PersistentSubscriptionEvent:
    """A notification delivered by a persistent subscription."""

    class Kind(enum.Enum):
        EVENT_APPEARED = "EventAppeared"
        CONFIRMED = "Confirmed"

    kind: PersistentSubscriptionEvent.Kind
    event: Optional[ResolvedEvent] = None
    retry_count: int = 0
    subscription_id: Optional[str] = None

    @classmethod
    def event_appeared(cls, event: ResolvedEvent, retry_count: int) -> PersistentSubscriptionEvent:
        if retry_count < 0:
            raise ValueError(f"retry_count must not be negative, got {retry_count}")
        return cls(cls.Kind.EVENT_APPEARED, event=event, retry_count=retry_count)

    @classmethod
    def confirmed(cls, subscription_id: str) -> PersistentSubscriptionEvent:
        return cls(cls.Kind.CONFIRMED, subscription_id=subscription_id)


class NakAction(enum.Enum):
    """What the server should do with a message that was not acknowledged."""

    UNKNOWN = "Unknown"
    PARK = "Park"
    RETRY = "Retry"
    SKIP = "Skip"
    STOP = "Stop"


class PersistActionError(enum.Enum):
    """Why an action on a persistent subscription failed."""

    FAIL = "Fail"
    ALREADY_EXISTS = "AlreadyExists"
    DOES_NOT_EXIST = "DoesNotExist"
    ACCESS_DENIED = "AccessDenied"


@dataclass(frozen=True)
class PersistActionResult:
    """The outcome of an action on a persistent subscription."""

    error: Optional[PersistActionError] = None

    @classmethod
    def success(cls) -> PersistActionResult:
        return cls()

    @classmethod
    def failure(cls, error: PersistActionError) -> PersistActionResult:
        return cls(error)

    def is_success(self) -> bool:
        return self.error is None

    def is_failure(self) -> bool:
        return not self.is_success()