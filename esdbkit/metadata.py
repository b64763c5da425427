"""Stream metadata, access control lists and their JSON form."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

USER_STREAM_ACL = "$userStreamAcl"
SYSTEM_STREAM_ACL = "$systemStreamAcl"

_ROLE_KEYS = (
    ("read_roles", "$r"),
    ("write_roles", "$w"),
    ("delete_roles", "$d"),
    ("meta_read_roles", "$mr"),
    ("meta_write_roles", "$mw"),
)

_MAX_COUNT = "$maxCount"
_MAX_AGE = "$maxAge"
_TRUNCATE_BEFORE = "$tb"
_CACHE_CONTROL = "$cacheControl"
_ACL = "$acl"
_SYSTEM_KEYS = frozenset({_MAX_COUNT, _MAX_AGE, _TRUNCATE_BEFORE, _CACHE_CONTROL, _ACL})

_MILLISECOND = timedelta(milliseconds=1)


def _check_unsigned(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def _check_duration(name: str, value: Any) -> timedelta:
    if not isinstance(value, timedelta):
        raise TypeError(f"{name} must be a timedelta, got {type(value).__name__}")
    if value < timedelta(0):
        raise ValueError(f"{name} must not be negative")
    return value


def _roles_to_json(roles: List[str]) -> Union[str, List[str]]:
    if len(roles) == 1:
        return roles[0]
    return list(roles)


def _roles_from_json(key: str, value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(role, str) for role in value):
        return list(value)
    raise ValueError(f"'{key}': expected a role or role list")


def _duration_from_json(key: str, value: Any) -> Optional[timedelta]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}': expected a time duration in milliseconds")
    return timedelta(milliseconds=value)


def _count_from_json(key: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}': expected a non-negative integer")
    return value


@dataclass
class StreamAcl:
    """The access control list of a stream."""

    read_roles: Optional[List[str]] = None
    write_roles: Optional[List[str]] = None
    delete_roles: Optional[List[str]] = None
    meta_read_roles: Optional[List[str]] = None
    meta_write_roles: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Union[str, List[str]]]:
        """A single role is written as a string, several as a list."""
        result: Dict[str, Union[str, List[str]]] = {}
        for attribute, key in _ROLE_KEYS:
            roles = getattr(self, attribute)
            if roles is not None:
                result[key] = _roles_to_json(roles)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StreamAcl:
        return cls(
            **{attribute: _roles_from_json(key, data.get(key)) for attribute, key in _ROLE_KEYS}
        )


class StreamAclBuilder:
    """Collects roles and builds a :class:`StreamAcl`."""

    def __init__(self) -> None:
        self._roles: Dict[str, Optional[List[str]]] = {
            attribute: None for attribute, _ in _ROLE_KEYS
        }

    def _add(self, attribute: str, role: str) -> StreamAclBuilder:
        if not isinstance(role, str):
            raise TypeError(f"role must be a string, got {type(role).__name__}")
        roles = self._roles[attribute]
        if roles is None:
            roles = self._roles[attribute] = []
        roles.append(role)
        return self

    def add_read_roles(self, role: str) -> StreamAclBuilder:
        return self._add("read_roles", role)

    def add_write_roles(self, role: str) -> StreamAclBuilder:
        return self._add("write_roles", role)

    def add_delete_roles(self, role: str) -> StreamAclBuilder:
        return self._add("delete_roles", role)

    def add_meta_read_roles(self, role: str) -> StreamAclBuilder:
        return self._add("meta_read_roles", role)

    def add_meta_write_roles(self, role: str) -> StreamAclBuilder:
        return self._add("meta_write_roles", role)

    def build(self) -> StreamAcl:
        return StreamAcl(
            **{
                attribute: None if roles is None else list(roles)
                for attribute, roles in self._roles.items()
            }
        )


@dataclass(frozen=True)
class Acl:
    """A stream ACL: the default user or system ACL, or an explicit one."""

    class Kind(enum.Enum):
        USER_STREAM = "UserStream"
        SYSTEM_STREAM = "SystemStream"
        STREAM = "Stream"

    kind: Acl.Kind
    stream_acl: Optional[StreamAcl] = None

    @classmethod
    def user_stream(cls) -> Acl:
        return cls(cls.Kind.USER_STREAM)

    @classmethod
    def system_stream(cls) -> Acl:
        return cls(cls.Kind.SYSTEM_STREAM)

    @classmethod
    def stream(cls, acl: StreamAcl) -> Acl:
        if not isinstance(acl, StreamAcl):
            raise TypeError(f"expected a StreamAcl, got {type(acl).__name__}")
        return cls(cls.Kind.STREAM, acl)

    def _to_json(self) -> Union[str, Dict[str, Any]]:
        if self.kind is Acl.Kind.USER_STREAM:
            return USER_STREAM_ACL
        if self.kind is Acl.Kind.SYSTEM_STREAM:
            return SYSTEM_STREAM_ACL
        return self.stream_acl.to_dict()

    @classmethod
    def _from_json(cls, value: Any) -> Optional[Acl]:
        if value is None:
            return None
        if isinstance(value, str):
            if value == USER_STREAM_ACL:
                return cls.user_stream()
            if value == SYSTEM_STREAM_ACL:
                return cls.system_stream()
            raise ValueError(f"invalid value: string '{value}', expected a EventStoreDB ACL")
        if isinstance(value, Mapping):
            return cls.stream(StreamAcl.from_dict(value))
        raise ValueError("expected a EventStoreDB ACL")


@dataclass
class StreamMetadata:
    """System properties of a stream plus user-defined custom properties."""

    max_count: Optional[int] = None
    max_age: Optional[timedelta] = None
    truncate_before: Optional[int] = None
    cache_control: Optional[timedelta] = None
    acl: Optional[Acl] = None
    custom_properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def builder(cls) -> StreamMetadataBuilder:
        return StreamMetadataBuilder()

    def to_dict(self) -> Dict[str, Any]:
        """The JSON object form; durations are written in whole milliseconds."""
        result: Dict[str, Any] = {}
        if self.max_count is not None:
            result[_MAX_COUNT] = self.max_count
        if self.max_age is not None:
            result[_MAX_AGE] = self.max_age // _MILLISECOND
        if self.truncate_before is not None:
            result[_TRUNCATE_BEFORE] = self.truncate_before
        if self.cache_control is not None:
            result[_CACHE_CONTROL] = self.cache_control // _MILLISECOND
        if self.acl is not None:
            result[_ACL] = self.acl._to_json()
        result.update(self.custom_properties)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StreamMetadata:
        return cls(
            max_count=_count_from_json(_MAX_COUNT, data.get(_MAX_COUNT)),
            max_age=_duration_from_json(_MAX_AGE, data.get(_MAX_AGE)),
            truncate_before=_count_from_json(_TRUNCATE_BEFORE, data.get(_TRUNCATE_BEFORE)),
            cache_control=_duration_from_json(_CACHE_CONTROL, data.get(_CACHE_CONTROL)),
            acl=Acl._from_json(data.get(_ACL)),
            custom_properties={
                key: value for key, value in data.items() if key not in _SYSTEM_KEYS
            },
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> StreamMetadata:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("stream metadata must be a JSON object")
        return cls.from_dict(data)


class StreamMetadataBuilder:
    """Builds a :class:`StreamMetadata` step by step."""

    def __init__(self) -> None:
        self._max_count: Optional[int] = None
        self._max_age: Optional[timedelta] = None
        self._truncate_before: Optional[int] = None
        self._cache_control: Optional[timedelta] = None
        self._acl: Optional[Acl] = None
        self._properties: Dict[str, Any] = {}

    def max_count(self, value: int) -> StreamMetadataBuilder:
        """Keep at most ``value`` events; older ones become eligible for scavenging."""
        self._max_count = _check_unsigned("max_count", value)
        return self

    def max_age(self, value: timedelta) -> StreamMetadataBuilder:
        """Events older than ``value`` become eligible for scavenging."""
        self._max_age = _check_duration("max_age", value)
        return self

    def truncate_before(self, value: int) -> StreamMetadataBuilder:
        """Events before this number can be scavenged."""
        self._truncate_before = _check_unsigned("truncate_before", value)
        return self

    def cache_control(self, value: timedelta) -> StreamMetadataBuilder:
        """How long the head of the stream may be cached."""
        self._cache_control = _check_duration("cache_control", value)
        return self

    def acl(self, value: Acl) -> StreamMetadataBuilder:
        if not isinstance(value, Acl):
            raise TypeError(f"expected an Acl, got {type(value).__name__}")
        self._acl = value
        return self

    def insert_custom_property(self, key: str, value: Any) -> StreamMetadataBuilder:
        """Add a user-defined property; ``value`` must be JSON-serializable."""
        self._properties[str(key)] = json.loads(json.dumps(value))
        return self

    def build(self) -> StreamMetadata:
        return StreamMetadata(
            max_count=self._max_count,
            max_age=self._max_age,
            truncate_before=self._truncate_before,
            cache_control=self._cache_control,
            acl=self._acl,
            custom_properties=dict(self._properties),
        )


@dataclass(frozen=True)
class VersionedMetadata:
    """Stream metadata together with the stream it belongs to and its version."""

    stream_name: str
    version: int
    metadata: StreamMetadata


@dataclass(frozen=True)
class StreamMetadataResult:
    """The outcome of reading a stream's metadata."""

    class Kind(enum.Enum):
        DELETED = "Deleted"
        NOT_FOUND = "NotFound"
        SUCCESS = "Success"

    kind: StreamMetadataResult.Kind
    value: Optional[VersionedMetadata] = None

    @classmethod
    def deleted(cls) -> StreamMetadataResult:
        return cls(cls.Kind.DELETED)

    @classmethod
    def not_found(cls) -> StreamMetadataResult:
        return cls(cls.Kind.NOT_FOUND)

    @classmethod
    def success(cls, value: VersionedMetadata) -> StreamMetadataResult:
        return cls(cls.Kind.SUCCESS, value)

    def is_deleted(self) -> bool:
        return self.kind is StreamMetadataResult.Kind.DELETED

    def is_not_found(self) -> bool:
        return self.kind is StreamMetadataResult.Kind.NOT_FOUND

    def is_success(self) -> bool:
        return self.kind is StreamMetadataResult.Kind.SUCCESS