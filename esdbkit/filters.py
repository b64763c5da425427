"""Server-side subscription filters, node preferences and stream names."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from esdbkit.positions import U32_MAX

SYSTEM_EVENTS_EXCLUDED = "^[^\\$].*"

NameLike = Union[str, bytes, bytearray, memoryview]


@dataclass(frozen=True)
class SubscriptionFilter:
    """A filter applied by the server to a subscription to ``$all``."""

    based_on_stream: bool
    max: Optional[int] = None
    regex: Optional[str] = None
    prefixes: Tuple[str, ...] = ()

    @classmethod
    def on_stream_name(cls) -> SubscriptionFilter:
        return cls(based_on_stream=True)

    @classmethod
    def on_event_type(cls) -> SubscriptionFilter:
        return cls(based_on_stream=False)

    def exclude_system_events(self) -> SubscriptionFilter:
        """Filter out everything whose name starts with ``$``."""
        return replace(self, regex=SYSTEM_EVENTS_EXCLUDED)

    def with_max(self, value: int) -> SubscriptionFilter:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"max must be an integer, got {type(value).__name__}")
        if not 0 <= value <= U32_MAX:
            raise ValueError(f"max must be between 0 and {U32_MAX}, got {value}")
        return replace(self, max=value)

    def with_regex(self, regex: str) -> SubscriptionFilter:
        return replace(self, regex=str(regex))

    def add_prefix(self, prefix: str) -> SubscriptionFilter:
        return replace(self, prefixes=self.prefixes + (str(prefix),))


class NodePreference(enum.Enum):
    """Which kind of cluster node to prefer when connecting."""

    LEADER = "Leader"
    FOLLOWER = "Follower"
    RANDOM = "Random"
    READ_ONLY_REPLICA = "ReadOnlyReplica"

    def __str__(self) -> str:
        return self.value


def _as_bytes(name: NameLike) -> Optional[bytes]:
    if isinstance(name, (bytes, bytearray, memoryview)):
        return bytes(name)
    if isinstance(name, str):
        return None
    raise TypeError(f"stream name must be str or bytes, got {type(name).__name__}")


def stream_name(name: NameLike) -> bytes:
    """The wire form of a stream name."""
    raw = _as_bytes(name)
    return name.encode("utf-8") if raw is None else raw


def metadata_stream_name(name: NameLike) -> bytes:
    """The metadata stream of a stream; raw bytes are taken to be a metadata stream already."""
    raw = _as_bytes(name)
    return f"$${name}".encode("utf-8") if raw is None else raw