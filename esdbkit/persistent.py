"""Persistent subscription settings, statistics and their server JSON forms."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from esdbkit.errors import UnsupportedFeatureError
from esdbkit.positions import Position, RevisionOrPosition, StreamPosition

A = TypeVar("A")
B = TypeVar("B")

_MISSING: Any = object()

_STRATEGY_CODES = {"DispatchToSingle": 0, "RoundRobin": 1, "Pinned": 2}
_KNOWN_STRATEGIES = frozenset({"DispatchToSingle", "RoundRobin", "Pinned", "PinnedByCorrelation"})


def _field(data: Mapping[str, Any], key: str, default: Any = _MISSING) -> Any:
    if key in data:
        return data[key]
    if default is _MISSING:
        raise ValueError(f"missing field '{key}'")
    return default


def _unsigned(data: Mapping[str, Any], key: str, default: Any = _MISSING) -> int:
    value = _field(data, key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}': expected a non-negative integer")
    return value


def _signed(data: Mapping[str, Any], key: str) -> int:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}': expected an integer")
    return value


def _number(data: Mapping[str, Any], key: str) -> float:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}': expected a number")
    return float(value)


def _string(data: Mapping[str, Any], key: str, default: Any = _MISSING) -> str:
    value = _field(data, key, default)
    if not isinstance(value, str):
        raise ValueError(f"'{key}': expected a string")
    return value


def _optional_string(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"'{key}': expected a string or null")
    return value


def _boolean(data: Mapping[str, Any], key: str) -> bool:
    value = _field(data, key)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}': expected a boolean")
    return value


@dataclass(frozen=True)
class SystemConsumerStrategy:
    """How a persistent subscription distributes events among its consumers."""

    name: str

    DISPATCH_TO_SINGLE: ClassVar[SystemConsumerStrategy]
    ROUND_ROBIN: ClassVar[SystemConsumerStrategy]
    PINNED: ClassVar[SystemConsumerStrategy]
    PINNED_BY_CORRELATION: ClassVar[SystemConsumerStrategy]

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_name(cls, name: str) -> SystemConsumerStrategy:
        """Known names map to the system strategies, anything else is a custom one."""
        return cls(str(name))

    @property
    def is_custom(self) -> bool:
        return self.name not in _KNOWN_STRATEGIES

    def _to_json(self) -> Union[str, Dict[str, str]]:
        if self.is_custom:
            return {"Custom": self.name}
        return self.name

    @classmethod
    def _from_json(cls, value: Any) -> SystemConsumerStrategy:
        if isinstance(value, str) and value in _KNOWN_STRATEGIES:
            return cls(value)
        if isinstance(value, Mapping) and len(value) == 1 and isinstance(value.get("Custom"), str):
            return cls(value["Custom"])
        raise ValueError(f"unknown consumer strategy: {value!r}")


SystemConsumerStrategy.DISPATCH_TO_SINGLE = SystemConsumerStrategy("DispatchToSingle")
SystemConsumerStrategy.ROUND_ROBIN = SystemConsumerStrategy("RoundRobin")
SystemConsumerStrategy.PINNED = SystemConsumerStrategy("Pinned")
SystemConsumerStrategy.PINNED_BY_CORRELATION = SystemConsumerStrategy("PinnedByCorrelation")


@dataclass
class PersistentSubscriptionSettings(Generic[A]):
    """Every property of a persistent subscription."""

    resolve_link_tos: bool = False
    start_from: StreamPosition[A] = field(default_factory=StreamPosition.end)
    extra_statistics: bool = False
    message_timeout: timedelta = timedelta(seconds=30)
    max_retry_count: int = 10
    live_buffer_size: int = 500
    read_batch_size: int = 20
    history_buffer_size: int = 500
    checkpoint_after: timedelta = timedelta(seconds=2)
    checkpoint_lower_bound: int = 10
    checkpoint_upper_bound: int = 1_000
    # Zero means there is no limit.
    max_subscriber_count: int = 0
    consumer_strategy_name: SystemConsumerStrategy = field(
        default_factory=lambda: SystemConsumerStrategy.ROUND_ROBIN
    )

    def named_consumer_strategy_code(self) -> int:
        """The wire code of the strategy; custom ones are unsupported by released servers."""
        code = _STRATEGY_CODES.get(self.consumer_strategy_name.name)
        if code is None:
            raise UnsupportedFeatureError()
        return code

    def map(self, func: Callable[[A], B]) -> PersistentSubscriptionSettings[B]:
        """Return a copy whose concrete start position is transformed by ``func``."""
        return replace(self, start_from=self.start_from.map(func))


@dataclass
class PersistentSubscriptionStats:
    """Runtime statistics of a persistent subscription."""

    average_per_second: float = 0.0
    total_items: int = 0
    count_since_last_measurement: int = 0
    last_checkpointed_event_revision: Optional[int] = None
    last_known_event_revision: Optional[int] = None
    last_checkpointed_position: Optional[Position] = None
    last_known_position: Optional[Position] = None
    read_buffer_count: int = 0
    live_buffer_count: int = 0
    retry_buffer_count: int = 0
    total_in_flight_messages: int = 0
    outstanding_messages_count: int = 0
    parked_message_count: int = 0


@dataclass
class PersistentSubscriptionMeasurements:
    """Extra named measurements reported for a connection."""

    values: Dict[str, int] = field(default_factory=dict)

    def entries(self) -> Iterator[Tuple[str, int]]:
        return iter(self.values.items())

    def get(self, key: str) -> Optional[int]:
        return self.values.get(key)

    @classmethod
    def _from_json(cls, value: Any) -> PersistentSubscriptionMeasurements:
        if not isinstance(value, list):
            raise ValueError("'extraStatistics': expected a list of key-values")
        values: Dict[str, int] = {}
        for item in value:
            if not isinstance(item, Mapping):
                raise ValueError("'extraStatistics': expected a list of key-values")
            values[_string(item, "key")] = _signed(item, "value")
        return cls(values)


@dataclass
class PersistentSubscriptionConnectionInfo:
    """A consumer connected to a persistent subscription."""

    from_: str
    username: str
    average_items_per_second: float
    total_items: int
    count_since_last_measurement: int
    available_slots: int
    in_flight_messages: int
    connection_name: str
    extra_statistics: PersistentSubscriptionMeasurements = field(
        default_factory=PersistentSubscriptionMeasurements
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PersistentSubscriptionConnectionInfo:
        extra = data.get("extraStatistics", _MISSING)
        return cls(
            from_=_string(data, "from"),
            username=_string(data, "username"),
            average_items_per_second=_number(data, "averageItemsPerSecond"),
            total_items=_unsigned(data, "totalItemsProcessed"),
            count_since_last_measurement=_unsigned(data, "countSinceLastMeasurement"),
            available_slots=_unsigned(data, "availableSlots"),
            in_flight_messages=_unsigned(data, "inFlightMessages"),
            connection_name=_string(data, "connectionName"),
            extra_statistics=(
                PersistentSubscriptionMeasurements()
                if extra is _MISSING
                else PersistentSubscriptionMeasurements._from_json(extra)
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """The JSON object form; extra statistics are never written."""
        return {
            "from": self.from_,
            "username": self.username,
            "averageItemsPerSecond": self.average_items_per_second,
            "totalItemsProcessed": self.total_items,
            "countSinceLastMeasurement": self.count_since_last_measurement,
            "availableSlots": self.available_slots,
            "inFlightMessages": self.in_flight_messages,
            "connectionName": self.connection_name,
        }


def stream_position_to_json(position: StreamPosition[RevisionOrPosition]) -> Union[int, str]:
    """Start is ``0``, end is ``-1``, otherwise the revision or the position string."""
    if position.is_start:
        return 0
    if position.is_end:
        return -1
    return position.value.to_json()


def stream_position_from_json(value: Any) -> StreamPosition[RevisionOrPosition]:
    """Read a start position as written by the server."""
    if isinstance(value, bool):
        raise ValueError("Expecting a revision number or a transaction log position")
    if isinstance(value, int):
        if value == -1:
            return StreamPosition.end()
        if value == 0:
            return StreamPosition.start()
        return StreamPosition.at(RevisionOrPosition(value % 2**64))
    if isinstance(value, str):
        try:
            position = Position.parse(value)
        except ValueError:
            raise ValueError(
                f"can't parse a revision or a position out of this: '{value}'"
            ) from None
        return StreamPosition.at(RevisionOrPosition(position))
    raise ValueError("Expecting a revision number or a transaction log position")


@dataclass
class PersistentSubscriptionConfig:
    """Persistent subscription configuration as reported over HTTP."""

    resolve_linktos: bool
    start_from: StreamPosition[RevisionOrPosition]
    message_timeout_milliseconds: int
    extra_statistics: bool
    max_retry_count: int
    live_buffer_size: int
    buffer_size: int
    read_batch_size: int
    prefer_round_robin: bool
    checkpoint_after_milliseconds: int
    min_checkpoint_count: int
    max_checkpoint_count: int
    max_subscriber_count: int
    named_consumer_strategy: SystemConsumerStrategy
    start_position: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PersistentSubscriptionConfig:
        return cls(
            resolve_linktos=_boolean(data, "resolveLinktos"),
            start_from=stream_position_from_json(_field(data, "startFrom")),
            start_position=_string(data, "startPosition", ""),
            message_timeout_milliseconds=_signed(data, "messageTimeoutMilliseconds"),
            extra_statistics=_boolean(data, "extraStatistics"),
            max_retry_count=_signed(data, "maxRetryCount"),
            live_buffer_size=_signed(data, "liveBufferSize"),
            buffer_size=_signed(data, "bufferSize"),
            read_batch_size=_signed(data, "readBatchSize"),
            prefer_round_robin=_boolean(data, "preferRoundRobin"),
            checkpoint_after_milliseconds=_signed(data, "checkPointAfterMilliseconds"),
            min_checkpoint_count=_signed(data, "minCheckPointCount"),
            max_checkpoint_count=_signed(data, "maxCheckPointCount"),
            max_subscriber_count=_signed(data, "maxSubscriberCount"),
            named_consumer_strategy=SystemConsumerStrategy._from_json(
                _field(data, "namedConsumerStrategy")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolveLinktos": self.resolve_linktos,
            "startFrom": stream_position_to_json(self.start_from),
            "startPosition": self.start_position,
            "messageTimeoutMilliseconds": self.message_timeout_milliseconds,
            "extraStatistics": self.extra_statistics,
            "maxRetryCount": self.max_retry_count,
            "liveBufferSize": self.live_buffer_size,
            "bufferSize": self.buffer_size,
            "readBatchSize": self.read_batch_size,
            "preferRoundRobin": self.prefer_round_robin,
            "checkPointAfterMilliseconds": self.checkpoint_after_milliseconds,
            "minCheckPointCount": self.min_checkpoint_count,
            "maxCheckPointCount": self.max_checkpoint_count,
            "maxSubscriberCount": self.max_subscriber_count,
            "namedConsumerStrategy": self.named_consumer_strategy._to_json(),
        }


@dataclass
class PersistentSubscriptionInfoHttpJson:
    """Persistent subscription information as reported over HTTP."""

    event_stream_id: str
    group_name: str
    status: str
    average_items_per_second: float
    total_items_processed: int
    last_processed_event_number: int
    last_checkpointed_event_position: Optional[str]
    last_known_event_position: Optional[str]
    last_known_event_number: int
    total_in_flight_messages: int
    config: Optional[PersistentSubscriptionConfig] = None
    connection_count: int = 0
    read_buffer_count: int = 0
    live_buffer_count: int = 0
    retry_buffer_count: int = 0
    outstanding_messages_count: int = 0
    parked_message_count: int = 0
    count_since_last_measurement: int = 0
    connections: List[PersistentSubscriptionConnectionInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PersistentSubscriptionInfoHttpJson:
        config = data.get("config")
        connections = _field(data, "connections", [])
        if not isinstance(connections, list):
            raise ValueError("'connections': expected a list")
        return cls(
            event_stream_id=_string(data, "eventStreamId"),
            group_name=_string(data, "groupName"),
            status=_string(data, "status"),
            average_items_per_second=_number(data, "averageItemsPerSecond"),
            total_items_processed=_unsigned(data, "totalItemsProcessed"),
            last_processed_event_number=_signed(data, "lastProcessedEventNumber"),
            last_checkpointed_event_position=_optional_string(
                data, "lastCheckpointedEventPosition"
            ),
            last_known_event_position=_optional_string(data, "lastKnownEventPosition"),
            last_known_event_number=_signed(data, "lastKnownEventNumber"),
            total_in_flight_messages=_unsigned(data, "totalInFlightMessages"),
            config=None if config is None else PersistentSubscriptionConfig.from_dict(config),
            connection_count=_unsigned(data, "connectionCount", 0),
            read_buffer_count=_unsigned(data, "readBufferCount", 0),
            live_buffer_count=_unsigned(data, "liveBufferCount", 0),
            retry_buffer_count=_unsigned(data, "retryBufferCount", 0),
            outstanding_messages_count=_unsigned(data, "outstandingMessagesCount", 0),
            parked_message_count=_unsigned(data, "parkedMessageCount", 0),
            count_since_last_measurement=_unsigned(data, "countSinceLastMeasurement", 0),
            connections=[
                PersistentSubscriptionConnectionInfo.from_dict(item) for item in connections
            ],
        )


@dataclass
class PersistentSubscriptionInfo(Generic[A]):
    """A persistent subscription with its settings, connections and statistics."""

    event_source: str
    group_name: str
    status: str
    connections: List[PersistentSubscriptionConnectionInfo] = field(default_factory=list)
    settings: Optional[PersistentSubscriptionSettings[A]] = None
    stats: PersistentSubscriptionStats = field(default_factory=PersistentSubscriptionStats)

    def map(self, func: Callable[[A], B]) -> PersistentSubscriptionInfo[B]:
        """Return a copy whose settings' start position is transformed by ``func``."""
        settings = None if self.settings is None else self.settings.map(func)
        return replace(self, settings=settings)