# esdbkit

The data model of an event-store client, in plain Python: the events you
write and read, positions in a stream and in the transaction log, stream
metadata with access control lists, server-side subscription filters,
persistent subscription settings and statistics, and the errors a server can
report.

The package has no dependencies beyond the standard library.

## Installing

```
pip install esdbkit
```

To run the test suite:

```
pip install "esdbkit[test]"
pytest
```

## Modules

| Module                | What it holds |
|-----------------------|---------------|
| `esdbkit.positions`   | `Position`, `StreamPosition`, `ExpectedRevision`, `CurrentRevision`, `RevisionOrPosition`, `WriteResult`, `Endpoint`, `Retry` |
| `esdbkit.errors`      | `EventStoreError` and its subclasses, `GrpcCode`, `from_grpc` |
| `esdbkit.events`      | `EventData`, `RecordedEvent`, `ResolvedEvent`, `ReadEventResult`, `ReadEventStatus`, `ReadStreamError`, `Credentials`, `SubscriptionEvent`, `PersistentSubscriptionEvent`, `NakAction`, `PersistActionResult`, `PersistActionError` |
| `esdbkit.metadata`    | `StreamMetadata`, `StreamMetadataBuilder`, `Acl`, `StreamAcl`, `StreamAclBuilder`, `VersionedMetadata`, `StreamMetadataResult` |
| `esdbkit.persistent`  | `PersistentSubscriptionSettings`, `SystemConsumerStrategy`, `PersistentSubscriptionInfo`, `PersistentSubscriptionInfoHttpJson`, `PersistentSubscriptionConfig`, `PersistentSubscriptionConnectionInfo`, `PersistentSubscriptionStats`, `PersistentSubscriptionMeasurements`, `stream_position_to_json`, `stream_position_from_json` |
| `esdbkit.filters`     | `SubscriptionFilter`, `NodePreference`, `stream_name`, `metadata_stream_name` |

## Events

An event carries a type and a payload. `EventData.json` encodes the payload
as compact JSON and marks it with the `application/json` content type;
`EventData.binary` takes `bytes` or `str` and marks it
`application/octet-stream`. The `id` stays `None` until one is given with
`with_id`.

```python
from uuid import uuid4

from esdbkit.events import EventData

event = EventData.json("some-event", {"id": "1", "important_data": "some value"})
event = event.with_id(uuid4())
event = event.with_json_metadata({"correlation": "abc"})

assert event.event_type == "some-event"
assert event.content_type == "application/json"
```

Each `with_*` method returns a new `EventData`; the original is unchanged.

A `ResolvedEvent` read back from a stream may be a link to another event.
`original_event()` gives the link when there is one and the event otherwise
(and raises `ValueError` when it holds neither); `original_stream_id()` gives
the stream of that event. `is_resolved()` is true when both the link and the
event are present. `RecordedEvent.as_json()` decodes the payload.

`Credentials` holds a login and password as bytes (strings are encoded as
UTF-8) and converts to and from a dictionary with `to_dict` and `from_dict`.

## Positions and revisions

A `Position` is a commit/prepare pair in the transaction log. Positions are
ordered by commit position first, then prepare position, are written as
`C:<commit>/P:<prepare>` and read back with `Position.parse`.

```python
from esdbkit.positions import ExpectedRevision, Position, StreamPosition

assert Position.start() < Position.end()
assert Position.parse("C:1110/P:1110") == Position(1110, 1110)

start = StreamPosition.start()
tenth = StreamPosition.at(10)
assert tenth.map(lambda n: n + 1) == StreamPosition.at(11)

expected = ExpectedRevision.no_stream()
```

`ExpectedRevision` is used for optimistic concurrency when appending:
`any()`, `stream_exists()`, `no_stream()` or `exact(revision)`.
`CurrentRevision` is `current(revision)` or `no_stream()`. `Retry` is
`indefinitely()` or `only(count)`. Revisions, positions and counts must be
unsigned 64-bit integers; anything else raises `TypeError` or `ValueError`.

## Stream metadata

Metadata is built with a builder and serialises to the server's JSON form,
with the system properties under `$maxCount`, `$maxAge`, `$tb`,
`$cacheControl` and `$acl`, and custom properties alongside them. Durations
are `timedelta` values written in whole milliseconds.

```python
from datetime import timedelta

from esdbkit.metadata import Acl, StreamAclBuilder, StreamMetadata

acl = (
    StreamAclBuilder()
    .add_read_roles("admin")
    .add_write_roles("admin")
    .build()
)

metadata = (
    StreamMetadata.builder()
    .max_count(12)
    .max_age(timedelta(seconds=2))
    .truncate_before(1)
    .acl(Acl.stream(acl))
    .insert_custom_property("foo", "bar")
    .build()
)

text = metadata.to_json()
assert StreamMetadata.from_json(text) == metadata
assert metadata.to_dict()["$maxAge"] == 2000
```

`Acl.user_stream()` and `Acl.system_stream()` refer to the server's default
user and system ACLs, written as `$userStreamAcl` and `$systemStreamAcl`. A
role list with a single role is written as a plain string, several as a
list; both forms are accepted when reading.

`StreamMetadataResult` is `deleted()`, `not_found()` or
`success(VersionedMetadata(...))`, checked with `is_deleted()`,
`is_not_found()` and `is_success()`.

## Subscription filters and stream names

```python
from esdbkit.filters import SubscriptionFilter, metadata_stream_name, stream_name

no_system_events = SubscriptionFilter.on_event_type().exclude_system_events()
customers = SubscriptionFilter.on_event_type().add_prefix("customer-")
users = SubscriptionFilter.on_stream_name().with_regex("^user|^company").with_max(32)

assert stream_name("orders") == b"orders"
assert metadata_stream_name("orders") == b"$$orders"
```

Filters are immutable; each method returns a new filter. `stream_name` and
`metadata_stream_name` return bytes; bytes passed in are returned as they
are. `NodePreference` lists the kinds of cluster node to prefer: `LEADER`,
`FOLLOWER`, `RANDOM` and `READ_ONLY_REPLICA`.

## Persistent subscriptions

`PersistentSubscriptionSettings` holds every setting of a persistent
subscription with these defaults: start from the end, a 30 second message
timeout, 10 retries, live and history buffers of 500, batches of 20, a
checkpoint after 2 seconds between 10 and 1000 messages, no subscriber limit
(`0`) and the round-robin strategy.

`SystemConsumerStrategy.from_name` maps a strategy name to its value; names
other than `DispatchToSingle`, `RoundRobin`, `Pinned` and
`PinnedByCorrelation` are kept as custom strategies.
`named_consumer_strategy_code()` gives `0`, `1` or `2` for the first three
and raises `UnsupportedFeatureError` for the rest.

Subscription info as reported by the server's HTTP API is read with
`PersistentSubscriptionInfoHttpJson.from_dict`, its configuration with
`PersistentSubscriptionConfig.from_dict`, and connection details with
`PersistentSubscriptionConnectionInfo.from_dict`. Missing required fields or
values of the wrong type raise `ValueError`. A configured start position is
written by `stream_position_to_json` as `0` for the start, `-1` for the end,
a number for a revision or a `C:<commit>/P:<prepare>` string for a position,
and read back by `stream_position_from_json`.

## Errors

Every error derives from `esdbkit.errors.EventStoreError`, so one `except`
clause catches them all; specific classes such as `ResourceNotFoundError`,
`AccessDeniedError` or `WrongExpectedVersionError` can be caught on their
own. `from_grpc(code, message, metadata)` turns a gRPC status code, message
and trailing metadata into the matching error and returns it, including
`NotLeaderError` carrying the new leader's `Endpoint`:

```python
from esdbkit.errors import GrpcCode, NotLeaderError, from_grpc

error = from_grpc(
    GrpcCode.NOT_FOUND,
    "not leader",
    {"exception": "not-leader", "leader-endpoint-host": "localhost", "leader-endpoint-port": "2113"},
)
assert isinstance(error, NotLeaderError)
assert str(error.leader) == "localhost:2113"
```

## What this package does not do

It holds the data types only. There is no client: it does not connect to a
server, append to or read from streams, run subscriptions or call the gRPC
or HTTP APIs. Code that does those things can build on these types.