from datetime import timedelta

import pytest

from esdbkit.errors import UnsupportedFeatureError
from esdbkit.persistent import (
    PersistentSubscriptionConfig,
    PersistentSubscriptionConnectionInfo,
    PersistentSubscriptionInfo,
    PersistentSubscriptionInfoHttpJson,
    PersistentSubscriptionMeasurements,
    PersistentSubscriptionSettings,
    PersistentSubscriptionStats,
    SystemConsumerStrategy,
    stream_position_from_json,
    stream_position_to_json,
)
from esdbkit.positions import Position, RevisionOrPosition, StreamPosition


def _config_dict():
    return {
        "resolveLinktos": True,
        "startFrom": 0,
        "startPosition": "",
        "messageTimeoutMilliseconds": 30000,
        "extraStatistics": False,
        "maxRetryCount": 10,
        "liveBufferSize": 500,
        "bufferSize": 500,
        "readBatchSize": 20,
        "preferRoundRobin": True,
        "checkPointAfterMilliseconds": 2000,
        "minCheckPointCount": 10,
        "maxCheckPointCount": 1000,
        "maxSubscriberCount": 0,
        "namedConsumerStrategy": "RoundRobin",
    }


def _connection_dict():
    return {
        "from": "localhost:2113",
        "username": "admin",
        "averageItemsPerSecond": 1.5,
        "totalItemsProcessed": 3,
        "countSinceLastMeasurement": 0,
        "availableSlots": 10,
        "inFlightMessages": 0,
        "connectionName": "conn",
        "extraStatistics": [{"key": "latency", "value": 5}],
    }


def test_default_settings_match_server_defaults():
    settings = PersistentSubscriptionSettings()
    assert settings.resolve_link_tos is False
    assert settings.start_from == StreamPosition.end()
    assert settings.message_timeout == timedelta(seconds=30)
    assert settings.max_retry_count == 10
    assert settings.live_buffer_size == 500
    assert settings.read_batch_size == 20
    assert settings.history_buffer_size == 500
    assert settings.checkpoint_after == timedelta(seconds=2)
    assert settings.checkpoint_lower_bound == 10
    assert settings.checkpoint_upper_bound == 1_000
    assert settings.max_subscriber_count == 0
    assert settings.consumer_strategy_name == SystemConsumerStrategy.ROUND_ROBIN


@pytest.mark.parametrize(
    "strategy, code",
    [
        (SystemConsumerStrategy.DISPATCH_TO_SINGLE, 0),
        (SystemConsumerStrategy.ROUND_ROBIN, 1),
        (SystemConsumerStrategy.PINNED, 2),
    ],
)
def test_strategy_codes(strategy, code):
    settings = PersistentSubscriptionSettings(consumer_strategy_name=strategy)
    assert settings.named_consumer_strategy_code() == code


@pytest.mark.parametrize(
    "strategy",
    [SystemConsumerStrategy.PINNED_BY_CORRELATION, SystemConsumerStrategy.from_name("Mine")],
)
def test_unsupported_strategy_codes(strategy):
    settings = PersistentSubscriptionSettings(consumer_strategy_name=strategy)
    with pytest.raises(UnsupportedFeatureError):
        settings.named_consumer_strategy_code()


def test_strategy_from_name():
    assert SystemConsumerStrategy.from_name("Pinned") == SystemConsumerStrategy.PINNED
    assert not SystemConsumerStrategy.from_name("RoundRobin").is_custom
    custom = SystemConsumerStrategy.from_name("Mine")
    assert custom.is_custom
    assert str(custom) == "Mine"
    assert str(SystemConsumerStrategy.DISPATCH_TO_SINGLE) == "DispatchToSingle"


def test_settings_map_transforms_position_only():
    settings = PersistentSubscriptionSettings(start_from=StreamPosition.at(5), max_retry_count=7)
    mapped = settings.map(RevisionOrPosition)
    assert mapped.start_from == StreamPosition.at(RevisionOrPosition(5))
    assert mapped.max_retry_count == 7
    assert settings.start_from == StreamPosition.at(5)


def test_settings_map_keeps_end():
    mapped = PersistentSubscriptionSettings().map(RevisionOrPosition)
    assert mapped.start_from == StreamPosition.end()


def test_stream_position_to_json():
    assert stream_position_to_json(StreamPosition.start()) == 0
    assert stream_position_to_json(StreamPosition.end()) == -1
    assert stream_position_to_json(StreamPosition.at(RevisionOrPosition(42))) == 42
    position = StreamPosition.at(RevisionOrPosition(Position(1110, 1110)))
    assert stream_position_to_json(position) == "C:1110/P:1110"


def test_stream_position_from_json():
    assert stream_position_from_json(-1) == StreamPosition.end()
    assert stream_position_from_json(0) == StreamPosition.start()
    assert stream_position_from_json(7) == StreamPosition.at(RevisionOrPosition(7))
    assert stream_position_from_json("C:1056/P:1056") == StreamPosition.at(
        RevisionOrPosition(Position(1056, 1056))
    )


@pytest.mark.parametrize("value", ["garbage", True, None, 1.5])
def test_stream_position_from_json_rejects(value):
    with pytest.raises(ValueError):
        stream_position_from_json(value)


@pytest.mark.parametrize(
    "position",
    [
        StreamPosition.start(),
        StreamPosition.end(),
        StreamPosition.at(RevisionOrPosition(12)),
        StreamPosition.at(RevisionOrPosition(Position(3, 4))),
    ],
)
def test_stream_position_round_trip(position):
    assert stream_position_from_json(stream_position_to_json(position)) == position


def test_measurements_access():
    measurements = PersistentSubscriptionMeasurements({"a": 1, "b": 2})
    assert measurements.get("a") == 1
    assert measurements.get("missing") is None
    assert dict(measurements.entries()) == {"a": 1, "b": 2}


def test_connection_info_from_dict():
    info = PersistentSubscriptionConnectionInfo.from_dict(_connection_dict())
    assert info.from_ == "localhost:2113"
    assert info.total_items == 3
    assert info.extra_statistics.get("latency") == 5


def test_connection_info_to_dict_skips_extra_statistics():
    data = _connection_dict()
    result = PersistentSubscriptionConnectionInfo.from_dict(data).to_dict()
    assert "extraStatistics" not in result
    assert result == {key: value for key, value in data.items() if key != "extraStatistics"}


def test_connection_info_defaults_extra_statistics():
    data = _connection_dict()
    del data["extraStatistics"]
    info = PersistentSubscriptionConnectionInfo.from_dict(data)
    assert list(info.extra_statistics.entries()) == []


def test_connection_info_missing_field():
    data = _connection_dict()
    del data["username"]
    with pytest.raises(ValueError):
        PersistentSubscriptionConnectionInfo.from_dict(data)


def test_config_round_trip():
    data = _config_dict()
    config = PersistentSubscriptionConfig.from_dict(data)
    assert config.start_from == StreamPosition.start()
    assert config.named_consumer_strategy == SystemConsumerStrategy.ROUND_ROBIN
    assert config.to_dict() == data


def test_config_custom_strategy_round_trip():
    data = _config_dict()
    data["namedConsumerStrategy"] = {"Custom": "Mine"}
    config = PersistentSubscriptionConfig.from_dict(data)
    assert config.named_consumer_strategy.is_custom
    assert config.to_dict() == data


def test_config_rejects_unknown_plain_strategy():
    data = _config_dict()
    data["namedConsumerStrategy"] = "Mine"
    with pytest.raises(ValueError):
        PersistentSubscriptionConfig.from_dict(data)


def test_config_start_position_defaults_to_empty():
    data = _config_dict()
    del data["startPosition"]
    assert PersistentSubscriptionConfig.from_dict(data).start_position == ""


def _http_minimal():
    return {
        "eventStreamId": "some-stream",
        "groupName": "subscription-group",
        "status": "Live",
        "averageItemsPerSecond": 0,
        "totalItemsProcessed": 0,
        "lastProcessedEventNumber": -1,
        "lastKnownEventNumber": -1,
        "totalInFlightMessages": 0,
    }


def test_http_json_defaults():
    info = PersistentSubscriptionInfoHttpJson.from_dict(_http_minimal())
    assert info.event_stream_id == "some-stream"
    assert info.group_name == "subscription-group"
    assert info.connection_count == 0
    assert info.parked_message_count == 0
    assert info.connections == []
    assert info.config is None
    assert info.last_known_event_position is None


def test_http_json_nested():
    data = _http_minimal()
    data["config"] = _config_dict()
    data["connections"] = [_connection_dict()]
    data["lastKnownEventPosition"] = "C:1/P:1"
    info = PersistentSubscriptionInfoHttpJson.from_dict(data)
    assert info.config.to_dict() == _config_dict()
    assert [c.connection_name for c in info.connections] == ["conn"]
    assert info.last_known_event_position == "C:1/P:1"


def test_http_json_missing_required():
    data = _http_minimal()
    del data["groupName"]
    with pytest.raises(ValueError):
        PersistentSubscriptionInfoHttpJson.from_dict(data)


def test_info_map():
    info = PersistentSubscriptionInfo(
        event_source="some-stream",
        group_name="subscription-group",
        status="Live",
        settings=PersistentSubscriptionSettings(start_from=StreamPosition.at(5)),
    )
    mapped = info.map(RevisionOrPosition)
    assert mapped.settings.start_from == StreamPosition.at(RevisionOrPosition(5))
    assert mapped.group_name == info.group_name
    assert mapped.stats == PersistentSubscriptionStats()


def test_info_map_without_settings():
    info = PersistentSubscriptionInfo("some-stream", "subscription-group", "Live")
    mapped = info.map(RevisionOrPosition)
    assert mapped.settings is None
    assert mapped == info