import pytest

from esdbkit.positions import (
    CurrentRevision,
    Endpoint,
    ExpectedRevision,
    Position,
    Retry,
    RevisionOrPosition,
    StreamPosition,
    WriteResult,
)


def test_start_is_zero_and_before_end():
    start = Position.start()
    end = Position.end()
    assert start.commit == 0 and start.prepare == 0
    assert start < end
    assert end.commit == end.prepare


def test_position_orders_by_commit_first():
    assert Position(1, 5) < Position(2, 0)
    assert Position(2, 1) < Position(2, 3)
    assert sorted([Position(3, 0), Position(1, 9), Position(1, 2)]) == [
        Position(1, 2),
        Position(1, 9),
        Position(3, 0),
    ]


def test_position_text_format():
    assert str(Position(1110, 1110)) == "C:1110/P:1110"


@pytest.mark.parametrize(
    "position", [Position.start(), Position.end(), Position(1056, 1056), Position(7, 3)]
)
def test_position_parse_round_trip(position):
    assert Position.parse(str(position)) == position


@pytest.mark.parametrize("text", ["", "C:1", "C:1/P:", "P:1/C:2", "C:-1/P:2", "C:a/P:b"])
def test_position_parse_rejects_garbage(text):
    with pytest.raises(ValueError):
        Position.parse(text)


def test_position_rejects_negative_values():
    with pytest.raises(ValueError):
        Position(-1, 0)


def test_position_rejects_values_above_u64():
    with pytest.raises(ValueError):
        Position(Position.end().commit + 1, 0)


def test_stream_position_map_transforms_only_concrete_positions():
    assert StreamPosition.at(10).map(lambda v: v * 2) == StreamPosition.at(20)
    assert StreamPosition.start().map(lambda v: v * 2) == StreamPosition.start()
    assert StreamPosition.end().map(lambda v: v * 2) == StreamPosition.end()


def test_stream_position_kinds():
    assert StreamPosition.start().is_start
    assert StreamPosition.end().is_end
    pos = StreamPosition.at(Position(1056, 1056))
    assert pos.is_position and pos.value == Position(1056, 1056)
    assert StreamPosition.start() != StreamPosition.end()


def test_expected_revision_text():
    assert str(ExpectedRevision.any()) == "Any"
    assert str(ExpectedRevision.stream_exists()) == "StreamExists"
    assert str(ExpectedRevision.no_stream()) == "NoStream"
    assert str(ExpectedRevision.exact(4)).startswith("Exact(")


def test_expected_revision_equality():
    assert ExpectedRevision.exact(4) == ExpectedRevision.exact(4)
    assert ExpectedRevision.exact(4) != ExpectedRevision.exact(5)
    assert ExpectedRevision.exact(4).revision == 4
    assert ExpectedRevision.exact(4).is_exact
    assert not ExpectedRevision.any().is_exact


def test_expected_revision_rejects_negative():
    with pytest.raises(ValueError):
        ExpectedRevision.exact(-3)


def test_current_revision():
    assert str(CurrentRevision.no_stream()) == "NoStream"
    assert CurrentRevision.current(9).revision == 9
    assert CurrentRevision.current(9).exists
    assert not CurrentRevision.no_stream().exists


def test_revision_or_position_json():
    assert RevisionOrPosition(42).to_json() == 42
    pos = Position(1056, 1056)
    assert RevisionOrPosition(pos).to_json() == str(pos)
    assert Position.parse(RevisionOrPosition(pos).to_json()) == pos


def test_revision_or_position_rejects_negative_revision():
    with pytest.raises(ValueError):
        RevisionOrPosition(-1)


def test_write_result_holds_values():
    result = WriteResult(next_expected_version=2, position=Position(5, 5))
    assert result.next_expected_version == 2
    assert result.position.prepare == result.position.commit


def test_endpoint_ordering_and_text():
    assert Endpoint("a", 2113) < Endpoint("b", 1)
    assert Endpoint("localhost", 2113) == Endpoint("localhost", 2113)
    assert str(Endpoint("localhost", 2113)) == "localhost:2113"


def test_endpoint_rejects_bad_port():
    with pytest.raises(ValueError):
        Endpoint("localhost", -1)


def test_retry_strategies():
    assert Retry.indefinitely().is_indefinite
    assert Retry.indefinitely().limit is None
    assert Retry.only(3).limit == 3
    assert not Retry.only(3).is_indefinite


def test_retry_rejects_negative_count():
    with pytest.raises(ValueError):
        Retry.only(-1)