"""Positions, revisions and other small value types shared by the client."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1

A = TypeVar("A")
B = TypeVar("B")

_POSITION_PATTERN = re.compile(r"C:(\d+)/P:(\d+)")


def _check_unsigned(name: str, value: object, upper: int = U64_MAX) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= upper:
        raise ValueError(f"{name} must be between 0 and {upper}, got {value}")


@dataclass(frozen=True, order=True)
class Position:
    """A logical record position in the transaction file, ordered by commit then prepare."""

    commit: int
    prepare: int

    def __post_init__(self) -> None:
        _check_unsigned("commit", self.commit)
        _check_unsigned("prepare", self.prepare)

    def __str__(self) -> str:
        return f"C:{self.commit}/P:{self.prepare}"

    @classmethod
    def start(cls) -> Position:
        """Points to the beginning of the transaction file."""
        return cls(0, 0)

    @classmethod
    def end(cls) -> Position:
        """Points to the end of the transaction file."""
        return cls(U64_MAX, U64_MAX)

    @classmethod
    def parse(cls, text: str) -> Position:
        """Parse a position written as ``C:<commit>/P:<prepare>``."""
        match = _POSITION_PATTERN.fullmatch(text.strip())
        if match is None:
            raise ValueError(f"can't parse a transaction log position out of this: '{text}'")
        return cls(int(match.group(1)), int(match.group(2)))


class _Anchor(enum.Enum):
    START = "start"
    END = "end"
    POSITION = "position"


@dataclass(frozen=True)
class StreamPosition(Generic[A]):
    """Either the start, the end, or a concrete position within a stream."""

    kind: _Anchor
    value: Optional[A] = None

    @classmethod
    def start(cls) -> StreamPosition:
        return cls(_Anchor.START)

    @classmethod
    def end(cls) -> StreamPosition:
        return cls(_Anchor.END)

    @classmethod
    def at(cls, value: A) -> StreamPosition[A]:
        return cls(_Anchor.POSITION, value)

    @property
    def is_start(self) -> bool:
        return self.kind is _Anchor.START

    @property
    def is_end(self) -> bool:
        return self.kind is _Anchor.END

    @property
    def is_position(self) -> bool:
        return self.kind is _Anchor.POSITION

    def map(self, func: Callable[[A], B]) -> StreamPosition[B]:
        """Apply ``func`` to the concrete position, leaving start and end untouched."""
        if self.kind is _Anchor.POSITION:
            return StreamPosition.at(func(self.value))
        return StreamPosition(self.kind)


class _ExpectedKind(enum.Enum):
    ANY = "Any"
    STREAM_EXISTS = "StreamExists"
    NO_STREAM = "NoStream"
    EXACT = "Exact"


@dataclass(frozen=True)
class ExpectedRevision:
    """The revision a write expects the target stream to be at."""

    kind: _ExpectedKind
    revision: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind is _ExpectedKind.EXACT:
            _check_unsigned("revision", self.revision)
        elif self.revision is not None:
            raise ValueError(f"{self.kind.value} carries no revision")

    def __str__(self) -> str:
        if self.kind is _ExpectedKind.EXACT:
            return f"Exact({self.revision})"
        return self.kind.value

    @classmethod
    def any(cls) -> ExpectedRevision:
        return cls(_ExpectedKind.ANY)

    @classmethod
    def stream_exists(cls) -> ExpectedRevision:
        return cls(_ExpectedKind.STREAM_EXISTS)

    @classmethod
    def no_stream(cls) -> ExpectedRevision:
        return cls(_ExpectedKind.NO_STREAM)

    @classmethod
    def exact(cls, revision: int) -> ExpectedRevision:
        return cls(_ExpectedKind.EXACT, revision)

    @property
    def is_exact(self) -> bool:
        return self.kind is _ExpectedKind.EXACT


@dataclass(frozen=True)
class CurrentRevision:
    """The actual revision of a stream, or ``None`` when the stream doesn't exist."""

    revision: Optional[int]

    def __post_init__(self) -> None:
        if self.revision is not None:
            _check_unsigned("revision", self.revision)

    def __str__(self) -> str:
        if self.revision is None:
            return "NoStream"
        return f"Current({self.revision})"

    @classmethod
    def current(cls, revision: int) -> CurrentRevision:
        return cls(revision)

    @classmethod
    def no_stream(cls) -> CurrentRevision:
        return cls(None)

    @property
    def exists(self) -> bool:
        return self.revision is not None


@dataclass(frozen=True)
class RevisionOrPosition:
    """A stream revision or a position in the ``$all`` stream."""

    value: Union[int, Position]

    def __post_init__(self) -> None:
        if not isinstance(self.value, Position):
            _check_unsigned("revision", self.value)

    @property
    def is_revision(self) -> bool:
        return not isinstance(self.value, Position)

    def to_json(self) -> Union[int, str]:
        """Revisions serialize as numbers, positions as ``C:<commit>/P:<prepare>``."""
        if isinstance(self.value, Position):
            return str(self.value)
        return self.value


@dataclass(frozen=True)
class WriteResult:
    """Returned after writing to a stream."""

    next_expected_version: int
    position: Position


@dataclass(frozen=True, order=True)
class Endpoint:
    """A host and port pair."""

    host: str
    port: int

    def __post_init__(self) -> None:
        _check_unsigned("port", self.port, U32_MAX)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class Retry:
    """A reconnection strategy: retry forever, or only a limited number of times."""

    limit: Optional[int]

    def __post_init__(self) -> None:
        if self.limit is not None:
            _check_unsigned("count", self.limit)

    @classmethod
    def indefinitely(cls) -> Retry:
        return cls(None)

    @classmethod
    def only(cls, count: int) -> Retry:
        return cls(count)

    @property
    def is_indefinite(self) -> bool:
        return self.limit is None