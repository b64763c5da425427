"""Errors raised by the client and the mapping from gRPC statuses to them."""

from __future__ import annotations

import enum
import re
from typing import Mapping, Optional, Union

from esdbkit.positions import U32_MAX, CurrentRevision, Endpoint, ExpectedRevision


class GrpcCode(enum.IntEnum):
    """Standard gRPC status codes."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class EventStoreError(Exception):
    """Base class of every error raised by the client."""


class ServerError(EventStoreError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Server-side error: {message}")


class NotLeaderError(EventStoreError):
    def __init__(self, leader: Endpoint) -> None:
        self.leader = leader
        super().__init__(
            "You tried to execute a command that requires a leader node on a follower node. "
            f"New leader: {leader}"
        )


class ConnectionClosedError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("Connection is closed.")


class UnmappedGrpcError(EventStoreError):
    def __init__(self, code: GrpcCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"Unmapped gRPC error: code: {code.name}, message: {message}.")


class GrpcConnectionError(EventStoreError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"gRPC connection error: Unmapped gRPC connection error: {message}.")


class MaxDiscoveryAttemptReached(GrpcConnectionError):
    def __init__(self, count: int) -> None:
        self.count = count
        self.message = f"Max discovery attempt count reached. count: {count}"
        EventStoreError.__init__(self, f"gRPC connection error: {self.message}")


class InternalParsingError(EventStoreError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Internal parsing error: {message}")


class AccessDeniedError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("Access denied error")


class ResourceAlreadyExistsError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("The resource you tried to create already exists")


class ResourceNotFoundError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("The resource you asked for doesn't exist")


class ResourceDeletedError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("The resource you asked for was deleted")


class UnsupportedFeatureError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("The operation is unsupported by the server")


class InternalClientError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("Unexpected internal client error. Please fill an issue on GitHub")


class DeadlineExceededError(EventStoreError):
    def __init__(self) -> None:
        super().__init__("Deadline exceeded")


class InitializationError(EventStoreError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Initialization error: {message}")


class IllegalStateError(EventStoreError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Illegal state error: {message}")


class WrongExpectedVersionError(EventStoreError):
    def __init__(self, expected: ExpectedRevision, current: CurrentRevision) -> None:
        self.expected = expected
        self.current = current
        super().__init__(f"Wrong expected version: expected '{expected}' but got '{current}'")


_PORT_PATTERN = re.compile(r"\+?\d+")

_SERVER_SIDE_CODES = frozenset(
    {GrpcCode.UNAVAILABLE, GrpcCode.INTERNAL, GrpcCode.DATA_LOSS, GrpcCode.UNKNOWN}
)


def _leader_endpoint(metadata: Mapping[str, str]) -> Optional[Endpoint]:
    host = metadata.get("leader-endpoint-host")
    port = metadata.get("leader-endpoint-port")
    if host is None or port is None or not _PORT_PATTERN.fullmatch(port):
        return None
    port_number = int(port)
    if port_number > U32_MAX:
        return None
    return Endpoint(host, port_number)


def from_grpc(
    code: Union[GrpcCode, int],
    message: str,
    metadata: Optional[Mapping[str, str]] = None,
) -> EventStoreError:
    """Map a gRPC status (code, message and trailing metadata) to a client error."""
    code = GrpcCode(code)
    metadata = metadata or {}
    exception = metadata.get("exception")

    if exception == "not-leader":
        leader = _leader_endpoint(metadata)
        if leader is not None:
            return NotLeaderError(leader)

    if exception == "stream-deleted":
        return ResourceDeletedError()

    if (code is GrpcCode.CANCELLED and message == "Timeout expired") or (
        code is GrpcCode.DEADLINE_EXCEEDED
    ):
        return DeadlineExceededError()

    if code in (GrpcCode.UNAUTHENTICATED, GrpcCode.PERMISSION_DENIED):
        return AccessDeniedError()

    if code is GrpcCode.ALREADY_EXISTS:
        return ResourceAlreadyExistsError()

    if code is GrpcCode.NOT_FOUND:
        return ResourceNotFoundError()

    if code in _SERVER_SIDE_CODES:
        return ServerError(f'status: {code.name}, message: "{message}"')

    if code is GrpcCode.UNIMPLEMENTED:
        return UnsupportedFeatureError()

    return UnmappedGrpcError(code, message)