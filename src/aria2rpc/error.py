"""Error types for the aria2 JSON-RPC client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Error categories surfaced to callers."""

    CONNECT_FAILED = "connect_failed"
    SEND_FAILED = "send_failed"
    CONNECTION_LOST = "connection_lost"
    REMOTE = "remote"
    DUPLICATE_ID = "duplicate_id"
    INVALID_STATE = "invalid_state"
    TIMEOUT = "timeout"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RpcError(Exception):
    """RPC error with code, message, and optional data."""

    code: ErrorCode
    message: str
    data: Any | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    @staticmethod
    def connect_failed(message: str, data: Any | None = None) -> RpcError:
        """Create a CONNECT_FAILED error."""
        return TransportConnectError(ErrorCode.CONNECT_FAILED, message, data)

    @staticmethod
    def send_failed(message: str, data: Any | None = None) -> RpcError:
        """Create a SEND_FAILED error."""
        return TransportSendError(ErrorCode.SEND_FAILED, message, data)

    @staticmethod
    def connection_lost(message: str, data: Any | None = None) -> RpcError:
        """Create a CONNECTION_LOST error."""
        return ConnectionLostError(ErrorCode.CONNECTION_LOST, message, data)

    @staticmethod
    def remote(payload: Any) -> RpcError:
        """Create a REMOTE error carrying the peer's error payload verbatim."""
        if isinstance(payload, dict) and "message" in payload:
            message = str(payload["message"])
        else:
            message = str(payload)
        return RemoteError(ErrorCode.REMOTE, message, payload)

    @staticmethod
    def duplicate_id(message: str, data: Any | None = None) -> RpcError:
        """Create a DUPLICATE_ID error."""
        return DuplicateIdentifierError(ErrorCode.DUPLICATE_ID, message, data)

    @staticmethod
    def invalid_state(message: str, data: Any | None = None) -> RpcError:
        """Create an INVALID_STATE error."""
        return InvalidStateError(ErrorCode.INVALID_STATE, message, data)

    @staticmethod
    def timeout(message: str, data: Any | None = None) -> RpcError:
        """Create a TIMEOUT error."""
        return RpcTimeoutError(ErrorCode.TIMEOUT, message, data)


class TransportConnectError(RpcError):
    """The connection attempt failed before the session opened."""


class TransportSendError(RpcError):
    """A single outbound call could not be written to the transport."""


class ConnectionLostError(RpcError):
    """The session closed while the call was still outstanding."""


class RemoteError(RpcError):
    """The peer answered the call with an error payload.

    ``data`` holds the payload exactly as received, e.g.
    ``{"code": 1, "message": "Unauthorized"}``.
    """

    @property
    def remote_code(self) -> Any | None:
        """The ``code`` member of the peer's payload, if it has one."""
        if isinstance(self.data, dict):
            return self.data.get("code")
        return None


class DuplicateIdentifierError(RpcError):
    """A call identifier was registered twice (counter bug)."""


class InvalidStateError(RpcError):
    """The session is in the wrong state for the requested operation."""


class RpcTimeoutError(RpcError):
    """The caller stopped waiting for the reply."""
