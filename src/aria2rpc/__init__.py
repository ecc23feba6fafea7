"""aria2 JSON-RPC client

This module provides an asyncio client for aria2's JSON-RPC interface,
correlating many concurrent calls over one WebSocket connection.
"""

from aria2rpc.client import Aria2Client, ClientConfig
from aria2rpc.error import (
    ConnectionLostError,
    DuplicateIdentifierError,
    ErrorCode,
    InvalidStateError,
    RemoteError,
    RpcError,
    RpcTimeoutError,
    TransportConnectError,
    TransportSendError,
)
from aria2rpc.ids import CallId, CallIdAllocator
from aria2rpc.session import SessionHooks, SessionState, TransportSession
from aria2rpc.transports import Transport, WebSocketTransport, build_url
from aria2rpc.wire import UNSET, WireNotification

__version__ = "0.1.0"

__all__ = [
    # Client
    "Aria2Client",
    "ClientConfig",
    # Session
    "TransportSession",
    "SessionState",
    "SessionHooks",
    "Transport",
    "WebSocketTransport",
    "build_url",
    # Core types
    "CallId",
    "CallIdAllocator",
    "UNSET",
    "WireNotification",
    # Errors
    "RpcError",
    "ErrorCode",
    "TransportConnectError",
    "TransportSendError",
    "ConnectionLostError",
    "RemoteError",
    "DuplicateIdentifierError",
    "InvalidStateError",
    "RpcTimeoutError",
]
