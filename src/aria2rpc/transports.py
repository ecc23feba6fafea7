"""Transport implementations for the aria2 JSON-RPC client.

The session only needs a full-duplex text-frame transport: open it, send
text frames, receive text frames, close it. ``WebSocketTransport`` provides
that over aiohttp client WebSockets.
"""

from __future__ import annotations

from typing import Protocol, Self

import aiohttp


class Transport(Protocol):
    """Text-frame, connection-oriented message transport."""

    async def open(self) -> None:
        """Open the connection.

        Raises:
            Exception: Any error means the connection never opened
        """
        ...

    async def send(self, text: str) -> None:
        """Send one text frame."""
        ...

    async def receive(self) -> str:
        """Wait for the next text frame.

        Raises:
            ConnectionError: When the connection closes or fails
        """
        ...

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        ...


def build_url(
    host: str, port: int | None = None, *, secure: bool = False, path: str = "/jsonrpc"
) -> str:
    """Build a WebSocket URL.

    Examples:
        >>> build_url("localhost", 6800)
        'ws://localhost:6800/jsonrpc'
        >>> build_url("example.com", secure=True, path="/rpc")
        'wss://example.com/rpc'
    """
    scheme = "wss" if secure else "ws"
    authority = f"{host}:{port}" if port else host
    if path and not path.startswith("/"):
        path = f"/{path}"
    return f"{scheme}://{authority}{path}"


class WebSocketTransport:
    """WebSocket transport implementation.

    Sends and receives one JSON document per text frame.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        heartbeat: float | None = None,
    ) -> None:
        """Initialize the WebSocket transport.

        Args:
            url: The WebSocket URL (e.g., "ws://localhost:6800/jsonrpc")
            timeout: Connect timeout in seconds
            heartbeat: Ping interval in seconds, or None to disable
        """
        if not url.startswith(("ws://", "wss://")):
            msg = f"Unsupported URL scheme: {url}"
            raise ValueError(msg)
        self.url = url
        self.timeout = timeout
        self.heartbeat = heartbeat
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    async def open(self) -> None:
        """Open the WebSocket connection.

        Raises:
            RuntimeError: If already open
            aiohttp.ClientError: If the handshake fails
        """
        if self._ws is not None:
            msg = "WebSocket already connected"
            raise RuntimeError(msg)

        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=None, connect=self.timeout)
        )
        try:
            self._ws = await self._session.ws_connect(
                self.url, heartbeat=self.heartbeat
            )
        except BaseException:
            await self._session.close()
            self._session = None
            raise

    async def send(self, text: str) -> None:
        """Send a text frame.

        Raises:
            RuntimeError: If transport is not connected
            ConnectionError: If the socket is closing or closed
        """
        if not self._ws:
            msg = "WebSocket not connected"
            raise RuntimeError(msg)
        if self._ws.closed:
            msg = "WebSocket closed"
            raise ConnectionError(msg)

        await self._ws.send_str(text)

    async def receive(self) -> str:
        """Receive a text frame.

        Returns:
            Received text

        Raises:
            RuntimeError: If transport is not connected
            ConnectionError: If WebSocket is closed or errored
        """
        if not self._ws:
            msg = "WebSocket not connected"
            raise RuntimeError(msg)

        msg = await self._ws.receive()

        if msg.type == aiohttp.WSMsgType.TEXT:
            return msg.data
        if msg.type == aiohttp.WSMsgType.BINARY:
            return msg.data.decode("utf-8", errors="replace")
        if msg.type in (
            aiohttp.WSMsgType.CLOSE,
            aiohttp.WSMsgType.CLOSING,
            aiohttp.WSMsgType.CLOSED,
        ):
            msg = "WebSocket closed"
            raise ConnectionError(msg)
        if msg.type == aiohttp.WSMsgType.ERROR:
            msg = f"WebSocket error: {self._ws.exception()}"
            raise ConnectionError(msg)
        msg = f"Unexpected message type: {msg.type}"
        raise ValueError(msg)

    async def close(self) -> None:
        """Close the WebSocket connection.

        Handles are detached before awaiting, so a close that finishes late
        never touches a connection opened after it started.
        """
        ws, self._ws = self._ws, None
        session, self._session = self._session, None
        try:
            if ws is not None:
                await ws.close()
        finally:
            if session is not None:
                await session.close()
