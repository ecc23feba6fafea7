"""Transport session: connection lifecycle and call correlation.

A ``TransportSession`` owns one transport connection, the call identifier
counter, and the outstanding-call table. Calls are stamped and registered
by the envelope builder, written to the transport, and settled by the
response dispatcher as replies arrive on a background receive task.

State machine::

    DISCONNECTED --connect()--> CONNECTING --opened--> OPEN
    CONNECTING --error--> FAULTED
    OPEN --closed/error/disconnect()--> CLOSED

Every call still outstanding when the session leaves OPEN is rejected
with ``ConnectionLostError``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Self

from aria2rpc.dispatcher import ResponseDispatcher
from aria2rpc.envelope import EnvelopeBuilder
from aria2rpc.error import RpcError
from aria2rpc.ids import CallId, CallIdAllocator
from aria2rpc.tables import PendingCallTable

if TYPE_CHECKING:
    from aria2rpc.transports import Transport
    from aria2rpc.wire import WireNotification, WireRequest

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Connection lifecycle states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAULTED = "faulted"

    def __str__(self) -> str:
        return self.value


@dataclass
class SessionHooks:
    """Typed lifecycle callbacks.

    Hooks run on the event loop. Exceptions raised by a hook are logged
    and do not affect the session.
    """

    on_state_change: Callable[[SessionState, SessionState], None] | None = None
    on_notification: Callable[[WireNotification], None] | None = None
    on_malformed_frame: Callable[[str, ValueError], None] | None = None


class TransportSession:
    """Correlates concurrent calls over a single transport connection."""

    def __init__(
        self,
        transport: Transport,
        secret: str | None = None,
        hooks: SessionHooks | None = None,
    ) -> None:
        self._transport = transport
        self.hooks = hooks or SessionHooks()
        self._state = SessionState.DISCONNECTED
        self._allocator = CallIdAllocator()
        self._table = PendingCallTable()
        self._builder = EnvelopeBuilder(self._allocator, self._table, secret=secret)
        self._dispatcher = ResponseDispatcher(
            self._table,
            on_notification=lambda n: self._run_hook("on_notification", n),
            on_malformed_frame=lambda t, e: self._run_hook("on_malformed_frame", t, e),
        )
        self._listener_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    @property
    def table(self) -> PendingCallTable:
        """The outstanding-call table (read it, do not mutate it)."""
        return self._table

    @property
    def builder(self) -> EnvelopeBuilder:
        return self._builder

    @property
    def dispatcher(self) -> ResponseDispatcher:
        return self._dispatcher

    @property
    def pending_count(self) -> int:
        """Number of calls currently in flight."""
        return len(self._table)

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.disconnect()

    async def connect(self) -> None:
        """Open the transport and start receiving frames.

        Raises:
            InvalidStateError: If already connecting or open
            TransportConnectError: If the transport failed to open
        """
        if self._state in (SessionState.CONNECTING, SessionState.OPEN):
            msg = f"Cannot connect while {self._state}"
            raise RpcError.invalid_state(msg)

        self._set_state(SessionState.CONNECTING)
        try:
            await self._transport.open()
        except Exception as e:
            self._set_state(SessionState.FAULTED)
            msg = f"Could not connect: {e}"
            raise RpcError.connect_failed(msg) from e
        except BaseException:
            self._set_state(SessionState.FAULTED)
            raise

        if self._state is not SessionState.CONNECTING:
            # disconnect() was called during the handshake
            await self._close_transport()
            msg = "Session was closed while connecting"
            raise RpcError.connect_failed(msg)

        self._set_state(SessionState.OPEN)
        self._listener_task = asyncio.create_task(self._listen_loop())

    async def disconnect(self) -> None:
        """Close the session. A no-op unless connecting or open."""
        if self._state not in (SessionState.CONNECTING, SessionState.OPEN):
            return

        was_open = self._state is SessionState.OPEN
        self._set_state(SessionState.CLOSED)

        task = self._listener_task
        self._listener_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

        if was_open:
            await self._close_transport()
            self._drain("Session disconnected")

    async def send(self, request: WireRequest) -> None:
        """Write an already-registered envelope to the transport.

        A failure is reported through that call's future only.
        """
        call_id = CallId(request.id)
        if self._state is not SessionState.OPEN:
            msg = f"Cannot send {request.method} while {self._state}"
            self._table.reject(call_id, RpcError.send_failed(msg))
            return

        logger.debug("Sending %s (%s)", request.method, call_id)
        try:
            await self._transport.send(request.serialize())
        except Exception as e:
            logger.debug("Send failed for %s: %s", call_id, e)
            msg = f"Could not send {request.method}: {e}"
            self._table.reject(call_id, RpcError.send_failed(msg))

    async def submit(
        self, method: str, params: Sequence[Any] = ()
    ) -> asyncio.Future[Any]:
        """Issue a call and return its future without waiting for the reply.

        Raises:
            InvalidStateError: If the session is not open
        """
        _, future = await self._issue(method, params)
        return future

    async def call(
        self,
        method: str,
        params: Sequence[Any] = (),
        timeout: float | None = None,
    ) -> Any:
        """Issue a call and wait for its reply.

        Args:
            method: Method name (``addUri`` or ``aria2.addUri``)
            params: Positional parameters; ``UNSET`` entries are dropped
            timeout: Seconds to wait, or None to wait until the reply or
                until the connection is lost

        Returns:
            The ``result`` member of the reply

        Raises:
            InvalidStateError: If the session is not open
            TransportSendError: If the envelope could not be sent
            RemoteError: If the peer replied with an error
            ConnectionLostError: If the connection closed first
            RpcTimeoutError: If ``timeout`` elapsed first
        """
        request, future = await self._issue(method, params)
        if timeout is None:
            return await future

        try:
            return await asyncio.wait_for(future, timeout)
        except TimeoutError:
            self._table.forget(CallId(request.id))
            msg = f"No reply to {request.method} ({request.id}) within {timeout}s"
            raise RpcError.timeout(msg) from None

    def forget(self, call_id: CallId) -> bool:
        """Stop tracking a call. A reply that arrives later is dropped."""
        return self._table.forget(call_id)

    async def _issue(
        self, method: str, params: Sequence[Any]
    ) -> tuple[WireRequest, asyncio.Future[Any]]:
        if self._state is not SessionState.OPEN:
            msg = f"Cannot call {method} while {self._state}"
            raise RpcError.invalid_state(msg)
        request, future = self._builder.build(method, params)
        await self.send(request)
        return request, future

    async def _listen_loop(self) -> None:
        """Receive frames until the transport closes or fails."""
        logger.debug("Listener started")
        reason: BaseException | None = None
        try:
            while self._state is SessionState.OPEN:
                text = await self._transport.receive()
                logger.debug("Received frame: %s", text[:200])
                self._dispatcher.dispatch(text)
        except ConnectionError as e:
            reason = e
        except Exception as e:
            logger.exception("Error in listener")
            reason = e
        await self._handle_connection_lost(reason)

    async def _handle_connection_lost(self, reason: BaseException | None) -> None:
        if self._state is not SessionState.OPEN:
            return
        logger.info("Connection lost: %s", reason)
        self._listener_task = None
        # Callers woken by the drain may reconnect at once
        await self._close_transport()
        if self._state is not SessionState.OPEN:
            # disconnect() ran while the transport was closing and drained
            return
        self._set_state(SessionState.CLOSED)
        self._drain(f"Connection lost: {reason}")

    def _drain(self, message: str) -> None:
        count = self._table.drain_all(RpcError.connection_lost(message))
        if count:
            logger.warning("Rejected %d outstanding call(s): %s", count, message)

    async def _close_transport(self) -> None:
        try:
            await self._transport.close()
        except Exception:
            logger.exception("Error closing transport")

    def _set_state(self, state: SessionState) -> None:
        old, self._state = self._state, state
        if old is not state:
            logger.debug("Session %s -> %s", old, state)
            self._run_hook("on_state_change", old, state)

    def _run_hook(self, name: str, *args: Any) -> None:
        hook = getattr(self.hooks, name)
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception("Error in %s hook", name)
