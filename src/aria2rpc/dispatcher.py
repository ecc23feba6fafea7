"""Response dispatcher: routes inbound frames to outstanding calls."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from aria2rpc.error import RpcError
from aria2rpc.ids import CallId
from aria2rpc.wire import WireNotification, WireResponse, parse_wire_frame

if TYPE_CHECKING:
    from aria2rpc.tables import PendingCallTable

logger = logging.getLogger(__name__)

NotificationHandler = Callable[[WireNotification], None]
MalformedFrameHandler = Callable[[str, ValueError], None]


class ResponseDispatcher:
    """Decodes inbound frames and settles the matching table entry.

    Holds no state beyond its collaborators. Frames that cannot be decoded
    or that match no outstanding call are logged and dropped; they are
    never reported to a caller.
    """

    def __init__(
        self,
        table: PendingCallTable,
        on_notification: NotificationHandler | None = None,
        on_malformed_frame: MalformedFrameHandler | None = None,
    ) -> None:
        self._table = table
        self._on_notification = on_notification
        self._on_malformed_frame = on_malformed_frame

    def dispatch(self, text: str) -> bool:
        """Route one raw frame.

        Returns:
            True if the frame settled an outstanding call
        """
        try:
            frame = parse_wire_frame(text)
        except ValueError as e:
            logger.warning("Dropping malformed frame: %s (%s)", text[:200], e)
            if self._on_malformed_frame is not None:
                self._on_malformed_frame(text, e)
            return False

        if isinstance(frame, WireNotification):
            logger.debug("Notification %s", frame.method)
            if self._on_notification is not None:
                self._on_notification(frame)
            return False

        return self._settle(frame)

    def _settle(self, frame: WireResponse) -> bool:
        if frame.id is None:
            logger.warning("Dropping uncorrelated reply: %s", frame.error or frame.result)
            return False

        call_id = CallId(frame.id)
        if frame.is_error:
            return self._table.reject(call_id, RpcError.remote(frame.error))
        return self._table.resolve(call_id, frame.result)
