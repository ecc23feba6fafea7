"""Outstanding-call table.

Maps call identifiers to their ``Pending`` results. An identifier is in
flight exactly as long as it has an entry here.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from aria2rpc.error import RpcError
from aria2rpc.pending import Pending

if TYPE_CHECKING:
    from collections.abc import Iterator

    from aria2rpc.ids import CallId

logger = logging.getLogger(__name__)


class PendingCallTable:
    """Outstanding calls keyed by call identifier."""

    def __init__(self) -> None:
        self._entries: dict[CallId, Pending] = {}

    def register(self, call_id: CallId, method: str = "") -> Pending:
        """Create and store an unsettled result for ``call_id``.

        Raises:
            DuplicateIdentifierError: If ``call_id`` is already in flight
        """
        if call_id in self._entries:
            msg = f"{call_id} is already in flight"
            raise RpcError.duplicate_id(msg, call_id.value)
        pending = Pending(call_id, method)
        self._entries[call_id] = pending
        return pending

    def get(self, call_id: CallId) -> Pending | None:
        """Look up an outstanding call, or None if it is not tracked."""
        return self._entries.get(call_id)

    def resolve(self, call_id: CallId, value: Any) -> bool:
        """Settle and evict ``call_id`` with a value.

        Returns False (and changes nothing) if the identifier is not tracked.
        """
        pending = self._entries.pop(call_id, None)
        if pending is None:
            logger.warning("Dropping result for untracked %s", call_id)
            return False
        pending.resolve(value)
        return True

    def reject(self, call_id: CallId, error: BaseException) -> bool:
        """Settle and evict ``call_id`` with an error.

        Returns False (and changes nothing) if the identifier is not tracked.
        """
        pending = self._entries.pop(call_id, None)
        if pending is None:
            logger.warning("Dropping error for untracked %s: %s", call_id, error)
            return False
        pending.reject(error)
        return True

    def forget(self, call_id: CallId) -> bool:
        """Evict ``call_id`` without settling it.

        A reply arriving later for the same identifier is dropped.
        """
        return self._entries.pop(call_id, None) is not None

    def drain_all(self, error: RpcError) -> int:
        """Reject every outstanding call with ``error`` and clear the table.

        Each entry gets its own copy of ``error``, so callers re-raising it
        do not share a traceback.

        Returns:
            Number of entries that were drained
        """
        entries = list(self._entries.values())
        self._entries.clear()
        for pending in entries:
            pending.reject(replace(error))
        if entries:
            logger.debug("Drained %d outstanding call(s): %s", len(entries), error)
        return len(entries)

    def contains(self, call_id: CallId) -> bool:
        """Check if a call identifier is in flight."""
        return call_id in self._entries

    def ids(self) -> list[CallId]:
        """Identifiers currently in flight, in registration order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Pending]:
        return iter(list(self._entries.values()))
