"""Call identifier allocation.

Every outbound call is stamped with a process-local integer identifier.
Identifiers start at 1 and strictly increase for the lifetime of the
allocator, so an identifier is never reused while it could be outstanding.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, order=True)
class CallId:
    """Identifier correlating an outbound call with its reply."""

    value: int

    def __str__(self) -> str:
        return f"Call#{self.value}"


class CallIdAllocator:
    """Thread-safe, strictly increasing call identifier counter."""

    def __init__(self, start: int = 1) -> None:
        self._next: int = start
        self._last: CallId | None = None
        self._lock: Final = threading.Lock()

    def allocate(self) -> CallId:
        """Allocate the next call identifier."""
        with self._lock:
            call_id = CallId(self._next)
            self._next += 1
            self._last = call_id
            return call_id

    @property
    def last(self) -> CallId | None:
        """The most recently allocated identifier, or None if none yet."""
        with self._lock:
            return self._last
