"""Deferred results for calls in flight."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from aria2rpc.ids import CallId  # noqa: TC001


@dataclass
class Pending:
    """A single-assignment result for one outstanding call.

    The future is created on the running event loop. Settling is idempotent:
    once the future is done (resolved, rejected, or cancelled by its caller)
    further ``resolve``/``reject`` calls are ignored and return False.
    """

    call_id: CallId
    method: str = ""
    future: asyncio.Future[Any] = field(
        default_factory=lambda: asyncio.get_running_loop().create_future()
    )

    @property
    def done(self) -> bool:
        return self.future.done()

    def resolve(self, value: Any) -> bool:
        """Settle with a value. Returns True if this call settled the future."""
        if self.future.done():
            return False
        self.future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        """Settle with an exception. Returns True if this call settled the future."""
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True
