"""Envelope builder: stamps outbound calls and registers them as pending.

Building an envelope does no I/O. The call is registered in the
outstanding-call table before anything is sent, so a reply can never
arrive ahead of its entry, and a failed send can still be reported
through the call's own future.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from aria2rpc.wire import DEFAULT_NAMESPACE, WireRequest, qualify_method, strip_unset

if TYPE_CHECKING:
    from aria2rpc.ids import CallIdAllocator
    from aria2rpc.tables import PendingCallTable


class EnvelopeBuilder:
    """Builds ``WireRequest`` envelopes for one session."""

    def __init__(
        self,
        allocator: CallIdAllocator,
        table: PendingCallTable,
        secret: str | None = None,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self._allocator = allocator
        self._table = table
        self._secret = secret
        self._namespace = namespace

    @property
    def token(self) -> str | None:
        """The ``token:<secret>`` parameter, or None without a secret."""
        if not self._secret:
            return None
        return f"token:{self._secret}"

    def prepare_params(self, method: str, params: Sequence[Any] = ()) -> list[Any]:
        """Strip unsupplied parameters and prepend the auth token.

        Only methods in this builder's namespace take a token; ``system.*``
        methods are sent without one.
        """
        prepared = strip_unset(params)
        token = self.token
        if token is not None and method.startswith(f"{self._namespace}."):
            prepared.insert(0, token)
        return prepared

    def build(
        self, method: str, params: Sequence[Any] = ()
    ) -> tuple[WireRequest, asyncio.Future[Any]]:
        """Allocate an identifier, assemble the envelope and register it.

        Args:
            method: Method name, with or without namespace (``addUri`` or
                ``aria2.addUri``)
            params: Positional parameters; ``UNSET`` entries are dropped

        Returns:
            The envelope and the future that its reply will settle

        Raises:
            DuplicateIdentifierError: If the allocator handed out an
                identifier that is still in flight
        """
        qualified = qualify_method(method, self._namespace)
        call_id = self._allocator.allocate()
        request = WireRequest(
            id=call_id.value,
            method=qualified,
            params=tuple(self.prepare_params(qualified, params)),
        )
        pending = self._table.register(call_id, qualified)
        return request, pending.future
