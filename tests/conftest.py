"""Shared fixtures."""

from __future__ import annotations

import pytest
from fakes import FakeTransport

from aria2rpc.session import TransportSession


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
async def session(transport: FakeTransport):
    """An open session over a fake transport."""
    session_instance = TransportSession(transport)
    await session_instance.connect()

    yield session_instance

    await session_instance.disconnect()
