"""Property-based tests for call correlation.

Replies are fed back in arbitrary orders, interleaved with stray and
malformed frames, and every caller must still get exactly its own reply.
"""

from __future__ import annotations

import asyncio

from fakes import FakeTransport, spin
from hypothesis import given, settings
from hypothesis import strategies as st

from aria2rpc.error import ConnectionLostError, RemoteError
from aria2rpc.session import TransportSession


@st.composite
def reply_orders(draw: st.DrawFn) -> tuple[int, list[int]]:
    count = draw(st.integers(min_value=1, max_value=30))
    order = draw(st.permutations(list(range(1, count + 1))))
    return count, order


class TestCorrelationProperties:
    """Property-based tests for TransportSession."""

    @settings(max_examples=50, deadline=None)
    @given(reply_orders())
    def test_each_call_gets_its_own_reply(self, case: tuple[int, list[int]]) -> None:
        count, order = case

        async def scenario() -> None:
            transport = FakeTransport()
            async with TransportSession(transport) as session:
                futures = [
                    await session.submit("tellStatus", [f"gid-{i}"])
                    for i in range(1, count + 1)
                ]
                sent = transport.sent_json()
                assert [f["id"] for f in sent] == list(range(1, count + 1))

                for call_id in order:
                    transport.reply(call_id, sent[call_id - 1]["params"][0])
                results = await asyncio.gather(*futures)

                assert results == [f"gid-{i}" for i in range(1, count + 1)]
                assert session.pending_count == 0

        asyncio.run(scenario())

    @settings(max_examples=50, deadline=None)
    @given(
        st.lists(
            st.sampled_from(["ok", "error", "stray", "garbage"]),
            min_size=1,
            max_size=20,
        )
    )
    def test_noise_never_settles_wrong_call(self, kinds: list[str]) -> None:
        async def scenario() -> None:
            transport = FakeTransport()
            async with TransportSession(transport) as session:
                futures = [await session.submit("tellActive") for _ in kinds]

                for call_id, kind in enumerate(kinds, start=1):
                    if kind == "stray":
                        transport.reply(10_000 + call_id, "stray")
                    elif kind == "garbage":
                        transport.push("{not json")
                await spin(len(kinds) + 10)
                assert session.pending_count == len(kinds)

                for call_id, kind in enumerate(kinds, start=1):
                    if kind == "error":
                        transport.reply(call_id, error={"code": call_id, "message": "no"})
                    else:
                        transport.reply(call_id, call_id)
                results = await asyncio.gather(*futures, return_exceptions=True)

                for call_id, (kind, result) in enumerate(
                    zip(kinds, results, strict=True), start=1
                ):
                    if kind == "error":
                        assert isinstance(result, RemoteError)
                        assert result.remote_code == call_id
                    else:
                        assert result == call_id

        asyncio.run(scenario())

    @settings(max_examples=30, deadline=None)
    @given(st.integers(min_value=0, max_value=20), st.integers(min_value=0, max_value=20))
    def test_connection_loss_settles_exactly_outstanding(
        self, answered: int, outstanding: int
    ) -> None:
        async def scenario() -> None:
            transport = FakeTransport()
            session = TransportSession(transport)
            await session.connect()
            futures = [
                await session.submit("tellActive") for _ in range(answered + outstanding)
            ]
            for call_id in range(1, answered + 1):
                transport.reply(call_id, "done")
            await spin(answered + 10)

            transport.drop()
            await spin()

            results = await asyncio.gather(*futures, return_exceptions=True)
            assert results[:answered] == ["done"] * answered
            lost = results[answered:]
            assert len(lost) == outstanding
            assert all(isinstance(r, ConnectionLostError) for r in lost)
            assert session.pending_count == 0

            # A late reply after the loss settles nothing
            transport.reply(answered + 1, "late")
            await spin()
            assert session.pending_count == 0

        asyncio.run(scenario())
