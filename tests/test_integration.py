"""End-to-end tests against a stand-in aria2 WebSocket server."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from aiohttp import WSMsgType, web

from aria2rpc import (
    Aria2Client,
    ClientConfig,
    ConnectionLostError,
    RemoteError,
    SessionState,
    WireNotification,
)

SECRET = "SECRET"


class FakeAria2:
    """Minimal aria2 JSON-RPC WebSocket endpoint."""

    def __init__(self) -> None:
        self.received: list[dict[str, Any]] = []
        self._tasks: set[asyncio.Task[None]] = set()

    async def handle(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        async for msg in ws:
            if msg.type != WSMsgType.TEXT:
                continue
            call = json.loads(msg.data)
            self.received.append(call)
            await self._handle_call(ws, call)

        return ws

    async def _handle_call(self, ws: web.WebSocketResponse, call: dict[str, Any]) -> None:
        call_id = call["id"]
        method = call["method"]
        params = call["params"]

        if method.startswith("aria2."):
            if params[:1] != [f"token:{SECRET}"]:
                await self._send(ws, call_id, error={"code": 1, "message": "Unauthorized"})
                return
            params = params[1:]

        match method:
            case "aria2.addUri":
                gid = "2089b05ecca3d829"
                await self._send(ws, call_id, result=gid)
                await ws.send_json(
                    {
                        "jsonrpc": "2.0",
                        "method": "aria2.onDownloadStart",
                        "params": [{"gid": gid}],
                    }
                )
            case "aria2.tellStatus":
                gid = params[0]
                delay = 0.1 if gid == "slow" else 0.0
                task = asyncio.create_task(
                    self._send_later(ws, delay, call_id, {"gid": gid, "status": "active"})
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            case "aria2.getVersion":
                await ws.send_str("this is not json")
                await self._send(
                    ws, call_id, result={"version": "1.37.0", "enabledFeatures": []}
                )
            case "aria2.forceShutdown":
                await ws.close()
            case "system.listMethods":
                await self._send(ws, call_id, result=["aria2.addUri", "system.listMethods"])
            case _:
                await self._send(
                    ws, call_id, error={"code": 1, "message": f"No such method: {method}"}
                )

    async def _send_later(
        self, ws: web.WebSocketResponse, delay: float, call_id: int, result: Any
    ) -> None:
        await asyncio.sleep(delay)
        if not ws.closed:
            await self._send(ws, call_id, result=result)

    async def _send(
        self,
        ws: web.WebSocketResponse,
        call_id: int,
        result: Any = None,
        error: Any = None,
    ) -> None:
        frame: dict[str, Any] = {"jsonrpc": "2.0", "id": call_id}
        if error is not None:
            frame["error"] = error
        else:
            frame["result"] = result
        await ws.send_json(frame)


@pytest.fixture
async def aria2_server():
    """Start a fake aria2 server on a free port."""
    fake = FakeAria2()
    app = web.Application()
    app.router.add_get("/jsonrpc", fake.handle)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port = runner.addresses[0][1]

    yield fake, port

    await runner.cleanup()


@pytest.fixture
async def client(aria2_server):
    """A client connected to the fake server."""
    _, port = aria2_server
    config = ClientConfig(host="127.0.0.1", port=port, secret=SECRET, timeout=5.0)
    client_instance = Aria2Client(config)
    await client_instance.connect()

    yield client_instance

    await client_instance.disconnect()


@pytest.mark.asyncio
class TestAria2Integration:
    """Integration tests over a real WebSocket."""

    async def test_add_uri(self, aria2_server, client: Aria2Client) -> None:
        fake, _ = aria2_server

        gid = await client.add_uri(["http://example.com/file.iso"])

        assert gid == "2089b05ecca3d829"
        assert fake.received[0] == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "aria2.addUri",
            "params": ["token:SECRET", ["http://example.com/file.iso"]],
        }

    async def test_notification(self, client: Aria2Client) -> None:
        received: asyncio.Future[WireNotification] = (
            asyncio.get_running_loop().create_future()
        )
        client.on_notification(
            lambda n: received.done() or received.set_result(n)
        )

        await client.add_uri(["http://example.com/file.iso"])
        notification = await asyncio.wait_for(received, 2.0)

        assert notification.method == "aria2.onDownloadStart"
        assert notification.gids == ["2089b05ecca3d829"]

    async def test_out_of_order_replies(self, client: Aria2Client) -> None:
        slow = asyncio.create_task(client.tell_status("slow"))
        fast = asyncio.create_task(client.tell_status("fast"))

        done, _ = await asyncio.wait({slow, fast}, return_when=asyncio.FIRST_COMPLETED)

        assert done == {fast}
        assert (await fast)["gid"] == "fast"
        assert (await slow)["gid"] == "slow"

    async def test_concurrent_calls(self, client: Aria2Client) -> None:
        gids = [f"gid-{i}" for i in range(20)]

        results = await asyncio.gather(*(client.tell_status(g) for g in gids))

        assert [r["gid"] for r in results] == gids
        assert client.pending_count == 0

    async def test_malformed_frame_is_skipped(self, client: Aria2Client) -> None:
        version = await client.get_version()
        assert version["version"] == "1.37.0"
        assert client.is_open

    async def test_remote_error(self, client: Aria2Client) -> None:
        with pytest.raises(RemoteError) as exc_info:
            await client.pause("gid")

        assert exc_info.value.data == {"code": 1, "message": "No such method: aria2.pause"}

    async def test_unauthorized(self, aria2_server) -> None:
        _, port = aria2_server
        config = ClientConfig(host="127.0.0.1", port=port, secret="wrong")

        async with Aria2Client(config) as aria2:
            with pytest.raises(RemoteError, match="Unauthorized"):
                await aria2.tell_active()

            # system.* methods do not need the token
            assert "aria2.addUri" in await aria2.list_methods()

    async def test_server_close_rejects_outstanding(self, client: Aria2Client) -> None:
        pending = asyncio.create_task(client.tell_status("slow"))
        while client.pending_count < 1:
            await asyncio.sleep(0)

        with pytest.raises(ConnectionLostError):
            await client.force_shutdown()
        with pytest.raises(ConnectionLostError):
            await pending

        assert client.state is SessionState.CLOSED
        assert client.pending_count == 0

    async def test_reconnect_after_connection_lost(self, client: Aria2Client) -> None:
        """Reconnecting from a ConnectionLostError handler gets a usable session."""
        with pytest.raises(ConnectionLostError):
            await client.force_shutdown()

        await client.connect()
        await asyncio.sleep(0.05)

        assert client.is_open
        assert client._transport.is_open
        assert "aria2.addUri" in await client.list_methods()

        await client.disconnect()
        assert not client._transport.is_open
        assert client._transport._session is None
