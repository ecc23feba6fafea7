"""Client implementation for the aria2 JSON-RPC interface."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from aria2rpc.session import SessionHooks, TransportSession
from aria2rpc.transports import WebSocketTransport, build_url
from aria2rpc.wire import UNSET, qualify_method

if TYPE_CHECKING:
    from aria2rpc.model import (
        File,
        FileServers,
        Gid,
        GlobalStat,
        Ok,
        Options,
        Peer,
        PositionHow,
        SessionInfo,
        Task,
        Uri,
        Version,
    )
    from aria2rpc.transports import Transport
    from aria2rpc.wire import WireNotification

logger = logging.getLogger(__name__)

NotificationCallback = Callable[["WireNotification"], None]


@dataclass
class ClientConfig:
    """Configuration for the aria2 client."""

    host: str = "localhost"
    port: int | None = 6800
    secure: bool = False
    path: str = "/jsonrpc"
    secret: str | None = None
    timeout: float = 30.0
    call_timeout: float | None = None

    @property
    def url(self) -> str:
        return build_url(self.host, self.port, secure=self.secure, path=self.path)


class Aria2Client(TransportSession):
    """aria2 client over a single WebSocket connection.

    Every remote method is an async method returning the decoded ``result``
    of its reply. Optional trailing parameters default to ``UNSET`` and are
    left off the wire when not supplied.

    Example:
        ```python
        async with Aria2Client(ClientConfig(secret="s3cr3t")) as aria2:
            gid = await aria2.add_uri(["https://example.com/file.iso"])
            status = await aria2.tell_status(gid, ["status", "completedLength"])
        ```
    """

    def __init__(
        self, config: ClientConfig | None = None, transport: Transport | None = None
    ) -> None:
        self.config = config or ClientConfig()
        if transport is None:
            transport = WebSocketTransport(self.config.url, timeout=self.config.timeout)
        self._notification_callbacks: list[NotificationCallback] = []
        super().__init__(
            transport,
            secret=self.config.secret,
            hooks=SessionHooks(on_notification=self._notify),
        )

    def on_notification(self, callback: NotificationCallback) -> NotificationCallback:
        """Register a callback for server notifications.

        Can be used as a decorator. Returns ``callback`` unchanged.
        """
        self._notification_callbacks.append(callback)
        return callback

    def remove_notification_callback(self, callback: NotificationCallback) -> None:
        self._notification_callbacks.remove(callback)

    def _notify(self, notification: WireNotification) -> None:
        for callback in list(self._notification_callbacks):
            try:
                callback(notification)
            except Exception:
                logger.exception("Error in notification callback for %s", notification.method)

    async def _invoke(self, method: str, *params: Any) -> Any:
        return await self.call(method, params, timeout=self.config.call_timeout)

    # Adding downloads

    async def add_uri(
        self, uris: list[str], options: Options | Any = UNSET, position: int | Any = UNSET
    ) -> Gid:
        """Add a new HTTP(S)/FTP/SFTP/BitTorrent magnet download.

        Args:
            uris: URIs pointing to the same resource
            options: Per-download options
            position: Insert position in the waiting queue (0-based)

        Returns:
            GID of the new download
        """
        return await self._invoke("addUri", uris, options, position)

    async def add_torrent(
        self,
        torrent: str,
        uris: list[str] | Any = UNSET,
        options: Options | Any = UNSET,
        position: int | Any = UNSET,
    ) -> Gid:
        """Add a BitTorrent download.

        Args:
            torrent: Base64-encoded contents of the .torrent file
            uris: Web-seeding URIs
            options: Per-download options
            position: Insert position in the waiting queue

        Returns:
            GID of the new download
        """
        return await self._invoke("addTorrent", torrent, uris, options, position)

    async def add_metalink(
        self, metalink: str, options: Options | Any = UNSET, position: int | Any = UNSET
    ) -> list[Gid]:
        """Add a Metalink download from base64-encoded Metalink contents.

        Returns:
            GIDs of the downloads the Metalink describes
        """
        return await self._invoke("addMetalink", metalink, options, position)

    # Controlling downloads

    async def remove(self, gid: Gid) -> Gid:
        """Remove a download. An active download is stopped first."""
        return await self._invoke("remove", gid)

    async def force_remove(self, gid: Gid) -> Gid:
        """Remove a download without waiting for cleanup actions."""
        return await self._invoke("forceRemove", gid)

    async def pause(self, gid: Gid) -> Gid:
        return await self._invoke("pause", gid)

    async def pause_all(self) -> Ok:
        return await self._invoke("pauseAll")

    async def force_pause(self, gid: Gid) -> Gid:
        return await self._invoke("forcePause", gid)

    async def force_pause_all(self) -> Ok:
        return await self._invoke("forcePauseAll")

    async def unpause(self, gid: Gid) -> Gid:
        return await self._invoke("unpause", gid)

    async def unpause_all(self) -> Ok:
        return await self._invoke("unpauseAll")

    async def change_position(self, gid: Gid, pos: int, how: PositionHow) -> int:
        """Move a download in the waiting queue.

        Returns:
            The resulting position
        """
        return await self._invoke("changePosition", gid, pos, how)

    async def change_uri(
        self,
        gid: Gid,
        file_index: int,
        del_uris: list[str],
        add_uris: list[str],
        position: int | Any = UNSET,
    ) -> list[int]:
        """Remove and add URIs of one file of a download.

        Args:
            gid: Download GID
            file_index: 1-based index of the file
            del_uris: URIs to remove
            add_uris: URIs to add
            position: Where to insert ``add_uris`` in the waiting URI list

        Returns:
            ``[number_deleted, number_added]``
        """
        return await self._invoke(
            "changeUri", gid, file_index, del_uris, add_uris, position
        )

    # Inspecting downloads

    async def tell_status(self, gid: Gid, keys: list[str] | Any = UNSET) -> Task:
        """Get the progress of a download, optionally limited to ``keys``."""
        return await self._invoke("tellStatus", gid, keys)

    async def get_uris(self, gid: Gid) -> list[Uri]:
        return await self._invoke("getUris", gid)

    async def get_files(self, gid: Gid) -> list[File]:
        return await self._invoke("getFiles", gid)

    async def get_peers(self, gid: Gid) -> list[Peer]:
        return await self._invoke("getPeers", gid)

    async def get_servers(self, gid: Gid) -> list[FileServers]:
        return await self._invoke("getServers", gid)

    async def tell_active(self, keys: list[str] | Any = UNSET) -> list[Task]:
        """List active downloads."""
        return await self._invoke("tellActive", keys)

    async def tell_waiting(
        self, offset: int, num: int, keys: list[str] | Any = UNSET
    ) -> list[Task]:
        """List waiting and paused downloads.

        Args:
            offset: Start of the slice; negative counts from the end
            num: Maximum number of downloads to return
            keys: Restrict the members of each returned record
        """
        return await self._invoke("tellWaiting", offset, num, keys)

    async def tell_stopped(
        self, offset: int, num: int, keys: list[str] | Any = UNSET
    ) -> list[Task]:
        """List stopped downloads. Arguments as for ``tell_waiting``."""
        return await self._invoke("tellStopped", offset, num, keys)

    # Options

    async def get_option(self, gid: Gid) -> Options:
        return await self._invoke("getOption", gid)

    async def change_option(self, gid: Gid, options: Options) -> Ok:
        return await self._invoke("changeOption", gid, options)

    async def get_global_option(self) -> Options:
        return await self._invoke("getGlobalOption")

    async def change_global_option(self, options: Options) -> Ok:
        return await self._invoke("changeGlobalOption", options)

    # Global state

    async def get_global_stat(self) -> GlobalStat:
        return await self._invoke("getGlobalStat")

    async def purge_download_result(self) -> Ok:
        """Drop completed, errored, and removed downloads from memory."""
        return await self._invoke("purgeDownloadResult")

    async def remove_download_result(self, gid: Gid) -> Ok:
        return await self._invoke("removeDownloadResult", gid)

    async def get_version(self) -> Version:
        return await self._invoke("getVersion")

    async def get_session_info(self) -> SessionInfo:
        return await self._invoke("getSessionInfo")

    async def shutdown(self) -> Ok:
        """Shut aria2 down. The connection closes shortly after the reply."""
        return await self._invoke("shutdown")

    async def force_shutdown(self) -> Ok:
        return await self._invoke("forceShutdown")

    async def save_session(self) -> Ok:
        """Write the session file (``--save-session``)."""
        return await self._invoke("saveSession")

    # system.* methods

    async def multicall(self, calls: Sequence[tuple[str, Sequence[Any]]]) -> list[Any]:
        """Run several methods in one round trip.

        Each nested call gets the namespace and secret token the same way a
        direct call would; ``UNSET`` parameters are dropped.

        Args:
            calls: ``(method, params)`` pairs, e.g. ``[("tellActive", [])]``

        Returns:
            One entry per call: ``[result]`` on success, or the error
            struct for a call that failed
        """
        batch = []
        for method, params in calls:
            qualified = qualify_method(method)
            batch.append(
                {
                    "methodName": qualified,
                    "params": self.builder.prepare_params(qualified, params),
                }
            )
        return await self._invoke("system.multicall", batch)

    async def list_methods(self) -> list[str]:
        return await self._invoke("system.listMethods")

    async def list_notifications(self) -> list[str]:
        return await self._invoke("system.listNotifications")
