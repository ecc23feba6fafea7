"""Shapes of the records aria2 returns.

aria2 encodes almost every number as a string; the types below follow the
wire, not the meaning. Keys that aria2 only sends in some situations are
marked ``NotRequired``.
"""

from __future__ import annotations

from typing import Any, Literal, NotRequired, TypedDict

Gid = str
Ok = Literal["OK"]
DownloadStatus = Literal["active", "waiting", "paused", "error", "complete", "removed"]


class Uri(TypedDict):
    uri: str
    status: Literal["used", "waiting"]


class File(TypedDict):
    index: str
    path: str
    length: str
    completedLength: str
    selected: str
    uris: list[Uri]


class BittorrentInfo(TypedDict):
    name: str


class Bittorrent(TypedDict):
    announceList: list[list[str]]
    comment: NotRequired[str]
    creationDate: NotRequired[int]
    mode: NotRequired[Literal["single", "multi"]]
    info: NotRequired[BittorrentInfo]


class Task(TypedDict, total=False):
    """Download status as returned by ``tellStatus`` and the ``tell*`` lists.

    Not total: ``keys`` arguments restrict which members are returned.
    """

    gid: Gid
    status: DownloadStatus
    totalLength: str
    completedLength: str
    uploadLength: str
    bitfield: str
    downloadSpeed: str
    uploadSpeed: str
    infoHash: str
    numSeeders: str
    seeder: str
    pieceLength: str
    numPieces: str
    connections: str
    errorCode: str
    errorMessage: str
    followedBy: list[Gid]
    following: Gid
    belongsTo: Gid
    dir: str
    files: list[File]
    bittorrent: Bittorrent
    verifiedLength: str
    verifyIntegrityPending: str


class Peer(TypedDict):
    peerId: str
    ip: str
    port: str
    bitfield: str
    amChoking: str
    peerChoking: str
    downloadSpeed: str
    uploadSpeed: str
    seeder: str


class Server(TypedDict):
    uri: str
    currentUri: str
    downloadSpeed: str


class FileServers(TypedDict):
    index: str
    servers: list[Server]


class GlobalStat(TypedDict):
    downloadSpeed: str
    uploadSpeed: str
    numActive: str
    numWaiting: str
    numStopped: str
    numStoppedTotal: str


class Version(TypedDict):
    version: str
    enabledFeatures: list[str]


class SessionInfo(TypedDict):
    sessionId: str


class MethodCall(TypedDict):
    """One entry of a ``system.multicall`` batch."""

    methodName: str
    params: list[Any]


Options = dict[str, str]
PositionHow = Literal["POS_SET", "POS_CUR", "POS_END"]
