"""Wire format for aria2 JSON-RPC 2.0 over a text-frame transport.

Outbound call, one JSON object per frame:
    {"jsonrpc": "2.0", "id": 1, "method": "aria2.addUri", "params": [...]}

Inbound reply:
    {"jsonrpc": "2.0", "id": 1, "result": ...}
    {"jsonrpc": "2.0", "id": 1, "error": {"code": 1, "message": "..."}}

Inbound notification (no id):
    {"jsonrpc": "2.0", "method": "aria2.onDownloadStart", "params": [{"gid": "..."}]}
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Final, final

JSONRPC_VERSION: Final = "2.0"
DEFAULT_NAMESPACE: Final = "aria2"


@final
class _Unset:
    """Marker for an optional parameter the caller did not supply."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()


def strip_unset(params: Iterable[Any]) -> list[Any]:
    """Drop ``UNSET`` markers, keeping every explicitly supplied value.

    ``None``, ``0``, ``""`` and ``False`` are real values and are kept.
    """
    return [p for p in params if p is not UNSET]


def qualify_method(method: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Prefix ``method`` with ``namespace`` unless it already has one."""
    if "." in method:
        return method
    return f"{namespace}.{method}"


@dataclass(frozen=True)
class WireRequest:
    """Outbound call envelope."""

    id: int
    method: str
    params: tuple[Any, ...] = ()
    jsonrpc: str = JSONRPC_VERSION

    def to_json(self) -> dict[str, Any]:
        """Convert to a JSON object."""
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "method": self.method,
            "params": list(self.params),
        }

    def serialize(self) -> str:
        """Serialize to a single text frame."""
        return json.dumps(self.to_json(), separators=(",", ":"))


@dataclass(frozen=True)
class WireResponse:
    """Inbound reply frame.

    ``id`` is None when the peer could not tell which call it was answering
    (JSON-RPC parse errors are replied to with ``"id": null``).
    """

    id: int | None
    result: Any = None
    error: Any = None
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @staticmethod
    def from_json(obj: dict[str, Any]) -> WireResponse:
        """Parse from a decoded JSON object."""
        call_id = obj.get("id")
        if call_id is not None and (
            not isinstance(call_id, int) or isinstance(call_id, bool)
        ):
            msg = f"Invalid reply id: {call_id!r}"
            raise ValueError(msg)
        return WireResponse(
            id=call_id,
            result=obj.get("result"),
            error=obj.get("error"),
            jsonrpc=obj.get("jsonrpc", JSONRPC_VERSION),
        )


@dataclass(frozen=True)
class WireNotification:
    """Server-initiated notification, e.g. ``aria2.onDownloadComplete``."""

    method: str
    params: list[Any] = field(default_factory=list)
    jsonrpc: str = JSONRPC_VERSION

    @property
    def gids(self) -> list[str]:
        """GIDs carried by an aria2 download event."""
        return [
            p["gid"] for p in self.params if isinstance(p, dict) and "gid" in p
        ]

    @staticmethod
    def from_json(obj: dict[str, Any]) -> WireNotification:
        """Parse from a decoded JSON object."""
        method = obj["method"]
        if not isinstance(method, str):
            msg = f"Invalid notification method: {method!r}"
            raise ValueError(msg)
        params = obj.get("params", [])
        if not isinstance(params, list):
            params = [params]
        return WireNotification(
            method=method,
            params=params,
            jsonrpc=obj.get("jsonrpc", JSONRPC_VERSION),
        )


WireFrame = WireResponse | WireNotification


def parse_wire_frame(text: str | bytes) -> WireFrame:
    """Decode one inbound text frame.

    Raises:
        ValueError: If the frame is not a JSON object of a known shape
    """
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Frame is not valid JSON: {e}"
        raise ValueError(msg) from e
    except UnicodeDecodeError as e:
        msg = f"Frame is not valid UTF-8: {e}"
        raise ValueError(msg) from e

    if not isinstance(obj, dict):
        msg = f"Frame must be a JSON object, got {type(obj).__name__}"
        raise ValueError(msg)

    if "method" in obj and "id" not in obj:
        return WireNotification.from_json(obj)
    if "id" not in obj:
        msg = "Frame has neither id nor method"
        raise ValueError(msg)
    return WireResponse.from_json(obj)
