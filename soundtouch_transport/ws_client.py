"""WebSocket client wrapper for the SoundTouch push stream."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, WebSocketException

from .errors import SoundTouchConnectionError
from .models import DEFAULT_WS_PORT
from .ws import connect_websocket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class SoundTouchWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class SoundTouchWsMessage:
    """Normalized WebSocket message payload."""

    type: SoundTouchWsMessageType
    data: str | Exception | None = None


class SoundTouchWsClient:
    """Wrapper around the websockets library for the SoundTouch push stream."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def connect(
        self,
        host: str,
        port: int = DEFAULT_WS_PORT,
        *,
        timeout: float = 15.0,
    ) -> None:
        """Connect to the device websocket."""
        self._ws = await connect_websocket(host, port, timeout=timeout)

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()

    async def ping(self) -> None:
        """Send a ping frame without waiting for the pong."""
        if self._ws is None:
            raise SoundTouchConnectionError("WebSocket is not connected")
        try:
            await self._ws.ping()
        except (ConnectionClosed, WebSocketException) as err:
            raise SoundTouchConnectionError("WebSocket ping failed") from err

    def __aiter__(self) -> AsyncIterator[SoundTouchWsMessage]:
        if self._ws is None:
            raise SoundTouchConnectionError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[SoundTouchWsMessage]:
        if self._ws is None:
            raise SoundTouchConnectionError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                normalized = self._normalize_message(msg)
                if normalized is None:
                    continue
                yield normalized
        except ConnectionClosed:
            yield SoundTouchWsMessage(type=SoundTouchWsMessageType.CLOSED)
        except Exception as err:
            yield SoundTouchWsMessage(type=SoundTouchWsMessageType.ERROR, data=err)
        else:
            # Normal iteration completion means the peer closed gracefully.
            yield SoundTouchWsMessage(type=SoundTouchWsMessageType.CLOSED)

    @staticmethod
    def _normalize_message(msg: Any) -> SoundTouchWsMessage | None:
        """Normalize raw frames; the device pushes XML as text frames."""
        if isinstance(msg, str):
            return SoundTouchWsMessage(SoundTouchWsMessageType.TEXT, msg)
        if isinstance(msg, bytes):
            try:
                return SoundTouchWsMessage(
                    SoundTouchWsMessageType.TEXT, msg.decode("utf-8")
                )
            except UnicodeDecodeError:
                return None
        return None
