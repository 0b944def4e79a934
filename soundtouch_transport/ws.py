"""WebSocket helpers for the SoundTouch push stream."""

from __future__ import annotations

import asyncio

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)
from websockets.typing import Subprotocol

from .errors import (
    SoundTouchConnectionError,
    SoundTouchHandshakeError,
    SoundTouchTimeout,
)
from .models import DEFAULT_WS_PORT

SUBPROTOCOL = Subprotocol("gabbo")


async def connect_websocket(
    host: str,
    port: int = DEFAULT_WS_PORT,
    *,
    timeout: float = 15.0,
) -> ClientConnection:
    """Open the device's push-stream WebSocket.

    The device only accepts the ``gabbo`` subprotocol. Keepalive pings are
    driven by the event stream itself, so the library's own ping loop is off.
    """
    ws_url = f"ws://{host}:{port}/"
    try:
        return await asyncio.wait_for(
            websockets.connect(
                ws_url,
                subprotocols=[SUBPROTOCOL],
                ping_interval=None,
                close_timeout=5,
                max_size=None,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise SoundTouchTimeout("WebSocket connection timed out") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise SoundTouchHandshakeError("WebSocket handshake failed") from err
    except (OSError, WebSocketException) as err:
        raise SoundTouchConnectionError("WebSocket connection failed") from err
