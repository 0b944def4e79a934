"""Persistent push-stream connection to a SoundTouch device.

The stream owns a small connection-state machine::

    DISCONNECTED -> CONNECTING -> CONNECTED
                        |             |
                        v             v (remote close / transport error)
                 RECONNECT_PENDING <- DISCONNECTED
                        |
                        +--(fixed delay)--> CONNECTING

``disconnect()`` cancels any pending reconnect and leaves the stream in
DISCONNECTED until ``connect()`` is called explicitly again. Reconnection is
attempted forever at a fixed interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from .codec import XmlCodec
from .errors import SoundTouchClientError, SoundTouchDecodeError
from .events import StreamEvent, StreamEventType, decode_frame
from .models import DEFAULT_WS_PORT, ConnectionState
from .ws_client import SoundTouchWsClient, SoundTouchWsMessageType

_LOGGER = logging.getLogger(__name__)

EventListener = Callable[[StreamEvent], None]


async def _cancel_task(task: asyncio.Task[Any] | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    if task is asyncio.current_task():
        return
    with contextlib.suppress(asyncio.CancelledError):
        await task


class SoundTouchEventStream:
    """Event stream for one device.

    Usage:
        stream = SoundTouchEventStream("192.168.1.20")
        remove = stream.add_listener(my_handler)
        await stream.connect()
        ...
        await stream.disconnect()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_WS_PORT,
        *,
        reconnect_delay: float = 5.0,
        heartbeat_interval: float = 30.0,
        connect_timeout: float = 15.0,
        codec: XmlCodec | None = None,
    ) -> None:
        """Initialize stream.

        Args:
            host: Device hostname or IP
            port: Push-stream port
            reconnect_delay: Fixed delay before each reconnect (seconds)
            heartbeat_interval: Ping interval while connected (seconds)
            connect_timeout: Timeout for a single connection attempt (seconds)
            codec: XML codec used to decode push frames
        """
        self.host = host
        self.port = port

        self._reconnect_delay = reconnect_delay
        self._heartbeat_interval = heartbeat_interval
        self._connect_timeout = connect_timeout
        self._codec = codec or XmlCodec()

        # Connection state
        self._state = ConnectionState.DISCONNECTED
        self._ws: SoundTouchWsClient | None = None
        self._listen_task: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._connect_task: asyncio.Task[Any] | None = None
        self._shutdown_requested = False
        # Bumped by disconnect() so in-flight attempts know they are stale
        self._generation = 0
        self._connection_attempts = 0

        # Callbacks
        self._listeners: list[EventListener] = []
        self._connection_state_callback: Callable[[ConnectionState], None] | None = (
            None
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def connection_attempts(self) -> int:
        """Number of connection attempts made since construction."""
        return self._connection_attempts

    def add_listener(self, callback: EventListener) -> Callable[[], None]:
        """Register an event listener; returns a function that removes it."""
        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _remove

    def on_connection_state_changed(
        self, callback: Callable[[ConnectionState], None]
    ) -> None:
        """Register callback for connection state transitions."""
        self._connection_state_callback = callback

    async def connect(self) -> None:
        """Open the stream. A no-op unless the stream is DISCONNECTED."""
        if self._state is not ConnectionState.DISCONNECTED:
            _LOGGER.debug(
                "[%s] connect() ignored in state %s", self.host, self._state.value
            )
            return

        self._shutdown_requested = False
        await self._open()

    async def disconnect(self) -> None:
        """Close the stream and cancel any pending reconnect."""
        _LOGGER.info("[%s] Disconnecting event stream", self.host)
        self._shutdown_requested = True
        self._generation += 1
        was_connected = self._state is ConnectionState.CONNECTED

        await _cancel_task(self._reconnect_task)
        self._reconnect_task = None
        await _cancel_task(self._connect_task)
        self._connect_task = None
        await _cancel_task(self._heartbeat_task)
        self._heartbeat_task = None
        await _cancel_task(self._listen_task)
        self._listen_task = None

        if self._ws is not None:
            ws, self._ws = self._ws, None
            try:
                await asyncio.wait_for(ws.close(), timeout=2.0)
            except TimeoutError:
                _LOGGER.warning("[%s] WebSocket close timed out", self.host)

        self._set_state(ConnectionState.DISCONNECTED)
        if was_connected:
            self._emit(StreamEvent(StreamEventType.DISCONNECTED))

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        """Update connection state and notify callback."""
        if self._state is state:
            return
        _LOGGER.debug("[%s] State: %s → %s", self.host, self._state.value, state.value)
        self._state = state
        if self._connection_state_callback:
            try:
                self._connection_state_callback(state)
            except Exception as err:
                _LOGGER.exception(
                    "[%s] Connection state callback error: %s", self.host, err
                )

    async def _open(self) -> None:
        generation = self._generation
        self._set_state(ConnectionState.CONNECTING)
        self._connection_attempts += 1

        _LOGGER.info(
            "[%s] Connecting to ws://%s:%s (attempt #%d)",
            self.host,
            self.host,
            self.port,
            self._connection_attempts,
        )

        ws = SoundTouchWsClient()
        try:
            await ws.connect(self.host, self.port, timeout=self._connect_timeout)
        except SoundTouchClientError as err:
            if generation != self._generation:
                return
            _LOGGER.warning("[%s] Connection failed: %s", self.host, err)
            self._emit(StreamEvent(StreamEventType.ERROR, err))
            self._schedule_reconnect()
            return

        if generation != self._generation:
            # disconnect() ran while the handshake was in flight
            await ws.close()
            return

        self._ws = ws
        self._set_state(ConnectionState.CONNECTED)
        _LOGGER.info("[%s] Event stream connected", self.host)
        self._emit(StreamEvent(StreamEventType.CONNECTED))
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(ws))
        self._listen_task = asyncio.create_task(self._listen(ws, generation))

    async def _handle_connection_lost(
        self, ws: SoundTouchWsClient, generation: int
    ) -> None:
        # _listen_task stays set through the close; disconnect() cancels it there
        await _cancel_task(self._heartbeat_task)
        if generation != self._generation:
            return
        self._heartbeat_task = None
        if self._ws is ws:
            self._ws = None
        await ws.close()
        if generation != self._generation:
            return
        if self._listen_task is asyncio.current_task():
            self._listen_task = None

        self._set_state(ConnectionState.DISCONNECTED)
        self._emit(StreamEvent(StreamEventType.DISCONNECTED))
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        """Schedule a single reconnect attempt after the fixed delay."""
        if self._shutdown_requested or self._reconnect_task is not None:
            return

        self._set_state(ConnectionState.RECONNECT_PENDING)
        _LOGGER.info(
            "[%s] Reconnecting in %.1fs", self.host, self._reconnect_delay
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self) -> None:
        try:
            await asyncio.sleep(self._reconnect_delay)
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Reconnect cancelled", self.host)
            raise
        self._reconnect_task = None
        self._connect_task = asyncio.current_task()
        try:
            await self._open()
        finally:
            if self._connect_task is asyncio.current_task():
                self._connect_task = None

    # -------------------------------------------------------------------------
    # Internal: Message Listener
    # -------------------------------------------------------------------------

    async def _listen(self, ws: SoundTouchWsClient, generation: int) -> None:
        """Read frames until the connection ends."""
        message_count = 0
        try:
            async for msg in ws:
                if msg.type is SoundTouchWsMessageType.TEXT:
                    message_count += 1
                    self._handle_frame(msg.data)  # type: ignore[arg-type]
                elif msg.type is SoundTouchWsMessageType.ERROR:
                    _LOGGER.warning("[%s] WebSocket error: %s", self.host, msg.data)
                    self._emit(StreamEvent(StreamEventType.ERROR, msg.data))
                    break
                else:
                    _LOGGER.info("[%s] WebSocket closed by device", self.host)
                    break
        except asyncio.CancelledError:
            _LOGGER.debug(
                "[%s] Listener cancelled (%d messages)", self.host, message_count
            )
            raise
        except SoundTouchClientError as err:
            _LOGGER.warning("[%s] Client error: %s", self.host, err)
            self._emit(StreamEvent(StreamEventType.ERROR, err))

        await self._handle_connection_lost(ws, generation)

    def _handle_frame(self, text: str) -> None:
        try:
            events = decode_frame(self._codec, text)
        except SoundTouchDecodeError as err:
            # Garbled frames are routine on the push channel.
            _LOGGER.debug("[%s] Dropping malformed frame: %s", self.host, err)
            return

        for event in events:
            self._emit(event)

    def _emit(self, event: StreamEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as err:
                _LOGGER.exception(
                    "[%s] Event listener error for %s: %s",
                    self.host,
                    event.type.value,
                    err,
                )

    # -------------------------------------------------------------------------
    # Internal: Heartbeat
    # -------------------------------------------------------------------------

    async def _heartbeat_loop(self, ws: SoundTouchWsClient) -> None:
        """Send a ping on a fixed interval; pongs are not tracked."""
        try:
            while self._state is ConnectionState.CONNECTED:
                await asyncio.sleep(self._heartbeat_interval)
                try:
                    await ws.ping()
                except SoundTouchClientError as err:
                    _LOGGER.debug("[%s] Heartbeat failed: %s", self.host, err)
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Heartbeat cancelled", self.host)
            raise
