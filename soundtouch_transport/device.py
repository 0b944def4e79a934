"""One SoundTouch speaker: command client plus push stream."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .codec import XmlCodec
from .config import ClientSettings, DeviceConfig, PresetConfig
from .http import SoundTouchHttpClient
from .stream import SoundTouchEventStream

if TYPE_CHECKING:
    import aiohttp

    from .models import DeviceInfo

_LOGGER = logging.getLogger(__name__)


class SoundTouchDevice:
    """Pairs a ``SoundTouchHttpClient`` with a ``SoundTouchEventStream``.

    Usage:
        device = SoundTouchDevice(session, DeviceConfig(host="192.168.1.20"))
        device.events.add_listener(my_handler)
        await device.start()
        await device.client.set_volume(30)
        await device.close()
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: DeviceConfig,
        *,
        settings: ClientSettings | None = None,
    ) -> None:
        settings = settings or ClientSettings()
        codec = XmlCodec()

        self.config = config
        self._info: DeviceInfo | None = None
        self._client = SoundTouchHttpClient(
            session,
            config.host,
            settings.http_port,
            timeout=settings.request_timeout,
            codec=codec,
        )
        self._events = SoundTouchEventStream(
            config.host,
            settings.ws_port,
            reconnect_delay=settings.reconnect_delay,
            heartbeat_interval=settings.heartbeat_interval,
            connect_timeout=settings.connect_timeout,
            codec=codec,
        )

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def name(self) -> str:
        """Name reported by the device, else the configured display name."""
        if self._info is not None:
            return self._info.name
        return self.config.display_name

    @property
    def info(self) -> DeviceInfo | None:
        return self._info

    @property
    def client(self) -> SoundTouchHttpClient:
        return self._client

    @property
    def events(self) -> SoundTouchEventStream:
        return self._events

    async def start(self) -> None:
        """Open the push stream; it reconnects on its own from here on."""
        _LOGGER.info("[%s] Starting device %s", self.host, self.config.display_name)
        await self._events.connect()

    async def close(self) -> None:
        await self._events.disconnect()

    async def fetch_info(self) -> DeviceInfo:
        """Query /info and cache the result for name lookups."""
        self._info = await self._client.get_info()
        return self._info

    async def apply_preset(self, preset: PresetConfig) -> None:
        """Play a configured preset and store it in its slot.

        Radio streams are only played: the device refuses to store raw
        stream URLs as presets.
        """
        item = preset.to_content_item()
        _LOGGER.debug(
            "[%s] Playing configured preset %s (%s)", self.host, preset.name, preset.type
        )
        await self._client.select_content_item(item)
        if preset.type != "radio":
            await self._client.store_preset(preset.slot, item)
