"""Startup and lifecycle of every SoundTouch device on the network."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .config import DeviceConfig, PlatformConfig
from .device import SoundTouchDevice
from .discovery import DiscoveredDevice, SoundTouchDiscovery
from .errors import SoundTouchClientError, SoundTouchDiscoveryError
from .registry import DeviceRegistry

if TYPE_CHECKING:
    import aiohttp

_LOGGER = logging.getLogger(__name__)


class SoundTouchPlatform:
    """Combines static configuration and mDNS discovery into live devices.

    Usage:
        platform = SoundTouchPlatform(session, load_config("soundtouch.yaml"))
        await platform.async_setup()
        kitchen = platform.get_device_by_name("Kitchen")
        await platform.async_shutdown()
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: PlatformConfig,
        *,
        discovery: SoundTouchDiscovery | None = None,
    ) -> None:
        self._session = session
        self._config = config
        self._discovery = discovery
        self._registry = DeviceRegistry()
        self._devices: dict[str, SoundTouchDevice] = {}
        self._pending: set[asyncio.Task[SoundTouchDevice | None]] = set()

    @property
    def devices(self) -> list[SoundTouchDevice]:
        return list(self._devices.values())

    def get_device(self, host: str) -> SoundTouchDevice | None:
        return self._devices.get(host)

    def get_device_by_name(self, name: str) -> SoundTouchDevice | None:
        """Case-insensitive lookup against names reported by ``fetch_info()``."""
        wanted = name.lower()
        for device in self._devices.values():
            if device.info is not None and device.info.name.lower() == wanted:
                return device
        return None

    def get_device_config(self, host: str) -> DeviceConfig | None:
        """Statically configured entry for ``host``, if any."""
        for config in self._config.devices:
            if config.host == host:
                return config
        return None

    async def async_setup(self) -> None:
        for config in self._config.devices:
            self._registry.add_configured(config)

        if self._config.auto_discover:
            _LOGGER.info("Starting mDNS discovery for SoundTouch devices...")
            if self._discovery is None:
                self._discovery = SoundTouchDiscovery()
            try:
                discovered = await self._discovery.discover_once(
                    self._config.discovery_timeout
                )
            except SoundTouchDiscoveryError as err:
                _LOGGER.error("Discovery failed: %s", err)
            else:
                for found in discovered:
                    self._registry.add_discovered(found)

        for config in self._registry:
            await self._register(config)

        if self._config.auto_discover and self._discovery is not None:
            try:
                await self._discovery.start(self._on_device_added, self._on_device_removed)
            except SoundTouchDiscoveryError as err:
                _LOGGER.error("Continuous discovery unavailable: %s", err)

    async def async_shutdown(self) -> None:
        _LOGGER.debug("Shutting down platform")
        if self._discovery is not None:
            await self._discovery.stop()

        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*self._pending, return_exceptions=True)

        devices = list(self._devices.values())
        self._devices.clear()
        await asyncio.gather(*(device.close() for device in devices))

    async def _register(self, config: DeviceConfig) -> SoundTouchDevice | None:
        if config.host in self._devices:
            _LOGGER.debug("Device already registered: %s", config.display_name)
            return None

        _LOGGER.info("Registering %s (%s)", config.display_name, config.host)
        device = SoundTouchDevice(self._session, config, settings=self._config.settings)
        self._devices[config.host] = device
        await device.start()
        try:
            await device.fetch_info()
        except SoundTouchClientError as err:
            _LOGGER.warning("[%s] Could not read device info: %s", config.host, err)
        return device

    def _on_device_added(self, found: DiscoveredDevice) -> None:
        if found.host in self._devices:
            return
        config = self._registry.add_discovered(found)
        if config is None:
            config = self._registry.get(found.host)
        if config is None:
            return
        task = asyncio.ensure_future(self._register(config))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_device_removed(self, found: DiscoveredDevice) -> None:
        # The push stream keeps retrying; the device stays registered.
        _LOGGER.info("SoundTouch device lost: %s", found.name)
