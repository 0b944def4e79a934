"""mDNS discovery of SoundTouch speakers.

Speakers advertise ``_soundtouch._tcp``. Discovery is best-effort: browse
failures raise ``SoundTouchDiscoveryError`` and callers are expected to carry
on with whatever static configuration they have.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from zeroconf import Error as ZeroconfError
from zeroconf import ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from .errors import SoundTouchDiscoveryError
from .models import DEFAULT_HTTP_PORT

if TYPE_CHECKING:
    from zeroconf import Zeroconf

_LOGGER = logging.getLogger(__name__)

SERVICE_TYPE = "_soundtouch._tcp.local."
RESOLVE_TIMEOUT_MS = 3000

DeviceCallback = Callable[["DiscoveredDevice"], None]


@dataclass(frozen=True)
class DiscoveredDevice:
    """A speaker seen on the network."""

    name: str
    host: str
    port: int = DEFAULT_HTTP_PORT
    mac: str | None = None

    @property
    def key(self) -> tuple[str, int]:
        return self.host, self.port


def select_host(addresses: list[str], hostname: str | None = None) -> str | None:
    """Prefer an IPv4-shaped address, then any address, then the hostname."""
    for address in addresses:
        if ":" not in address:
            return address
    if addresses:
        return addresses[0]
    if hostname:
        return hostname.rstrip(".") or None
    return None


def device_from_service_info(info: AsyncServiceInfo) -> DiscoveredDevice | None:
    host = select_host(info.parsed_addresses(), info.server)
    if host is None:
        return None

    name = info.name
    suffix = f".{SERVICE_TYPE}"
    if name.endswith(suffix):
        name = name[: -len(suffix)]

    mac = None
    raw_mac = (info.properties or {}).get(b"MAC")
    if raw_mac:
        mac = raw_mac.decode("utf-8", errors="replace")

    return DiscoveredDevice(
        name=name,
        host=host,
        port=info.port or DEFAULT_HTTP_PORT,
        mac=mac,
    )


class DeviceTracker:
    """Set of discovered devices keyed by address and port."""

    def __init__(self) -> None:
        self._devices: dict[tuple[str, int], DiscoveredDevice] = {}
        self._names: dict[str, tuple[str, int]] = {}

    @property
    def devices(self) -> list[DiscoveredDevice]:
        return list(self._devices.values())

    def __contains__(self, key: object) -> bool:
        return key in self._devices

    def get(self, service_name: str) -> DiscoveredDevice | None:
        key = self._names.get(service_name.lower())
        return None if key is None else self._devices.get(key)

    def add(self, service_name: str, device: DiscoveredDevice) -> bool:
        """Track a device; returns False when its address is already known.

        A service name that re-resolves to a new address replaces its
        previous entry.
        """
        name = service_name.lower()
        old_key = self._names.get(name)
        if old_key is not None and old_key != device.key:
            del self._names[name]
            self._devices.pop(old_key, None)
        if device.key in self._devices:
            return False
        self._devices[device.key] = device
        self._names[name] = device.key
        return True

    def remove(self, service_name: str) -> DiscoveredDevice | None:
        """Forget the device announced under ``service_name``, if tracked."""
        key = self._names.pop(service_name.lower(), None)
        if key is None:
            return None
        return self._devices.pop(key, None)


class SoundTouchDiscovery:
    """Browse the network for SoundTouch speakers."""

    def __init__(
        self,
        aiozc: AsyncZeroconf | None = None,
        *,
        resolve_timeout_ms: int = RESOLVE_TIMEOUT_MS,
    ) -> None:
        self._shared_aiozc = aiozc
        self._resolve_timeout_ms = resolve_timeout_ms

        # Continuous session
        self._aiozc: AsyncZeroconf | None = None
        self._browser: AsyncServiceBrowser | None = None
        self._tracker = DeviceTracker()
        self._resolving: dict[str, asyncio.Task[None]] = {}
        self._on_added: DeviceCallback | None = None
        self._on_removed: DeviceCallback | None = None

    @property
    def devices(self) -> list[DiscoveredDevice]:
        """Devices currently tracked by the continuous session."""
        return self._tracker.devices

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    # -------------------------------------------------------------------------
    # One-shot
    # -------------------------------------------------------------------------

    async def discover_once(self, timeout: float = 10.0) -> list[DiscoveredDevice]:
        """Browse for ``timeout`` seconds and return every distinct device."""
        tracker = DeviceTracker()
        pending: set[asyncio.Task[None]] = set()

        async def _collect(zc: Zeroconf, service_type: str, name: str) -> None:
            device = await self._resolve(zc, service_type, name)
            if device is not None and tracker.add(name, device):
                _LOGGER.debug("Found %s at %s:%s", device.name, device.host, device.port)

        def _handler(
            zeroconf: Zeroconf,
            service_type: str,
            name: str,
            state_change: ServiceStateChange,
        ) -> None:
            if state_change is ServiceStateChange.Removed:
                return
            task = asyncio.ensure_future(_collect(zeroconf, service_type, name))
            pending.add(task)
            task.add_done_callback(pending.discard)

        aiozc = self._open_zeroconf()
        browser = None
        try:
            browser = self._browse(aiozc, _handler)
            await asyncio.sleep(timeout)
        finally:
            if browser is not None:
                await browser.async_cancel()
            for task in list(pending):
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            if aiozc is not self._shared_aiozc:
                await aiozc.async_close()

        devices = tracker.devices
        _LOGGER.info("Discovered %d SoundTouch device(s)", len(devices))
        return devices

    # -------------------------------------------------------------------------
    # Continuous
    # -------------------------------------------------------------------------

    async def start(
        self,
        on_added: DeviceCallback | None = None,
        on_removed: DeviceCallback | None = None,
    ) -> None:
        """Browse until ``stop()``, reporting devices as they come and go."""
        if self._browser is not None:
            return

        self._on_added = on_added
        self._on_removed = on_removed
        self._aiozc = self._open_zeroconf()
        try:
            self._browser = self._browse(self._aiozc, self._on_service_state_change)
        except SoundTouchDiscoveryError:
            await self._release_zeroconf()
            raise
        _LOGGER.info("Started continuous SoundTouch discovery")

    async def stop(self) -> None:
        """Stop browsing and release sockets owned by this instance."""
        if self._browser is not None:
            browser, self._browser = self._browser, None
            await browser.async_cancel()

        tasks = list(self._resolving.values())
        self._resolving.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        await self._release_zeroconf()
        self._tracker = DeviceTracker()

    def _on_service_state_change(
        self,
        zeroconf: Zeroconf,
        service_type: str,
        name: str,
        state_change: ServiceStateChange,
    ) -> None:
        if state_change is ServiceStateChange.Removed:
            task = self._resolving.pop(name, None)
            if task is not None:
                task.cancel()
            device = self._tracker.remove(name)
            if device is not None:
                self._notify_removed(device)
            return

        if name in self._resolving:
            return
        task = asyncio.ensure_future(self._track(zeroconf, service_type, name))
        self._resolving[name] = task
        task.add_done_callback(lambda t: self._forget_resolver(name, t))

    def _forget_resolver(self, name: str, task: asyncio.Task[None]) -> None:
        if self._resolving.get(name) is task:
            del self._resolving[name]

    async def _track(self, zc: Zeroconf, service_type: str, name: str) -> None:
        device = await self._resolve(zc, service_type, name)
        if device is None:
            return
        previous = self._tracker.get(name)
        added = self._tracker.add(name, device)
        if previous is not None and previous.key != device.key:
            self._notify_removed(previous)
        if not added:
            return
        _LOGGER.info(
            "New SoundTouch device discovered: %s at %s", device.name, device.host
        )
        if self._on_added:
            try:
                self._on_added(device)
            except Exception as err:
                _LOGGER.exception("Discovery callback error: %s", err)

    def _notify_removed(self, device: DiscoveredDevice) -> None:
        _LOGGER.info("SoundTouch device lost: %s (%s)", device.name, device.host)
        if self._on_removed:
            try:
                self._on_removed(device)
            except Exception as err:
                _LOGGER.exception("Discovery callback error: %s", err)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _open_zeroconf(self) -> AsyncZeroconf:
        if self._shared_aiozc is not None:
            return self._shared_aiozc
        try:
            return AsyncZeroconf()
        except (OSError, ZeroconfError) as err:
            raise SoundTouchDiscoveryError("Unable to open mDNS sockets") from err

    def _browse(
        self,
        aiozc: AsyncZeroconf,
        handler: Callable[..., None],
    ) -> AsyncServiceBrowser:
        try:
            return AsyncServiceBrowser(aiozc.zeroconf, SERVICE_TYPE, handlers=[handler])
        except (OSError, ZeroconfError) as err:
            raise SoundTouchDiscoveryError("mDNS browse failed") from err

    async def _release_zeroconf(self) -> None:
        aiozc, self._aiozc = self._aiozc, None
        if aiozc is not None and aiozc is not self._shared_aiozc:
            await aiozc.async_close()

    async def _resolve(
        self, zc: Zeroconf, service_type: str, name: str
    ) -> DiscoveredDevice | None:
        info = AsyncServiceInfo(service_type, name)
        if not await info.async_request(zc, self._resolve_timeout_ms):
            _LOGGER.debug("Could not resolve %s", name)
            return None
        return device_from_service_info(info)
