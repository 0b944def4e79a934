"""Reconciliation of configured and discovered devices."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .config import DeviceConfig
from .discovery import DiscoveredDevice

_LOGGER = logging.getLogger(__name__)


class DeviceRegistry:
    """Device configurations keyed by host.

    Static entries are authoritative: a discovered device never replaces or
    duplicates a configured host, even when the advertised name differs.
    """

    def __init__(self, configured: Iterable[DeviceConfig] = ()) -> None:
        self._entries: dict[str, DeviceConfig] = {}
        self._static: set[str] = set()
        for config in configured:
            self.add_configured(config)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DeviceConfig]:
        return iter(list(self._entries.values()))

    def __contains__(self, host: object) -> bool:
        return host in self._entries

    def get(self, host: str) -> DeviceConfig | None:
        return self._entries.get(host)

    def is_configured(self, host: str) -> bool:
        return host in self._static

    def add_configured(self, config: DeviceConfig) -> bool:
        """Add a static entry; entries without a host are skipped."""
        if not config.host:
            _LOGGER.warning("Skipping device without host in config")
            return False
        self._entries[config.host] = config
        self._static.add(config.host)
        return True

    def add_discovered(self, device: DiscoveredDevice) -> DeviceConfig | None:
        """Track a discovered device unless its host is already known.

        Returns:
            The new entry, or None when the host was already tracked.
        """
        if device.host in self._entries:
            existing = self._entries[device.host]
            if existing.name and existing.name != device.name:
                _LOGGER.debug(
                    "Keeping %s for %s over advertised name %s",
                    existing.name,
                    device.host,
                    device.name,
                )
            return None

        config = DeviceConfig(host=device.host, name=device.name)
        self._entries[device.host] = config
        return config
