"""Platform configuration loaded from YAML.

Example::

    auto_discover: true
    discovery_timeout: 10
    settings:
      request_timeout: 5
    devices:
      - host: 192.168.1.20
        name: Kitchen
        room: Kitchen
        presets:
          - slot: 1
            name: Jazz Radio
            type: radio
            url: http://jazz.example/stream.mp3
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from . import providers
from .errors import SoundTouchConfigError
from .models import DEFAULT_HTTP_PORT, DEFAULT_WS_PORT, PRESET_SLOTS, ContentItem

PRESET_TYPES = ("radio", "spotify", "amazon", "deezer", "tunein", "nas")

# preset type -> fields that must be set for it to be playable
_REQUIRED_PRESET_FIELDS: dict[str, tuple[str, ...]] = {
    "radio": ("url",),
    "spotify": ("spotify_uri", "source_account"),
    "amazon": ("content_id", "source_account"),
    "deezer": ("content_id", "source_account"),
    "tunein": ("content_id",),
    "nas": ("nas_location", "nas_server"),
}


@dataclass(frozen=True)
class ClientSettings:
    """Ports and timings shared by every device connection.

    Attributes:
        http_port: Command port.
        ws_port: Push-stream port.
        request_timeout: Per-request HTTP timeout (seconds).
        reconnect_delay: Fixed delay between push-stream reconnects (seconds).
        heartbeat_interval: Push-stream ping interval (seconds).
        connect_timeout: Push-stream handshake timeout (seconds).
    """

    http_port: int = DEFAULT_HTTP_PORT
    ws_port: int = DEFAULT_WS_PORT
    request_timeout: float = 5.0
    reconnect_delay: float = 5.0
    heartbeat_interval: float = 30.0
    connect_timeout: float = 15.0


@dataclass(frozen=True)
class PresetConfig:
    """Content to assign to one preset slot."""

    slot: int
    name: str
    type: str
    url: str | None = None
    spotify_uri: str | None = None
    content_id: str | None = None
    source_account: str | None = None
    nas_location: str | None = None
    nas_server: str | None = None

    @property
    def is_complete(self) -> bool:
        """True when every field the preset type needs is present."""
        return all(getattr(self, f) for f in _REQUIRED_PRESET_FIELDS[self.type])

    def to_content_item(self) -> ContentItem:
        """Build the content item this preset plays.

        Raises:
            SoundTouchConfigError: A field required by the type is missing.
        """
        if not self.is_complete:
            missing = [f for f in _REQUIRED_PRESET_FIELDS[self.type] if not getattr(self, f)]
            raise SoundTouchConfigError(
                f"Preset {self.slot} ({self.type}) is missing {', '.join(missing)}"
            )

        if self.type == "radio":
            return providers.internet_radio(self.url, self.name)  # type: ignore[arg-type]
        if self.type == "spotify":
            return providers.spotify(self.spotify_uri, self.source_account)  # type: ignore[arg-type]
        if self.type == "amazon":
            return providers.amazon_music(self.content_id, self.source_account)  # type: ignore[arg-type]
        if self.type == "deezer":
            return providers.deezer(self.content_id, self.source_account)  # type: ignore[arg-type]
        if self.type == "tunein":
            return providers.tunein(self.content_id)  # type: ignore[arg-type]
        return providers.stored_music(
            self.nas_location, self.nas_server, self.name  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class DeviceConfig:
    """A statically configured speaker."""

    host: str
    name: str | None = None
    room: str | None = None
    presets: tuple[PresetConfig, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or f"SoundTouch {self.host}"


@dataclass(frozen=True)
class PlatformConfig:
    """Top-level configuration.

    Attributes:
        devices: Statically configured speakers.
        auto_discover: Run mDNS discovery at startup and keep browsing.
        discovery_timeout: Duration of the startup discovery (seconds).
        settings: Connection settings applied to every device.
    """

    devices: tuple[DeviceConfig, ...] = ()
    auto_discover: bool = True
    discovery_timeout: float = 10.0
    settings: ClientSettings = field(default_factory=ClientSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PlatformConfig:
        """Build configuration from parsed YAML/JSON data.

        Raises:
            SoundTouchConfigError: A value is missing or has the wrong shape.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise SoundTouchConfigError("Configuration must be a mapping")

        devices = tuple(
            _parse_device(entry, index)
            for index, entry in enumerate(_as_list(data.get("devices"), "devices"))
        )

        return cls(
            devices=devices,
            auto_discover=bool(data.get("auto_discover", True)),
            discovery_timeout=_positive(
                data.get("discovery_timeout", 10.0), "discovery_timeout"
            ),
            settings=_parse_settings(data.get("settings")),
        )


def load_config(path: str | Path) -> PlatformConfig:
    """Load platform configuration from a YAML file.

    Raises:
        SoundTouchConfigError: The file is missing, unreadable or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise SoundTouchConfigError(f"File not found: {path}")
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise SoundTouchConfigError(f"Invalid YAML in {path}") from err
    return PlatformConfig.from_dict(data)


def _as_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SoundTouchConfigError(f"'{what}' must be a list")
    return value


def _positive(value: Any, what: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise SoundTouchConfigError(f"'{what}' must be a number") from err
    if number <= 0:
        raise SoundTouchConfigError(f"'{what}' must be positive")
    return number


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _parse_settings(data: Any) -> ClientSettings:
    if data is None:
        return ClientSettings()
    if not isinstance(data, dict):
        raise SoundTouchConfigError("'settings' must be a mapping")

    defaults = ClientSettings()
    try:
        http_port = int(data.get("http_port", defaults.http_port))
        ws_port = int(data.get("ws_port", defaults.ws_port))
    except (TypeError, ValueError) as err:
        raise SoundTouchConfigError("Ports must be integers") from err

    return ClientSettings(
        http_port=http_port,
        ws_port=ws_port,
        request_timeout=_positive(
            data.get("request_timeout", defaults.request_timeout), "request_timeout"
        ),
        reconnect_delay=_positive(
            data.get("reconnect_delay", defaults.reconnect_delay), "reconnect_delay"
        ),
        heartbeat_interval=_positive(
            data.get("heartbeat_interval", defaults.heartbeat_interval),
            "heartbeat_interval",
        ),
        connect_timeout=_positive(
            data.get("connect_timeout", defaults.connect_timeout), "connect_timeout"
        ),
    )


def _parse_device(data: Any, index: int) -> DeviceConfig:
    if not isinstance(data, dict):
        raise SoundTouchConfigError(f"Device #{index} must be a mapping")

    # An empty host is kept here; the platform skips it with a warning.
    host = str(data.get("host") or "").strip()
    presets = tuple(
        _parse_preset(entry)
        for entry in _as_list(data.get("presets"), f"devices[{index}].presets")
    )
    slots = [p.slot for p in presets]
    if len(slots) != len(set(slots)):
        raise SoundTouchConfigError(f"Device {host or index} has duplicate preset slots")

    return DeviceConfig(
        host=host,
        name=_optional_str(data.get("name")),
        room=_optional_str(data.get("room")),
        presets=presets,
    )


def _parse_preset(data: Any) -> PresetConfig:
    if not isinstance(data, dict):
        raise SoundTouchConfigError("Preset entries must be mappings")

    try:
        slot = int(data.get("slot"))
    except (TypeError, ValueError) as err:
        raise SoundTouchConfigError("Preset 'slot' must be an integer") from err
    if slot not in PRESET_SLOTS:
        raise SoundTouchConfigError(f"Preset slot must be between 1 and 6, got {slot}")

    preset_type = data.get("type")
    if preset_type not in PRESET_TYPES:
        raise SoundTouchConfigError(f"Unknown preset type: {preset_type}")

    return PresetConfig(
        slot=slot,
        name=str(data.get("name") or f"Preset {slot}"),
        type=preset_type,
        url=_optional_str(data.get("url")),
        spotify_uri=_optional_str(data.get("spotify_uri")),
        content_id=_optional_str(data.get("content_id")),
        source_account=_optional_str(data.get("source_account")),
        nas_location=_optional_str(data.get("nas_location")),
        nas_server=_optional_str(data.get("nas_server")),
    )
