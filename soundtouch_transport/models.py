"""Typed value snapshots decoded from SoundTouch XML payloads.

Every instance is created fresh from a single query response or push frame
and is never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_HTTP_PORT = 8090
DEFAULT_WS_PORT = 8080

STANDBY_SOURCE = "STANDBY"
PRESET_SLOTS = range(1, 7)


def validate_preset_slot(slot: int) -> int:
    if slot not in PRESET_SLOTS:
        raise ValueError(f"Preset slot must be between 1 and 6, got {slot}")
    return slot


class ConnectionState(Enum):
    """Lifecycle of a push-stream connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECT_PENDING = "reconnect_pending"


class Key(Enum):
    """Virtual remote-control keys accepted by the /key endpoint."""

    PLAY = "PLAY"
    PAUSE = "PAUSE"
    PLAY_PAUSE = "PLAY_PAUSE"
    STOP = "STOP"
    PREV_TRACK = "PREV_TRACK"
    NEXT_TRACK = "NEXT_TRACK"
    THUMBS_UP = "THUMBS_UP"
    THUMBS_DOWN = "THUMBS_DOWN"
    BOOKMARK = "BOOKMARK"
    POWER = "POWER"
    MUTE = "MUTE"
    VOLUME_UP = "VOLUME_UP"
    VOLUME_DOWN = "VOLUME_DOWN"
    PRESET_1 = "PRESET_1"
    PRESET_2 = "PRESET_2"
    PRESET_3 = "PRESET_3"
    PRESET_4 = "PRESET_4"
    PRESET_5 = "PRESET_5"
    PRESET_6 = "PRESET_6"
    AUX_INPUT = "AUX_INPUT"
    SHUFFLE_OFF = "SHUFFLE_OFF"
    SHUFFLE_ON = "SHUFFLE_ON"
    REPEAT_OFF = "REPEAT_OFF"
    REPEAT_ONE = "REPEAT_ONE"
    REPEAT_ALL = "REPEAT_ALL"
    ADD_FAVORITE = "ADD_FAVORITE"
    REMOVE_FAVORITE = "REMOVE_FAVORITE"

    @classmethod
    def preset(cls, slot: int) -> Key:
        """Return the PRESET_n key for a preset slot."""
        return cls[f"PRESET_{validate_preset_slot(slot)}"]


class RepeatMode(Enum):
    """Repeat setting selectable through the remote-control keys."""

    OFF = "off"
    ONE = "one"
    ALL = "all"

    @property
    def key(self) -> Key:
        return Key[f"REPEAT_{self.name}"]


@dataclass(frozen=True)
class DeviceEndpoint:
    """A reachable speaker.

    Attributes:
        host: IP address or hostname, unique per device for a session.
        port: HTTP command port.
        ws_port: Push-stream WebSocket port.
    """

    host: str
    port: int = DEFAULT_HTTP_PORT
    ws_port: int = DEFAULT_WS_PORT


@dataclass(frozen=True)
class ContentItem:
    """Reference to playable content (preset, stream, library item).

    ``source``, ``location`` and ``source_account`` together identify the
    content. Missing values are carried as empty strings, never ``None``.
    """

    source: str
    type: str = ""
    location: str = ""
    source_account: str = ""
    is_presetable: bool = False
    name: str = ""


@dataclass(frozen=True)
class NowPlaying:
    """Current transport and source state."""

    source: str
    source_account: str = ""
    content_item: ContentItem | None = None
    track: str | None = None
    artist: str | None = None
    album: str | None = None
    station_name: str | None = None
    art: str | None = None
    play_status: str | None = None
    shuffle_setting: str | None = None
    repeat_setting: str | None = None
    stream_type: str | None = None
    track_id: str | None = None

    @property
    def is_standby(self) -> bool:
        """STANDBY is the canonical powered-off signal."""
        return self.source == STANDBY_SOURCE


@dataclass(frozen=True)
class Volume:
    """Loudness state; target and actual differ while the device ramps."""

    target: int
    actual: int
    muted: bool


@dataclass(frozen=True)
class Bass:
    target: int
    actual: int


@dataclass(frozen=True)
class BassCapabilities:
    available: bool
    minimum: int
    maximum: int
    default: int


@dataclass(frozen=True)
class Preset:
    """A stored quick-select slot (1-6)."""

    id: int
    content_item: ContentItem


@dataclass(frozen=True)
class Source:
    """An entry from the /sources listing."""

    source: str
    source_account: str = ""
    status: str = ""
    is_local: bool = False
    multiroom_allowed: bool = False
    name: str = ""


@dataclass(frozen=True)
class ZoneMember:
    ip_address: str
    mac_address: str
    role: str = ""


@dataclass(frozen=True)
class Zone:
    """Multi-room grouping with exactly one master."""

    master: str
    members: tuple[ZoneMember, ...] = ()
    sender_ip_address: str = ""
    sender_mac_address: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.members)


@dataclass(frozen=True)
class NetworkInfo:
    type: str
    mac_address: str = ""
    ip_address: str = ""
    ssid: str = ""


@dataclass(frozen=True)
class DeviceInfo:
    """Identity reported by the /info endpoint."""

    device_id: str
    name: str
    type: str
    ip_address: str
    mac_address: str
    network: NetworkInfo | None = None


@dataclass(frozen=True)
class ConnectionAdvisory:
    """Network state pushed by the device itself."""

    state: str
    up: bool
