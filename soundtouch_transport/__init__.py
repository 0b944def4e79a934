"""SoundTouch device transport package."""

from .codec import XmlCodec
from .config import (
    ClientSettings,
    DeviceConfig,
    PlatformConfig,
    PresetConfig,
    load_config,
)
from .device import SoundTouchDevice
from .discovery import DiscoveredDevice, SoundTouchDiscovery
from .errors import (
    SoundTouchClientError,
    SoundTouchConfigError,
    SoundTouchConnectionError,
    SoundTouchDecodeError,
    SoundTouchDiscoveryError,
    SoundTouchHandshakeError,
    SoundTouchResponseError,
    SoundTouchTimeout,
    SoundTouchTransportError,
)
from .events import StreamEvent, StreamEventType
from .http import SoundTouchHttpClient
from .models import (
    Bass,
    BassCapabilities,
    ConnectionState,
    ContentItem,
    DeviceEndpoint,
    DeviceInfo,
    Key,
    NowPlaying,
    Preset,
    RepeatMode,
    Source,
    Volume,
    Zone,
    ZoneMember,
)
from .platform import SoundTouchPlatform
from .registry import DeviceRegistry
from .stream import SoundTouchEventStream
from .ws import connect_websocket
from .ws_client import SoundTouchWsClient, SoundTouchWsMessage, SoundTouchWsMessageType

__version__ = "0.1.0"

__all__ = [
    "Bass",
    "BassCapabilities",
    "ClientSettings",
    "ConnectionState",
    "ContentItem",
    "DeviceConfig",
    "DeviceEndpoint",
    "DeviceInfo",
    "DeviceRegistry",
    "DiscoveredDevice",
    "Key",
    "NowPlaying",
    "PlatformConfig",
    "Preset",
    "PresetConfig",
    "RepeatMode",
    "SoundTouchClientError",
    "SoundTouchConfigError",
    "SoundTouchConnectionError",
    "SoundTouchDecodeError",
    "SoundTouchDevice",
    "SoundTouchDiscovery",
    "SoundTouchDiscoveryError",
    "SoundTouchEventStream",
    "SoundTouchHandshakeError",
    "SoundTouchHttpClient",
    "SoundTouchPlatform",
    "SoundTouchResponseError",
    "SoundTouchTimeout",
    "SoundTouchTransportError",
    "SoundTouchWsClient",
    "SoundTouchWsMessage",
    "SoundTouchWsMessageType",
    "Source",
    "StreamEvent",
    "StreamEventType",
    "Volume",
    "XmlCodec",
    "Zone",
    "ZoneMember",
    "connect_websocket",
    "load_config",
]
