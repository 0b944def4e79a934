"""Typed events decoded from SoundTouch push frames."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import SoundTouchDecodeError
from .models import (
    Bass,
    ConnectionAdvisory,
    NowPlaying,
    Preset,
    Volume,
    Zone,
)

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from .codec import XmlCodec

_LOGGER = logging.getLogger(__name__)


class StreamEventType(Enum):
    """Discriminator for events delivered by the event stream."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    VOLUME = "volume"
    NOW_PLAYING = "now_playing"
    PRESETS = "presets"
    ZONE = "zone"
    BASS = "bass"
    CONNECTION_ADVISORY = "connection_advisory"


EventData = (
    Volume
    | NowPlaying
    | tuple[Preset, ...]
    | Zone
    | Bass
    | ConnectionAdvisory
    | Exception
    | None
)


@dataclass(frozen=True)
class StreamEvent:
    """A single event from the push stream.

    ``data`` depends on ``type``: a ``Volume`` for VOLUME, a tuple of
    ``Preset`` for PRESETS, a ``Zone`` or ``None`` (not grouped) for ZONE,
    the underlying exception for ERROR and ``None`` for lifecycle signals.
    """

    type: StreamEventType
    data: EventData = None


def _advisory(codec: XmlCodec, segment: Element) -> ConnectionAdvisory:
    state = segment.get("state")
    if state is None:
        raise SoundTouchDecodeError("connectionStateUpdated has no state")
    return ConnectionAdvisory(state=state, up=segment.get("up") == "true")


def _wrapped(
    child_tag: str, decode: Callable[[XmlCodec, Element], Any]
) -> Callable[[XmlCodec, Element], Any]:
    def _decode(codec: XmlCodec, segment: Element) -> Any:
        child = segment.find(child_tag)
        if child is None:
            raise SoundTouchDecodeError(f"<{segment.tag}> has no <{child_tag}>")
        return decode(codec, child)

    return _decode


# segment tag -> (event type, decoder)
UPDATE_SEGMENTS: dict[str, tuple[StreamEventType, Callable[[XmlCodec, Element], Any]]] = {
    "volumeUpdated": (
        StreamEventType.VOLUME,
        _wrapped("volume", lambda c, e: c.decode_volume(e)),
    ),
    "nowPlayingUpdated": (
        StreamEventType.NOW_PLAYING,
        _wrapped("nowPlaying", lambda c, e: c.decode_now_playing(e)),
    ),
    "presetsUpdated": (
        StreamEventType.PRESETS,
        _wrapped("presets", lambda c, e: tuple(c.decode_presets(e))),
    ),
    "zoneUpdated": (
        StreamEventType.ZONE,
        _wrapped("zone", lambda c, e: c.decode_zone(e)),
    ),
    "bassUpdated": (
        StreamEventType.BASS,
        _wrapped("bass", lambda c, e: c.decode_bass(e)),
    ),
    "connectionStateUpdated": (StreamEventType.CONNECTION_ADVISORY, _advisory),
}


def decode_frame(codec: XmlCodec, text: str) -> list[StreamEvent]:
    """Decode one push frame into zero or more events.

    Raises:
        SoundTouchDecodeError: The frame is not well-formed XML.
    """
    root = codec.parse(text)
    if root.tag != "updates":
        return []

    events: list[StreamEvent] = []
    for segment in root:
        handler = UPDATE_SEGMENTS.get(segment.tag)
        if handler is None:
            continue
        event_type, decode = handler
        try:
            events.append(StreamEvent(event_type, decode(codec, segment)))
        except SoundTouchDecodeError as err:
            _LOGGER.debug("Dropping <%s> segment: %s", segment.tag, err)
    return events
