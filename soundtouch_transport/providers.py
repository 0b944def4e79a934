"""Content-item builders, one per streaming provider.

Each provider encodes its location differently, so there is deliberately no
generic location builder beyond ``generic_content``.
"""

from __future__ import annotations

import base64
import json

from .models import ContentItem

STATION_ADAPTER_URL = (
    "https://content.api.bose.io/core02/svc-bmx-adapter-orion/prod/orion/station"
)


def _b64(data: str) -> str:
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def internet_radio(url: str, name: str = "Internet Radio") -> ContentItem:
    """Wrap a free-form stream URL in the vendor's station adapter.

    The station descriptor is JSON, base64 encoded into the ``data`` query
    parameter of the adapter URL.
    """
    station = {"name": name, "imageUrl": "", "streamUrl": url}
    data = _b64(json.dumps(station, separators=(",", ":")))
    return ContentItem(
        source="LOCAL_INTERNET_RADIO",
        type="stationurl",
        location=f"{STATION_ADAPTER_URL}?data={data}",
        is_presetable=True,
        name=name,
    )


def spotify(uri: str, source_account: str) -> ContentItem:
    """Spotify URIs (``spotify:playlist:...``) go base64 encoded in the path."""
    return ContentItem(
        source="SPOTIFY",
        type="tracklisturl",
        location=f"/playback/container/{_b64(uri)}",
        source_account=source_account,
        is_presetable=True,
    )


def amazon_music(content_id: str, source_account: str) -> ContentItem:
    return ContentItem(
        source="AMAZON",
        type="tracklist",
        location=content_id,
        source_account=source_account,
        is_presetable=True,
    )


def deezer(content_id: str, source_account: str) -> ContentItem:
    return ContentItem(
        source="DEEZER",
        location=content_id,
        source_account=source_account,
        is_presetable=True,
    )


def stored_music(location: str, source_account: str, name: str = "NAS") -> ContentItem:
    """NAS/DLNA content.

    Args:
        location: DLNA object id, e.g. ``64$1$1$0``.
        source_account: Media server id suffixed with ``/0``.
        name: Display name.
    """
    return ContentItem(
        source="STORED_MUSIC",
        location=location,
        source_account=source_account,
        is_presetable=True,
        name=name,
    )


def tunein(station_id: str) -> ContentItem:
    return ContentItem(
        source="TUNEIN",
        location=f"/v1/playback/station/{station_id}",
        is_presetable=True,
    )


def generic_content(
    source: str, location: str, source_account: str = "", name: str = ""
) -> ContentItem:
    return ContentItem(
        source=source,
        location=location,
        source_account=source_account,
        is_presetable=True,
        name=name,
    )
