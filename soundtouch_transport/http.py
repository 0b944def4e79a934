"""HTTP client for SoundTouch device endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import aiohttp

from . import providers
from .codec import XmlCodec
from .errors import (
    SoundTouchConnectionError,
    SoundTouchDecodeError,
    SoundTouchResponseError,
    SoundTouchTimeout,
)
from .models import (
    DEFAULT_HTTP_PORT,
    Bass,
    BassCapabilities,
    ContentItem,
    DeviceInfo,
    Key,
    NowPlaying,
    Preset,
    RepeatMode,
    Source,
    Volume,
    Zone,
    ZoneMember,
    validate_preset_slot,
)

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

_LOGGER = logging.getLogger(__name__)

XML_HEADERS = {"Content-Type": "application/xml"}


def clamp_volume(level: float) -> int:
    """Round to the nearest integer and clamp into [0, 100]."""
    return max(0, min(100, round(level)))


class SoundTouchHttpClient:
    """Request/response driver for the SoundTouch XML-over-HTTP API.

    Each call issues one request (two for momentary key presses) and either
    returns a decoded value or raises. Nothing is retried here.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        host: str,
        port: int = DEFAULT_HTTP_PORT,
        *,
        timeout: float = 5.0,
        codec: XmlCodec | None = None,
    ) -> None:
        self._session = session
        self._host = host
        self._port = port
        self._timeout = timeout
        self._codec = codec or XmlCodec()
        # Held across a press/release pair
        self._key_lock = asyncio.Lock()

    @property
    def host(self) -> str:
        return self._host

    def _url(self, path: str) -> str:
        return f"http://{self._host}:{self._port}{path}"

    async def _request(self, method: str, path: str, body: str | None = None) -> str:
        url = self._url(path)
        kwargs: dict = {"timeout": aiohttp.ClientTimeout(total=self._timeout)}
        if body is not None:
            kwargs["data"] = body.encode("utf-8")
            kwargs["headers"] = XML_HEADERS

        _LOGGER.debug("[%s] %s %s", self._host, method, path)
        try:
            async with self._session.request(method, url, **kwargs) as resp:
                try:
                    text = await resp.text(encoding="utf-8")
                except UnicodeDecodeError as err:
                    raise SoundTouchDecodeError(
                        f"{method} {path} returned invalid UTF-8"
                    ) from err
                if not 200 <= resp.status < 300:
                    raise SoundTouchResponseError(
                        resp.status,
                        f"{method} {path} failed with HTTP {resp.status}",
                        text,
                    )
                return text
        except TimeoutError as err:
            raise SoundTouchTimeout(f"{method} {path} timed out") from err
        except aiohttp.ClientError as err:
            raise SoundTouchConnectionError(f"{method} {path} failed") from err

    async def _get(self, path: str) -> Element:
        return self._codec.parse(await self._request("GET", path))

    async def _post(self, path: str, body: str) -> str:
        return await self._request("POST", path, body)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_info(self) -> DeviceInfo:
        return self._codec.decode_info(await self._get("/info"), self._host)

    async def get_now_playing(self) -> NowPlaying:
        return self._codec.decode_now_playing(await self._get("/now_playing"))

    async def is_powered_on(self) -> bool:
        """Anything other than the STANDBY source means the device is on."""
        now_playing = await self.get_now_playing()
        return not now_playing.is_standby

    async def get_volume(self) -> Volume:
        return self._codec.decode_volume(await self._get("/volume"))

    async def get_bass(self) -> Bass:
        return self._codec.decode_bass(await self._get("/bass"))

    async def get_bass_capabilities(self) -> BassCapabilities:
        return self._codec.decode_bass_capabilities(
            await self._get("/bassCapabilities")
        )

    async def get_presets(self) -> list[Preset]:
        return self._codec.decode_presets(await self._get("/presets"))

    async def get_sources(self) -> list[Source]:
        return self._codec.decode_sources(await self._get("/sources"))

    async def get_zone(self) -> Zone | None:
        return self._codec.decode_zone(await self._get("/getZone"))

    async def get_name(self) -> str:
        return self._codec.decode_name(await self._get("/name"))

    # -------------------------------------------------------------------------
    # Volume and tone
    # -------------------------------------------------------------------------

    async def set_volume(self, level: float) -> None:
        await self._post("/volume", self._codec.encode_volume(clamp_volume(level)))

    async def set_bass(self, level: float) -> None:
        # The device enforces its own reported min/max.
        await self._post("/bass", self._codec.encode_bass(round(level)))

    async def set_mute(self, muted: bool) -> None:
        """Set mute state through the MUTE toggle key.

        The key only toggles, so it is pressed only when the current state
        differs from the requested one.
        """
        volume = await self.get_volume()
        if volume.muted != muted:
            await self.mute()

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    async def press_key(self, key: Key) -> None:
        """Send a momentary key: press, then release once the press succeeded."""
        async with self._key_lock:
            await self._post("/key", self._codec.encode_key(key, "press"))
            await self._post("/key", self._codec.encode_key(key, "release"))

    async def play(self) -> None:
        await self.press_key(Key.PLAY)

    async def pause(self) -> None:
        await self.press_key(Key.PAUSE)

    async def play_pause(self) -> None:
        await self.press_key(Key.PLAY_PAUSE)

    async def stop(self) -> None:
        await self.press_key(Key.STOP)

    async def next_track(self) -> None:
        await self.press_key(Key.NEXT_TRACK)

    async def previous_track(self) -> None:
        await self.press_key(Key.PREV_TRACK)

    async def power(self) -> None:
        await self.press_key(Key.POWER)

    async def power_on(self) -> None:
        if not await self.is_powered_on():
            await self.power()

    async def power_off(self) -> None:
        if await self.is_powered_on():
            await self.power()

    async def mute(self) -> None:
        await self.press_key(Key.MUTE)

    async def volume_up(self) -> None:
        await self.press_key(Key.VOLUME_UP)

    async def volume_down(self) -> None:
        await self.press_key(Key.VOLUME_DOWN)

    async def select_preset(self, preset_id: int) -> None:
        await self.press_key(Key.preset(preset_id))

    async def select_aux(self) -> None:
        await self.press_key(Key.AUX_INPUT)

    async def set_shuffle(self, enabled: bool) -> None:
        await self.press_key(Key.SHUFFLE_ON if enabled else Key.SHUFFLE_OFF)

    async def set_repeat(self, mode: RepeatMode) -> None:
        await self.press_key(mode.key)

    async def thumbs_up(self) -> None:
        await self.press_key(Key.THUMBS_UP)

    async def thumbs_down(self) -> None:
        await self.press_key(Key.THUMBS_DOWN)

    async def add_favorite(self) -> None:
        await self.press_key(Key.ADD_FAVORITE)

    async def remove_favorite(self) -> None:
        await self.press_key(Key.REMOVE_FAVORITE)

    async def bookmark(self) -> None:
        await self.press_key(Key.BOOKMARK)

    # -------------------------------------------------------------------------
    # Content selection
    # -------------------------------------------------------------------------

    async def select_content_item(self, item: ContentItem) -> None:
        await self._post("/select", self._codec.encode_content_item(item))

    async def select_source(self, source: str, source_account: str = "") -> None:
        await self.select_content_item(
            ContentItem(source=source, source_account=source_account)
        )

    async def select_bluetooth(self) -> None:
        await self.select_source("BLUETOOTH")

    async def play_url(self, url: str, name: str = "Internet Radio") -> None:
        await self.select_content_item(providers.internet_radio(url, name))

    async def play_spotify(self, spotify_uri: str, source_account: str) -> None:
        await self.select_content_item(providers.spotify(spotify_uri, source_account))

    async def play_amazon_music(self, content_id: str, source_account: str) -> None:
        await self.select_content_item(
            providers.amazon_music(content_id, source_account)
        )

    async def play_deezer(self, content_id: str, source_account: str) -> None:
        await self.select_content_item(providers.deezer(content_id, source_account))

    async def play_stored_music(
        self, location: str, source_account: str, name: str = "NAS"
    ) -> None:
        await self.select_content_item(
            providers.stored_music(location, source_account, name)
        )

    async def play_tunein(self, station_id: str) -> None:
        await self.select_content_item(providers.tunein(station_id))

    async def play_content(
        self, source: str, location: str, source_account: str = "", name: str = ""
    ) -> None:
        await self.select_content_item(
            providers.generic_content(source, location, source_account, name)
        )

    # -------------------------------------------------------------------------
    # Presets
    # -------------------------------------------------------------------------

    async def store_preset(self, preset_id: int, item: ContentItem) -> None:
        """Store content into a preset slot (1-6)."""
        validate_preset_slot(preset_id)
        await self._post("/storePreset", self._codec.encode_preset(preset_id, item))

    async def clear_preset(self, preset_id: int) -> None:
        validate_preset_slot(preset_id)
        await self._post(
            "/removePreset", self._codec.encode_preset_removal(preset_id)
        )

    # -------------------------------------------------------------------------
    # Zones
    # -------------------------------------------------------------------------

    async def create_zone(self, master_mac: str, members: list[ZoneMember]) -> None:
        await self._post("/setZone", self._zone_body(master_mac, members))

    async def add_zone_slave(self, master_mac: str, members: list[ZoneMember]) -> None:
        await self._post("/addZoneSlave", self._zone_body(master_mac, members))

    async def remove_zone_slave(
        self, master_mac: str, members: list[ZoneMember]
    ) -> None:
        await self._post("/removeZoneSlave", self._zone_body(master_mac, members))

    def _zone_body(self, master_mac: str, members: list[ZoneMember]) -> str:
        return self._codec.encode_zone(master_mac, self._host, members)

    # -------------------------------------------------------------------------
    # Name
    # -------------------------------------------------------------------------

    async def set_name(self, name: str) -> None:
        await self._post("/name", self._codec.encode_name(name))
