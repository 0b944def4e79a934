"""Tests for SoundTouchHttpClient."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import aiohttp
import pytest

from soundtouch_transport.errors import (
    SoundTouchConnectionError,
    SoundTouchDecodeError,
    SoundTouchResponseError,
    SoundTouchTimeout,
)
from soundtouch_transport.http import SoundTouchHttpClient, clamp_volume
from soundtouch_transport.models import ContentItem, Key, RepeatMode, ZoneMember

from .conftest import create_mock_response, request_bodies

HOST = "192.168.1.20"
BASE = f"http://{HOST}:8090"


def _volume_xml(level: int = 30, muted: bool = False) -> str:
    return (
        '<volume deviceID="A0B1C2D3E4F5">'
        f"<targetvolume>{level}</targetvolume>"
        f"<actualvolume>{level}</actualvolume>"
        f"<muteenabled>{'true' if muted else 'false'}</muteenabled>"
        "</volume>"
    )


def _now_playing_xml(source: str) -> str:
    return f'<nowPlaying deviceID="A0B1C2D3E4F5" source="{source}"><ContentItem source="{source}" isPresetable="true" /></nowPlaying>'


@pytest.fixture
def client(mock_session: MagicMock) -> SoundTouchHttpClient:
    return SoundTouchHttpClient(mock_session, HOST)


class TestClampVolume:
    """Tests for volume clamping."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [(150, 100), (-5, 0), (0, 0), (100, 100), (42.4, 42), (42.6, 43)],
    )
    def test_clamp(self, level, expected):
        assert clamp_volume(level) == expected


class TestRequests:
    """Tests for request plumbing and error mapping."""

    @pytest.mark.asyncio
    async def test_get_uses_timeout_and_url(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(
            text_data=_volume_xml(25)
        )

        volume = await client.get_volume()

        assert volume.target == 25
        assert volume.actual == 25
        assert volume.muted is False
        call = mock_session.request.call_args
        assert call.args == ("GET", f"{BASE}/volume")
        assert isinstance(call.kwargs["timeout"], aiohttp.ClientTimeout)
        assert call.kwargs["timeout"].total == 5.0
        assert "data" not in call.kwargs

    @pytest.mark.asyncio
    async def test_post_sends_xml_body(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.set_volume(30)

        call = mock_session.request.call_args
        assert call.args == ("POST", f"{BASE}/volume")
        assert call.kwargs["data"] == b"<volume>30</volume>"
        assert call.kwargs["headers"] == {"Content-Type": "application/xml"}

    @pytest.mark.asyncio
    async def test_non_2xx_raises_response_error(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(
            status=500, text_data="<errors><error>boom</error></errors>"
        )

        with pytest.raises(SoundTouchResponseError) as exc_info:
            await client.get_volume()

        assert exc_info.value.status == 500
        assert "boom" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_timeout_maps_to_timeout_error(self, client, mock_session):
        mock_session.request.side_effect = TimeoutError()

        with pytest.raises(SoundTouchTimeout):
            await client.get_info()

    @pytest.mark.asyncio
    async def test_client_error_maps_to_connection_error(self, client, mock_session):
        mock_session.request.side_effect = aiohttp.ClientConnectionError("refused")

        with pytest.raises(SoundTouchConnectionError):
            await client.get_info()

    @pytest.mark.asyncio
    async def test_malformed_body_raises_decode_error(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<volume>")

        with pytest.raises(SoundTouchDecodeError):
            await client.get_volume()

    @pytest.mark.asyncio
    async def test_invalid_utf8_raises_decode_error(self, client, mock_session):
        response = create_mock_response()
        response.text.side_effect = UnicodeDecodeError(
            "utf-8", b"\xff", 0, 1, "invalid start byte"
        )
        mock_session.request.return_value = response

        with pytest.raises(SoundTouchDecodeError) as exc_info:
            await client.get_volume()

        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


class TestVolume:
    """Tests for volume and mute control."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("level", "sent"), [(150, "100"), (-5, "0")])
    async def test_set_volume_clamps(self, client, mock_session, level, sent):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.set_volume(level)

        assert request_bodies(mock_session) == [
            ("POST", f"{BASE}/volume", f"<volume>{sent}</volume>")
        ]

    @pytest.mark.asyncio
    async def test_set_mute_already_muted_sends_no_key(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(
            text_data=_volume_xml(muted=True)
        )

        await client.set_mute(True)

        assert [c[0] for c in request_bodies(mock_session)] == ["GET"]

    @pytest.mark.asyncio
    async def test_set_mute_toggles_once(self, client, mock_session):
        mock_session.request.side_effect = [
            create_mock_response(text_data=_volume_xml(muted=False)),
            create_mock_response(text_data="<status/>"),
            create_mock_response(text_data="<status/>"),
        ]

        await client.set_mute(True)

        calls = request_bodies(mock_session)
        assert calls[0][:2] == ("GET", f"{BASE}/volume")
        assert calls[1:] == [
            ("POST", f"{BASE}/key", '<key state="press" sender="Gabbo">MUTE</key>'),
            ("POST", f"{BASE}/key", '<key state="release" sender="Gabbo">MUTE</key>'),
        ]

    @pytest.mark.asyncio
    async def test_set_bass_rounds_without_clamping(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.set_bass(-8.6)

        assert request_bodies(mock_session)[0][2] == "<bass>-9</bass>"


class TestKeys:
    """Tests for momentary key presses."""

    @pytest.mark.asyncio
    async def test_press_then_release(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.next_track()

        assert [c[2] for c in request_bodies(mock_session)] == [
            '<key state="press" sender="Gabbo">NEXT_TRACK</key>',
            '<key state="release" sender="Gabbo">NEXT_TRACK</key>',
        ]

    @pytest.mark.asyncio
    async def test_failed_press_sends_no_release(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(status=500)

        with pytest.raises(SoundTouchResponseError):
            await client.press_key(Key.PLAY)

        assert mock_session.request.call_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_keys_are_not_interleaved(self, client, mock_session):
        async def _slow_text(*args, **kwargs):
            await asyncio.sleep(0)
            return "<status/>"

        response = create_mock_response()
        response.text.side_effect = _slow_text
        mock_session.request.return_value = response

        await asyncio.gather(client.play(), client.pause())

        assert [c[2] for c in request_bodies(mock_session)] == [
            '<key state="press" sender="Gabbo">PLAY</key>',
            '<key state="release" sender="Gabbo">PLAY</key>',
            '<key state="press" sender="Gabbo">PAUSE</key>',
            '<key state="release" sender="Gabbo">PAUSE</key>',
        ]

    @pytest.mark.asyncio
    async def test_preset_and_repeat_keys(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.select_preset(3)
        await client.set_repeat(RepeatMode.ALL)

        bodies = [c[2] for c in request_bodies(mock_session)]
        assert "PRESET_3" in bodies[0]
        assert "REPEAT_ALL" in bodies[2]

    @pytest.mark.asyncio
    async def test_select_preset_out_of_range(self, client, mock_session):
        with pytest.raises(ValueError):
            await client.select_preset(7)
        mock_session.request.assert_not_called()


class TestPower:
    """Tests for STANDBY-based power detection."""

    @pytest.mark.asyncio
    async def test_standby_is_off(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(
            text_data=_now_playing_xml("STANDBY")
        )

        assert await client.is_powered_on() is False

    @pytest.mark.asyncio
    async def test_any_other_source_is_on(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(
            text_data=_now_playing_xml("BLUETOOTH")
        )

        assert await client.is_powered_on() is True

    @pytest.mark.asyncio
    async def test_power_on_when_already_on_sends_no_key(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(
            text_data=_now_playing_xml("SPOTIFY")
        )

        await client.power_on()

        assert mock_session.request.call_count == 1

    @pytest.mark.asyncio
    async def test_power_on_from_standby_presses_power(self, client, mock_session):
        mock_session.request.side_effect = [
            create_mock_response(text_data=_now_playing_xml("STANDBY")),
            create_mock_response(text_data="<status/>"),
            create_mock_response(text_data="<status/>"),
        ]

        await client.power_on()

        bodies = [c[2] for c in request_bodies(mock_session)]
        assert bodies[1] == '<key state="press" sender="Gabbo">POWER</key>'


class TestContent:
    """Tests for content selection, presets and zones."""

    @pytest.mark.asyncio
    async def test_select_source(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.select_bluetooth()

        assert request_bodies(mock_session) == [
            (
                "POST",
                f"{BASE}/select",
                '<ContentItem source="BLUETOOTH" location="" sourceAccount="" />',
            )
        ]

    @pytest.mark.asyncio
    async def test_store_preset(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")
        item = ContentItem(source="TUNEIN", location="/v1/playback/station/s1", name="Jazz")

        await client.store_preset(2, item)

        method, url, body = request_bodies(mock_session)[0]
        assert url == f"{BASE}/storePreset"
        assert body == (
            '<preset id="2"><ContentItem source="TUNEIN" '
            'location="/v1/playback/station/s1" sourceAccount="">'
            "<itemName>Jazz</itemName>"
            "</ContentItem></preset>"
        )

    @pytest.mark.asyncio
    async def test_store_preset_rejects_bad_slot(self, client, mock_session):
        with pytest.raises(ValueError):
            await client.store_preset(0, ContentItem(source="TUNEIN"))
        mock_session.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_clear_preset(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.clear_preset(6)

        assert request_bodies(mock_session) == [
            ("POST", f"{BASE}/removePreset", '<preset id="6" />')
        ]

    @pytest.mark.asyncio
    async def test_create_zone(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<status/>")

        await client.create_zone(
            "MASTERMAC", [ZoneMember(ip_address="192.168.1.21", mac_address="SLAVEMAC")]
        )

        assert request_bodies(mock_session) == [
            (
                "POST",
                f"{BASE}/setZone",
                f'<zone master="MASTERMAC" senderIPAddress="{HOST}">'
                '<member ipaddress="192.168.1.21">SLAVEMAC</member></zone>',
            )
        ]

    @pytest.mark.asyncio
    async def test_get_zone_not_grouped(self, client, mock_session):
        mock_session.request.return_value = create_mock_response(text_data="<zone />")

        assert await client.get_zone() is None
