"""Tests for YAML configuration loading."""

from __future__ import annotations

import pytest

from soundtouch_transport.config import (
    ClientSettings,
    PlatformConfig,
    PresetConfig,
    load_config,
)
from soundtouch_transport.errors import SoundTouchConfigError

CONFIG_YAML = """
auto_discover: false
discovery_timeout: 4
settings:
  request_timeout: 2.5
  reconnect_delay: 1
devices:
  - host: 192.168.1.20
    name: Kitchen
    room: Downstairs
    presets:
      - slot: 1
        name: Jazz
        type: radio
        url: http://jazz.example/stream.mp3
      - slot: 2
        name: Mix
        type: spotify
        spotify_uri: spotify:playlist:abc
        source_account: user1
  - host: 192.168.1.21
"""


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_full_file(self, tmp_path):
        path = tmp_path / "soundtouch.yaml"
        path.write_text(CONFIG_YAML)

        config = load_config(path)

        assert config.auto_discover is False
        assert config.discovery_timeout == 4.0
        assert config.settings.request_timeout == 2.5
        assert config.settings.reconnect_delay == 1.0
        assert config.settings.http_port == 8090
        assert [d.host for d in config.devices] == ["192.168.1.20", "192.168.1.21"]
        kitchen = config.devices[0]
        assert kitchen.room == "Downstairs"
        assert [p.slot for p in kitchen.presets] == [1, 2]
        assert config.devices[1].display_name == "SoundTouch 192.168.1.21"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SoundTouchConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("devices: [unclosed")

        with pytest.raises(SoundTouchConfigError):
            load_config(path)

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        config = load_config(path)

        assert config == PlatformConfig()
        assert config.settings == ClientSettings()
        assert config.auto_discover is True
        assert config.discovery_timeout == 10.0


class TestFromDict:
    """Tests for validation in PlatformConfig.from_dict()."""

    @pytest.mark.parametrize("slot", [0, 7, "x", None])
    def test_rejects_bad_preset_slot(self, slot):
        data = {"devices": [{"host": "h", "presets": [{"slot": slot, "type": "tunein"}]}]}

        with pytest.raises(SoundTouchConfigError):
            PlatformConfig.from_dict(data)

    def test_rejects_unknown_preset_type(self):
        data = {"devices": [{"host": "h", "presets": [{"slot": 1, "type": "cassette"}]}]}

        with pytest.raises(SoundTouchConfigError, match="Unknown preset type"):
            PlatformConfig.from_dict(data)

    def test_rejects_duplicate_slots(self):
        presets = [{"slot": 1, "type": "tunein"}, {"slot": 1, "type": "radio"}]

        with pytest.raises(SoundTouchConfigError, match="duplicate"):
            PlatformConfig.from_dict({"devices": [{"host": "h", "presets": presets}]})

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(SoundTouchConfigError):
            PlatformConfig.from_dict({"discovery_timeout": 0})

    def test_rejects_non_list_devices(self):
        with pytest.raises(SoundTouchConfigError):
            PlatformConfig.from_dict({"devices": {"host": "h"}})

    def test_keeps_device_without_host(self):
        config = PlatformConfig.from_dict({"devices": [{"name": "Nowhere"}]})

        assert config.devices[0].host == ""


class TestPresetConfig:
    """Tests for PresetConfig.to_content_item()."""

    def test_radio(self):
        preset = PresetConfig(slot=1, name="Jazz", type="radio", url="http://x/")

        item = preset.to_content_item()

        assert item.source == "LOCAL_INTERNET_RADIO"
        assert item.name == "Jazz"

    def test_tunein(self):
        item = PresetConfig(slot=2, name="News", type="tunein", content_id="s1").to_content_item()

        assert item.location == "/v1/playback/station/s1"

    def test_nas(self):
        item = PresetConfig(
            slot=3,
            name="Music",
            type="nas",
            nas_location="64$1",
            nas_server="server/0",
        ).to_content_item()

        assert (item.source, item.location, item.source_account, item.name) == (
            "STORED_MUSIC",
            "64$1",
            "server/0",
            "Music",
        )

    def test_missing_fields(self):
        preset = PresetConfig(slot=4, name="Mix", type="spotify", spotify_uri="spotify:x")

        assert preset.is_complete is False
        with pytest.raises(SoundTouchConfigError, match="source_account"):
            preset.to_content_item()
