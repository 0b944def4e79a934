"""XML codec for the SoundTouch HTTP and push-stream dialect.

The device serializes its state inconsistently: some leaf values live in
attributes, some in element text, and some elements carry both (``art``,
zone ``member``, ``sourceItem``). Repeated children such as ``preset`` or
``member`` may appear once or many times. Decoders here always read repeated
children as lists and know per field which convention applies.
"""

from __future__ import annotations

from xml.etree import ElementTree

from .errors import SoundTouchDecodeError
from .models import (
    Bass,
    BassCapabilities,
    ContentItem,
    DeviceInfo,
    Key,
    NetworkInfo,
    NowPlaying,
    Preset,
    Source,
    Volume,
    Zone,
    ZoneMember,
)

KEY_SENDER = "Gabbo"


def _children(parent: ElementTree.Element, tag: str) -> list[ElementTree.Element]:
    return parent.findall(tag)


def _text(parent: ElementTree.Element, tag: str) -> str | None:
    child = parent.find(tag)
    if child is None:
        return None
    return (child.text or "").strip()


def _required_text(parent: ElementTree.Element, tag: str) -> str:
    value = _text(parent, tag)
    if value is None:
        raise SoundTouchDecodeError(f"<{parent.tag}> is missing <{tag}>")
    return value


def _int(parent: ElementTree.Element, tag: str) -> int:
    value = _required_text(parent, tag)
    try:
        return int(value)
    except ValueError as err:
        raise SoundTouchDecodeError(
            f"<{tag}> is not an integer: {value!r}"
        ) from err


def _flag(value: str | None) -> bool:
    return value == "true"


def _required_attr(elem: ElementTree.Element, name: str) -> str:
    value = elem.get(name)
    if value is None:
        raise SoundTouchDecodeError(f"<{elem.tag}> is missing attribute {name!r}")
    return value


def _expect(root: ElementTree.Element, tag: str) -> ElementTree.Element:
    if root.tag != tag:
        raise SoundTouchDecodeError(f"Expected <{tag}>, got <{root.tag}>")
    return root


def _tostring(elem: ElementTree.Element) -> str:
    return ElementTree.tostring(elem, encoding="unicode")


class XmlCodec:
    """Stateless encoder/decoder shared by the HTTP client and event stream."""

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, text: str | bytes) -> ElementTree.Element:
        """Parse an XML document into its root element."""
        try:
            return ElementTree.fromstring(text)
        except ElementTree.ParseError as err:
            raise SoundTouchDecodeError(f"Malformed XML: {err}") from err

    # ------------------------------------------------------------------
    # Decoders
    # ------------------------------------------------------------------

    def decode_content_item(self, elem: ElementTree.Element) -> ContentItem:
        _expect(elem, "ContentItem")
        return ContentItem(
            source=elem.get("source", ""),
            type=elem.get("type", ""),
            location=elem.get("location", ""),
            source_account=elem.get("sourceAccount", ""),
            is_presetable=_flag(elem.get("isPresetable")),
            name=_text(elem, "itemName") or "",
        )

    def decode_info(self, root: ElementTree.Element, host: str) -> DeviceInfo:
        _expect(root, "info")
        networks = [
            NetworkInfo(
                type=item.get("type", ""),
                mac_address=_text(item, "macAddress") or "",
                ip_address=_text(item, "ipAddress") or "",
                ssid=_text(item, "ssid") or "",
            )
            for item in _children(root, "networkInfo")
        ]
        network = next((n for n in networks if n.type == "WIFI"), None)
        if network is None and networks:
            network = networks[0]

        device_id = _required_attr(root, "deviceID")
        return DeviceInfo(
            device_id=device_id,
            name=_text(root, "name") or "",
            type=_text(root, "type") or "",
            ip_address=host,
            mac_address=(network.mac_address if network else "") or device_id,
            network=network,
        )

    def decode_now_playing(self, root: ElementTree.Element) -> NowPlaying:
        _expect(root, "nowPlaying")

        content_item = None
        item = root.find("ContentItem")
        if item is not None:
            content_item = self.decode_content_item(item)

        # <art artImageStatus="..."> carries the URL as text, if any
        art = None
        art_elem = root.find("art")
        if art_elem is not None and art_elem.text:
            art = art_elem.text.strip() or None

        return NowPlaying(
            source=_required_attr(root, "source"),
            source_account=root.get("sourceAccount", ""),
            content_item=content_item,
            track=_text(root, "track"),
            artist=_text(root, "artist"),
            album=_text(root, "album"),
            station_name=_text(root, "stationName"),
            art=art,
            play_status=_text(root, "playStatus"),
            shuffle_setting=_text(root, "shuffleSetting"),
            repeat_setting=_text(root, "repeatSetting"),
            stream_type=_text(root, "streamType"),
            track_id=_text(root, "trackID"),
        )

    def decode_volume(self, root: ElementTree.Element) -> Volume:
        _expect(root, "volume")
        return Volume(
            target=_int(root, "targetvolume"),
            actual=_int(root, "actualvolume"),
            muted=_flag(_text(root, "muteenabled")),
        )

    def decode_bass(self, root: ElementTree.Element) -> Bass:
        _expect(root, "bass")
        return Bass(target=_int(root, "targetbass"), actual=_int(root, "actualbass"))

    def decode_bass_capabilities(self, root: ElementTree.Element) -> BassCapabilities:
        _expect(root, "bassCapabilities")
        return BassCapabilities(
            available=_flag(_text(root, "bassAvailable")),
            minimum=_int(root, "bassMin"),
            maximum=_int(root, "bassMax"),
            default=_int(root, "bassDefault"),
        )

    def decode_presets(self, root: ElementTree.Element) -> list[Preset]:
        _expect(root, "presets")
        presets: list[Preset] = []
        for elem in _children(root, "preset"):
            item = elem.find("ContentItem")
            if item is None:
                raise SoundTouchDecodeError("<preset> is missing <ContentItem>")
            try:
                preset_id = int(_required_attr(elem, "id"))
            except ValueError as err:
                raise SoundTouchDecodeError("Preset id is not an integer") from err
            presets.append(
                Preset(id=preset_id, content_item=self.decode_content_item(item))
            )
        return presets

    def decode_sources(self, root: ElementTree.Element) -> list[Source]:
        _expect(root, "sources")
        return [
            Source(
                source=_required_attr(elem, "source"),
                source_account=elem.get("sourceAccount", ""),
                status=elem.get("status", ""),
                is_local=_flag(elem.get("isLocal")),
                multiroom_allowed=_flag(elem.get("multiroomallowed")),
                name=(elem.text or "").strip(),
            )
            for elem in _children(root, "sourceItem")
        ]

    def decode_zone(self, root: ElementTree.Element) -> Zone | None:
        """Decode a zone; ``None`` when the device is not grouped."""
        _expect(root, "zone")
        master = root.get("master")
        if not master:
            return None
        members = tuple(
            ZoneMember(
                ip_address=_required_attr(elem, "ipaddress"),
                mac_address=(elem.text or "").strip(),
                role=elem.get("role", ""),
            )
            for elem in _children(root, "member")
        )
        return Zone(
            master=master,
            members=members,
            sender_ip_address=root.get("senderIPAddress", ""),
            sender_mac_address=root.get("senderMACAddress", ""),
        )

    def decode_name(self, root: ElementTree.Element) -> str:
        _expect(root, "name")
        return (root.text or "").strip()

    # ------------------------------------------------------------------
    # Encoders
    # ------------------------------------------------------------------

    def encode_volume(self, level: int) -> str:
        elem = ElementTree.Element("volume")
        elem.text = str(level)
        return _tostring(elem)

    def encode_bass(self, level: int) -> str:
        elem = ElementTree.Element("bass")
        elem.text = str(level)
        return _tostring(elem)

    def encode_key(self, key: Key, state: str) -> str:
        elem = ElementTree.Element("key", {"state": state, "sender": KEY_SENDER})
        elem.text = key.value
        return _tostring(elem)

    def encode_name(self, name: str) -> str:
        elem = ElementTree.Element("name")
        elem.text = name
        return _tostring(elem)

    def content_item_element(self, item: ContentItem) -> ElementTree.Element:
        attrs = {"source": item.source}
        if item.type:
            attrs["type"] = item.type
        # location and sourceAccount may be empty but are always sent
        attrs["location"] = item.location
        attrs["sourceAccount"] = item.source_account
        if item.is_presetable:
            attrs["isPresetable"] = "true"
        elem = ElementTree.Element("ContentItem", attrs)
        if item.name:
            ElementTree.SubElement(elem, "itemName").text = item.name
        return elem

    def encode_content_item(self, item: ContentItem) -> str:
        return _tostring(self.content_item_element(item))

    def encode_zone(
        self, master_mac: str, sender_ip: str, members: list[ZoneMember]
    ) -> str:
        elem = ElementTree.Element(
            "zone", {"master": master_mac, "senderIPAddress": sender_ip}
        )
        for member in members:
            child = ElementTree.SubElement(
                elem, "member", {"ipaddress": member.ip_address}
            )
            child.text = member.mac_address
        return _tostring(elem)

    def encode_preset(self, preset_id: int, item: ContentItem) -> str:
        elem = ElementTree.Element("preset", {"id": str(preset_id)})
        elem.append(self.content_item_element(item))
        return _tostring(elem)

    def encode_preset_removal(self, preset_id: int) -> str:
        return _tostring(ElementTree.Element("preset", {"id": str(preset_id)}))
