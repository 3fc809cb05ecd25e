"""Discovery and parsing of ``*.channels.xml`` channel lists."""

from __future__ import annotations

import glob
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from xml.etree import ElementTree as ET

LOGGER = logging.getLogger(__name__)

_REGION_PATTERN = re.compile(r"_([a-z-]+)\.channels\.xml", re.IGNORECASE)


class ChannelListError(ValueError):
    """Raised when a channel list cannot be read or parsed."""


@dataclass(slots=True)
class ChannelEntry:
    site: str | None
    site_id: str | None
    xmltv_id: str | None
    lang: str | None = None
    name: str | None = None

    def is_complete(self) -> bool:
        return bool(self.site and self.site_id and self.xmltv_id)


@dataclass(slots=True)
class ChannelList:
    path: Path
    site: str | None
    channels: list[ChannelEntry] = field(default_factory=list)


def discover_channel_files(pattern: str) -> list[Path]:
    """Return channel list files matching ``pattern`` in a stable order."""

    matches = sorted(set(glob.glob(pattern, recursive=True)))
    return [Path(match) for match in matches if Path(match).is_file()]


def extract_region(filename: str) -> str | None:
    match = _REGION_PATTERN.search(filename)
    if not match:
        return None
    return match.group(1)


def group_id_for(filename: str, site: str) -> str:
    region = extract_region(filename)
    # a file without a region suffix is grouped under "null"
    return f"{region if region is not None else 'null'}/{site}"


def _clean_attr(element: ET.Element, name: str) -> str | None:
    value = element.get(name)
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _strip_tag(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def parse_channels(payload: bytes | str, *, source: Path | str = "<memory>") -> ChannelList:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise ChannelListError(f"Invalid channel list {source}: {exc}") from exc

    nodes = [node for node in root.iter() if _strip_tag(node.tag) == "channel"]

    site = _clean_attr(root, "site")
    if site is None:
        site = next((_clean_attr(node, "site") for node in nodes if _clean_attr(node, "site")), None)

    channels: list[ChannelEntry] = []
    for node in nodes:
        name = (node.text or "").strip() or None
        channels.append(
            ChannelEntry(
                site=_clean_attr(node, "site") or site,
                site_id=_clean_attr(node, "site_id"),
                xmltv_id=_clean_attr(node, "xmltv_id"),
                lang=_clean_attr(node, "lang"),
                name=name,
            )
        )

    return ChannelList(path=Path(source), site=site, channels=channels)


def parse_channels_file(path: Path) -> ChannelList:
    """Parse a channel list from disk.

    Both the flat ``<channels site="...">`` layout and the legacy
    ``<site site="..."><channels>`` wrapper are accepted.
    """

    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise ChannelListError(f"Unable to read channel list {path}: {exc}") from exc

    channel_list = parse_channels(payload, source=path)
    LOGGER.debug("Parsed %d channels for site %s from %s", len(channel_list.channels), channel_list.site, path)
    return channel_list
