"""Queue construction and cluster partitioning."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence, TypeVar

from .catalog import ChannelCatalog
from .channels import ChannelEntry, group_id_for, parse_channels_file
from .errors import WRONG_XMLTV_ID, ErrorLog
from .site_config import load_site_config, site_config_path

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Channel:
    lang: str | None
    xmltv_id: str
    site_id: str
    site: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "lang": self.lang,
            "xmltv_id": self.xmltv_id,
            "site_id": self.site_id,
            "site": self.site,
        }


@dataclass(slots=True)
class QueueItem:
    channel: Channel
    date: str
    config_path: str
    groups: list[str] = field(default_factory=list)
    cluster_id: int | None = None
    error: str | None = None

    @property
    def key(self) -> str:
        return queue_key(self.channel.site, self.channel.site_id, self.channel.lang, self.date)

    def add_group(self, group_id: str) -> None:
        if group_id not in self.groups:
            self.groups.append(group_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel": self.channel.to_dict(),
            "date": self.date,
            "configPath": self.config_path,
            "groups": list(self.groups),
            "cluster_id": self.cluster_id,
            "error": self.error,
        }


@dataclass(slots=True)
class QueueStats:
    files: int = 0
    skipped_files_no_site: int = 0
    skipped_sites_ignored: int = 0
    skipped_invalid: int = 0
    unresolved: int = 0
    items: int = 0


def queue_key(site: str, site_id: str, lang: str | None, day: str) -> str:
    # lang renders as "None" when absent so keys stay distinct from lang=""
    return f"{site}:{site_id}:{lang}:{day}"


def format_date(value: date) -> str:
    return f"{value.isoformat()}T00:00:00.000Z"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def build_dates(days: int, start: date | None = None) -> list[str]:
    """Return ``days`` consecutive UTC midnights starting at ``start``."""

    first = start or utc_today()
    return [format_date(first + timedelta(days=offset)) for offset in range(days)]


def split(items: Sequence[T], n: int) -> list[list[T]]:
    """Split ``items`` into ``n`` contiguous chunks of nearly equal size.

    Each chunk takes ``ceil(remaining / chunks_left)`` items, so sizes differ by
    at most one. When there are fewer items than chunks the trailing chunks are
    empty.
    """

    if n < 1:
        raise ValueError(f"Number of chunks must be at least 1 (got {n})")

    remaining = list(items)
    chunks: list[list[T]] = []
    for chunks_left in range(n, 0, -1):
        size = math.ceil(len(remaining) / chunks_left)
        chunks.append(remaining[:size])
        remaining = remaining[size:]
    return chunks


def sort_key(item: QueueItem) -> tuple[str, str]:
    return (item.channel.xmltv_id, item.date)


def assign_clusters(
    items: Iterable[QueueItem],
    max_clusters: int,
    rng: random.Random | None = None,
) -> list[QueueItem]:
    """Shuffle, partition into clusters and return the items in storage order."""

    shuffled = list(items)
    (rng or random.Random()).shuffle(shuffled)

    queue: list[QueueItem] = []
    for index, chunk in enumerate(split(shuffled, max_clusters)):
        for item in chunk:
            item.cluster_id = index + 1
            queue.append(item)

    return sorted(queue, key=sort_key)


def cluster_sizes(items: Iterable[QueueItem]) -> dict[int, int]:
    sizes: dict[int, int] = {}
    for item in items:
        if item.cluster_id is None:
            continue
        sizes[item.cluster_id] = sizes.get(item.cluster_id, 0) + 1
    return dict(sorted(sizes.items()))


def _error_payload(entry: ChannelEntry) -> dict[str, Any]:
    payload = {
        "xmltv_id": entry.xmltv_id,
        "site": entry.site,
        "site_id": entry.site_id,
        "lang": entry.lang,
        "date": None,
        "error": WRONG_XMLTV_ID,
    }
    return {key: value for key, value in payload.items() if value is not None}


class QueueBuilder:
    """Expand channel lists into deduplicated queue items."""

    def __init__(self, catalog: ChannelCatalog, error_log: ErrorLog) -> None:
        self._catalog = catalog
        self._error_log = error_log
        self.stats = QueueStats()

    def build(self, files: Iterable[Path], dates: Sequence[str]) -> list[QueueItem]:
        self.stats = QueueStats()
        queue: dict[str, QueueItem] = {}

        for filepath in files:
            self.stats.files += 1
            channel_list = parse_channels_file(filepath)
            site = channel_list.site
            if not site:
                self.stats.skipped_files_no_site += 1
                LOGGER.debug("Skipping %s: no site declared", filepath)
                continue

            config_path = site_config_path(filepath, site)
            site_config = load_site_config(config_path)
            if site_config.ignore:
                self.stats.skipped_sites_ignored += 1
                LOGGER.debug("Skipping %s: site %s is ignored", filepath, site)
                continue

            group_id = group_id_for(filepath.name, site)
            for entry in channel_list.channels:
                self._add_entry(queue, entry, dates, config_path.as_posix(), group_id)

        items = list(queue.values())
        self.stats.items = len(items)
        return items

    def _add_entry(
        self,
        queue: dict[str, QueueItem],
        entry: ChannelEntry,
        dates: Sequence[str],
        config_path: str,
        group_id: str,
    ) -> None:
        if not entry.is_complete():
            self.stats.skipped_invalid += 1
            return

        if self._catalog.find(entry.xmltv_id) is None:
            self.stats.unresolved += 1
            self._error_log.record(group_id, _error_payload(entry))
            return

        channel = Channel(
            lang=entry.lang,
            xmltv_id=entry.xmltv_id,
            site_id=entry.site_id,
            site=entry.site,
        )
        for day in dates:
            key = queue_key(channel.site, channel.site_id, channel.lang, day)
            item = queue.get(key)
            if item is None:
                item = QueueItem(channel=channel, date=day, config_path=config_path)
                queue[key] = item
            item.add_group(group_id)
