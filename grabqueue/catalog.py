"""Channel catalog used to validate ``xmltv_id`` references."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

import httpx

LOGGER = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Raised when the channel catalog cannot be loaded."""


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class ChannelCatalog:
    """In-memory index of known channels keyed by their ``id``."""

    def __init__(self, entries: Iterable[dict[str, Any]] = ()) -> None:
        self._channels: dict[str, dict[str, Any]] = {}
        for entry in entries:
            channel_id = entry.get("id") if isinstance(entry, dict) else None
            if not isinstance(channel_id, str) or not channel_id:
                continue
            self._channels[channel_id] = entry

    @classmethod
    def load(
        cls,
        source: str | Path,
        *,
        timeout: float = 30.0,
        user_agent: str | None = None,
    ) -> "ChannelCatalog":
        source_str = str(source)
        if _is_remote(source_str):
            payload = cls._fetch(source_str, timeout=timeout, user_agent=user_agent)
        else:
            try:
                payload = Path(source_str).read_text(encoding="utf-8")
            except OSError as exc:
                raise CatalogError(f"Unable to read channel catalog {source_str}: {exc}") from exc

        try:
            records = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise CatalogError(f"Invalid channel catalog {source_str}: {exc}") from exc
        if not isinstance(records, list):
            raise CatalogError(f"Channel catalog {source_str} must contain a JSON array")

        catalog = cls(records)
        LOGGER.info("Loaded %d channels from %s", len(catalog), source_str)
        return catalog

    @staticmethod
    def _fetch(url: str, *, timeout: float, user_agent: str | None) -> str:
        headers = {"User-Agent": user_agent} if user_agent else None
        try:
            with httpx.Client(headers=headers, timeout=timeout, follow_redirects=True) as client:
                response = client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as exc:
            raise CatalogError(f"Failed to fetch channel catalog {url}: {exc}") from exc

    def find(self, channel_id: str | None) -> dict[str, Any] | None:
        if not channel_id:
            return None
        return self._channels.get(channel_id)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._channels

    def __len__(self) -> int:
        return len(self._channels)

