"""Configuration shared by the queue builder and its helper scripts."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_CHANNELS_PATH = "sites/**/*.channels.xml"
DEFAULT_LOGS_DIR = Path("scripts/logs")
DEFAULT_CHANNELS_API = "https://iptv-org.github.io/api/channels.json"
DEFAULT_MAX_CLUSTERS = 256
DEFAULT_DAYS = 1

DEFAULT_USER_AGENT = "epg-grab-queue/1.0"

CHANNELS_PATH_ENV = "CHANNELS_PATH"
LOGS_DIR_ENV = "LOGS_DIR"
DATABASE_URL_ENV = "QUEUE_DATABASE_URL"
CHANNELS_API_ENV = "CHANNELS_API_URL"


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


@dataclass(slots=True)
class QueueConfig:
    channels_path: str = DEFAULT_CHANNELS_PATH
    logs_dir: Path = DEFAULT_LOGS_DIR
    max_clusters: int = DEFAULT_MAX_CLUSTERS
    days: int = DEFAULT_DAYS
    db_url: Optional[str] = None
    channels_api: str = DEFAULT_CHANNELS_API
    seed: Optional[int] = None
    dry_run: bool = False
    request_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "QueueConfig":
        """Build a config from environment variables, falling back to defaults."""

        config = cls()
        channels_path = _env_str(CHANNELS_PATH_ENV)
        if channels_path:
            config.channels_path = channels_path
        logs_dir = _env_str(LOGS_DIR_ENV)
        if logs_dir:
            config.logs_dir = Path(logs_dir)
        config.db_url = _env_str(DATABASE_URL_ENV)
        channels_api = _env_str(CHANNELS_API_ENV)
        if channels_api:
            config.channels_api = channels_api
        return config

    def validate(self) -> None:
        if self.max_clusters < 1:
            raise ValueError(f"Number of clusters must be at least 1 (got {self.max_clusters})")
        if self.days < 1:
            raise ValueError(f"Number of days must be at least 1 (got {self.days})")
        if not self.channels_path:
            raise ValueError("Channels path must not be empty")

    @property
    def errors_dir(self) -> Path:
        return self.logs_dir / "errors"
