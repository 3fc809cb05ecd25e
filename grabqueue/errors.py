"""Append-only NDJSON error logs grouped by ``region/site``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)

WRONG_XMLTV_ID = "The channel has the wrong xmltv_id"


class ErrorLog:
    """Write per-group error records under ``errors_dir``."""

    def __init__(self, errors_dir: Path) -> None:
        self._errors_dir = errors_dir

    def path_for(self, group_id: str) -> Path:
        return self._errors_dir / f"{group_id}.log"

    def record(self, group_id: str, payload: Mapping[str, Any]) -> None:
        log_path = self.path_for(group_id)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with log_path.open("a", encoding="utf-8", newline="") as handle:
                handle.write(json.dumps(dict(payload), ensure_ascii=False, separators=(",", ":")) + "\r\n")
        except OSError as file_error:
            LOGGER.warning("Failed to record error for group %s: %s", group_id, file_error)
