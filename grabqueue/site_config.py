"""Loading of per-site grabber configuration files."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_PROPERTY_PATTERN = re.compile(
    r"""^\s*['"]?(?P<key>[A-Za-z_$][\w$]*)['"]?\s*:\s*"""
    r"""(?P<value>true|false|null|-?\d+(?:\.\d+)?|'[^'\\]*'|"[^"\\]*"|`[^`\\]*`)\s*,?\s*(?://.*)?$"""
)
_STRING_PATTERN = re.compile(r"""'[^'\\]*'|"[^"\\]*"|`[^`\\]*`""")
_LINE_COMMENT_PATTERN = re.compile(r"//.*$")
_BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)


class SiteConfigError(FileNotFoundError):
    """Raised when a site configuration file is missing or unreadable."""


@dataclass(slots=True)
class SiteConfig:
    path: Path
    ignore: bool = False


def site_config_path(channels_file: Path, site: str) -> Path:
    return channels_file.parent / f"{site}.config.js"


def _coerce_literal(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "null":
        return None
    if raw[0] in "'\"`":
        return raw[1:-1]
    if "." in raw:
        return float(raw)
    return int(raw)


def _brace_delta(line: str) -> int:
    stripped = _STRING_PATTERN.sub("", line)
    stripped = _LINE_COMMENT_PATTERN.sub("", stripped)
    return stripped.count("{") - stripped.count("}")


def parse_js_config(source: str) -> dict[str, Any]:
    """Extract top-level scalar properties from a ``module.exports`` object.

    Functions, nested objects and computed values are ignored; only literals
    declared directly on the exported object are returned.
    """

    source = _BLOCK_COMMENT_PATTERN.sub("", source)
    values: dict[str, Any] = {}
    depth = 0
    for line in source.splitlines():
        if depth == 1:
            match = _PROPERTY_PATTERN.match(line)
            if match and match.group("key") not in values:
                values[match.group("key")] = _coerce_literal(match.group("value"))
        depth += _brace_delta(line)
    return values


def load_site_config(path: Path) -> SiteConfig:
    """Load a site config, accepting a ``.config.json`` companion when present."""

    candidates = [path]
    if path.suffix == ".js":
        candidates.append(path.with_suffix(".json"))

    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            raw_payload = candidate.read_text(encoding="utf-8")
        except OSError as exc:
            raise SiteConfigError(f"Unable to read site config {candidate}: {exc}") from exc

        if candidate.suffix == ".json":
            try:
                values = json.loads(raw_payload)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid site config {candidate}: {exc}") from exc
            if not isinstance(values, dict):
                raise ValueError(f"Site config {candidate} must contain an object")
        else:
            values = parse_js_config(raw_payload)
        return SiteConfig(path=candidate, ignore=bool(values.get("ignore", False)))

    raise SiteConfigError(f"Site config not found: {path}")
