import json
from pathlib import Path

CHANNELS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<channels site="{site}">
{channels}
</channels>
"""

CONFIG_JS = """module.exports = {{
  site: '{site}',
  days: 2,
  ignore: {ignore},
  url({{ channel, date }}) {{
    return `https://{site}/guide/${{channel.site_id}}/${{date.format('YYYY-MM-DD')}}`
  }},
  request: {{
    cache: {{
      ttl: 60 * 60 * 1000
    }}
  }},
  parser({{ content }}) {{
    return []
  }}
}}
"""


def channel_line(site: str, site_id: str, xmltv_id: str, lang: str = "en", name: str = "Channel") -> str:
    return f'  <channel site="{site}" lang="{lang}" xmltv_id="{xmltv_id}" site_id="{site_id}">{name}</channel>'


def write_site(
    root: Path,
    site: str,
    channels: list[str],
    *,
    region: str | None = None,
    ignore: bool = False,
    with_config: bool = True,
) -> Path:
    site_dir = root / "sites" / site
    site_dir.mkdir(parents=True, exist_ok=True)
    suffix = f"_{region}" if region else ""
    channels_file = site_dir / f"{site}{suffix}.channels.xml"
    channels_file.write_text(
        CHANNELS_XML.format(site=site, channels="\n".join(channels)),
        encoding="utf-8",
    )
    if with_config:
        (site_dir / f"{site}.config.js").write_text(
            CONFIG_JS.format(site=site, ignore="true" if ignore else "false"),
            encoding="utf-8",
        )
    return channels_file


def write_catalog(path: Path, channel_ids: list[str]) -> Path:
    path.write_text(
        json.dumps([{"id": channel_id, "name": channel_id.split(".")[0]} for channel_id in channel_ids]),
        encoding="utf-8",
    )
    return path
