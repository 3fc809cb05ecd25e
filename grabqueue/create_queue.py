"""Command-line entrypoint that builds and stores the grab queue."""

from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import Sequence

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .catalog import ChannelCatalog
from .channels import discover_channel_files
from .config import QueueConfig
from .errors import ErrorLog
from .persistence import QueuePersistence
from .queue import QueueBuilder, QueueItem, assign_clusters, build_dates, cluster_sizes
from models import Base

LOGGER = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create the EPG grab queue from site channel lists and split it into clusters"
    )
    parser.add_argument(
        "--max-clusters",
        type=int,
        default=None,
        help="Set maximum number of clusters (default: 256)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Number of days for which to grab the program (default: 1)",
    )
    parser.add_argument(
        "--channels-path",
        type=str,
        default=None,
        help="Glob of channel list files (defaults to CHANNELS_PATH or sites/**/*.channels.xml)",
    )
    parser.add_argument(
        "--logs-dir",
        type=Path,
        default=None,
        help="Directory for error logs (defaults to LOGS_DIR or scripts/logs)",
    )
    parser.add_argument(
        "--db-url",
        type=str,
        default=None,
        help="SQLAlchemy database URL (defaults to QUEUE_DATABASE_URL)",
    )
    parser.add_argument(
        "--channels-api",
        type=str,
        default=None,
        help="URL or file path of the channel catalog used to validate xmltv_id values",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the cluster shuffle")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build and partition the queue without touching the database",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging output")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> QueueConfig:
    config = QueueConfig.from_env()
    if args.max_clusters is not None:
        config.max_clusters = args.max_clusters
    if args.days is not None:
        config.days = args.days
    if args.channels_path:
        config.channels_path = args.channels_path
    if args.logs_dir is not None:
        config.logs_dir = args.logs_dir
    if args.db_url:
        config.db_url = args.db_url
    if args.channels_api:
        config.channels_api = args.channels_api
    config.seed = args.seed
    config.dry_run = bool(args.dry_run)
    config.validate()
    return config


def create_queue(config: QueueConfig, catalog: ChannelCatalog) -> list[QueueItem]:
    LOGGER.info("Create queue...")

    files = discover_channel_files(config.channels_path)
    dates = build_dates(config.days)
    builder = QueueBuilder(catalog, ErrorLog(config.errors_dir))
    items = builder.build(files, dates)

    stats = builder.stats
    LOGGER.debug(
        "Scanned %d files: %d without site, %d ignored, %d invalid channels, %d unresolved channels",
        stats.files,
        stats.skipped_files_no_site,
        stats.skipped_sites_ignored,
        stats.skipped_invalid,
        stats.unresolved,
    )
    if stats.unresolved:
        LOGGER.warning("Skipped %d channels with unknown xmltv_id (see %s)", stats.unresolved, config.errors_dir)
    LOGGER.info("Added %d items", len(items))
    return items


def save_to_database(
    config: QueueConfig,
    items: list[QueueItem],
    persistence: QueuePersistence | None,
) -> list[QueueItem]:
    rng = random.Random(config.seed)
    queue = assign_clusters(items, config.max_clusters, rng)

    if persistence is None:
        for cluster_id, size in cluster_sizes(queue).items():
            LOGGER.info("[DRY-RUN] Cluster %d: %d items", cluster_id, size)
        return queue

    LOGGER.info("Saving to the database...")
    inserted = persistence.replace(queue)
    LOGGER.info("Stored %d queue items", inserted)
    return queue


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = build_config(args)
    except ValueError as exc:
        parser.error(str(exc))

    if not config.dry_run and not config.db_url:
        parser.error("--db-url is required (or set QUEUE_DATABASE_URL)")

    LOGGER.info("Starting...")
    LOGGER.info("Number of clusters: %d", config.max_clusters)

    persistence: QueuePersistence | None = None
    if not config.dry_run:
        engine = create_engine(config.db_url)
        Base.metadata.create_all(engine)  # ensure the queue table exists before resetting it
        persistence = QueuePersistence(sessionmaker(bind=engine))

    catalog = ChannelCatalog.load(
        config.channels_api,
        timeout=config.request_timeout,
        user_agent=config.user_agent,
    )
    items = create_queue(config, catalog)
    save_to_database(config, items, persistence)

    LOGGER.info("Done")
    return 0


__all__ = [
    "build_arg_parser",
    "build_config",
    "configure_logging",
    "create_queue",
    "main",
    "save_to_database",
]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
