"""Show the persisted grab queue, either as cluster sizes or per-cluster items."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure the repository root is importable when executing from the scripts/ directory.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from grabqueue.config import DATABASE_URL_ENV
from grabqueue.persistence import QueuePersistence


LOGGER = logging.getLogger(__name__)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Inspect the grab queue stored in the database. Prints the number of items "
            "per cluster, or the items of a single cluster as NDJSON."
        )
    )
    parser.add_argument(
        "--db-url",
        help=f"SQLAlchemy database URL. Defaults to the value from {DATABASE_URL_ENV}.",
    )
    parser.add_argument(
        "--cluster",
        type=int,
        default=None,
        help="Print the items assigned to this cluster instead of the size summary.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )
    return parser.parse_args(argv)


def resolve_db_url(cli_db_url: str | None) -> str:
    if cli_db_url:
        return cli_db_url

    env_db = os.getenv(DATABASE_URL_ENV)
    if env_db:
        return env_db

    raise SystemExit(f"No database URL provided. Supply --db-url or configure {DATABASE_URL_ENV}.")


def main(argv: Sequence[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    engine = create_engine(resolve_db_url(args.db_url))
    persistence = QueuePersistence(sessionmaker(bind=engine))

    if args.cluster is not None:
        items = persistence.load(cluster_id=args.cluster)
        if not items:
            LOGGER.info("Cluster %d is empty.", args.cluster)
            return 0
        for item in items:
            print(json.dumps(item.to_dict(), ensure_ascii=False))
        return 0

    sizes = persistence.cluster_sizes()
    if not sizes:
        LOGGER.info("The queue is empty.")
        return 0
    for cluster_id, size in sizes.items():
        print(f"{cluster_id}\t{size}")
    LOGGER.info("%d items across %d clusters.", sum(sizes.values()), len(sizes))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
