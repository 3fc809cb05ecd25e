import argparse
import os
import unittest
from datetime import date
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from grabqueue.config import DEFAULT_CHANNELS_PATH, QueueConfig
from grabqueue.create_queue import build_arg_parser, build_config, main
from grabqueue.persistence import QueuePersistence

from tests.helpers import channel_line, write_catalog, write_site


def _namespace(**overrides) -> argparse.Namespace:
    args = build_arg_parser().parse_args([])
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


class BuildConfigTestCase(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = build_config(_namespace())

        self.assertEqual(config.max_clusters, 256)
        self.assertEqual(config.days, 1)
        self.assertEqual(config.channels_path, DEFAULT_CHANNELS_PATH)
        self.assertEqual(config.logs_dir, Path("scripts/logs"))
        self.assertIsNone(config.db_url)
        self.assertFalse(config.dry_run)

    def test_environment_supplies_paths(self) -> None:
        with patch.dict(
            os.environ,
            {
                "CHANNELS_PATH": "custom/**/*.channels.xml",
                "LOGS_DIR": "/tmp/queue-logs",
                "QUEUE_DATABASE_URL": "sqlite:///queue.db",
            },
            clear=True,
        ):
            config = build_config(_namespace())

        self.assertEqual(config.channels_path, "custom/**/*.channels.xml")
        self.assertEqual(config.logs_dir, Path("/tmp/queue-logs"))
        self.assertEqual(config.db_url, "sqlite:///queue.db")
        self.assertEqual(config.errors_dir, Path("/tmp/queue-logs/errors"))

    def test_cli_overrides_environment(self) -> None:
        with patch.dict(os.environ, {"CHANNELS_PATH": "env/*.xml"}, clear=True):
            config = build_config(_namespace(channels_path="cli/*.xml", max_clusters=4, days=3))

        self.assertEqual(config.channels_path, "cli/*.xml")
        self.assertEqual(config.max_clusters, 4)
        self.assertEqual(config.days, 3)

    def test_invalid_counts_raise(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                build_config(_namespace(max_clusters=0))
            with self.assertRaises(ValueError):
                build_config(_namespace(days=0))

    def test_validate_accepts_defaults(self) -> None:
        QueueConfig().validate()


class CreateQueueMainTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        write_site(
            self.root,
            "tv.example.com",
            [
                channel_line("tv.example.com", "1", "CNN.us"),
                channel_line("tv.example.com", "2", "BBCOne.uk"),
                channel_line("tv.example.com", "3", "Ghost.us"),
            ],
            region="us",
        )
        write_site(self.root, "other.tv", [channel_line("other.tv", "77", "TF1.fr", lang="fr")], region="fr")
        self.catalog = write_catalog(self.root / "channels.json", ["CNN.us", "BBCOne.uk", "TF1.fr"])
        self.db_url = f"sqlite:///{self.root / 'queue.db'}"
        self.logs_dir = self.root / "logs"

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def _argv(self, *extra: str) -> list[str]:
        return [
            "--channels-path",
            str(self.root / "sites" / "**" / "*.channels.xml"),
            "--logs-dir",
            str(self.logs_dir),
            "--channels-api",
            str(self.catalog),
            "--seed",
            "11",
            *extra,
        ]

    def test_main_persists_partitioned_queue(self) -> None:
        with patch.dict(os.environ, {}, clear=True), patch(
            "grabqueue.queue.utc_today", return_value=date(2024, 3, 1)
        ):
            exit_code = main(self._argv("--db-url", self.db_url, "--max-clusters", "2", "--days", "2"))

        self.assertEqual(exit_code, 0)
        engine = create_engine(self.db_url)
        try:
            persistence = QueuePersistence(sessionmaker(bind=engine))
            items = persistence.load()
            sizes = persistence.cluster_sizes()
        finally:
            engine.dispose()

        self.assertEqual(len(items), 6)
        self.assertNotIn("Ghost.us", {item.channel.xmltv_id for item in items})
        self.assertEqual(
            [(item.channel.xmltv_id, item.date) for item in items][:2],
            [("BBCOne.uk", "2024-03-01T00:00:00.000Z"), ("BBCOne.uk", "2024-03-02T00:00:00.000Z")],
        )
        self.assertEqual(sizes, {1: 3, 2: 3})
        self.assertTrue((self.logs_dir / "errors" / "us" / "tv.example.com.log").exists())

    def test_rerun_replaces_existing_queue(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            main(self._argv("--db-url", self.db_url, "--days", "3"))
            main(self._argv("--db-url", self.db_url, "--days", "1"))

        engine = create_engine(self.db_url)
        try:
            items = QueuePersistence(sessionmaker(bind=engine)).load()
        finally:
            engine.dispose()
        self.assertEqual(len(items), 3)

    def test_dry_run_skips_database(self) -> None:
        with patch.dict(os.environ, {}, clear=True), patch("grabqueue.create_queue.create_engine") as engine_mock:
            with self.assertLogs("grabqueue.create_queue", level="INFO") as logs:
                exit_code = main(self._argv("--dry-run", "--max-clusters", "2"))

        self.assertEqual(exit_code, 0)
        engine_mock.assert_not_called()
        messages = [record.getMessage() for record in logs.records]
        self.assertNotIn("Saving to the database...", messages)
        self.assertIn("[DRY-RUN] Cluster 1: 2 items", messages)
        self.assertIn("Done", messages)

    def test_missing_db_url_is_a_usage_error(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(SystemExit) as ctx:
                main(self._argv())
        self.assertEqual(ctx.exception.code, 2)

    def test_invalid_cluster_count_is_a_usage_error(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(SystemExit) as ctx:
                main(self._argv("--dry-run", "--max-clusters", "0"))
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
