import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from signage_cache.config import Settings, settings
from signage_cache.database import init_database
from signage_cache.tasks import celery_app, prune_cache_task


class PruneTaskTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        self.media_dir = self.root / "media"
        self.media_dir.mkdir()
        self.database_url = f"sqlite:///{self.root / 'task.db'}"

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def run_task(self, **kwargs) -> dict:
        with patch.object(settings, "DATABASE_URL", self.database_url), \
                patch.object(settings, "STORAGE_BASE_PATH", str(self.media_dir)):
            return prune_cache_task(**kwargs)

    def test_scheduled(self) -> None:
        entry = celery_app.conf.beat_schedule["prune-media-cache"]

        self.assertEqual("signage_cache.tasks.prune_cache_task", entry["task"])
        self.assertEqual(settings.CLEANUP_INTERVAL_HOURS * 3600.0, entry["schedule"])

    def test_prunes_orphans(self) -> None:
        (self.media_dir / "orphan.bin").write_bytes(b"orphan")

        result = self.run_task(max_age_days=0)

        self.assertEqual("success", result["status"])
        self.assertEqual(1, len(result["deleted_files"]))
        self.assertEqual(6, result["freed_bytes"])

    def test_errors_are_reported(self) -> None:
        result = self.run_task(max_age_days=-1)

        self.assertEqual("error", result["status"])
        self.assertEqual("ValidationError", result["error"])

    def test_uses_configured_database(self) -> None:
        with patch("signage_cache.database.init_database", wraps=init_database) as init:
            self.run_task()

        init.assert_called_once_with()


class SettingsTests(unittest.TestCase):
    def test_cors_origins_from_comma_separated_string(self) -> None:
        config = Settings(CORS_ORIGINS="http://a.test, http://b.test")

        self.assertEqual(["http://a.test", "http://b.test"], config.CORS_ORIGINS)

    def test_cleanup_defaults(self) -> None:
        config = Settings()

        self.assertEqual(7, config.MAX_FILE_AGE_DAYS)
        self.assertEqual(1024 ** 3, config.MAX_CACHE_SIZE_BYTES)
        self.assertFalse(config.PRUNE_EVICT_ACTIVE)


if __name__ == "__main__":
    unittest.main()
