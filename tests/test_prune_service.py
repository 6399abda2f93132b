import threading
import unittest
from unittest.mock import patch

from signage_cache.exceptions import ValidationError
from signage_cache.models import CachedMediaItem
from signage_cache.services import MediaCacheService
from signage_cache.utils.files import normalize_path

from tests.support import CacheTestCase, make_item, make_playlist

UNLIMITED = 10**12


class PruneTests(CacheTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.content_a = b"aaaaaaaaaa"
        self.content_b = b"bbbbbbbbbb"
        self.cache.upsert_playlist(
            make_playlist(
                "P1",
                items=[
                    make_item("a", 0, "IMAGE", hash=self.digest(self.content_a)),
                    make_item("b", 1, "VIDEO", hash=self.digest(self.content_b)),
                ],
            )
        )

    def set_last_access(self, playlist_id: str, item_id: str, timestamp: float) -> None:
        with self.database.session() as db:
            db.get(CachedMediaItem, (playlist_id, item_id)).last_accessed_at = timestamp
            db.commit()

    def test_old_orphans_deleted_young_kept(self) -> None:
        active = self.cache_item("P1", "a", self.content_a, age_days=30)
        old = self.write_media("old.dat", age_days=10)
        young = self.write_media("young.dat", age_days=1)

        report = self.cache.prune_stale(max_age_days=7, max_total_bytes=UNLIMITED)

        self.assertFalse(old.exists())
        self.assertTrue(young.exists())
        self.assertTrue(active.exists())
        self.assertEqual([normalize_path(old)], report.deleted_files)
        self.assertFalse(report.over_limit)

    def test_active_file_never_deleted_by_default(self) -> None:
        active = self.cache_item("P1", "a", self.content_a * 100, age_days=365)
        orphan = self.write_media("orphan.dat", b"x", age_days=0)

        report = self.cache.prune_stale(max_age_days=0, max_total_bytes=1)

        self.assertTrue(active.exists())
        self.assertFalse(orphan.exists())
        self.assertTrue(report.over_limit)
        self.assertEqual([], report.evicted_items)

    def test_size_pass_evicts_least_recently_used_orphans_first(self) -> None:
        self.cache_item("P1", "a", self.content_a)
        older = self.write_media("older.dat", b"0123456789", age_days=3)
        newer = self.write_media("newer.dat", b"0123456789", age_days=1)

        report = self.cache.prune_stale(max_age_days=7, max_total_bytes=20)

        self.assertFalse(older.exists())
        self.assertTrue(newer.exists())
        self.assertEqual(20, report.total_bytes)
        self.assertEqual(10, report.freed_bytes)

    def test_evict_active_takes_least_recently_played(self) -> None:
        path_a = self.cache_item("P1", "a", self.content_a)
        path_b = self.cache_item("P1", "b", self.content_b)
        self.set_last_access("P1", "a", 100.0)
        self.set_last_access("P1", "b", 200.0)

        report = self.cache.prune_stale(max_age_days=7, max_total_bytes=10, evict_active=True)

        self.assertFalse(path_a.exists())
        self.assertTrue(path_b.exists())
        self.assertEqual(["P1/a"], report.evicted_items)
        self.assertFalse(self.cache.is_item_cached("P1", "a"))
        self.assertIsNone(self.cache.get_playlist("P1").items[0].local_path)

    def test_emergency_content_never_evicted(self) -> None:
        self.cache.upsert_playlist(
            make_playlist("E", is_emergency=True, items=[make_item("alert", hash=self.digest(b"evacuate"))])
        )
        alert = self.cache_item("E", "alert", b"evacuate")

        report = self.cache.prune_stale(max_age_days=0, max_total_bytes=0, evict_active=True)

        self.assertTrue(alert.exists())
        self.assertTrue(report.over_limit)

    def test_vanished_file_clears_local_path(self) -> None:
        path = self.cache_item("P1", "a", self.content_a)
        path.unlink()

        report = self.cache.prune_stale(max_age_days=7, max_total_bytes=UNLIMITED)

        self.assertEqual(["P1/a"], report.missing_cleared)
        self.assertIsNone(self.cache.get_playlist("P1").items[0].local_path)

    def test_contended_playlist_is_skipped_then_retried(self) -> None:
        path = self.cache_item("P1", "a", self.content_a)
        held = threading.Event()
        release = threading.Event()

        def hold_playlist():
            with self.cache.locks.playlist("P1"):
                held.set()
                release.wait(10)

        holder = threading.Thread(target=hold_playlist)
        holder.start()
        self.assertTrue(held.wait(5))
        try:
            report = self.cache.prune_stale(max_age_days=7, max_total_bytes=0, evict_active=True)
        finally:
            release.set()
            holder.join()

        self.assertTrue(path.exists())
        self.assertEqual([normalize_path(path)], report.skipped)

        retry = self.cache.prune_stale(max_age_days=7, max_total_bytes=0, evict_active=True)
        self.assertFalse(path.exists())
        self.assertEqual(["P1/a"], retry.evicted_items)

    def test_orphan_skipped_while_writer_commits(self) -> None:
        orphan = self.write_media("orphan.dat", age_days=30)

        with self.cache.locks.commit_lock:
            report = self.cache.prune_stale(max_age_days=7, max_total_bytes=UNLIMITED)

        self.assertTrue(orphan.exists())
        self.assertEqual([normalize_path(orphan)], report.skipped)

    def test_file_of_in_flight_upsert_is_not_pruned(self) -> None:
        incoming = self.write_media("incoming.dat", self.content_a, age_days=30)
        attaching = threading.Event()
        release = threading.Event()
        attach = MediaCacheService._attach_local_copy

        def slow_attach(row, previous, now):
            attaching.set()
            release.wait(10)
            attach(row, previous, now)

        def upsert():
            self.cache.upsert_playlist(
                make_playlist(
                    "P1", version=2,
                    items=[make_item("a", hash=self.digest(self.content_a), local_path=str(incoming))],
                )
            )

        with patch.object(MediaCacheService, "_attach_local_copy", staticmethod(slow_attach)):
            writer = threading.Thread(target=upsert)
            writer.start()
            self.assertTrue(attaching.wait(5))
            try:
                report = self.cache.prune_stale(max_age_days=7, max_total_bytes=0)
            finally:
                release.set()
                writer.join()

        self.assertTrue(incoming.exists())
        self.assertEqual([], report.deleted_files)
        self.assertIn(normalize_path(incoming), report.skipped)
        self.assertEqual(str(incoming), self.cache.get_playlist("P1").items[0].local_path)
        self.assertTrue(self.cache.is_item_cached("P1", "a"))

    def test_file_being_marked_is_not_pruned(self) -> None:
        download = self.write_media("download.dat", self.content_b, age_days=30)

        with self.cache.locks.claim([normalize_path(download)]):
            report = self.cache.prune_stale(max_age_days=7, max_total_bytes=0)
        self.assertTrue(download.exists())
        self.assertIn(normalize_path(download), report.skipped)

        self.cache.mark_item_cached("P1", "b", download, self.digest(self.content_b))
        self.cache.prune_stale(max_age_days=7, max_total_bytes=0)
        self.assertTrue(download.exists())
        self.assertFalse(self.cache.locks.is_claimed(normalize_path(download)))

    def test_partial_downloads_are_left_alone(self) -> None:
        partial = self.write_media("clip.dat.part", age_days=30)
        tmp = self.write_media("clip.dat.tmp", age_days=30)

        self.cache.prune_stale(max_age_days=0, max_total_bytes=0)

        self.assertTrue(partial.exists())
        self.assertTrue(tmp.exists())

    def test_orphans_of_deleted_playlist_are_pruned(self) -> None:
        path = self.cache_item("P1", "a", self.content_a, age_days=10)
        self.cache.delete_playlist("P1")

        report = self.cache.prune_stale(max_age_days=7, max_total_bytes=UNLIMITED)

        self.assertFalse(path.exists())
        self.assertEqual([normalize_path(path)], report.deleted_files)

    def test_negative_limits_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.cache.prune_stale(max_age_days=-1, max_total_bytes=10)


if __name__ == "__main__":
    unittest.main()
