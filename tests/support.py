import os
import tempfile
import time
import unittest
from pathlib import Path

from signage_cache.database import init_database
from signage_cache.schemas import MediaItem, Playlist
from signage_cache.services import MediaCacheService
from signage_cache.utils.hash import calculate_string_hash

DAY = 86400


def make_item(item_id: str, order_index: int = 0, type: str = "IMAGE", **fields) -> MediaItem:
    fields.setdefault("name", f"Item {item_id}")
    fields.setdefault("remote_url", f"https://cdn.example.com/{item_id}")
    return MediaItem(id=item_id, order_index=order_index, type=type, **fields)


def make_playlist(playlist_id: str = "P1", version: int = 1, items=(), **fields) -> Playlist:
    fields.setdefault("name", f"Playlist {playlist_id}")
    return Playlist(id=playlist_id, version=version, items=list(items), **fields)


class CacheTestCase(unittest.TestCase):
    """Fresh file-backed database and media directory per test"""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        self.media_dir = self.root / "media"
        self.database_url = f"sqlite:///{self.root / 'cache.db'}"
        self.database = init_database(self.database_url)
        self.cache = MediaCacheService(self.database, media_dir=self.media_dir)

    def tearDown(self) -> None:
        self.database.dispose()
        self._tmpdir.cleanup()

    def write_media(self, name: str, content: bytes = b"media", age_days: float = 0) -> Path:
        path = self.media_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if age_days:
            stamp = time.time() - age_days * DAY
            os.utime(path, (stamp, stamp))
        return path

    @staticmethod
    def digest(content: bytes) -> str:
        return calculate_string_hash(content.decode("utf-8"))

    def cache_item(self, playlist_id: str, item_id: str, content: bytes, age_days: float = 0) -> Path:
        path = self.write_media(f"{playlist_id}-{item_id}.dat", content, age_days)
        self.cache.mark_item_cached(playlist_id, item_id, path, self.digest(content))
        return path
