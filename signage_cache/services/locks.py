"""
Signage Cache - Locks
Serialization points shared by cache writers and the pruner
"""

from contextlib import contextmanager
from collections import Counter
from typing import Dict, Iterable, Iterator
import threading

from ..exceptions import ConflictError


class CacheLocks:
    """
    Lock order is claim -> playlist -> commit. Writers block on all of
    them; the pruner only ever try-acquires, so it backs off instead of
    waiting on a writer.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._playlist_locks: Dict[str, threading.Lock] = {}
        # Held only around writer commits, never across a whole upsert
        self.commit_lock = threading.Lock()
        # One prune pass at a time
        self.prune_lock = threading.Lock()
        # Local paths a writer is about to commit
        self._claims_lock = threading.Lock()
        self._claimed: Counter = Counter()

    def for_playlist(self, playlist_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._playlist_locks.get(playlist_id)
            if lock is None:
                lock = self._playlist_locks[playlist_id] = threading.Lock()
            return lock

    @contextmanager
    def playlist(self, playlist_id: str) -> Iterator[None]:
        """Exclusive access to one playlist's rows (other playlists unaffected)"""
        with self.for_playlist(playlist_id):
            yield

    @contextmanager
    def try_playlist(self, playlist_id: str) -> Iterator[None]:
        lock = self.for_playlist(playlist_id)
        if not lock.acquire(blocking=False):
            raise ConflictError(f"Playlist {playlist_id} is being written")
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def try_commit(self, what: str) -> Iterator[None]:
        if not self.commit_lock.acquire(blocking=False):
            raise ConflictError(f"Writer committing while pruning {what}")
        try:
            yield
        finally:
            self.commit_lock.release()

    @contextmanager
    def claim(self, paths: Iterable[str]) -> Iterator[None]:
        """
        Reserve normalized local paths until the writer has committed them.

        Registration waits for the commit lock, so it never lands between
        the pruner's reference check and its delete.
        """
        paths = [path for path in paths if path]
        if paths:
            with self.commit_lock, self._claims_lock:
                self._claimed.update(paths)
        try:
            yield
        finally:
            with self._claims_lock:
                self._claimed.subtract(paths)
                self._claimed += Counter()

    def is_claimed(self, path: str) -> bool:
        with self._claims_lock:
            return self._claimed[path] > 0
