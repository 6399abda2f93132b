"""
Signage Cache - Prune Service
Orphan and LRU cleanup of the media directory
"""

from contextlib import ExitStack
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple
import logging
import time

from ..exceptions import ConflictError, StorageError, ValidationError
from ..models import CachedPlaylist, CachedMediaItem
from ..schemas.maintenance import PruneReport
from ..utils.files import delete_file, directory_size, iter_files, normalize_path

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

# Partial downloads are never pruned
IN_PROGRESS_SUFFIXES = (".tmp", ".part")


class _Owner:
    """Item referencing a local file"""

    __slots__ = ("playlist_id", "item_id", "local_path", "last_used", "is_emergency")

    def __init__(self, playlist_id, item_id, local_path, last_used, is_emergency):
        self.playlist_id = playlist_id
        self.item_id = item_id
        self.local_path = local_path
        self.last_used = last_used
        self.is_emergency = is_emergency

    @property
    def key(self) -> str:
        return f"{self.playlist_id}/{self.item_id}"


class PruneService:
    """
    Three independent passes, in order:

    1. items whose local file vanished get local_path cleared
    2. orphan files older than max_age_days are deleted
    3. while over max_total_bytes, orphans are evicted LRU first; active
       (referenced, non-emergency) files only when evict_active is set

    A file contended by a writer is skipped and picked up next pass.
    """

    def __init__(self, cache):
        self.cache = cache
        self.database = cache.database
        self.locks = cache.locks
        self.media_dir: Path = cache.media_dir

    def run(self, max_age_days: int, max_total_bytes: int, evict_active: bool = False,
            now: Optional[float] = None) -> PruneReport:
        if max_age_days < 0 or max_total_bytes < 0:
            raise ValidationError("max_age_days and max_total_bytes must be non-negative")

        now = time.time() if now is None else now
        report = PruneReport()

        with self.locks.prune_lock:
            logger.info(
                f"Prune started: max_age_days={max_age_days}, max_total_bytes={max_total_bytes}, "
                f"evict_active={evict_active}"
            )
            try:
                self._clear_missing(report)
                self._prune_by_age(report, now - max_age_days * SECONDS_PER_DAY)
                self._enforce_size(report, max_total_bytes, evict_active)
            except OSError as e:
                raise StorageError(f"Prune failed on {self.media_dir}: {e}") from e

        logger.info(
            f"Prune finished: {len(report.deleted_files)} files deleted, {report.freed_bytes} bytes freed, "
            f"{len(report.skipped)} skipped, {report.total_bytes} bytes in cache"
        )
        if report.over_limit:
            logger.warning(
                f"Media cache still over limit ({report.total_bytes} > {max_total_bytes}) after prune"
            )
        return report

    # --- Passes ---

    def _clear_missing(self, report: PruneReport) -> None:
        for owner in self._owners():
            if Path(owner.local_path).exists():
                continue
            try:
                with self.locks.try_playlist(owner.playlist_id):
                    self._clear_local_path([owner])
            except ConflictError as e:
                logger.debug(f"Skipping {owner.key}: {e}")
                report.skipped.append(owner.key)
                continue
            logger.info(f"Local copy of {owner.key} vanished, marked not cached")
            report.missing_cleared.append(owner.key)

    def _prune_by_age(self, report: PruneReport, cutoff: float) -> None:
        for path, stat in self._orphans():
            if stat.st_mtime > cutoff:
                continue
            self._delete_orphan(path, report)

    def _enforce_size(self, report: PruneReport, max_total_bytes: int, evict_active: bool) -> None:
        total = directory_size(self.media_dir)

        if total > max_total_bytes:
            # Least recently used first
            for path, _stat in sorted(self._orphans(), key=lambda entry: entry[1].st_mtime):
                if total <= max_total_bytes:
                    break
                total -= self._delete_orphan(path, report)

        if total > max_total_bytes and evict_active:
            for path, owners in self._active_candidates():
                if total <= max_total_bytes:
                    break
                total -= self._evict_active(path, owners, report)

        report.total_bytes = total
        report.over_limit = total > max_total_bytes

    # --- Helpers ---

    def _owners(self) -> List[_Owner]:
        with self.database.session() as db:
            rows = (
                db.query(
                    CachedMediaItem.playlist_id,
                    CachedMediaItem.id,
                    CachedMediaItem.local_path,
                    CachedMediaItem.last_accessed_at,
                    CachedMediaItem.cached_at,
                    CachedPlaylist.is_emergency,
                )
                .join(CachedPlaylist, CachedPlaylist.id == CachedMediaItem.playlist_id)
                .filter(CachedMediaItem.local_path.isnot(None))
                .all()
            )
        return [
            _Owner(playlist_id, item_id, local_path, last_accessed or cached or 0.0, bool(emergency))
            for playlist_id, item_id, local_path, last_accessed, cached, emergency in rows
        ]

    def _referenced_paths(self) -> Set[str]:
        return {normalize_path(owner.local_path) for owner in self._owners()}

    def _is_referenced(self, path: str) -> bool:
        return path in self._referenced_paths()

    def _orphans(self):
        referenced = self._referenced_paths()
        orphans = []
        for path in iter_files(self.media_dir):
            if path.name.endswith(IN_PROGRESS_SUFFIXES):
                continue
            if normalize_path(path) in referenced:
                continue
            try:
                orphans.append((path, path.stat()))
            except FileNotFoundError:
                continue
        return orphans

    def _active_candidates(self) -> List[Tuple[str, List[_Owner]]]:
        """Referenced files inside the media directory, least recently used first"""
        groups: Dict[str, List[_Owner]] = {}
        for owner in self._owners():
            path = normalize_path(owner.local_path)
            if not Path(path).is_relative_to(self.media_dir):
                continue
            groups.setdefault(path, []).append(owner)

        candidates = [
            (path, owners)
            for path, owners in groups.items()
            if not any(owner.is_emergency for owner in owners)
        ]
        candidates.sort(key=lambda entry: max(owner.last_used for owner in entry[1]))
        return candidates

    def _delete_orphan(self, path: Path, report: PruneReport) -> int:
        normalized = normalize_path(path)
        try:
            with self.locks.try_commit(normalized):
                if self.locks.is_claimed(normalized):
                    raise ConflictError(f"{normalized} is being recorded by a writer")
                # Re-check under the commit lock: a writer may have just committed it
                if self._is_referenced(normalized):
                    return 0
                freed = delete_file(path)
        except ConflictError as e:
            logger.debug(f"Skipping {normalized}: {e}")
            report.skipped.append(normalized)
            return 0

        logger.info(f"Deleted orphan {normalized} ({freed} bytes)")
        report.deleted_files.append(normalized)
        report.freed_bytes += freed
        return freed

    def _evict_active(self, path: str, owners: List[_Owner], report: PruneReport) -> int:
        try:
            with ExitStack() as stack:
                for playlist_id in sorted({owner.playlist_id for owner in owners}):
                    stack.enter_context(self.locks.try_playlist(playlist_id))
                self._clear_local_path(owners)
        except ConflictError as e:
            logger.debug(f"Skipping {path}: {e}")
            report.skipped.append(path)
            return 0

        freed = delete_file(path)
        logger.info(f"Evicted {path} ({freed} bytes) used by {', '.join(owner.key for owner in owners)}")
        report.deleted_files.append(path)
        report.evicted_items.extend(owner.key for owner in owners)
        report.freed_bytes += freed
        return freed

    def _clear_local_path(self, owners: List[_Owner]) -> None:
        with self.database.session() as db:
            for owner in owners:
                row = db.get(CachedMediaItem, (owner.playlist_id, owner.item_id))
                # Only if nothing re-cached it since the scan
                if row is not None and row.local_path == owner.local_path:
                    row.local_path = None
                    row.size_bytes = None
                    row.cached_at = None
            with self.locks.commit_lock:
                db.commit()
