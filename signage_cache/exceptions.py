"""
Signage Cache - Errors
Distinct error kinds surfaced by the cache
"""


class CacheError(Exception):
    """Base class for every cache failure"""


class NotFoundError(CacheError):
    """Referenced playlist or media item does not exist"""


class ValidationError(CacheError):
    """Input rejected at the storage boundary (bad type, duration, id...)"""


class StorageError(CacheError):
    """
    Underlying database or filesystem failure (I/O, disk full, corruption).
    Callers may retry a bounded number of times; the cache never does.
    """


class ConflictError(CacheError):
    """A prune pass raced a writer on the same file. Retryable."""
