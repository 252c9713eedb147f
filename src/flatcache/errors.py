"""Exceptions raised by the cache storage layer."""

from typing import Optional


class CacheError(Exception):
    """Base exception for cache-related errors."""

    pass


class CacheStorageError(CacheError):
    """Raised when a filesystem operation on the cache fails.

    Attributes:
        original_error: The underlying OSError, if any
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class CachePermissionError(CacheStorageError):
    """Raised when cache directory or file permissions are insufficient."""

    pass


class CacheLockError(CacheError):
    """Raised when unable to acquire the write lock for a cache entry."""

    pass
