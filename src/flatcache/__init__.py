"""flatcache: Filesystem-backed key/value cache store with per-entry expiration."""

__version__ = "0.1.0"

from flatcache.cache import CacheConfig, FileCache
from flatcache.errors import (
    CacheError,
    CacheLockError,
    CachePermissionError,
    CacheStorageError,
)

__all__ = [
    "FileCache",
    "CacheConfig",
    "CacheError",
    "CacheStorageError",
    "CachePermissionError",
    "CacheLockError",
    "__version__",
]
