"""Filesystem cache store with per-entry expiration.

Each cache entry is a single file whose content is the cached value and
whose modification time is the expiration.

Key components:
- FileCache: Main cache interface
- CacheConfig: Configuration management
- NameSanitizer / StorageLocator: Name to file mapping
- EntryStore: Single-entry save, read and delete
- QueryEngine: Lookup by name patterns and expiration conditions
- BulkExpirer: delete_all / expire_all sweeps
"""

from flatcache.cache.config import CacheConfig
from flatcache.cache.expiration import (
    EXPIRE_NEVER,
    EXPIRE_RESERVED,
    ExpireCondition,
    ExpiresMode,
)
from flatcache.cache.locator import StorageLocator
from flatcache.cache.manager import FileCache
from flatcache.cache.names import NameSanitizer
from flatcache.cache.query import CacheRecord, QueryEngine
from flatcache.cache.store import EntryStore
from flatcache.cache.sweeper import BulkExpirer

__all__ = [
    "FileCache",
    "CacheConfig",
    "CacheRecord",
    "NameSanitizer",
    "StorageLocator",
    "EntryStore",
    "QueryEngine",
    "BulkExpirer",
    "ExpireCondition",
    "ExpiresMode",
    "EXPIRE_NEVER",
    "EXPIRE_RESERVED",
]
