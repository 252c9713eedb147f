"""Storage backend for cache file operations.

This module provides the filesystem capabilities the cache store is built
on: directory management, listings with metadata, exclusive atomic writes
and modification-time control.
"""

from flatcache.storage.backend import EntryInfo, StorageBackend

__all__ = [
    "StorageBackend",
    "EntryInfo",
]
