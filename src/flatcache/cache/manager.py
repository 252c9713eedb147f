"""Cache manager exposing the filesystem cache store to a higher-level cache API."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from flatcache.cache.config import CacheConfig
from flatcache.cache.expiration import ExpiresMode, TimeValue, to_timestamp
from flatcache.cache.locator import StorageLocator
from flatcache.cache.names import NameSanitizer
from flatcache.cache.query import CacheRecord, QueryEngine
from flatcache.cache.store import EntryStore
from flatcache.cache.sweeper import BulkExpirer
from flatcache.errors import CacheError
from flatcache.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class FileCache:
    """Filesystem-backed key/value cache with per-entry expiration.

    Each entry is one file in a flat directory. The file content is the
    cached value and the file's modification time is its expiration.
    Values are opaque bytes: deciding what to cache and serializing it is
    up to the caller.

    Args:
        config: Cache configuration (defaults if None)
        backend: Storage backend, which also provides the clock. Built from
            the configuration if None.
        sanitizer: Name sanitizer. Built from the configuration if None.

    Examples:
        >>> cache = FileCache(CacheConfig(cache_dir='/tmp/app-cache'))
        >>> cache.save('greeting', b'hello', '2099-01-01 00:00:00')
        True
        >>> cache.find(names=['greet*'], get=['name', 'data'])
        [{'name': 'greeting', 'data': b'hello'}]
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        backend: Optional[StorageBackend] = None,
        sanitizer: Optional[NameSanitizer] = None,
    ):
        self.config = config or CacheConfig()
        self.backend = backend or StorageBackend(
            lock_timeout=self.config.lock_timeout,
            lock_dir_name=self.config.lock_dir_name,
        )
        self.sanitizer = sanitizer or NameSanitizer(
            max_length=self.config.max_name_length,
            transliterate=self.backend.sanitize_name,
        )
        self.locator = StorageLocator(
            self.config.cache_dir, self.backend, self.config.extension
        )
        self.store = EntryStore(self.sanitizer, self.locator, self.backend)
        self.query = QueryEngine(self.store, self.locator, self.backend)
        self.sweeper = BulkExpirer(
            self.locator,
            self.backend,
            expire_never=self.config.expire_never,
            expire_reserved=self.config.expire_reserved,
        )

    @property
    def cache_dir(self) -> Path:
        return self.locator.cache_dir

    def find(
        self,
        names: Optional[Sequence[str]] = None,
        expires: Optional[Sequence[str]] = None,
        expires_mode: Union[str, ExpiresMode] = ExpiresMode.OR,
        get: Optional[Sequence[str]] = None,
    ) -> List[CacheRecord]:
        """Find caches by names and/or expirations.

        See :meth:`flatcache.cache.query.QueryEngine.find`.
        """
        return self.query.find(
            names=names, expires=expires, expires_mode=expires_mode, get=get
        )

    def save(
        self,
        name: str,
        data: Union[bytes, str],
        expire: Optional[TimeValue] = None,
    ) -> bool:
        """Save a cache entry.

        Args:
            name: Cache name (sanitized before use)
            data: Value to cache
            expire: Expiration as a date string, datetime, epoch seconds or
                timedelta from now. None uses the 'never' sentinel.

        Returns:
            True if saved, False if the value could not be written

        Raises:
            ValueError: If the expiration string cannot be parsed
            TypeError: If the expiration type is not supported
        """
        if expire is None:
            expire = self.config.expire_never
        expire_at = to_timestamp(expire, now=self.backend.now())
        return self.store.save(name, data, expire_at)

    def delete(self, name: str) -> bool:
        """Delete a cache entry.

        Deleting an entry that does not exist succeeds, so repeated calls
        return True. The one exception is a storage failure while removing
        the file (e.g. a permission error), which is logged and reported as
        False rather than raised.

        Returns:
            True if the entry is gone, False if it could not be removed
        """
        return self.store.delete(name)

    def exists(self, name: str) -> bool:
        """Check whether a cache entry exists, regardless of its expiration."""
        return self.store.exists(name)

    def delete_all(self) -> int:
        """Delete all caches except reserved ones.

        Returns:
            Number of caches deleted
        """
        return self.sweeper.delete_all()

    def expire_all(self) -> int:
        """Delete all caches that carry a real expiration.

        Returns:
            Number of caches deleted
        """
        return self.sweeper.expire_all()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Statistics dict with total_items, total_size_bytes,
            expired_items (past their expiration), permanent_items (at or
            below the never sentinel) and cache_dir
        """
        try:
            entries = self.locator.entries()
        except CacheError as e:
            logger.warning(f"Cannot collect cache statistics: {e}")
            entries = []

        now = self.backend.now()
        never = self.sweeper.never
        return {
            "cache_dir": str(self.cache_dir),
            "total_items": len(entries),
            "total_size_bytes": sum(info.size for info in entries),
            "expired_items": sum(1 for info in entries if never < info.mtime <= now),
            "permanent_items": sum(1 for info in entries if info.mtime <= never),
        }

    def setup(self, create_root: bool = True) -> Path:
        """Prepare the cache directory.

        Args:
            create_root: Create the cache directory now instead of on first save

        Returns:
            Path to the cache directory

        Raises:
            CacheStorageError: If the directory cannot be created
        """
        return self.locator.root(create=create_root)

    def teardown(self, remove_root: bool = True) -> bool:
        """Remove the cache directory and everything in it.

        Args:
            remove_root: Actually remove the directory if present

        Returns:
            True if the directory was removed
        """
        if not remove_root:
            return False
        root = self.locator.root(create=False)
        try:
            return self.backend.remove_directory(root, recursive=True)
        except CacheError as e:
            logger.warning(f"Failed to remove cache directory {root}: {e}")
            return False
