"""Point operations on single cache entries."""

import logging
from pathlib import Path
from typing import Optional, Union

from flatcache.cache.locator import StorageLocator
from flatcache.cache.names import NameSanitizer
from flatcache.errors import CacheError
from flatcache.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class EntryStore:
    """Saves, reads and deletes individual cache entries.

    An entry is one file: its content is the cached value and its
    modification time is the expiration. Storage failures are logged and
    reported through return values rather than raised.
    """

    def __init__(
        self,
        sanitizer: NameSanitizer,
        locator: StorageLocator,
        backend: StorageBackend,
    ):
        self.sanitizer = sanitizer
        self.locator = locator
        self.backend = backend

    def location(self, name: str) -> Path:
        """Get the file path for a raw cache name."""
        return self.locator.locate(self.sanitizer.sanitize(name))

    def save(self, name: str, data: Union[bytes, str], expire_at: int) -> bool:
        """Write a cache entry and stamp it with its expiration.

        Args:
            name: Raw cache name
            data: Value to store (str is encoded as UTF-8)
            expire_at: Expiration in epoch seconds

        Returns:
            True if the value was written, False otherwise. Failing to set
            the expiration is logged but does not change the result.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        path = self.location(name)

        try:
            self.locator.root(create=True)
            self.backend.write_file_exclusive(path, data)
        except CacheError as e:
            logger.warning(f"Failed to save cache '{name}': {e}")
            return False

        try:
            self.backend.set_mtime(path, expire_at)
        except CacheError as e:
            logger.warning(f"Failed to set expiration of cache '{name}': {e}")

        return True

    def read(self, location: Path) -> Optional[bytes]:
        """Read the raw bytes of a cache file.

        Returns:
            File content, or None if it is missing or unreadable
        """
        try:
            return self.backend.read_file(location)
        except CacheError as e:
            logger.warning(f"Failed to read cache file {location}: {e}")
            return None

    def delete(self, name: str) -> bool:
        """Delete a cache entry.

        Returns:
            True if the entry is gone (including when it never existed),
            False if deletion failed
        """
        path = self.location(name)
        try:
            self.backend.delete_file(path)
        except CacheError as e:
            logger.warning(f"Failed to delete cache '{name}': {e}")
            return False
        self.backend.delete_lock(path)
        return True

    def exists(self, name: str) -> bool:
        return self.backend.file_exists(self.location(name))
