"""Full-store deletion sweeps."""

import logging
from typing import Callable, List, Union

from flatcache.cache.expiration import EXPIRE_NEVER, EXPIRE_RESERVED, to_timestamp
from flatcache.cache.locator import StorageLocator
from flatcache.errors import CacheError
from flatcache.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class BulkExpirer:
    """Deletes many cache entries in one pass over the cache directory.

    Two sentinel expirations tag entries that sweeps leave alone:

    - ``never``: entries at or below this time survive expire_all()
    - ``reserved``: entries at exactly this time survive delete_all()

    A failed deletion is skipped and the sweep carries on. The names of the
    entries that could not be deleted by the last sweep are kept in
    ``failures``.

    Args:
        locator: Locator for the cache directory
        backend: Storage backend performing the deletes
        expire_never: The 'never' sentinel (date string or epoch seconds)
        expire_reserved: The 'reserved' sentinel (date string or epoch seconds)
    """

    def __init__(
        self,
        locator: StorageLocator,
        backend: StorageBackend,
        expire_never: Union[str, int] = EXPIRE_NEVER,
        expire_reserved: Union[str, int] = EXPIRE_RESERVED,
    ):
        self.locator = locator
        self.backend = backend
        self.never = to_timestamp(expire_never)
        self.reserved = to_timestamp(expire_reserved)
        self.failures: List[str] = []

    def delete_all(self) -> int:
        """Delete every entry except those with the reserved expiration.

        Returns:
            Number of entries deleted
        """
        return self._sweep(lambda mtime: mtime != self.reserved, "delete_all")

    def expire_all(self) -> int:
        """Delete every entry whose expiration is later than the never sentinel.

        Returns:
            Number of entries deleted
        """
        return self._sweep(lambda mtime: mtime > self.never, "expire_all")

    def _sweep(self, should_delete: Callable[[int], bool], label: str) -> int:
        self.failures = []
        try:
            entries = self.locator.entries()
        except CacheError as e:
            logger.warning(f"{label}: cannot list cache directory: {e}")
            return 0

        deleted = 0
        for info in entries:
            if not should_delete(info.mtime):
                continue
            try:
                if self.backend.delete_file(info.path):
                    deleted += 1
            except CacheError as e:
                logger.warning(f"{label}: failed to delete {info.name}: {e}")
                self.failures.append(self.locator.name_of(info))
                continue
            self.backend.delete_lock(info.path)

        logger.debug(f"{label}: deleted {deleted} of {len(entries)} cache entries")
        return deleted
