"""Mapping of sanitized cache names to files in the cache directory."""

from pathlib import Path
from typing import List

from flatcache.storage.backend import EntryInfo, StorageBackend


class StorageLocator:
    """Resolves sanitized names to cache files within one flat directory.

    Args:
        cache_dir: Root directory of the cache
        backend: Storage backend used to create and list the directory
        extension: File extension of cache entries (without the dot)
    """

    def __init__(
        self, cache_dir: Path, backend: StorageBackend, extension: str = "cache"
    ):
        self.cache_dir = Path(cache_dir)
        self.backend = backend
        self.extension = extension

    def root(self, create: bool = True) -> Path:
        """Get the cache directory.

        Args:
            create: Create the directory if it does not exist yet

        Returns:
            Path to the cache directory

        Raises:
            CacheStorageError: If create=True and the directory cannot be created
        """
        if create and not self.backend.directory_exists(self.cache_dir):
            self.backend.create_directory(self.cache_dir)
        return self.cache_dir

    def locate(self, safe_name: str) -> Path:
        """Get the file path for an already sanitized name."""
        return self.cache_dir / f"{safe_name}.{self.extension}"

    @property
    def suffix(self) -> str:
        return f".{self.extension}"

    def is_entry(self, info: EntryInfo) -> bool:
        """Check whether a listing entry is a cache file.

        The whole suffix is compared, so extensions containing dots
        (e.g. 'wc.cache') are recognized too.
        """
        return not info.is_dir and info.name.endswith(self.suffix)

    def name_of(self, info: EntryInfo) -> str:
        """Get the sanitized cache name of a cache file."""
        if info.name.endswith(self.suffix):
            return info.name[: -len(self.suffix)]
        return info.stem

    def entries(self) -> List[EntryInfo]:
        """List all cache files without creating the cache directory.

        Returns:
            Cache entries in filesystem enumeration order (empty if the
            directory does not exist)

        Raises:
            CacheStorageError: If the directory cannot be listed
        """
        root = self.root(create=False)
        if not self.backend.directory_exists(root):
            return []
        return [info for info in self.backend.list_entries(root) if self.is_entry(info)]
