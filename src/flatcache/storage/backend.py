"""Storage backend for handling cache file operations.

This module provides the filesystem operations the cache store relies on:
directory management, listings with file metadata, atomic writes under an
exclusive lock and modification-time control. Every OSError is wrapped in a
CacheStorageError so callers only have to handle one exception family.
"""

import logging
import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from filelock import FileLock, Timeout

from flatcache.errors import CacheLockError, CachePermissionError, CacheStorageError
from flatcache.utils import to_safe_name

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class EntryInfo:
    """A single directory listing entry.

    Attributes:
        name: File name including extension
        path: Full path to the file
        mtime: Modification time in whole seconds
        size: Size in bytes
        is_dir: Whether the entry is a directory
    """

    name: str
    path: Path
    mtime: int
    size: int
    is_dir: bool = False

    @property
    def extension(self) -> str:
        """Text after the last dot of the name ('' when there is none)."""
        _, dot, extension = self.name.rpartition(".")
        return extension if dot else ""

    @property
    def stem(self) -> str:
        """Name without the extension."""
        stem, dot, _ = self.name.rpartition(".")
        return stem if dot else self.name


def _wrap_os_error(message: str, error: OSError) -> CacheStorageError:
    if isinstance(error, PermissionError):
        return CachePermissionError(f"{message}: {error}", original_error=error)
    return CacheStorageError(f"{message}: {error}", original_error=error)


class StorageBackend:
    """Filesystem operations for the cache store.

    Writes go to a temporary file in the target directory and are moved into
    place with ``os.replace`` while holding a per-file ``FileLock``, so
    concurrent writers of the same entry never interleave and readers never
    observe a partial file. Lock files live in a subdirectory of the target
    directory.

    Args:
        clock: Callable returning the current epoch time (default: time.time)
        lock_timeout: Seconds to wait for a write lock
        lock_dir_name: Name of the lock subdirectory

    Examples:
        >>> backend = StorageBackend()
        >>> backend.write_file_exclusive('/tmp/cache/a.cache', b'value')
        >>> backend.read_file('/tmp/cache/a.cache')
        b'value'
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        lock_timeout: float = 30,
        lock_dir_name: str = ".locks",
    ):
        self.clock = clock or time.time
        self.lock_timeout = lock_timeout
        self.lock_dir_name = lock_dir_name

    def now(self) -> int:
        """Get the current time in whole epoch seconds."""
        return int(self.clock())

    # =========================================================================
    # Directories
    # =========================================================================

    def create_directory(self, path: PathLike) -> None:
        """Create a directory and any missing parents (no-op if it exists).

        Raises:
            CacheStorageError: If the directory cannot be created
        """
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _wrap_os_error(f"Cannot create cache directory {path}", e) from e

    def directory_exists(self, path: PathLike) -> bool:
        """Check whether a directory exists."""
        return Path(path).is_dir()

    def remove_directory(self, path: PathLike, recursive: bool = False) -> bool:
        """Remove a directory.

        Args:
            path: Directory to remove
            recursive: Remove contents as well

        Returns:
            True if removed, False if it did not exist

        Raises:
            CacheStorageError: If removal fails
        """
        path = Path(path)
        if not path.is_dir():
            return False
        try:
            if recursive:
                shutil.rmtree(path)
            else:
                path.rmdir()
        except OSError as e:
            raise _wrap_os_error(f"Cannot remove cache directory {path}", e) from e
        return True

    def list_entries(self, path: PathLike) -> List[EntryInfo]:
        """List the entries of a directory with their metadata.

        The directory handle is closed before returning. Entries that vanish
        or cannot be inspected while listing are left out.

        Args:
            path: Directory to list

        Returns:
            List of EntryInfo in filesystem enumeration order

        Raises:
            CacheStorageError: If the directory cannot be read
        """
        entries = []
        try:
            with os.scandir(path) as iterator:
                for entry in iterator:
                    try:
                        stat = entry.stat()
                        is_dir = entry.is_dir()
                    except FileNotFoundError:
                        continue
                    except OSError as e:
                        logger.warning(f"Skipping unreadable entry {entry.path}: {e}")
                        continue
                    entries.append(
                        EntryInfo(
                            name=entry.name,
                            path=Path(entry.path),
                            mtime=int(stat.st_mtime),
                            size=stat.st_size,
                            is_dir=is_dir,
                        )
                    )
        except OSError as e:
            raise _wrap_os_error(f"Cannot list cache directory {path}", e) from e
        return entries

    # =========================================================================
    # Files
    # =========================================================================

    def get_entry(self, path: PathLike) -> Optional[EntryInfo]:
        """Get metadata for a single file.

        Returns:
            EntryInfo, or None if the file does not exist

        Raises:
            CacheStorageError: If the file cannot be inspected
        """
        path = Path(path)
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise _wrap_os_error(f"Cannot inspect cache file {path}", e) from e
        if path.is_dir():
            return None
        return EntryInfo(
            name=path.name, path=path, mtime=int(stat.st_mtime), size=stat.st_size
        )

    def file_exists(self, path: PathLike) -> bool:
        """Check whether a regular file exists."""
        return Path(path).is_file()

    def read_file(self, path: PathLike) -> bytes:
        """Read a file's full content.

        Raises:
            CacheStorageError: If the file is missing or unreadable
        """
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise _wrap_os_error(f"Cannot read cache file {path}", e) from e

    def write_file_exclusive(self, path: PathLike, data: bytes) -> None:
        """Atomically replace a file's content while holding its write lock.

        Args:
            path: Target file
            data: Bytes to write

        Raises:
            CacheLockError: If the lock is not acquired within lock_timeout
            CacheStorageError: If writing fails
        """
        path = Path(path)
        lock_dir = path.parent / self.lock_dir_name
        temp_path = path.with_name(path.name + ".tmp")

        try:
            lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _wrap_os_error(f"Cannot create lock directory {lock_dir}", e) from e

        lock = FileLock(str(self.lock_path(path)), timeout=self.lock_timeout)
        try:
            with lock:
                try:
                    with open(temp_path, "wb") as f:
                        f.write(data)
                    os.replace(temp_path, path)
                except OSError:
                    self._discard_temp(temp_path)
                    raise
        except Timeout as e:
            raise CacheLockError(
                f"Timeout acquiring lock for {path.name} "
                f"after {self.lock_timeout} seconds"
            ) from e
        except OSError as e:
            raise _wrap_os_error(f"Cannot write cache file {path}", e) from e

    @staticmethod
    def _discard_temp(temp_path: Path) -> None:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up temp file {temp_path}: {e}")

    def set_mtime(self, path: PathLike, timestamp: int) -> None:
        """Set a file's access and modification time.

        Raises:
            CacheStorageError: If the timestamp cannot be set
        """
        try:
            os.utime(path, (timestamp, timestamp))
        except OSError as e:
            raise _wrap_os_error(f"Cannot set modification time of {path}", e) from e

    def delete_file(self, path: PathLike) -> bool:
        """Delete a file.

        Returns:
            True if deleted, False if it did not exist

        Raises:
            CacheStorageError: If deletion fails
        """
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise _wrap_os_error(f"Cannot delete cache file {path}", e) from e
        return True

    # =========================================================================
    # Locks
    # =========================================================================

    def lock_path(self, path: PathLike) -> Path:
        """Get the lock file guarding writes to a file."""
        path = Path(path)
        return path.parent / self.lock_dir_name / f"{path.name}.lock"

    def delete_lock(self, path: PathLike) -> bool:
        """Remove the lock file of a file unless a writer currently holds it.

        The lock is taken without waiting before the lock file is unlinked,
        so a write in progress keeps its lock.

        Args:
            path: File whose lock should be removed

        Returns:
            True if the lock file is gone, False if it is held or cannot be
            removed
        """
        lock_path = self.lock_path(path)
        if not lock_path.exists():
            return True
        try:
            with FileLock(str(lock_path), timeout=0):
                lock_path.unlink()
        except FileNotFoundError:
            return True
        except Timeout:
            logger.debug(f"Lock {lock_path} is held, leaving it in place")
            return False
        except OSError as e:
            logger.debug(f"Cannot remove lock {lock_path}: {e}")
            return False
        return True

    # =========================================================================
    # Names
    # =========================================================================

    def sanitize_name(
        self,
        name: str,
        max_length: int = 191,
        replacement: str = "_",
        collapse_replacement: bool = True,
    ) -> str:
        """Transliterate a name into a filesystem-safe form.

        See :func:`flatcache.utils.to_safe_name`.
        """
        return to_safe_name(
            name,
            max_length=max_length,
            replacement=replacement,
            collapse_replacement=collapse_replacement,
        )
