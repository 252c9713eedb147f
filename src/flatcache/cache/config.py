"""Cache configuration management."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from flatcache.cache.expiration import EXPIRE_NEVER, EXPIRE_RESERVED


@dataclass
class CacheConfig:
    """Configuration for the filesystem cache store.

    Attributes:
        cache_dir: Root directory holding the cache files. Created lazily
            the first time an entry is saved.
        extension: File extension marking cache entries (without the dot)
        max_name_length: Maximum length of a sanitized cache name
        lock_timeout: Seconds to wait for a write lock before giving up
        lock_dir_name: Subdirectory of cache_dir that holds lock files
        expire_never: Expiration marking entries skipped by expire_all()
        expire_reserved: Expiration marking entries skipped by delete_all()
    """

    cache_dir: Path = Path.home() / ".flatcache"
    extension: str = "cache"
    max_name_length: int = 191
    lock_timeout: float = 30  # seconds
    lock_dir_name: str = ".locks"
    expire_never: Union[str, int] = EXPIRE_NEVER
    expire_reserved: Union[str, int] = EXPIRE_RESERVED

    def __post_init__(self):
        """Normalize cache_dir and extension, and validate numeric limits."""
        if self.cache_dir is None:
            self.cache_dir = Path.home() / ".flatcache"
        self.cache_dir = Path(self.cache_dir).expanduser()

        self.extension = self.extension.lstrip(".")
        if not self.extension:
            raise ValueError("Cache file extension cannot be empty")

        if self.max_name_length < 1:
            raise ValueError(
                f"max_name_length must be positive, got {self.max_name_length}"
            )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses
                ~/.flatcache/config.json

        Returns:
            CacheConfig instance (defaults if the file does not exist)
        """
        if config_path is None:
            config_path = Path.home() / ".flatcache" / "config.json"
        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = json.load(f)

        if "cache_dir" in data:
            data["cache_dir"] = Path(data["cache_dir"])

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses
                cache_dir/config.json
        """
        if config_path is None:
            config_path = self.cache_dir / "config.json"
        config_path = Path(config_path)

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "cache_dir": str(self.cache_dir),
            "extension": self.extension,
            "max_name_length": self.max_name_length,
            "lock_timeout": self.lock_timeout,
            "lock_dir_name": self.lock_dir_name,
            "expire_never": self.expire_never,
            "expire_reserved": self.expire_reserved,
        }

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            FLATCACHE_DIR: Cache directory path
            FLATCACHE_EXTENSION: Cache file extension
            FLATCACHE_LOCK_TIMEOUT: Write lock timeout in seconds

        Returns:
            CacheConfig instance

        Raises:
            ValueError: If a value fails validation (e.g. an empty extension)
        """
        kwargs = {}

        if os.getenv("FLATCACHE_DIR"):
            kwargs["cache_dir"] = Path(os.getenv("FLATCACHE_DIR"))

        if os.getenv("FLATCACHE_EXTENSION"):
            kwargs["extension"] = os.getenv("FLATCACHE_EXTENSION")

        if os.getenv("FLATCACHE_LOCK_TIMEOUT"):
            kwargs["lock_timeout"] = float(os.getenv("FLATCACHE_LOCK_TIMEOUT"))

        return cls(**kwargs)
