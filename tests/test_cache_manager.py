"""Unit tests for the cache manager."""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from flatcache import CacheConfig, FileCache
from flatcache.cache.expiration import EXPIRE_NEVER, EXPIRE_RESERVED, to_timestamp
from flatcache.cache.names import NameSanitizer
from flatcache.errors import CacheStorageError
from flatcache.storage import StorageBackend

NOW = 1700000000


@pytest.fixture
def temp_cache_dir():
    """Create temporary cache directory (not created yet)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "cache"


@pytest.fixture
def cache_config(temp_cache_dir):
    """Create test cache configuration."""
    return CacheConfig(cache_dir=temp_cache_dir, lock_timeout=1)


@pytest.fixture
def cache(cache_config):
    """Create test cache with a fixed clock."""
    return FileCache(cache_config, backend=StorageBackend(clock=lambda: NOW))


class TestFileCacheInitialization:
    """Test cache construction."""

    def test_init_does_not_create_directory(self, cache, temp_cache_dir):
        """Test that the cache directory is created lazily."""
        assert cache.cache_dir == temp_cache_dir
        assert not temp_cache_dir.exists()

    def test_default_backend_from_config(self, cache_config):
        cache = FileCache(cache_config)
        assert cache.backend.lock_timeout == 1
        assert cache.backend.lock_dir_name == ".locks"

    def test_sanitizer_uses_backend_transliteration(self, cache_config):
        backend = StorageBackend()
        with patch.object(backend, "sanitize_name", return_value="fixed") as mock:
            cache = FileCache(cache_config, backend=backend)
            cache.save("ünïcode", b"x", NOW)
        mock.assert_called_once()
        assert cache.exists("fixed")

    def test_custom_sanitizer(self, cache_config):
        cache = FileCache(cache_config, sanitizer=NameSanitizer(max_length=3))
        cache.save("abcdef", b"x", NOW)
        assert cache.find(get=["name"]) == [{"name": "abc"}]

    def test_custom_extension(self, temp_cache_dir):
        cache = FileCache(CacheConfig(cache_dir=temp_cache_dir, extension=".dat"))
        cache.save("a", b"x", NOW)
        assert (temp_cache_dir / "a.dat").exists()

    def test_dotted_extension(self, temp_cache_dir):
        """Test that multi-part extensions are listed, found and swept."""
        config = CacheConfig(cache_dir=temp_cache_dir, extension="wc.cache")
        cache = FileCache(config, backend=StorageBackend(clock=lambda: NOW))
        cache.save("a", b"x", NOW + 60)
        cache.save("b.v2", b"y", NOW + 60)
        (temp_cache_dir / "c.cache").write_bytes(b"other")

        assert (temp_cache_dir / "a.wc.cache").exists()
        assert sorted(r["name"] for r in cache.find(get=["name"])) == ["a", "b.v2"]
        assert cache.find(names=["a*"], get=["name"]) == [{"name": "a"}]
        assert cache.stats()["total_items"] == 2
        assert cache.delete_all() == 2
        assert (temp_cache_dir / "c.cache").exists()


class TestSaveAndFind:
    """Test saving and finding through the manager."""

    def test_round_trip(self, cache):
        data = bytes(range(256)) * 3
        assert cache.save("blob", data, "2099-01-01 00:00:00") is True
        [record] = cache.find(names=["blob"], get=["data", "size"])
        assert record == {"data": data, "size": len(data)}

    def test_expire_formats(self, cache):
        cache.save("dt", b"", datetime(2099, 1, 1, 0, 0, 0))
        cache.save("epoch", b"", 4102444800)
        cache.save("relative", b"", timedelta(hours=1))

        mtimes = {
            info.stem: info.mtime for info in cache.locator.entries()
        }
        assert mtimes["dt"] == int(datetime(2099, 1, 1).timestamp())
        assert mtimes["epoch"] == 4102444800
        assert mtimes["relative"] == NOW + 3600

    def test_default_expire_is_never(self, cache):
        cache.save("permanent", b"x")
        [record] = cache.find(names=["permanent"], get=["expires"])
        assert record["expires"] == EXPIRE_NEVER

    def test_invalid_expire_raises(self, cache):
        with pytest.raises(ValueError):
            cache.save("a", b"x", "not a date at all")
        with pytest.raises(TypeError):
            cache.save("a", b"x", object())

    def test_save_failure_returns_false(self, cache):
        with patch.object(
            cache.backend, "write_file_exclusive", side_effect=CacheStorageError("x")
        ):
            assert cache.save("a", b"x", NOW) is False

    def test_sanitized_wildcard_name_scenario(self, cache):
        """Test that '*' in a saved name is transliterated, not stored."""
        cache.save("a", "1", "2099-01-01 00:00:00")
        cache.save("b*", "2", "2099-01-01 00:00:00")

        assert sorted(p.name for p in cache.cache_dir.glob("*.cache")) == [
            "a.cache",
            "b.cache",
        ]
        results = cache.find(names=["a"])
        assert len(results) == 1
        assert results[0]["data"] == b"1"


class TestDelete:
    """Test deleting through the manager."""

    def test_delete(self, cache):
        cache.save("a", b"x", NOW)
        assert cache.delete("a") is True
        assert cache.exists("a") is False

    def test_delete_missing(self, cache):
        assert cache.delete("missing") is True

    def test_delete_is_repeatable(self, cache):
        cache.save("a", b"x", NOW)
        assert cache.delete("a") is True
        assert cache.delete("a") is True

    def test_delete_storage_failure(self, cache):
        cache.save("a", b"x", NOW)
        with patch.object(
            cache.backend, "delete_file", side_effect=CacheStorageError("denied")
        ):
            assert cache.delete("a") is False
        assert cache.exists("a") is True


class TestSweeps:
    """Test delete_all and expire_all through the manager."""

    @pytest.fixture
    def populated(self, cache):
        cache.save("permanent", b"p")
        cache.save("reserved", b"r", EXPIRE_RESERVED)
        cache.save("daily", b"d", NOW + 86400)
        cache.save("stale", b"s", NOW - 60)
        return cache

    def test_expire_all(self, populated):
        assert populated.expire_all() == 2
        assert names(populated) == ["permanent", "reserved"]

    def test_delete_all(self, populated):
        assert populated.delete_all() == 3
        assert names(populated) == ["reserved"]

    def test_custom_sentinels(self, temp_cache_dir):
        config = CacheConfig(
            cache_dir=temp_cache_dir,
            expire_never="2000-01-01 00:00:00",
            expire_reserved="1999-01-01 00:00:00",
        )
        cache = FileCache(config)
        cache.save("permanent", b"")
        cache.save("reserved", b"", "1999-01-01 00:00:00")
        cache.save("old_style_never", b"", EXPIRE_NEVER)

        assert cache.delete_all() == 2
        assert names(cache) == ["reserved"]


class TestStats:
    """Test cache statistics."""

    def test_stats(self, cache, temp_cache_dir):
        cache.save("permanent", b"12")
        cache.save("expired", b"345", NOW - 1)
        cache.save("fresh", b"6", NOW + 100)

        stats = cache.stats()

        assert stats == {
            "cache_dir": str(temp_cache_dir),
            "total_items": 3,
            "total_size_bytes": 6,
            "expired_items": 1,
            "permanent_items": 1,
        }

    def test_stats_without_directory(self, cache):
        assert cache.stats()["total_items"] == 0


class TestLifecycle:
    """Test setup and teardown."""

    def test_setup_creates_directory(self, cache, temp_cache_dir):
        assert cache.setup() == temp_cache_dir
        assert temp_cache_dir.is_dir()

    def test_setup_without_create(self, cache, temp_cache_dir):
        cache.setup(create_root=False)
        assert not temp_cache_dir.exists()

    def test_setup_failure_raises(self, cache):
        with patch.object(
            cache.backend, "create_directory", side_effect=CacheStorageError("ro")
        ):
            with pytest.raises(CacheStorageError):
                cache.setup()

    def test_teardown_removes_everything(self, cache, temp_cache_dir):
        cache.save("a", b"x", NOW)
        assert (temp_cache_dir / ".locks").is_dir()
        assert cache.teardown() is True
        assert not temp_cache_dir.exists()

    def test_teardown_keep_root(self, cache, temp_cache_dir):
        cache.save("a", b"x", NOW)
        assert cache.teardown(remove_root=False) is False
        assert cache.exists("a")

    def test_teardown_missing_directory(self, cache):
        assert cache.teardown() is False

    def test_teardown_failure(self, cache):
        cache.setup()
        with patch.object(
            cache.backend, "remove_directory", side_effect=CacheStorageError("busy")
        ):
            assert cache.teardown() is False

    def test_reusable_after_teardown(self, cache):
        cache.save("a", b"x", NOW)
        cache.teardown()
        assert cache.save("b", b"y", NOW) is True
        assert cache.exists("b")


def names(cache):
    return sorted(record["name"] for record in cache.find(get=["name"]))


def test_sentinel_expiration_survives_round_trip(cache):
    """Test that sentinel expirations are stored exactly."""
    cache.save("r", b"", EXPIRE_RESERVED)
    [info] = cache.locator.entries()
    assert info.mtime == to_timestamp(EXPIRE_RESERVED)
