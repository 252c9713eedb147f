"""Finding cache entries by name and expiration."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Union

from typing_extensions import TypedDict

from flatcache.cache.expiration import (
    ExpireCondition,
    ExpiresMode,
    format_timestamp,
    parse_expires,
    time_matches_expires,
)
from flatcache.cache.locator import StorageLocator
from flatcache.cache.store import EntryStore
from flatcache.errors import CacheError
from flatcache.storage.backend import EntryInfo, StorageBackend

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("name", "expires", "data", "size")


class CacheRecord(TypedDict, total=False):
    """A find() result holding the requested subset of fields.

    Attributes:
        name: Sanitized cache name
        expires: Expiration as 'YYYY-MM-DD HH:MM:SS' (local time)
        data: Cached bytes
        size: Size of the cached bytes
    """

    name: str
    expires: str
    data: bytes
    size: int


def name_matches(name: str, patterns: Iterable[str]) -> bool:
    """Check a stored name against exact names and trailing wildcards.

    A pattern containing '*' matches by prefix once its trailing '*' are
    removed; any other pattern must be equal to the name. This is not glob
    matching: a '*' that is not trailing stays part of the prefix.

    Examples:
        >>> name_matches('foobar', ['foo*'])
        True
        >>> name_matches('barfoo', ['foo*'])
        False
        >>> name_matches('foo', ['foo'])
        True
    """
    for pattern in patterns:
        if "*" in pattern:
            if name.startswith(pattern.rstrip("*")):
                return True
        elif name == pattern:
            return True
    return False


class QueryEngine:
    """Finds cache entries by name patterns and/or expiration conditions.

    Exact names are looked up directly. The cache directory is only scanned
    when wildcard patterns remain or no names were given. Results come back
    in filesystem enumeration order; sort them if you need a stable order.
    Entries written during a scan may or may not be seen.
    """

    def __init__(
        self,
        store: EntryStore,
        locator: StorageLocator,
        backend: StorageBackend,
    ):
        self.store = store
        self.locator = locator
        self.backend = backend

    def find(
        self,
        names: Optional[Sequence[str]] = None,
        expires: Optional[Sequence[str]] = None,
        expires_mode: Union[str, ExpiresMode] = ExpiresMode.OR,
        get: Optional[Sequence[str]] = None,
    ) -> List[CacheRecord]:
        """Find cache entries.

        Args:
            names: Exact cache names and/or prefix patterns ending in '*'.
                Any one matching is enough.
            expires: Conditions like '<= 2023-03-08 03:00:01'. The operator
                defaults to '=' when omitted.
            expires_mode: 'OR' (any condition) or 'AND' (all conditions)
            get: Fields to include in each record, any of
                'name', 'expires', 'data', 'size' (default: all)

        Returns:
            List of CacheRecord

        Raises:
            ValueError: If an expiration condition or the mode is invalid

        Examples:
            >>> engine.find(names=['user-*'], get=['name'])
            [{'name': 'user-1'}, {'name': 'user-2'}]
        """
        mode = ExpiresMode.coerce(expires_mode)
        fields = tuple(get) if get is not None else RESULT_FIELDS
        conditions = parse_expires(expires or [], now=self.backend.now())

        results: List[CacheRecord] = []
        seen: Set[Path] = set()
        patterns = [name for name in (names or []) if "*" in name]

        if names:
            # Exact names resolve to a single file, no scan needed
            for name in names:
                if "*" in name:
                    continue
                path = self.store.location(name)
                if path in seen:
                    continue
                seen.add(path)
                try:
                    info = self.backend.get_entry(path)
                except CacheError as e:
                    logger.warning(f"Failed to inspect cache '{name}': {e}")
                    continue
                if info is None:
                    continue
                record = self._match(info, [], conditions, mode, fields)
                if record is not None:
                    results.append(record)

            if not patterns:
                return results

        for info in self._scan():
            if info.path in seen:
                continue
            record = self._match(info, patterns, conditions, mode, fields)
            if record is not None:
                results.append(record)

        return results

    def _scan(self) -> List[EntryInfo]:
        try:
            return self.locator.entries()
        except CacheError as e:
            logger.warning(f"Failed to scan cache directory: {e}")
            return []

    def _match(
        self,
        info: EntryInfo,
        patterns: Sequence[str],
        conditions: Sequence[ExpireCondition],
        mode: ExpiresMode,
        fields: Sequence[str],
    ) -> Optional[CacheRecord]:
        """Build a record for an entry if it passes the name and expiration filters."""
        if patterns and not name_matches(self.locator.name_of(info), patterns):
            return None
        if conditions and not time_matches_expires(info.mtime, conditions, mode):
            return None

        record: CacheRecord = {}
        for field in fields:
            if field == "name":
                record["name"] = self.locator.name_of(info)
            elif field == "expires":
                record["expires"] = format_timestamp(info.mtime)
            elif field == "data":
                data = self.store.read(info.path)
                if data is None:
                    return None
                record["data"] = data
            elif field == "size":
                record["size"] = info.size
        return record
