"""In-memory read-through cache for the full user listing."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Generic, Iterator, List, Optional, Protocol, Tuple, TypeVar

from .models import User

logger = logging.getLogger("usercache.cache")

T = TypeVar("T")

ALL_USERS_KEY = "all_users"


class UserSource(Protocol):
    def get_all_users(self) -> List[User]:
        ...


class ReadWriteLock:
    """Lock allowing many concurrent readers or a single writer.

    Waiting writers block new readers so a steady stream of reads cannot
    starve an update.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._condition:
            while self._writer or self._waiting_writers:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._condition:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._condition.wait()
            finally:
                self._waiting_writers -= 1
                # Readers parked behind this writer must re-check if it gave up.
                self._condition.notify_all()
            self._writer = True
        try:
            yield
        finally:
            with self._condition:
                self._writer = False
                self._condition.notify_all()


class SnapshotCache(Generic[T]):
    """Key/value mapping guarded by a single reader/writer lock."""

    def __init__(self) -> None:
        self._entries: Dict[str, T] = {}
        self._lock = ReadWriteLock()

    def get(self, key: str) -> Tuple[Optional[T], bool]:
        with self._lock.read_locked():
            if key in self._entries:
                return self._entries[key], True
            return None, False

    def set(self, key: str, value: T) -> None:
        with self._lock.write_locked():
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock.write_locked():
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._entries

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    loads: int


def _is_user_snapshot(value: object) -> bool:
    return isinstance(value, tuple) and all(isinstance(item, User) for item in value)


class UserListCache:
    """Serve the full user list from memory, loading it from the store once.

    The snapshot is populated lazily by :meth:`get_cache_all_users` and is never
    invalidated by writes: users created after the first load are not visible
    until :meth:`clear` is called or the process restarts. Concurrent callers
    racing on a cold cache may each query the store; the last one to finish
    wins the ``set``.
    """

    def __init__(self, source: UserSource) -> None:
        self._source = source
        self._entries: SnapshotCache[Tuple[User, ...]] = SnapshotCache()
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._loads = 0

    def get(self, key: str) -> Tuple[Optional[Tuple[User, ...]], bool]:
        return self._entries.get(key)

    def set(self, key: str, value: Tuple[User, ...]) -> None:
        self._entries.set(key, value)

    def clear(self) -> None:
        """Drop the cached snapshot so the next read reloads from the store."""

        self._entries.clear()
        logger.info("User list cache cleared")

    @property
    def populated(self) -> bool:
        return ALL_USERS_KEY in self._entries

    def get_cache_all_users(self) -> List[User]:
        value, found = self.get(ALL_USERS_KEY)
        if found and _is_user_snapshot(value):
            self._record(hits=1)
            logger.debug("Users from cache")
            return list(value)  # type: ignore[arg-type]

        if found:
            logger.debug("Discarding cached %s value for %s", type(value).__name__, ALL_USERS_KEY)
        self._record(misses=1)

        users = self._source.get_all_users()
        self.set(ALL_USERS_KEY, tuple(users))
        self._record(loads=1)
        logger.info("Loaded %d users into cache", len(users))
        return list(users)

    def stats(self) -> CacheStats:
        with self._stats_lock:
            return CacheStats(hits=self._hits, misses=self._misses, loads=self._loads)

    def _record(self, *, hits: int = 0, misses: int = 0, loads: int = 0) -> None:
        with self._stats_lock:
            self._hits += hits
            self._misses += misses
            self._loads += loads


__all__ = [
    "ALL_USERS_KEY",
    "CacheStats",
    "ReadWriteLock",
    "SnapshotCache",
    "UserListCache",
    "UserSource",
]
