"""Shared cache of parsed catalog directories.

Keyed by absolute directory path. Entries are only ever added: a directory
is parsed at most once per writer, and when two threads race to load the
same directory the first insert wins and the other result is dropped.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    entries: int


class CatalogCache(Generic[V]):
    """Thread-safe, append-only map of directory to loaded catalog index."""

    def __init__(self):
        self._entries: dict[Path, V] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _key(directory: Path | str) -> Path:
        return Path(directory).resolve()

    def get(self, directory: Path | str) -> V | None:
        with self._lock:
            return self._entries.get(self._key(directory))

    def get_or_load(self, directory: Path | str, loader: Callable[[Path], V]) -> V:
        """Cached value for `directory`, calling `loader` on a miss.

        The loader runs outside the lock, so a slow parse never blocks
        lookups of other directories.
        """
        key = self._key(directory)
        with self._lock:
            if key in self._entries:
                self._hits += 1
                logger.debug("Catalog cache hit: %s", key)
                return self._entries[key]
            self._misses += 1

        logger.debug("Catalog cache miss: %s", key)
        value = loader(key)

        with self._lock:
            return self._entries.setdefault(key, value)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, entries=len(self._entries))

    def __contains__(self, directory: Path | str) -> bool:
        with self._lock:
            return self._key(directory) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
