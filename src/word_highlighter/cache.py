from __future__ import annotations

import logging
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 100
DEFAULT_CONTEXT_CHARS = 100


def make_cache_key(token: str, context: str, limit: int = DEFAULT_CONTEXT_CHARS) -> str:
    """Build the cache key from the token and a bounded prefix of its context."""
    return f"{token}:{context[:limit]}"


class AnnotationCache:
    """
    Bounded explanation store with first-in-first-out eviction.

    Lookups never refresh an entry's position, so an old entry is evicted
    next no matter how often it is read.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("Cache max_size must be at least 1.")
        self._max_size = max_size
        self._entries: Dict[str, str] = {}

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def put(self, key: str, value: str) -> None:
        # dict keeps the original insertion slot when an existing key is overwritten
        self._entries[key] = value
        while len(self._entries) > self._max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("Evicted cache entry %r", oldest)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
