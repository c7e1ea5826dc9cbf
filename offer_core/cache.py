"""In-memory response cache with a lifetime per entry."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Hashable, Tuple

from cachetools import TLRUCache

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


def _expires_at(_key: Hashable, entry: Tuple[Any, float], now: float) -> float:
    return now + entry[1]


class ResponseCache:
    """Keyed values that disappear once their own TTL has passed."""

    def __init__(self, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic) -> None:
        self._entries: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=timer)

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        return entry[0]

    def set(self, key: Hashable, value: Any, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> "ResponseCache":
        if ttl_seconds <= 0:
            self.delete(key)
            return self
        self._entries[key] = (value, float(ttl_seconds))
        LOGGER.debug("Cached %s for %ss", key, ttl_seconds)
        return self

    def has(self, key: Hashable) -> bool:
        return key in self._entries

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def prune(self) -> int:
        """Drop expired entries and return how many were removed."""

        before = self._entries.currsize
        self._entries.expire()
        return before - self._entries.currsize

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.has(key)


def offer_key(url: str) -> str:
    return f"offer:{url}"


def post_key(url: str, options_key: str) -> str:
    return f"post:{url}:{options_key}"


__all__ = ["DEFAULT_TTL_SECONDS", "ResponseCache", "offer_key", "post_key"]
