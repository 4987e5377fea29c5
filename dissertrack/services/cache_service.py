"""
Meeting Cache - in-process TTL cache for meeting lists

Keys are namespaced per role and user ("meetings:faculty:<id>") so that the
fallback resolver can read a peer role's cached lists.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from dissertrack.core.config import settings
from dissertrack.core.logging_config import logger
from dissertrack.schemas.meeting import Meeting


@dataclass
class CachedMeetings:
    """Cached meeting list"""
    meetings: List[Meeting]
    created_at: float
    hit_count: int = 0


class CacheService:
    """
    LRU cache for meeting lists.

    Features:
    - TTL-based expiration (30 minutes by default)
    - LRU eviction when full
    - Prefix scans for peer-role lookups
    """

    PREFIX_MEETINGS = "meetings:"

    def __init__(
        self,
        ttl: Optional[int] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl if ttl is not None else settings.CACHE_TTL_MEETINGS
        self.max_size = max_size if max_size is not None else settings.CACHE_MAX_ENTRIES
        self._clock = clock
        self._cache: "OrderedDict[str, CachedMeetings]" = OrderedDict()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0
        }

    @classmethod
    def meetings_key(cls, role: str, user_id: str) -> str:
        return f"{cls.PREFIX_MEETINGS}{role}:{user_id}"

    def _expired(self, cached: CachedMeetings) -> bool:
        return self._clock() - cached.created_at > self.ttl

    def get(self, key: str) -> Optional[List[Meeting]]:
        """Return the cached list, or None when missing or expired"""
        cached = self._cache.get(key)
        if cached is None:
            self._stats["misses"] += 1
            return None

        if self._expired(cached):
            del self._cache[key]
            self._stats["misses"] += 1
            logger.debug(f"Cache EXPIRED: {key}")
            return None

        self._cache.move_to_end(key)
        cached.hit_count += 1
        self._stats["hits"] += 1
        logger.debug(f"Cache HIT: {key}")
        return list(cached.meetings)

    def set(self, key: str, meetings: List[Meeting]) -> None:
        if key in self._cache:
            del self._cache[key]
        while len(self._cache) >= self.max_size:
            self._cache.popitem(last=False)
            self._stats["evictions"] += 1

        self._cache[key] = CachedMeetings(meetings=list(meetings), created_at=self._clock())
        logger.debug(f"Cached {len(meetings)} meetings under {key}")

    def invalidate(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str = PREFIX_MEETINGS) -> int:
        keys = [k for k in self._cache if k.startswith(prefix)]
        for key in keys:
            del self._cache[key]
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries under {prefix}")
        return len(keys)

    def scan(self, prefix: str) -> List[Tuple[str, List[Meeting]]]:
        """All live entries under a prefix. Expired entries are dropped on the way."""
        results: List[Tuple[str, List[Meeting]]] = []
        for key in list(self._cache.keys()):
            if not key.startswith(prefix):
                continue
            cached = self._cache[key]
            if self._expired(cached):
                del self._cache[key]
                continue
            results.append((key, list(cached.meetings)))
        return results

    def clear(self) -> None:
        self._cache.clear()

    def get_stats(self) -> Dict[str, int]:
        total = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "size": len(self._cache),
            "hit_rate": round(self._stats["hits"] / total * 100) if total else 0,
        }


# Process-wide instance shared by every view
cache_service = CacheService()
