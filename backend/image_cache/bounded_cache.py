"""
Bounded Image Cache
有界图片缓存

Thread-safe in-memory cache for decoded images, keyed by resource URL.

Features:
- Item-count limit and total-cost (byte) limit
- LRU (Least Recently Used) eviction when either limit is exceeded
- Cost estimated as uncompressed RGBA size (width x height x 4)
- Thread-safe operations with Lock
"""

import time
import logging
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_ITEM_LIMIT = 100
DEFAULT_COST_LIMIT = 100 * 1024 * 1024  # 100MB

# Bytes per pixel for an uncompressed RGBA bitmap
BYTES_PER_PIXEL = 4


@dataclass
class CacheEntry:
    """
    Cache entry data structure
    缓存条目数据结构
    """
    key: str                # Resource identifier (image URL)
    value: Any              # Decoded image
    cost: int               # Estimated size in bytes
    created_at: float
    last_accessed: float


def estimate_cost(image: Any) -> int:
    """Estimate the in-memory footprint of a decoded image in bytes."""
    width = int(getattr(image, "width", 0) or 0)
    height = int(getattr(image, "height", 0) or 0)
    return max(width, 0) * max(height, 0) * BYTES_PER_PIXEL


class BoundedImageCache:
    """
    Thread-safe bounded image cache
    线程安全的有界图片缓存

    Entries are kept in recency order (oldest first). ``set`` evicts from the
    old end until both ``item_limit`` and ``cost_limit`` hold again. The entry
    being inserted is never evicted by its own insertion, so a single image
    larger than ``cost_limit`` stays until the next insert pushes it out.
    """

    def __init__(
        self,
        item_limit: int = DEFAULT_ITEM_LIMIT,
        cost_limit: int = DEFAULT_COST_LIMIT,
    ):
        """
        Initialize the cache

        Args:
            item_limit: Maximum number of cached images
            cost_limit: Maximum total estimated bytes
        """
        if item_limit <= 0:
            raise ValueError("item_limit must be positive")
        if cost_limit <= 0:
            raise ValueError("cost_limit must be positive")

        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = Lock()
        self._item_limit = item_limit
        self._cost_limit = cost_limit
        self._total_cost = 0

        self._stats = {
            "hits": 0,
            "misses": 0,
            "writes": 0,
            "evictions": 0,
        }

        logger.info(
            f"[ImageCache] Cache initiated - Limit: {item_limit} images "
            f"or {cost_limit // (1024 * 1024)}MB"
        )

    @property
    def item_limit(self) -> int:
        return self._item_limit

    @property
    def cost_limit(self) -> int:
        return self._cost_limit

    @property
    def item_count(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def total_cost(self) -> int:
        with self._lock:
            return self._total_cost

    def __len__(self) -> int:
        return self.item_count

    def __contains__(self, key: str) -> bool:
        # Membership test does not touch recency
        with self._lock:
            return key in self._entries

    def keys(self) -> List[str]:
        """Cached keys in recency order, least recently used first."""
        with self._lock:
            return list(self._entries.keys())

    def set(self, key: str, image: Any) -> None:
        """
        Save image in cache
        保存图片到缓存

        Replacing an existing key swaps its cost rather than adding to it.

        Args:
            key: Resource identifier
            image: Decoded image exposing ``width`` and ``height``
        """
        cost = estimate_cost(image)
        now = time.time()

        with self._lock:
            previous = self._entries.pop(key, None)
            if previous is not None:
                self._total_cost -= previous.cost

            self._entries[key] = CacheEntry(
                key=key,
                value=image,
                cost=cost,
                created_at=now,
                last_accessed=now,
            )
            self._total_cost += cost
            self._stats["writes"] += 1

            logger.debug(
                f"[ImageCache] Image added - Size: {cost // 1024}KB - "
                f"Total images number: {len(self._entries)}"
            )

            if len(self._entries) > self._item_limit or self._total_cost > self._cost_limit:
                logger.warning("[ImageCache] Cache limit reached! Old images will get erased")
                self._evict_over_budget()

    def get(self, key: str) -> Optional[Any]:
        """
        Get image from cache
        从缓存获取图片

        Returns:
            The cached image, or None if not present
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                logger.debug(f"[ImageCache] Image not found: {key[:60]}")
                return None

            self._entries.move_to_end(key)
            entry.last_accessed = time.time()
            self._stats["hits"] += 1
            logger.debug(f"[ImageCache] Image found: {key[:60]}")
            return entry.value

    def remove(self, key: str) -> bool:
        """
        Remove a single entry

        Returns:
            True if removed, False if not found
        """
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return False
            self._total_cost -= entry.cost
            return True

    def clear(self) -> int:
        """
        Clear all cache entries
        清空所有缓存

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._total_cost = 0

        logger.info(f"[ImageCache] Cleaning cache - removed {count} entries")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics
        获取缓存统计信息
        """
        with self._lock:
            total_cost = self._total_cost
            return {
                "total_entries": len(self._entries),
                "max_entries": self._item_limit,
                "total_size_bytes": total_cost,
                "total_size_mb": round(total_cost / (1024 * 1024), 2),
                "max_size_mb": round(self._cost_limit / (1024 * 1024), 2),
                "usage_percent": round(total_cost / self._cost_limit * 100, 1),
                **self._stats,
            }

    def _evict_over_budget(self) -> int:
        """
        Evict least recently used entries until within limits
        (internal, assumes lock held)

        The newest entry sits at the end of the order and is never popped.

        Returns:
            Number of entries evicted
        """
        evicted = 0
        while len(self._entries) > 1 and (
            len(self._entries) > self._item_limit or self._total_cost > self._cost_limit
        ):
            oldest_key, entry = self._entries.popitem(last=False)
            self._total_cost -= entry.cost
            self._stats["evictions"] += 1
            evicted += 1
            logger.info(f"[ImageCache] LRU evicted: {oldest_key[:60]} ({entry.cost // 1024}KB)")

        if self._total_cost > self._cost_limit:
            logger.warning(
                f"[ImageCache] Single entry exceeds cost limit "
                f"({self._total_cost} > {self._cost_limit} bytes)"
            )
        return evicted
