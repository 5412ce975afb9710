"""A size-limited LRU cache for values that are costly to recompute."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import TypeVar

KeyType = TypeVar("KeyType")
ValueType = TypeVar("ValueType")


@dataclass
class CacheStats:
    """Hit and miss counters for a ResourceCache."""

    hits: int = 0
    misses: int = 0

    @property
    def total_lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_lookups == 0:
            return 0.0
        return (self.hits / self.total_lookups) * 100.0

    def __repr__(self) -> str:
        return f"{self.hits} hits, {self.misses} misses ({self.hit_rate:.1f}% hit rate)"


class ResourceCache[KeyType, ValueType]:
    """
    A generic Least Recently Used (LRU) cache holding at most `max_size` items.

    Once full, storing a new key evicts the entry that was looked up or stored
    longest ago.
    """

    def __init__(self, name: str, max_size: int = 16) -> None:
        if max_size <= 0:
            raise ValueError("Cache max_size must be a positive integer.")
        self.name = name
        self.max_size = max_size
        self._cache: OrderedDict[KeyType, ValueType] = OrderedDict()
        self.stats = CacheStats()

    def get(self, key: KeyType) -> ValueType | None:
        """
        Retrieve an item from the cache.

        If the item is found, it's marked as recently used.
        Returns the item if found, otherwise None.
        """
        if key not in self._cache:
            self.stats.misses += 1
            return None

        self._cache.move_to_end(key)
        self.stats.hits += 1
        return self._cache[key]

    def store(self, key: KeyType, value: ValueType) -> None:
        """Store an item, evicting the least recently used one when full."""
        self._cache[key] = value
        self._cache.move_to_end(key)
        while len(self._cache) > self.max_size:
            self._cache.popitem(last=False)

    def clear(self) -> None:
        """Clear all items from the cache and reset stats."""
        self._cache.clear()
        self.stats = CacheStats()

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def __str__(self) -> str:
        return f"{self.name} Cache: {self.stats!r} ({len(self)}/{self.max_size})"
