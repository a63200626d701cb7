"""
Permission caches.

Two independent TTL caches: per-user permission lists and the process-wide
permission hierarchy. Both are explicit injected components so tests and
tenants can hold isolated instances.

Concurrency model (single event loop):
- Hits never take a lock.
- Misses for the same key share one load through a per-key asyncio.Lock,
  dropped again once nobody is loading or waiting on that key;
  other keys are never blocked.
- Every invalidation bumps a generation counter. A load that started before
  an invalidation finishes without populating the cache, and population only
  happens after the loader returns, so a cancelled load leaves nothing behind.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from ..config.settings import get_settings
from ..domain.protocols import PermissionLoader
from ..domain.value_objects import UserId

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """Cached value with its absolute expiry on the cache clock."""
    value: T
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class _Flight:
    """Per-key load lock, alive only while someone is loading or waiting."""
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0
    generation: int = 0


class BaseUserPermissionCache(ABC):
    """Single-flight, generation-guarded user permission cache.

    Subclasses provide storage through the ``_read``/``_write``/``_delete``/
    ``_clear`` hooks.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Clock = time.monotonic):
        if ttl_seconds is None:
            ttl_seconds = get_settings().permission_cache_ttl_seconds
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._flights: Dict[str, _Flight] = {}
        self._global_generation = 0
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _key(user_id: UserId) -> str:
        return str(user_id)

    def _generation(self, flight: _Flight) -> Tuple[int, int]:
        return self._global_generation, flight.generation

    @abstractmethod
    async def _read(self, key: str) -> Optional[List[str]]:
        """Return the live entry for ``key`` or None."""

    @abstractmethod
    async def _write(self, key: str, permissions: List[str]) -> None:
        ...

    @abstractmethod
    async def _delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def _clear(self) -> None:
        ...

    @abstractmethod
    def _size(self) -> Optional[int]:
        """Number of cached users, or None when the backend cannot tell."""

    async def get_user_permissions(
        self,
        user_id: UserId,
        loader: PermissionLoader,
        use_cache: bool = True,
    ) -> List[str]:
        """Return the user's permissions from cache, loading them on a miss.

        Args:
            user_id: User whose permissions are requested
            loader: Coroutine function fetching permissions from the store
            use_cache: When False the cached entry is ignored and refreshed

        Returns:
            A fresh list the caller may mutate
        """
        key = self._key(user_id)

        if use_cache:
            cached = await self._read(key)
            if cached is not None:
                self._hits += 1
                return list(cached)

        flight = self._flights.get(key)
        if flight is None:
            flight = self._flights[key] = _Flight()
        flight.users += 1
        try:
            async with flight.lock:
                if use_cache:
                    cached = await self._read(key)
                    if cached is not None:
                        self._hits += 1
                        return list(cached)

                self._misses += 1
                generation = self._generation(flight)
                permissions = list(await loader(user_id))

                if generation == self._generation(flight):
                    await self._write(key, permissions)
                    logger.debug("Cached %d permissions for user %s", len(permissions), key)
                else:
                    logger.debug("Discarded permissions for user %s loaded across an invalidation", key)

                return list(permissions)
        finally:
            flight.users -= 1
            if not flight.users and self._flights.get(key) is flight:
                del self._flights[key]

    async def invalidate_user(self, user_id: UserId) -> None:
        key = self._key(user_id)
        flight = self._flights.get(key)
        if flight is not None:
            flight.generation += 1
        await self._delete(key)
        logger.debug("Invalidated permission cache for user %s", key)

    async def invalidate_all(self) -> None:
        self._global_generation += 1
        await self._clear()
        logger.debug("Invalidated all user permission caches")

    def stats(self) -> Dict[str, Any]:
        return {
            "user_cache_size": self._size(),
            "hits": self._hits,
            "misses": self._misses,
            "ttl_ms": int(self.ttl_seconds * 1000),
        }


class UserPermissionCache(BaseUserPermissionCache):
    """In-process user permission cache."""

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Clock = time.monotonic):
        super().__init__(ttl_seconds, clock)
        self._entries: Dict[str, CacheEntry[List[str]]] = {}

    async def _read(self, key: str) -> Optional[List[str]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.value

    async def _write(self, key: str, permissions: List[str]) -> None:
        self._entries[key] = CacheEntry(value=list(permissions), expires_at=self._clock() + self.ttl_seconds)

    async def _delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def _clear(self) -> None:
        self._entries.clear()

    def _size(self) -> int:
        return len(self._entries)


class HierarchyCache(Generic[T]):
    """Single-value TTL cache for the permission hierarchy.

    Also holds a value derived from the hierarchy (the flattened relationship
    list); it shares the hierarchy's lifetime and is dropped with it.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Clock = time.monotonic):
        if ttl_seconds is None:
            ttl_seconds = get_settings().hierarchy_cache_ttl_seconds
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._generation = 0
        self._entry: Optional[CacheEntry[T]] = None
        self._derived: Optional[Any] = None

    def _live_value(self) -> Optional[T]:
        if self._entry is None or self._entry.is_expired(self._clock()):
            return None
        return self._entry.value

    async def get(self, loader: Callable[[], Awaitable[T]]) -> T:
        value = self._live_value()
        if value is not None:
            return value

        async with self._lock:
            value = self._live_value()
            if value is not None:
                return value

            generation = self._generation
            value = await loader()
            if generation == self._generation:
                self._entry = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)
                self._derived = None
            return value

    def get_derived(self) -> Optional[Any]:
        """Return the derived value if the hierarchy it came from is still live."""
        if self._live_value() is None:
            self._derived = None
        return self._derived

    def set_derived(self, value: Any, source: T) -> None:
        """Store a derived value, but only if ``source`` is the live hierarchy."""
        if self._entry is not None and self._entry.value is source and self._live_value() is not None:
            self._derived = value

    def invalidate(self) -> None:
        self._generation += 1
        self._entry = None
        self._derived = None
        logger.debug("Invalidated permission hierarchy cache")

    def stats(self) -> Dict[str, Any]:
        value = self._live_value()
        expires_in_ms = None
        if value is not None:
            expires_in_ms = max(0, int((self._entry.expires_at - self._clock()) * 1000))
        return {
            "hierarchy_cached": value is not None,
            "hierarchy_cache_size": len(value) if value is not None and hasattr(value, "__len__") else 0,
            "hierarchy_expires_in_ms": expires_in_ms,
            "relationships_cached": self.get_derived() is not None,
        }
