"""
Redis-backed user permission cache.

Shares permission lists between processes. Reads and writes that fail fall
back to the store; invalidations that fail raise, since a silently missed
invalidation could keep a revoked permission alive.
"""
import json
import logging
import time
from typing import List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ...config.settings import AuthzSettings, get_settings
from ...core.exceptions import CacheBackendError
from ...permissions.cache import BaseUserPermissionCache, Clock

logger = logging.getLogger(__name__)


class RedisUserPermissionCache(BaseUserPermissionCache):
    """User permission cache stored as JSON strings with a Redis TTL."""

    def __init__(
        self,
        redis_client: redis.Redis,
        key_prefix: Optional[str] = None,
        ttl_seconds: Optional[float] = None,
        clock: Clock = time.monotonic,
        scan_batch_size: int = 500,
    ):
        super().__init__(ttl_seconds, clock)
        self._redis = redis_client
        self._key_prefix = key_prefix if key_prefix is not None else get_settings().redis_key_prefix
        self._scan_batch_size = scan_batch_size

    @classmethod
    def from_settings(cls, settings: Optional[AuthzSettings] = None, **kwargs) -> "RedisUserPermissionCache":
        """Connect to REDIS_URL and use the configured key prefix and TTL."""
        settings = settings or get_settings()
        if not settings.redis_url:
            raise ValueError("REDIS_URL must be set to use the Redis permission cache")
        kwargs.setdefault("key_prefix", settings.redis_key_prefix)
        kwargs.setdefault("ttl_seconds", settings.permission_cache_ttl_seconds)
        return cls(redis.from_url(settings.redis_url), **kwargs)

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def _read(self, key: str) -> Optional[List[str]]:
        try:
            result = await self._redis.get(self._full_key(key))
        except RedisError as e:
            logger.warning(f"Failed to read cached permissions for user {key}: {e}")
            return None
        if result is None:
            return None
        if isinstance(result, bytes):
            result = result.decode()
        try:
            permissions = json.loads(result)
        except ValueError:
            logger.warning(f"Discarding malformed cached permissions for user {key}")
            return None
        return permissions if isinstance(permissions, list) else None

    async def _write(self, key: str, permissions: List[str]) -> None:
        ttl = max(1, int(self.ttl_seconds))
        try:
            await self._redis.setex(self._full_key(key), ttl, json.dumps(permissions))
        except RedisError as e:
            logger.warning(f"Failed to cache permissions for user {key}: {e}")

    async def _delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._full_key(key))
        except RedisError as e:
            logger.error(f"Failed to invalidate cached permissions for user {key}: {e}")
            raise CacheBackendError() from e

    async def _clear(self) -> None:
        try:
            batch = []
            async for full_key in self._redis.scan_iter(match=f"{self._key_prefix}*", count=self._scan_batch_size):
                batch.append(full_key)
                if len(batch) >= self._scan_batch_size:
                    await self._redis.delete(*batch)
                    batch = []
            if batch:
                await self._redis.delete(*batch)
        except RedisError as e:
            logger.error(f"Failed to clear cached permissions: {e}")
            raise CacheBackendError() from e

    def _size(self) -> Optional[int]:
        # Shared with other processes and expired by Redis; not tracked here.
        return None
