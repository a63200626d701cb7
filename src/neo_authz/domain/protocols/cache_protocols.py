"""
Protocols for permission caching.

Any object satisfying UserPermissionCacheProtocol can back the permission
service: the in-memory cache, the Redis cache, or a no-op fake in tests.
"""
from typing import Any, Awaitable, Callable, Dict, List, Protocol, runtime_checkable

from ..value_objects import UserId

PermissionLoader = Callable[[UserId], Awaitable[List[str]]]


@runtime_checkable
class UserPermissionCacheProtocol(Protocol):
    """Per-user permission list cache with explicit invalidation."""

    async def get_user_permissions(
        self,
        user_id: UserId,
        loader: PermissionLoader,
        use_cache: bool = True,
    ) -> List[str]:
        """Return cached permissions or load, store and return them."""
        ...

    async def invalidate_user(self, user_id: UserId) -> None:
        """Drop one user's entry; subsequent reads go to the loader."""
        ...

    async def invalidate_all(self) -> None:
        """Drop every entry."""
        ...

    def stats(self) -> Dict[str, Any]:
        """Size and hit/miss counters."""
        ...
