"""
Permission service - user-level permission checks.

Loads a user's permissions through the cache (store on miss), evaluates them
with the matcher and falls back to the permission hierarchy.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from ...domain.protocols import PermissionStoreProtocol, UserPermissionCacheProtocol
from ...domain.value_objects import (
    AllPermissionsResult,
    MatchType,
    PermissionCheckResult,
    UserId,
)
from ...permissions import matcher
from ...permissions.cache import UserPermissionCache
from .hierarchy_service import PermissionHierarchyService

logger = logging.getLogger(__name__)


class PermissionService:
    """
    Permission checks for identified users.

    Features:
    - Exact, admin and wildcard matching
    - Hierarchy fallback (a held ancestor grants its descendants)
    - Per-user caching with explicit invalidation
    """

    def __init__(
        self,
        store: PermissionStoreProtocol,
        cache: Optional[UserPermissionCacheProtocol] = None,
        hierarchy: Optional[PermissionHierarchyService] = None,
    ):
        self.store = store
        self.cache = cache or UserPermissionCache()
        self.hierarchy = hierarchy or PermissionHierarchyService(store)

    async def get_user_permissions(self, user_id: UserId, use_cache: bool = True) -> List[str]:
        """Directly granted permission names for the user."""
        return await self.cache.get_user_permissions(
            user_id,
            self.store.fetch_user_permission_names,
            use_cache=use_cache,
        )

    async def _check(self, permissions: List[str], required: str) -> PermissionCheckResult:
        result = matcher.evaluate(permissions, required)
        if result.granted:
            return result

        ancestor = await self.hierarchy.find_granting_ancestor(permissions, required)
        if ancestor is not None:
            return PermissionCheckResult.allow(required, ancestor, MatchType.HIERARCHY)
        return result

    async def check_permission(self, user_id: UserId, required: str) -> PermissionCheckResult:
        """
        Check one permission for a user.

        Order: exact, super admin, wildcard, hierarchy.
        """
        permissions = await self.get_user_permissions(user_id)
        return await self._check(permissions, required)

    async def has_any_permission(self, user_id: UserId, required: List[str]) -> bool:
        """OR-check. An empty requirement imposes no restriction and returns True."""
        if not required:
            return True
        return await self.find_any_permission(user_id, required) is not None

    async def find_any_permission(self, user_id: UserId, required: List[str]) -> Optional[PermissionCheckResult]:
        """Return the first satisfied result among ``required``, or None."""
        permissions = await self.get_user_permissions(user_id)
        for permission in required:
            result = await self._check(permissions, permission)
            if result.granted:
                logger.debug("OR-check passed for user %s via %s", user_id, result.matched_permission)
                return result

        logger.debug("OR-check failed for user %s: none of [%s]", user_id, ", ".join(required))
        return None

    async def has_all_permissions(self, user_id: UserId, required: List[str]) -> AllPermissionsResult:
        """AND-check reporting every missing permission."""
        if not required:
            return AllPermissionsResult(granted=True)

        permissions = await self.get_user_permissions(user_id)
        results = [await self._check(permissions, permission) for permission in required]
        outcome = AllPermissionsResult.from_results(results)
        if not outcome.granted:
            logger.debug("AND-check failed for user %s: missing [%s]", user_id, ", ".join(outcome.missing_permissions))
        return outcome

    async def has_resource_permission(
        self,
        user_id: UserId,
        resource_type: str,
        action: str,
        resource_owner_id: Any = None,
    ) -> PermissionCheckResult:
        """General ``{type}.{action}`` permission, or ``.own`` when the user owns the resource."""
        permissions = await self.get_user_permissions(user_id)
        general = await self._check(permissions, f"{resource_type}.{action}")
        if general.granted:
            return general

        if resource_owner_id is not None and resource_owner_id == user_id:
            own = await self._check(permissions, f"{resource_type}.{action}.own")
            if own.granted:
                return own
        return general

    async def invalidate_user(self, user_id: UserId) -> None:
        await self.cache.invalidate_user(user_id)

    async def invalidate_all(self) -> None:
        """Drop every cached permission list and the hierarchy."""
        await self.cache.invalidate_all()
        self.hierarchy.invalidate_cache()

    @asynccontextmanager
    async def permission_mutation(self, user_id: Optional[UserId] = None) -> AsyncIterator[None]:
        """
        Wrap a role or permission change.

        When the body completes, the affected cache entries are invalidated
        before control returns, so the mutator's next read sees the change.
        Without ``user_id`` everything is invalidated.

        Example:
            async with permissions.permission_mutation(user_id=42):
                await roles.assign(42, "manager")
        """
        yield
        if user_id is None:
            await self.invalidate_all()
        else:
            await self.invalidate_user(user_id)

    def get_cache_stats(self) -> Dict[str, Any]:
        user_stats = self.cache.stats()
        hierarchy_stats = self.hierarchy.get_cache_stats()
        return {
            "user_cache_size": user_stats.get("user_cache_size", 0),
            "hierarchy_cache_size": hierarchy_stats.get("hierarchy_cache_size", 0),
            "hierarchy_cache_expiry": hierarchy_stats.get("hierarchy_expires_in_ms"),
            "user_cache_hits": user_stats.get("hits", 0),
            "user_cache_misses": user_stats.get("misses", 0),
        }
