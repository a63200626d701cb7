"""Tests for the permission service."""

import pytest

from neo_authz.core.exceptions import StoreUnavailableError
from neo_authz.domain.entities import PermissionRecord
from neo_authz.domain.value_objects import MatchType


class TestPermissionService:

    @pytest.mark.asyncio
    async def test_check_permission_exact(self, permission_service):
        result = await permission_service.check_permission(2, "tasks.read")
        assert result.granted
        assert result.match_type == MatchType.EXACT

    @pytest.mark.asyncio
    async def test_check_permission_admin(self, permission_service):
        result = await permission_service.check_permission(1, "billing.refund")
        assert result.match_type == MatchType.ADMIN

    @pytest.mark.asyncio
    async def test_check_permission_through_hierarchy(self, store, permission_service):
        store.records = [
            PermissionRecord(id=1, name="billing"),
            PermissionRecord(id=2, name="billing.refund", category="billing", parent_name="billing"),
        ]
        store.user_permissions[7] = ["billing"]

        result = await permission_service.check_permission(7, "billing.refund")
        assert result.granted
        assert result.match_type == MatchType.HIERARCHY
        assert result.matched_permission == "billing"

    @pytest.mark.asyncio
    async def test_check_permission_denied(self, permission_service):
        result = await permission_service.check_permission(3, "users.delete")
        assert not result.granted
        assert result.missing_permissions == ["users.delete"]

    @pytest.mark.asyncio
    async def test_any_and_all(self, permission_service):
        assert await permission_service.has_any_permission(3, ["users.delete", "tasks.read"])
        assert not await permission_service.has_any_permission(3, ["users.delete"])
        assert await permission_service.has_any_permission(5, [])

        outcome = await permission_service.has_all_permissions(4, ["users.read", "users.update", "users.delete"])
        assert outcome.granted

        outcome = await permission_service.has_all_permissions(3, ["tasks.read", "tasks.update", "users.read"])
        assert outcome.missing_permissions == ["tasks.update", "users.read"]

    @pytest.mark.asyncio
    async def test_resource_permission_own(self, permission_service):
        own = await permission_service.has_resource_permission(3, "users", "update", 3)
        assert own.granted
        assert own.matched_permission == "users.update.own"

        other = await permission_service.has_resource_permission(3, "users", "update", 4)
        assert not other.granted

    @pytest.mark.asyncio
    async def test_permissions_loaded_once_per_user(self, store, permission_service):
        await permission_service.check_permission(3, "tasks.read")
        await permission_service.has_any_permission(3, ["users.read"])
        await permission_service.has_all_permissions(3, ["tasks.read"])
        assert store.count("fetch_user_permission_names") == 1

    @pytest.mark.asyncio
    async def test_permission_mutation_invalidates_before_returning(self, store, permission_service):
        assert not (await permission_service.check_permission(3, "reports.export")).granted

        async with permission_service.permission_mutation(user_id=3):
            store.user_permissions[3].append("reports.export")

        assert (await permission_service.check_permission(3, "reports.export")).granted

    @pytest.mark.asyncio
    async def test_failed_mutation_does_not_invalidate(self, store, permission_service):
        await permission_service.get_user_permissions(3)

        with pytest.raises(RuntimeError):
            async with permission_service.permission_mutation(user_id=3):
                raise RuntimeError("role update failed")

        await permission_service.get_user_permissions(3)
        assert store.count("fetch_user_permission_names") == 1

    @pytest.mark.asyncio
    async def test_invalidate_all_drops_hierarchy(self, store, permission_service):
        await permission_service.check_permission(3, "users.delete")
        await permission_service.invalidate_all()

        stats = permission_service.get_cache_stats()
        assert stats["user_cache_size"] == 0
        assert stats["hierarchy_cache_size"] == 0
        assert stats["hierarchy_cache_expiry"] is None

    @pytest.mark.asyncio
    async def test_cache_stats(self, permission_service):
        await permission_service.check_permission(3, "users.delete")
        stats = permission_service.get_cache_stats()
        assert stats["user_cache_size"] == 1
        assert stats["hierarchy_cache_size"] > 0
        assert stats["hierarchy_cache_expiry"] == 600_000

    @pytest.mark.asyncio
    async def test_store_unavailable_propagates(self, store, permission_service):
        store.available = False
        with pytest.raises(StoreUnavailableError):
            await permission_service.check_permission(3, "tasks.read")
