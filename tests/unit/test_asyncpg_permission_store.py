"""Tests for the AsyncPG permission store against a mocked pool."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from neo_authz.config.settings import get_settings
from neo_authz.core.exceptions import InvalidIdentifierError, StoreQueryError, StoreUnavailableError
from neo_authz.domain.entities import PermissionRecord
from neo_authz.infrastructure.repositories import AsyncPGPermissionStore


def make_pool(fetch=None, fetchval=None, acquire_error=None):
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=fetch or [])
    conn.fetchval = AsyncMock(return_value=fetchval)

    @asynccontextmanager
    async def acquire():
        if acquire_error is not None:
            raise acquire_error
        yield conn

    pool = MagicMock()
    pool.acquire = MagicMock(side_effect=acquire)
    return pool, conn


class TestQueries:

    @pytest.mark.asyncio
    async def test_user_permission_names(self):
        pool, conn = make_pool(fetch=[{"name": "users.read"}, {"name": "tasks.read"}])
        store = AsyncPGPermissionStore(pool, schema="admin")

        assert await store.fetch_user_permission_names(5) == ["users.read", "tasks.read"]
        query, user_id = conn.fetch.await_args.args
        assert "admin.user_roles" in query
        assert user_id == 5

    @pytest.mark.asyncio
    async def test_role_names(self):
        pool, _ = make_pool(fetch=[{"name": "manager"}])
        store = AsyncPGPermissionStore(pool)

        assert await store.fetch_user_role_names(2) == ["manager"]

    @pytest.mark.asyncio
    async def test_manager_team_ids_use_configured_table(self, settings):
        pool, conn = make_pool(fetch=[{"team_id": 10}, {"team_id": 20}])
        store = AsyncPGPermissionStore(pool, team_members_table="squad_members", settings=settings)

        assert await store.fetch_manager_team_ids(2) == [10, 20]
        assert "public.squad_members" in conn.fetch.await_args.args[0]

    @pytest.mark.asyncio
    async def test_permission_relationships(self):
        pool, _ = make_pool(fetch=[
            {"id": 1, "name": "users", "category": None, "parent_name": None},
            {"id": 2, "name": "users.read", "category": "users", "parent_name": "users"},
        ])
        store = AsyncPGPermissionStore(pool)

        records = await store.fetch_explicit_permission_relationships()

        assert records[1] == PermissionRecord(id=2, name="users.read", category="users", parent_name="users")

    @pytest.mark.asyncio
    async def test_team_members_pass_list_parameter(self):
        pool, conn = make_pool(fetch=[{"user_id": 3}, {"user_id": 4}])
        store = AsyncPGPermissionStore(pool)

        assert await store.fetch_team_members((10, 20)) == [3, 4]
        assert conn.fetch.await_args.args[1] == [10, 20]

    @pytest.mark.asyncio
    async def test_is_user_in_teams(self):
        pool, conn = make_pool(fetchval=1)
        store = AsyncPGPermissionStore(pool)

        assert await store.is_user_in_teams(3, [10]) is True
        assert conn.fetchval.await_args.args[1:] == (3, [10])

    @pytest.mark.asyncio
    async def test_empty_team_lists_skip_the_database(self):
        pool, _ = make_pool()
        store = AsyncPGPermissionStore(pool)

        assert await store.fetch_team_members([]) == []
        assert await store.is_user_in_teams(3, []) is False
        pool.acquire.assert_not_called()


    @pytest.mark.asyncio
    async def test_schema_and_team_table_follow_settings(self, settings):
        pool, conn = make_pool(fetch=[{"user_id": 3}])
        tenant = settings.model_copy(update={"db_schema": "tenant_a", "team_members_table": "crew"})
        store = AsyncPGPermissionStore(pool, settings=tenant)

        await store.fetch_team_members([10])
        assert "FROM tenant_a.crew" in conn.fetch.await_args.args[0]

        await store.fetch_user_role_names(3)
        assert "tenant_a.user_roles" in conn.fetch.await_args.args[0]

    def test_defaults_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("AUTHZ_DB_SCHEMA", "authz")
        monkeypatch.setenv("AUTHZ_TEAM_MEMBERS_TABLE", "squad_members")
        get_settings.cache_clear()
        try:
            store = AsyncPGPermissionStore(None)
        finally:
            get_settings.cache_clear()

        assert store.schema == "authz"
        assert store.team_members_table == "squad_members"


class TestFailures:

    @pytest.mark.asyncio
    async def test_missing_pool(self):
        store = AsyncPGPermissionStore(None)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.fetch_user_permission_names(1)
        assert exc_info.value.details["operation"] == "fetch_user_permission_names"

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        pool, _ = make_pool(acquire_error=ConnectionRefusedError("refused"))
        store = AsyncPGPermissionStore(pool)

        with pytest.raises(StoreUnavailableError):
            await store.fetch_user_role_names(1)

    @pytest.mark.asyncio
    async def test_query_failure(self):
        pool, conn = make_pool()
        conn.fetch.side_effect = asyncpg.exceptions.UndefinedColumnError("column does not exist")
        store = AsyncPGPermissionStore(pool)

        with pytest.raises(StoreQueryError):
            await store.fetch_user_permission_names(1)

    @pytest.mark.asyncio
    async def test_missing_team_table_means_no_teams(self):
        pool, conn = make_pool()
        conn.fetch.side_effect = asyncpg.exceptions.UndefinedTableError("relation does not exist")
        store = AsyncPGPermissionStore(pool)

        assert await store.fetch_manager_team_ids(2) == []

    @pytest.mark.asyncio
    async def test_missing_table_elsewhere_is_a_query_failure(self):
        pool, conn = make_pool()
        conn.fetch.side_effect = asyncpg.exceptions.UndefinedTableError("relation does not exist")
        store = AsyncPGPermissionStore(pool)

        with pytest.raises(StoreQueryError):
            await store.fetch_team_members([10])

    def test_unsafe_schema_rejected(self):
        with pytest.raises(InvalidIdentifierError):
            AsyncPGPermissionStore(None, schema="public; drop table users")
