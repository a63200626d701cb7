"""Pytest configuration and fixtures for neo-authz tests."""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from neo_authz.config.settings import AuthzSettings
from neo_authz.core.exceptions import StoreUnavailableError
from neo_authz.domain.entities import PermissionRecord
from neo_authz.permissions.cache import HierarchyCache, UserPermissionCache
from neo_authz.application.services import (
    DataScopeService,
    PermissionHierarchyService,
    PermissionService,
    QueryFilterService,
)
from neo_authz.interfaces.guards import AuthorizationGuard


class InMemoryPermissionStore:
    """Permission store fake backed by dicts, counting every call."""

    def __init__(self):
        self.user_permissions: Dict[int, List[str]] = {}
        self.user_roles: Dict[int, List[str]] = {}
        self.managed_teams: Dict[int, List[int]] = {}
        self.team_members: Dict[int, List[int]] = {}
        self.records: List[PermissionRecord] = []
        self.available = True
        self.permission_delay: float = 0
        self.calls: Dict[str, int] = {}

    def _record(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if not self.available:
            raise StoreUnavailableError(operation=operation)

    def count(self, operation: str) -> int:
        return self.calls.get(operation, 0)

    async def fetch_user_permission_names(self, user_id) -> List[str]:
        self._record("fetch_user_permission_names")
        if self.permission_delay:
            await asyncio.sleep(self.permission_delay)
        return list(self.user_permissions.get(user_id, []))

    async def fetch_user_role_names(self, user_id) -> List[str]:
        self._record("fetch_user_role_names")
        return list(self.user_roles.get(user_id, []))

    async def fetch_manager_team_ids(self, user_id) -> List[int]:
        self._record("fetch_manager_team_ids")
        return list(self.managed_teams.get(user_id, []))

    async def fetch_explicit_permission_relationships(self) -> List[PermissionRecord]:
        self._record("fetch_explicit_permission_relationships")
        return list(self.records)

    async def fetch_team_members(self, team_ids: Sequence[int]) -> List[int]:
        self._record("fetch_team_members")
        members: List[int] = []
        for team_id in team_ids:
            for member in self.team_members.get(team_id, []):
                if member not in members:
                    members.append(member)
        return members

    async def is_user_in_teams(self, user_id, team_ids: Sequence[int]) -> bool:
        self._record("is_user_in_teams")
        return any(user_id in self.team_members.get(team_id, []) for team_id in team_ids)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_records(*names: str, parents: Optional[Dict[str, str]] = None) -> List[PermissionRecord]:
    parents = parents or {}
    return [
        PermissionRecord(id=i + 1, name=name, category=parents.get(name), parent_name=parents.get(name))
        for i, name in enumerate(names)
    ]


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return AuthzSettings(
        permission_cache_ttl_ms=600_000,
        hierarchy_cache_ttl_ms=600_000,
        default_owner_column="user_id",
        include_own_in_team_scope=True,
        db_schema="public",
        team_members_table="team_members",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    """Store with an admin, a manager of teams 10 and 20, and two plain users."""
    store = InMemoryPermissionStore()
    store.user_roles = {
        1: ["Admin"],
        2: ["manager"],
        3: ["user"],
        4: ["user"],
        5: ["supervisor"],
    }
    store.user_permissions = {
        1: ["system.admin"],
        2: ["tasks.read", "tasks.update"],
        3: ["users.update.own", "tasks.read"],
        4: ["users.*"],
        5: [],
    }
    store.managed_teams = {2: [10, 20]}
    store.team_members = {10: [2, 3], 20: [4]}
    store.records = make_records(
        "users.read", "users.create", "users.update", "users.delete", "tasks.read", "tasks.update"
    )
    return store


@pytest.fixture
def user_cache(settings, clock):
    return UserPermissionCache(ttl_seconds=settings.permission_cache_ttl_seconds, clock=clock)


@pytest.fixture
def hierarchy_service(store, settings, clock):
    return PermissionHierarchyService(
        store, HierarchyCache(ttl_seconds=settings.hierarchy_cache_ttl_seconds, clock=clock)
    )


@pytest.fixture
def permission_service(store, user_cache, hierarchy_service):
    return PermissionService(store, user_cache, hierarchy_service)


@pytest.fixture
def data_scope_service(store, settings):
    return DataScopeService(store, settings)


@pytest.fixture
def query_filter_service(data_scope_service):
    return QueryFilterService(data_scope_service)


@pytest.fixture
def guard(permission_service, data_scope_service):
    return AuthorizationGuard(permission_service, data_scope_service)
