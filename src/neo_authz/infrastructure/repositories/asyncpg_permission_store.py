"""
Permission store implementation using AsyncPG.

Reads permissions, role assignments and team membership from PostgreSQL.
Connection-level failures raise StoreUnavailableError and query failures
StoreQueryError; an empty list is only ever returned for an empty result.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

import asyncpg

from ...config.settings import AuthzSettings, get_settings
from ...core.exceptions import StoreQueryError, StoreUnavailableError
from ...core.identifiers import validate_identifier
from ...domain.entities import PermissionRecord
from ...domain.value_objects import UserId

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.TooManyConnectionsError,
    ConnectionError,
    OSError,
    asyncio.TimeoutError,
)


class AsyncPGPermissionStore:
    """
    AsyncPG implementation of PermissionStoreProtocol.

    Tables: permissions, roles, role_permissions, user_roles and a team
    membership table (``team_members`` by default).
    """

    def __init__(
        self,
        pool: Optional[asyncpg.Pool],
        schema: Optional[str] = None,
        team_members_table: Optional[str] = None,
        settings: Optional[AuthzSettings] = None,
    ):
        """
        Initialize with a connection pool and configurable table locations.

        Table locations not passed explicitly come from ``settings``
        (``get_settings()`` by default).

        Args:
            pool: AsyncPG pool; None means no active connection
            schema: Schema holding the permission tables (AUTHZ_DB_SCHEMA)
            team_members_table: Table holding team membership rows (AUTHZ_TEAM_MEMBERS_TABLE)
            settings: Settings overriding the process-wide defaults
        """
        settings = settings or get_settings()
        self._pool = pool
        self.schema = validate_identifier(schema or settings.db_schema, "schema")
        self.team_members_table = validate_identifier(team_members_table or settings.team_members_table, "table")

    @property
    def _team_members(self) -> str:
        return f"{self.schema}.{self.team_members_table}"

    @asynccontextmanager
    async def _connection(self, operation: str, passthrough: tuple = ()) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise StoreUnavailableError(operation=operation)
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except passthrough:
            raise
        except _CONNECTION_ERRORS as e:
            logger.error(f"Permission store unavailable during {operation}: {type(e).__name__}")
            raise StoreUnavailableError(operation=operation) from e
        except asyncpg.PostgresError as e:
            logger.error(f"Permission store query failed during {operation}: {type(e).__name__}")
            raise StoreQueryError(operation=operation) from e

    async def fetch_user_permission_names(self, user_id: UserId) -> List[str]:
        query = f"""
            SELECT DISTINCT p.name
            FROM {self.schema}.permissions p
            JOIN {self.schema}.role_permissions rp ON p.id = rp.permission_id
            JOIN {self.schema}.user_roles ur ON rp.role_id = ur.role_id
            WHERE ur.user_id = $1
        """
        async with self._connection("fetch_user_permission_names") as conn:
            rows = await conn.fetch(query, user_id)
        return [row["name"] for row in rows]

    async def fetch_user_role_names(self, user_id: UserId) -> List[str]:
        query = f"""
            SELECT r.name
            FROM {self.schema}.roles r
            JOIN {self.schema}.user_roles ur ON r.id = ur.role_id
            WHERE ur.user_id = $1
        """
        async with self._connection("fetch_user_role_names") as conn:
            rows = await conn.fetch(query, user_id)
        return [row["name"] for row in rows]

    async def fetch_manager_team_ids(self, user_id: UserId) -> List[int]:
        """Teams managed by the user; [] when the membership table does not exist."""
        query = f"""
            SELECT DISTINCT team_id
            FROM {self._team_members}
            WHERE user_id = $1 AND is_manager = true
        """
        try:
            async with self._connection(
                "fetch_manager_team_ids", passthrough=(asyncpg.exceptions.UndefinedTableError,)
            ) as conn:
                rows = await conn.fetch(query, user_id)
        except asyncpg.exceptions.UndefinedTableError:
            logger.warning(f"Team membership table {self._team_members} not found, treating manager as teamless")
            return []
        return [row["team_id"] for row in rows]

    async def fetch_explicit_permission_relationships(self) -> List[PermissionRecord]:
        query = f"""
            SELECT
                p.id,
                p.name,
                p.category,
                pp.name AS parent_name
            FROM {self.schema}.permissions p
            LEFT JOIN {self.schema}.permissions pp
                ON p.category = pp.name AND pp.category IS NULL
            ORDER BY p.name
        """
        async with self._connection("fetch_explicit_permission_relationships") as conn:
            rows = await conn.fetch(query)
        return [
            PermissionRecord(
                id=row["id"],
                name=row["name"],
                category=row["category"],
                parent_name=row["parent_name"],
            )
            for row in rows
        ]

    async def fetch_team_members(self, team_ids: Sequence[int]) -> List[UserId]:
        if not team_ids:
            return []
        query = f"""
            SELECT DISTINCT user_id
            FROM {self._team_members}
            WHERE team_id = ANY($1)
        """
        async with self._connection("fetch_team_members") as conn:
            rows = await conn.fetch(query, list(team_ids))
        return [row["user_id"] for row in rows]

    async def is_user_in_teams(self, user_id: UserId, team_ids: Sequence[int]) -> bool:
        if not team_ids:
            return False
        query = f"""
            SELECT COUNT(*) AS count
            FROM {self._team_members}
            WHERE user_id = $1 AND team_id = ANY($2)
        """
        async with self._connection("is_user_in_teams") as conn:
            count = await conn.fetchval(query, user_id, list(team_ids))
        return bool(count)
