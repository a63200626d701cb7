"""
Data scope service.

Turns a user's role level and team memberships into a declarative row filter:

- admin: everything (``1=1``)
- manager: rows owned by members of the managed teams, plus own rows by default
- manager without teams, user: own rows only
"""
import logging
from typing import List, Optional, Sequence

from ...config.constants import ADMIN_ROLE_NAMES, MANAGER_ROLE_NAMES
from ...config.settings import AuthzSettings, get_settings
from ...core.exceptions import StoreError
from ...core.identifiers import qualify_column, validate_identifier, validate_qualified_identifier
from ...domain.protocols import PermissionStoreProtocol
from ...domain.value_objects import (
    DataLevelContext,
    DataScope,
    RoleLevel,
    ScopeType,
    UserId,
)

logger = logging.getLogger(__name__)


def resolve_role_level(role_names: Sequence[str]) -> RoleLevel:
    """Admin if any admin role is held, else manager if any manager role, else user."""
    normalized = {name.strip().lower() for name in role_names if name}
    if normalized & ADMIN_ROLE_NAMES:
        return RoleLevel.ADMIN
    if normalized & MANAGER_ROLE_NAMES:
        return RoleLevel.MANAGER
    return RoleLevel.USER


class DataScopeService:
    """Builds data level contexts and scopes; answers single-resource access checks."""

    def __init__(
        self,
        store: PermissionStoreProtocol,
        settings: Optional[AuthzSettings] = None,
        team_members_table: Optional[str] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        table = validate_qualified_identifier(team_members_table or self.settings.team_members_table, "table")
        # Same table the store reads membership from
        if "." not in table:
            table = f"{validate_identifier(self.settings.db_schema, 'schema')}.{table}"
        self.team_members_table = table

    async def build_context(self, user_id: UserId) -> DataLevelContext:
        """
        Resolve the user's data level from the store.

        Team ids are only looked up for managers. Store failures propagate.
        """
        role_level = resolve_role_level(await self.store.fetch_user_role_names(user_id))

        team_ids = None
        if role_level == RoleLevel.MANAGER:
            team_ids = list(await self.store.fetch_manager_team_ids(user_id))

        return DataLevelContext(user_id=user_id, user_role=role_level, team_ids=team_ids)

    def get_scope(
        self,
        context: DataLevelContext,
        table_alias: Optional[str] = None,
        owner_column: Optional[str] = None,
        include_own: Optional[bool] = None,
    ) -> DataScope:
        """
        Describe which rows the context may see.

        Args:
            context: Data level context for the acting user
            table_alias: Optional alias prefixed to the owner column
            owner_column: Owner column, defaults to the configured column
            include_own: Whether a manager's own rows join the team scope

        Returns:
            DataScope whose placeholders are numbered from $1
        """
        column = qualify_column(owner_column or self.settings.default_owner_column, table_alias)
        if include_own is None:
            include_own = self.settings.include_own_in_team_scope

        if context.user_role == RoleLevel.ADMIN:
            return DataScope.unrestricted()

        if context.user_role == RoleLevel.MANAGER:
            if context.team_ids:
                return self._team_scope(context, column, include_own)
            return DataScope(
                condition=f"{column} = $1",
                parameters=[context.user_id],
                scope_type=ScopeType.OWN,
                description="Manager (no team): access to own data only",
            )

        return DataScope(
            condition=f"{column} = $1",
            parameters=[context.user_id],
            scope_type=ScopeType.OWN,
            description="User: access to own data only",
        )

    def _team_scope(self, context: DataLevelContext, column: str, include_own: bool) -> DataScope:
        team_ids = list(context.team_ids)
        placeholders = ", ".join(f"${i}" for i in range(1, len(team_ids) + 1))
        members = (
            f"{column} IN (SELECT user_id FROM {self.team_members_table} "
            f"WHERE team_id IN ({placeholders}))"
        )
        description = f"Manager: access to team data ({len(team_ids)} teams)"

        if include_own:
            return DataScope(
                condition=f"({members} OR {column} = ${len(team_ids) + 1})",
                parameters=team_ids + [context.user_id],
                scope_type=ScopeType.TEAM,
                description=description,
            )
        return DataScope(
            condition=members,
            parameters=team_ids,
            scope_type=ScopeType.TEAM,
            description=description,
        )

    async def can_access_resource(
        self,
        user_id: UserId,
        resource_owner_id: UserId,
        resource_team_id: Optional[int] = None,
    ) -> bool:
        """
        Decide access to one resource by ownership and team membership.

        The team-membership lookup fails closed: if it errors, access is
        denied rather than raised.
        """
        context = await self.build_context(user_id)

        if context.is_admin:
            return True
        if resource_owner_id == user_id:
            return True
        if not context.is_manager or not context.team_ids:
            return False
        if resource_team_id is not None and resource_team_id in context.team_ids:
            return True

        try:
            return await self.store.is_user_in_teams(resource_owner_id, context.team_ids)
        except StoreError as e:
            logger.warning(f"Team membership lookup failed, denying access: {e.error_code}")
            return False

    async def get_team_member_ids(self, manager_id: UserId) -> List[UserId]:
        """Members of the user's managed teams plus the user; just the user otherwise."""
        context = await self.build_context(manager_id)
        if not context.is_manager or not context.team_ids:
            return [manager_id]

        try:
            members = list(await self.store.fetch_team_members(context.team_ids))
        except StoreError as e:
            logger.warning(f"Failed to load team members, narrowing to self: {e.error_code}")
            return [manager_id]

        if manager_id not in members:
            members.append(manager_id)
        return members
