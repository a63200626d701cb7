"""
Protocols for the permission store boundary.

Implementations must raise StoreUnavailableError when the backing store
cannot be reached; an empty list always means "nothing found".
"""
from typing import List, Protocol, Sequence, runtime_checkable

from ..entities import PermissionRecord
from ..value_objects import UserId


@runtime_checkable
class PermissionStoreProtocol(Protocol):
    """Read access to permissions, roles and team membership."""

    async def fetch_user_permission_names(self, user_id: UserId) -> List[str]:
        """Permission names granted to the user through role assignment."""
        ...

    async def fetch_user_role_names(self, user_id: UserId) -> List[str]:
        """Names of the roles assigned to the user."""
        ...

    async def fetch_manager_team_ids(self, user_id: UserId) -> List[int]:
        """Ids of the teams the user manages."""
        ...

    async def fetch_explicit_permission_relationships(self) -> List[PermissionRecord]:
        """Every permission with its explicit parent, if any."""
        ...

    async def fetch_team_members(self, team_ids: Sequence[int]) -> List[UserId]:
        """User ids belonging to any of the given teams."""
        ...

    async def is_user_in_teams(self, user_id: UserId, team_ids: Sequence[int]) -> bool:
        """Whether the user belongs to any of the given teams."""
        ...
