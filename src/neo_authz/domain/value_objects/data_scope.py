"""
Data scope value objects.

Request-scoped descriptions of which rows a user may see. None of these are
cached: they depend on live role and team membership.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

UserId = Union[int, str]


class RoleLevel(str, Enum):
    """Data access level derived from a user's role names."""
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class ScopeType(str, Enum):
    """Breadth of a data scope."""
    ALL = "all"
    TEAM = "team"
    OWN = "own"


@dataclass(frozen=True)
class DataLevelContext:
    """
    Who is asking and at what data level.

    ``team_ids`` is only populated for managers and may be empty.
    """
    user_id: UserId
    user_role: RoleLevel = RoleLevel.USER
    team_ids: Optional[List[int]] = None

    def __post_init__(self):
        if self.user_role != RoleLevel.MANAGER and self.team_ids is not None:
            object.__setattr__(self, 'team_ids', None)
        elif self.user_role == RoleLevel.MANAGER and self.team_ids is None:
            object.__setattr__(self, 'team_ids', [])

    @property
    def is_admin(self) -> bool:
        return self.user_role == RoleLevel.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.user_role == RoleLevel.MANAGER

    def to_dict(self) -> Dict[str, Any]:
        data = {"user_id": self.user_id, "user_role": self.user_role.value}
        if self.team_ids is not None:
            data["team_ids"] = list(self.team_ids)
        return data


@dataclass(frozen=True)
class DataScope:
    """
    Declarative row filter.

    ``condition`` numbers its placeholders from ``$1`` against its own
    ``parameters``; splicing into a larger query renumbers them.
    """
    condition: str
    parameters: List[Any] = field(default_factory=list)
    scope_type: ScopeType = ScopeType.OWN
    description: str = ""

    @property
    def is_unrestricted(self) -> bool:
        return self.scope_type == ScopeType.ALL

    @classmethod
    def unrestricted(cls, description: str = "Admin: full access to all records") -> "DataScope":
        return cls(condition="1=1", parameters=[], scope_type=ScopeType.ALL, description=description)


@dataclass(frozen=True)
class FilterConfig:
    """Column layout used when rendering a scope for a table.

    ``team_column`` is reserved: team scopes resolve membership through the
    owner column, so it does not change the rendered condition.
    """
    table_alias: Optional[str] = None
    owner_column: Optional[str] = None
    team_column: Optional[str] = None
    include_own: Optional[bool] = None


@dataclass(frozen=True)
class FilteredQuery:
    """A base query with the caller's data scope spliced in."""
    query: str
    parameters: List[Any] = field(default_factory=list)
    scope: Optional[DataScope] = None
