"""
Declared permission requirements.

Metadata attached to endpoints and consumed by the authorization guard.
Construction validates the shape so a malformed declaration fails when the
module defining the endpoint is imported.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from ...core.exceptions import InvalidRequirementError

OwnerResolver = Callable[[Any], Any]


class PermissionMode(str, Enum):
    """How a list of required permissions is combined."""
    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class ResourceRequirement:
    """Resource-scoped check: ``{type}.{action}`` or ``{type}.{action}.own`` for the owner."""
    resource_type: str
    action: str
    owner_param: Optional[str] = None
    owner_resolver: Optional[OwnerResolver] = None

    def __post_init__(self):
        if not self.resource_type or not self.action:
            raise InvalidRequirementError("Resource requirement needs both a resource type and an action")
        if self.owner_param is None and self.owner_resolver is None:
            raise InvalidRequirementError(
                f"Resource requirement {self.permission} needs an owner_param or owner_resolver",
                details={"permission": self.permission},
            )

    @property
    def permission(self) -> str:
        return f"{self.resource_type}.{self.action}"

    @property
    def own_permission(self) -> str:
        return f"{self.resource_type}.{self.action}.own"


@dataclass(frozen=True)
class DataFilterRequirement:
    """Column layout handed to downstream query filtering.

    ``team_column`` is carried for endpoints that declare it but is reserved:
    team scopes filter on the owner column through team membership, so the
    value does not change the rendered scope.
    """
    owner_column: Optional[str] = None
    team_column: Optional[str] = None
    table_alias: Optional[str] = None


def _validate_permissions(permissions: List[str]) -> List[str]:
    permissions = list(permissions)
    for permission in permissions:
        if not isinstance(permission, str) or not permission.strip():
            raise InvalidRequirementError(
                "Required permissions must be non-empty strings",
                details={"permission": repr(permission)},
            )
    return permissions


def _union(first: List[str], second: List[str]) -> List[str]:
    return first + [p for p in second if p not in first]


@dataclass(frozen=True)
class PermissionRequirement:
    """Everything an endpoint declares about its authorization.

    ``all_permissions`` and ``any_permissions`` are independent groups; a
    request must satisfy every permission of the first and at least one of
    the second (an empty group imposes nothing).
    """
    any_permissions: List[str] = field(default_factory=list)
    all_permissions: List[str] = field(default_factory=list)
    resource: Optional[ResourceRequirement] = None
    data_filter: Optional[DataFilterRequirement] = None
    skip: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'any_permissions', _validate_permissions(self.any_permissions))
        object.__setattr__(self, 'all_permissions', _validate_permissions(self.all_permissions))

    @classmethod
    def of(
        cls,
        permissions: List[str],
        mode: Union[PermissionMode, str] = PermissionMode.ANY,
    ) -> "PermissionRequirement":
        """Requirement for one permission list combined with ``mode``."""
        if not isinstance(mode, PermissionMode):
            try:
                mode = PermissionMode(mode)
            except ValueError:
                raise InvalidRequirementError(f"Unknown permission mode: {mode!r}")
        if mode == PermissionMode.ALL:
            return cls(all_permissions=permissions)
        return cls(any_permissions=permissions)

    @property
    def permissions(self) -> List[str]:
        """Every permission named by either group, ALL group first."""
        return _union(self.all_permissions, self.any_permissions)

    @property
    def has_permission_check(self) -> bool:
        return bool(self.any_permissions or self.all_permissions) or self.resource is not None

    def merge(self, other: "PermissionRequirement") -> "PermissionRequirement":
        """Combine with a requirement declared by another decorator on the same endpoint.

        Groups merge by mode only: stacked ALL declarations all apply and
        stacked ANY declarations widen the alternatives, but an ANY list never
        relaxes an ALL list.
        """
        return PermissionRequirement(
            any_permissions=_union(self.any_permissions, other.any_permissions),
            all_permissions=_union(self.all_permissions, other.all_permissions),
            resource=other.resource or self.resource,
            data_filter=other.data_filter or self.data_filter,
            skip=self.skip or other.skip,
        )
