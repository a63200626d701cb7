"""Domain value objects."""

from .permission_check import MatchType, PermissionCheckResult, AllPermissionsResult
from .data_scope import (
    UserId,
    RoleLevel,
    ScopeType,
    DataLevelContext,
    DataScope,
    FilterConfig,
    FilteredQuery,
)
from .requirement import (
    PermissionMode,
    ResourceRequirement,
    DataFilterRequirement,
    PermissionRequirement,
)

__all__ = [
    # Permission checks
    "MatchType",
    "PermissionCheckResult",
    "AllPermissionsResult",

    # Data scoping
    "UserId",
    "RoleLevel",
    "ScopeType",
    "DataLevelContext",
    "DataScope",
    "FilterConfig",
    "FilteredQuery",

    # Requirements
    "PermissionMode",
    "ResourceRequirement",
    "DataFilterRequirement",
    "PermissionRequirement",
]
