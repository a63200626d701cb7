"""Application services."""

from .hierarchy_service import PermissionHierarchyService, build_hierarchy
from .permission_service import PermissionService
from .data_scope_service import DataScopeService, resolve_role_level
from .query_filter_service import QueryFilterService, apply_scope, renumber_placeholders

__all__ = [
    "PermissionHierarchyService",
    "build_hierarchy",
    "PermissionService",
    "DataScopeService",
    "resolve_role_level",
    "QueryFilterService",
    "apply_scope",
    "renumber_placeholders",
]
