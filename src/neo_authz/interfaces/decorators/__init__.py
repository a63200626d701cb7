"""Endpoint permission decorators."""

from .permission_decorators import (
    REQUIREMENT_ATTRIBUTE,
    PermissionMetadata,
    apply_data_filter,
    require_all_permissions,
    require_any_permission,
    require_permission,
    require_resource_permission,
    skip_permission_check,
)

__all__ = [
    "REQUIREMENT_ATTRIBUTE",
    "PermissionMetadata",
    "apply_data_filter",
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
    "require_resource_permission",
    "skip_permission_check",
]
