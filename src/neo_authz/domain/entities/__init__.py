"""Domain entities."""

from .permission_node import (
    PermissionRecord,
    PermissionHierarchyNode,
    PermissionRelationship,
    InheritanceChain,
)

__all__ = [
    "PermissionRecord",
    "PermissionHierarchyNode",
    "PermissionRelationship",
    "InheritanceChain",
]
