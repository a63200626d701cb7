"""Permission matching and caching."""

from . import matcher
from .cache import BaseUserPermissionCache, CacheEntry, HierarchyCache, UserPermissionCache

__all__ = [
    "matcher",
    "BaseUserPermissionCache",
    "CacheEntry",
    "HierarchyCache",
    "UserPermissionCache",
]
