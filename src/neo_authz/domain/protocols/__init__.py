"""Domain protocols."""

from .store_protocols import PermissionStoreProtocol
from .cache_protocols import UserPermissionCacheProtocol, PermissionLoader

__all__ = [
    "PermissionStoreProtocol",
    "UserPermissionCacheProtocol",
    "PermissionLoader",
]
