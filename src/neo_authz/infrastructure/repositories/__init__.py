"""Store adapters."""

from .asyncpg_permission_store import AsyncPGPermissionStore

__all__ = ["AsyncPGPermissionStore"]
