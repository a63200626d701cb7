"""Cache backends."""

from .redis_permission_cache import RedisUserPermissionCache

__all__ = ["RedisUserPermissionCache"]
