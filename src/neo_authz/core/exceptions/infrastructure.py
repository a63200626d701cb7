"""Infrastructure exceptions raised by store and cache backends.

These are faults, not authorization decisions. Messages are kept generic so
driver text and connection details never reach a response body.
"""

from typing import Optional

from .base import NeoAuthzError


class StoreError(NeoAuthzError):
    """Base class for permission store failures."""


class StoreUnavailableError(StoreError):
    """The permission store cannot be reached (no pool, connection lost)."""

    def __init__(self, message: str = "Permission store unavailable", operation: Optional[str] = None):
        super().__init__(
            message,
            error_code="STORE_UNAVAILABLE",
            details={"operation": operation} if operation else None,
        )
        self.operation = operation


class StoreQueryError(StoreError):
    """The permission store was reachable but a query failed."""

    def __init__(self, message: str = "Permission store query failed", operation: Optional[str] = None):
        super().__init__(
            message,
            error_code="STORE_QUERY_FAILED",
            details={"operation": operation} if operation else None,
        )
        self.operation = operation


class CacheBackendError(NeoAuthzError):
    """The shared permission cache backend failed."""

    def __init__(self, message: str = "Permission cache backend unavailable"):
        super().__init__(message, error_code="CACHE_UNAVAILABLE")
