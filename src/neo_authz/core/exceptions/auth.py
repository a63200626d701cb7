"""Authorization decision exceptions."""

from typing import List, Optional

from .base import NeoAuthzError


class AuthenticationRequiredError(NeoAuthzError):
    """No user identity could be resolved for the request."""

    def __init__(self, message: str = "Authentication required to access this resource"):
        super().__init__(message, error_code="UNAUTHENTICATED")


class PermissionDeniedError(NeoAuthzError):
    """The user is identified but lacks the required permission(s).

    ``missing_permissions`` is only reported for ALL-mode requirements; for
    ANY-mode the details carry the aggregate requirement alone.
    """

    def __init__(
        self,
        required_permissions: List[str],
        mode: str = "any",
        missing_permissions: Optional[List[str]] = None,
        message: Optional[str] = None,
    ):
        joiner = " and " if mode == "all" else " or "
        message = message or f"Access denied. Required permission: {joiner.join(required_permissions)}"
        details = {
            "required_permissions": list(required_permissions),
            "permission_mode": mode,
        }
        if mode == "all" and missing_permissions:
            details["missing_permissions"] = list(missing_permissions)
        super().__init__(message, error_code="PERMISSION_DENIED", details=details)
        self.required_permissions = list(required_permissions)
        self.mode = mode
        self.missing_permissions = list(missing_permissions or [])
