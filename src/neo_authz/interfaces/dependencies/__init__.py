"""FastAPI dependencies."""

from .fastapi_dependencies import (
    AuthorizationDependency,
    decision_to_http_exception,
    default_user_id_getter,
    register_exception_handlers,
    require_permissions,
)

__all__ = [
    "AuthorizationDependency",
    "decision_to_http_exception",
    "default_user_id_getter",
    "register_exception_handlers",
    "require_permissions",
]
