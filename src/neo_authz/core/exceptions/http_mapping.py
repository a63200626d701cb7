"""HTTP status code mapping for neo-authz exceptions."""

from typing import Any, Dict

from .base import NeoAuthzError, InvalidRequirementError, InvalidIdentifierError
from .auth import AuthenticationRequiredError, PermissionDeniedError
from .infrastructure import StoreError, StoreUnavailableError, StoreQueryError, CacheBackendError


HTTP_STATUS_MAP = {
    # 400 Bad Request
    InvalidIdentifierError: 400,

    # 401 Unauthorized
    AuthenticationRequiredError: 401,

    # 403 Forbidden
    PermissionDeniedError: 403,

    # 500 Internal Server Error
    InvalidRequirementError: 500,
    StoreQueryError: 500,
    StoreError: 500,

    # 503 Service Unavailable
    StoreUnavailableError: 503,
    CacheBackendError: 503,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for an exception, walking its class hierarchy.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code, 500 when nothing in the hierarchy is mapped
    """
    for klass in type(exception).__mro__:
        if klass in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[klass]
    return 500


def create_error_response(exception: NeoAuthzError) -> Dict[str, Any]:
    """Create standardized error response from exception."""
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
