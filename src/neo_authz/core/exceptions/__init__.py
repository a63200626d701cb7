"""Exceptions for neo-authz."""

from .base import NeoAuthzError, InvalidRequirementError, InvalidIdentifierError
from .auth import AuthenticationRequiredError, PermissionDeniedError
from .infrastructure import StoreError, StoreUnavailableError, StoreQueryError, CacheBackendError
from .http_mapping import HTTP_STATUS_MAP, get_http_status_code, create_error_response

__all__ = [
    # Base
    "NeoAuthzError",
    "InvalidRequirementError",
    "InvalidIdentifierError",

    # Authorization decisions
    "AuthenticationRequiredError",
    "PermissionDeniedError",

    # Infrastructure
    "StoreError",
    "StoreUnavailableError",
    "StoreQueryError",
    "CacheBackendError",

    # HTTP
    "HTTP_STATUS_MAP",
    "get_http_status_code",
    "create_error_response",
]
