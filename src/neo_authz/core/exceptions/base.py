"""Base exceptions for neo-authz.

Every error raised by the authorization core inherits from NeoAuthzError and
carries an error code and structured details for API responses.
"""

from typing import Any, Dict, Optional


class NeoAuthzError(Exception):
    """Base exception for all neo-authz errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class InvalidRequirementError(NeoAuthzError):
    """A permission requirement was declared in an unusable shape.

    Raised while decorating endpoints, so misconfiguration surfaces at import
    time instead of on the first request.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="INVALID_REQUIREMENT", details=details)


class InvalidIdentifierError(NeoAuthzError):
    """A table alias or column name is not a plain SQL identifier."""

    def __init__(self, identifier: str, role: str = "identifier"):
        super().__init__(
            f"Invalid SQL {role}: {identifier!r}",
            error_code="INVALID_IDENTIFIER",
            details={"role": role},
        )
        self.identifier = identifier
