"""Authorization guards."""

from .authorization_guard import (
    AuthorizationDecision,
    AuthorizationGuard,
    DecisionReason,
    RequestContext,
    coerce_identifier,
)

__all__ = [
    "AuthorizationDecision",
    "AuthorizationGuard",
    "DecisionReason",
    "RequestContext",
    "coerce_identifier",
]
