"""
Authorization guard.

Request-time entry point: evaluates an endpoint's declared requirement for
the identified user and, on success, attaches the user's permissions and data
level context to the request context for downstream filtering.

Store and cache faults propagate as exceptions; they are never turned into an
allow or a deny.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ...core.exceptions import AuthenticationRequiredError, NeoAuthzError, PermissionDeniedError
from ...domain.value_objects import (
    DataLevelContext,
    DataScope,
    PermissionCheckResult,
    PermissionMode,
    PermissionRequirement,
    ResourceRequirement,
    UserId,
)
from ...application.services.data_scope_service import DataScopeService
from ...application.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class DecisionReason(str, Enum):
    ALLOWED = "allowed"
    SKIPPED = "skipped"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass
class RequestContext:
    """
    Framework-neutral view of a request.

    The guard fills ``permissions``, ``data_context``, ``data_scope`` and
    ``permission_check_result`` when it allows the request.
    """
    user_id: Optional[UserId] = None
    path_params: Dict[str, Any] = field(default_factory=dict)
    permissions: Optional[List[str]] = None
    data_context: Optional[DataLevelContext] = None
    data_scope: Optional[DataScope] = None
    permission_check_result: Optional[PermissionCheckResult] = None


@dataclass(frozen=True)
class AuthorizationDecision:
    """Terminal state of one guard evaluation."""
    allowed: bool
    reason: DecisionReason
    message: str = ""
    required_permissions: List[str] = field(default_factory=list)
    permission_mode: PermissionMode = PermissionMode.ANY
    missing_permissions: List[str] = field(default_factory=list)
    check_result: Optional[PermissionCheckResult] = None

    @classmethod
    def allow(cls, reason: DecisionReason = DecisionReason.ALLOWED,
              check_result: Optional[PermissionCheckResult] = None) -> "AuthorizationDecision":
        return cls(allowed=True, reason=reason, check_result=check_result)

    @classmethod
    def unauthenticated(cls) -> "AuthorizationDecision":
        return cls(
            allowed=False,
            reason=DecisionReason.UNAUTHENTICATED,
            message=AuthenticationRequiredError().message,
        )

    @classmethod
    def forbidden(cls, required: List[str], mode: PermissionMode,
                  missing: Optional[List[str]] = None) -> "AuthorizationDecision":
        error = PermissionDeniedError(required, mode.value, missing)
        return cls(
            allowed=False,
            reason=DecisionReason.FORBIDDEN,
            message=error.message,
            required_permissions=list(required),
            permission_mode=mode,
            # Only ALL-mode denials say which permissions are missing
            missing_permissions=list(missing or []) if mode == PermissionMode.ALL else [],
        )

    def to_exception(self) -> Optional[NeoAuthzError]:
        """The error equivalent of a denial, or None when allowed."""
        if self.allowed:
            return None
        if self.reason == DecisionReason.UNAUTHENTICATED:
            return AuthenticationRequiredError()
        return PermissionDeniedError(
            self.required_permissions,
            self.permission_mode.value,
            self.missing_permissions,
        )


def coerce_identifier(value: Any) -> Any:
    """Route parameters arrive as strings; numeric ones compare as ints."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        return stripped
    return value


class AuthorizationGuard:
    """Evaluates declared permission requirements for a request."""

    def __init__(self, permission_service: PermissionService, data_scope_service: DataScopeService):
        self.permission_service = permission_service
        self.data_scope_service = data_scope_service

    def _resolve_owner(self, context: RequestContext, resource: ResourceRequirement) -> Any:
        if resource.owner_resolver is not None:
            return resource.owner_resolver(context)
        return coerce_identifier(context.path_params.get(resource.owner_param))

    async def _attach(
        self,
        context: RequestContext,
        permissions: List[str],
        requirement: Optional[PermissionRequirement],
        check_result: Optional[PermissionCheckResult] = None,
    ) -> None:
        data_context = await self.data_scope_service.build_context(context.user_id)
        context.permissions = permissions
        context.data_context = data_context
        context.permission_check_result = check_result

        data_filter = requirement.data_filter if requirement else None
        if data_filter is not None:
            context.data_scope = self.data_scope_service.get_scope(
                data_context,
                table_alias=data_filter.table_alias,
                owner_column=data_filter.owner_column,
            )

    async def can_activate(
        self,
        context: RequestContext,
        requirement: Optional[PermissionRequirement] = None,
    ) -> AuthorizationDecision:
        """
        Decide whether the request may proceed.

        Args:
            context: Request context carrying the identified user
            requirement: Requirement declared on the endpoint, if any

        Returns:
            AuthorizationDecision; the context is only modified when allowed
        """
        if requirement is not None and requirement.skip:
            return AuthorizationDecision.allow(DecisionReason.SKIPPED)

        if context.user_id is None:
            logger.info("Denied unauthenticated request")
            return AuthorizationDecision.unauthenticated()

        user_id = context.user_id
        permissions = await self.permission_service.get_user_permissions(user_id)

        if requirement is None or not requirement.has_permission_check:
            await self._attach(context, permissions, requirement)
            return AuthorizationDecision.allow()

        check_result: Optional[PermissionCheckResult] = None

        if requirement.resource is not None:
            resource = requirement.resource
            owner_id = self._resolve_owner(context, resource)
            check_result = await self.permission_service.has_resource_permission(
                user_id, resource.resource_type, resource.action, owner_id
            )
            if not check_result.granted:
                logger.info("Denied user %s: requires %s", user_id, resource.permission)
                return AuthorizationDecision.forbidden([resource.permission], PermissionMode.ANY)

        if requirement.all_permissions:
            outcome = await self.permission_service.has_all_permissions(user_id, requirement.all_permissions)
            if not outcome.granted:
                logger.info("Denied user %s: missing %s", user_id, ", ".join(outcome.missing_permissions))
                return AuthorizationDecision.forbidden(
                    requirement.all_permissions, PermissionMode.ALL, outcome.missing_permissions
                )
            check_result = check_result or (outcome.results[0] if outcome.results else None)

        # Checked independently of the ALL group; one never satisfies the other.
        if requirement.any_permissions:
            match = await self.permission_service.find_any_permission(user_id, requirement.any_permissions)
            if match is None:
                logger.info("Denied user %s: requires any of %s", user_id, ", ".join(requirement.any_permissions))
                return AuthorizationDecision.forbidden(requirement.any_permissions, PermissionMode.ANY)
            check_result = check_result or match

        await self._attach(context, permissions, requirement, check_result)
        return AuthorizationDecision.allow(check_result=check_result)
