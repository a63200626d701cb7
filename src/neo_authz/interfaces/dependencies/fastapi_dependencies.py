"""
FastAPI authorization dependencies.

Wires the authorization guard into request handling:

    guard = AuthorizationGuard(permission_service, data_scope_service)
    authorize = AuthorizationDependency(guard)

    @app.get("/users", dependencies=[Depends(authorize)])
    @require_permission("users.read")
    async def list_users(request: Request): ...

The requirement is read from the matched endpoint's decorator metadata; the
user id from ``request.state.user_id`` (set by the authentication layer).
"""
import logging
from typing import Callable, List, Optional, Union

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ...core.exceptions import NeoAuthzError, create_error_response, get_http_status_code
from ...domain.value_objects import PermissionMode, PermissionRequirement, UserId
from ..decorators.permission_decorators import PermissionMetadata
from ..guards.authorization_guard import (
    AuthorizationDecision,
    AuthorizationGuard,
    DecisionReason,
    RequestContext,
)

logger = logging.getLogger(__name__)

UserIdGetter = Callable[[Request], Optional[UserId]]


def default_user_id_getter(request: Request) -> Optional[UserId]:
    """Read ``request.state.user_id``, falling back to ``request.state.user.id``."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        user = getattr(request.state, "user", None)
        user_id = getattr(user, "id", None)
    return user_id


def decision_to_http_exception(decision: AuthorizationDecision) -> HTTPException:
    """Render a denial as a 401 or 403 HTTPException with a stable body."""
    if decision.reason == DecisionReason.UNAUTHENTICATED:
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "unauthenticated",
                "code": "UNAUTHENTICATED",
                "message": decision.message,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    detail = {
        "error": "forbidden",
        "code": "PERMISSION_DENIED",
        "message": decision.message,
        "required_permissions": list(decision.required_permissions),
        "permission_mode": decision.permission_mode.value,
    }
    if decision.permission_mode == PermissionMode.ALL:
        detail["missing_permissions"] = list(decision.missing_permissions)
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class AuthorizationDependency:
    """
    Callable FastAPI dependency enforcing the endpoint's declared requirement.

    An explicit ``requirement`` overrides the endpoint metadata, which lets
    the same dependency class guard routers and routes without decorators.
    """

    def __init__(
        self,
        guard: AuthorizationGuard,
        user_id_getter: UserIdGetter = default_user_id_getter,
        requirement: Optional[PermissionRequirement] = None,
    ):
        self.guard = guard
        self.user_id_getter = user_id_getter
        self.requirement = requirement

    def _requirement_for(self, request: Request) -> Optional[PermissionRequirement]:
        if self.requirement is not None:
            return self.requirement
        endpoint = request.scope.get("endpoint")
        return PermissionMetadata.extract(endpoint) if endpoint is not None else None

    async def __call__(self, request: Request) -> RequestContext:
        context = RequestContext(
            user_id=self.user_id_getter(request),
            path_params=dict(request.path_params),
        )
        decision = await self.guard.can_activate(context, self._requirement_for(request))

        if not decision.allowed:
            raise decision_to_http_exception(decision)

        if decision.reason != DecisionReason.SKIPPED:
            request.state.permissions = context.permissions
            request.state.data_context = context.data_context
            request.state.data_scope = context.data_scope
            request.state.permission_check_result = context.permission_check_result
        return context


def require_permissions(
    guard: AuthorizationGuard,
    *permissions: Union[str, List[str]],
    mode: Union[PermissionMode, str] = PermissionMode.ANY,
    user_id_getter: UserIdGetter = default_user_id_getter,
) -> AuthorizationDependency:
    """Dependency factory for routes that declare permissions inline.

    Example:
        @app.delete("/users/{id}", dependencies=[Depends(require_permissions(guard, "users.delete"))])
    """
    flattened: List[str] = []
    for item in permissions:
        flattened.extend(item if isinstance(item, (list, tuple)) else [item])
    return AuthorizationDependency(
        guard,
        user_id_getter=user_id_getter,
        requirement=PermissionRequirement.of(flattened, mode),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render NeoAuthzError subclasses as structured JSON responses."""

    async def handle_authz_error(request: Request, exc: NeoAuthzError) -> JSONResponse:
        status_code = get_http_status_code(exc)
        if status_code >= 500:
            logger.error(f"Authorization infrastructure error on {request.url.path}: {exc.error_code}")
        return JSONResponse(status_code=status_code, content=create_error_response(exc))

    app.add_exception_handler(NeoAuthzError, handle_authz_error)
