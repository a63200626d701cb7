"""
Permission decorators.

Declarative requirement metadata for endpoints. Decorators validate and
attach a PermissionRequirement at import time and return the endpoint
unchanged; enforcement happens in the guard via the FastAPI dependency.

Usage:
    @router.get("/users/{user_id}")
    @require_resource_permission("users", "update", owner_param="user_id")
    async def update_user(user_id: int): ...

    @router.get("/reports")
    @require_all_permissions("reports.read", "reports.export")
    @apply_data_filter(owner_column="created_by")
    async def export_reports(): ...
"""

import logging
from typing import Callable, List, Optional, Union

from ...core.exceptions import InvalidRequirementError
from ...core.identifiers import validate_identifier
from ...domain.value_objects import (
    DataFilterRequirement,
    PermissionMode,
    PermissionRequirement,
    ResourceRequirement,
)
from ...domain.value_objects.requirement import OwnerResolver

logger = logging.getLogger(__name__)

REQUIREMENT_ATTRIBUTE = "_authz_requirement"


def _attach(func: Callable, requirement: PermissionRequirement) -> Callable:
    existing = getattr(func, REQUIREMENT_ATTRIBUTE, None)
    merged = existing.merge(requirement) if existing is not None else requirement
    setattr(func, REQUIREMENT_ATTRIBUTE, merged)
    logger.debug(f"Applied permission requirement to {getattr(func, '__name__', func)}: {merged.permissions}")
    return func


def _permission_list(permissions: tuple) -> List[str]:
    flattened: List[str] = []
    for item in permissions:
        if isinstance(item, (list, tuple)):
            flattened.extend(item)
        else:
            flattened.append(item)
    if not flattened:
        raise InvalidRequirementError("At least one permission must be declared")
    return flattened


def require_permission(
    *permissions: Union[str, List[str]],
    mode: Union[PermissionMode, str] = PermissionMode.ANY,
) -> Callable[[Callable], Callable]:
    """
    Declare the permission(s) an endpoint requires.

    Examples:
        @require_permission("users.read")
        @require_permission("users.read", "users.list")            # any of
        @require_permission(["users.read", "users.export"], mode="all")
    """
    requirement = PermissionRequirement.of(_permission_list(permissions), mode)

    def decorator(func: Callable) -> Callable:
        return _attach(func, requirement)

    return decorator


def require_any_permission(*permissions: Union[str, List[str]]) -> Callable[[Callable], Callable]:
    return require_permission(*permissions, mode=PermissionMode.ANY)


def require_all_permissions(*permissions: Union[str, List[str]]) -> Callable[[Callable], Callable]:
    return require_permission(*permissions, mode=PermissionMode.ALL)


def require_resource_permission(
    resource_type: str,
    action: str,
    owner_param: Optional[str] = None,
    owner_resolver: Optional[OwnerResolver] = None,
) -> Callable[[Callable], Callable]:
    """
    Declare a resource-scoped requirement.

    Grants on ``{resource_type}.{action}``, or on ``{resource_type}.{action}.own``
    when the owner (read from the ``owner_param`` path parameter or returned by
    ``owner_resolver(request_context)``) is the acting user.
    """
    requirement = PermissionRequirement(
        resource=ResourceRequirement(
            resource_type=resource_type,
            action=action,
            owner_param=owner_param,
            owner_resolver=owner_resolver,
        )
    )

    def decorator(func: Callable) -> Callable:
        return _attach(func, requirement)

    return decorator


def apply_data_filter(
    owner_column: Optional[str] = None,
    team_column: Optional[str] = None,
    table_alias: Optional[str] = None,
) -> Callable[[Callable], Callable]:
    """Ask the guard to attach a data scope rendered for this column layout.

    ``team_column`` is validated and recorded but reserved; the scope filters
    on ``owner_column`` only.
    """
    for value, role in ((owner_column, "column"), (team_column, "column"), (table_alias, "table alias")):
        if value is not None:
            validate_identifier(value, role)
    requirement = PermissionRequirement(
        data_filter=DataFilterRequirement(
            owner_column=owner_column,
            team_column=team_column,
            table_alias=table_alias,
        )
    )

    def decorator(func: Callable) -> Callable:
        return _attach(func, requirement)

    return decorator


def skip_permission_check(func: Callable) -> Callable:
    """Mark an endpoint as public to the authorization guard."""
    return _attach(func, PermissionRequirement(skip=True))


class PermissionMetadata:
    """Reads requirements back from decorated endpoints."""

    @staticmethod
    def extract(func: Callable) -> Optional[PermissionRequirement]:
        """
        Extract the requirement from a function, following ``__wrapped__``
        through other decorators.
        """
        while func is not None:
            requirement = getattr(func, REQUIREMENT_ATTRIBUTE, None)
            if requirement is not None:
                return requirement
            func = getattr(func, "__wrapped__", None)
        return None

    @staticmethod
    def get_all_permissions(func: Callable) -> List[str]:
        requirement = PermissionMetadata.extract(func)
        if requirement is None:
            return []
        permissions = list(requirement.permissions)
        if requirement.resource is not None:
            permissions.extend([requirement.resource.permission, requirement.resource.own_permission])
        return permissions
