"""
Permission matcher.

Pure functions deciding whether a set of granted permission strings
satisfies a required permission. Supported grants, in priority order:

- Exact: ``users.create`` satisfies ``users.create``
- Super admin: ``system.admin`` or ``*`` satisfies anything
- Category wildcard: ``users.*`` satisfies ``users.create`` and ``users.profile.read``
- Segment wildcard: ``users.*.read`` satisfies ``users.profile.read``; a trailing
  ``*`` in a multi-segment pattern absorbs any remaining segments
"""
from typing import Any, Iterable, List, Optional, Tuple

from ..config.constants import (
    CATEGORY_WILDCARD_SUFFIX,
    OWN_SUFFIX,
    SEGMENT_SEPARATOR,
    SUPER_ADMIN_PERMISSIONS,
    WILDCARD,
)
from ..domain.value_objects import AllPermissionsResult, MatchType, PermissionCheckResult


def _is_category_wildcard(permission: str) -> bool:
    prefix = permission[: -len(CATEGORY_WILDCARD_SUFFIX)]
    return permission.endswith(CATEGORY_WILDCARD_SUFFIX) and bool(prefix) and WILDCARD not in prefix


def match_wildcard(pattern: str, target: str) -> bool:
    """Match a wildcard pattern against a permission name segment by segment.

    A ``*`` segment matches exactly one target segment, except in last
    position where it matches whatever remains (possibly nothing).
    """
    pattern_parts = pattern.split(SEGMENT_SEPARATOR)
    target_parts = target.split(SEGMENT_SEPARATOR)

    if pattern_parts[-1] == WILDCARD:
        head = pattern_parts[:-1]
        if len(target_parts) < len(head):
            return False
        return all(p == WILDCARD or p == t for p, t in zip(head, target_parts))

    if len(pattern_parts) != len(target_parts):
        return False
    return all(p == WILDCARD or p == t for p, t in zip(pattern_parts, target_parts))


def find_match(granted: Iterable[str], required: str) -> Optional[Tuple[str, MatchType]]:
    """Return the granted permission satisfying ``required`` and how, or None."""
    granted_set = granted if isinstance(granted, (set, frozenset)) else set(granted)

    if required in granted_set:
        return required, MatchType.EXACT

    for admin in SUPER_ADMIN_PERMISSIONS:
        if admin in granted_set:
            return admin, MatchType.ADMIN

    wildcards = sorted(p for p in granted_set if WILDCARD in p)

    for permission in wildcards:
        if _is_category_wildcard(permission):
            prefix = permission[: -len(CATEGORY_WILDCARD_SUFFIX)]
            if required.startswith(prefix + SEGMENT_SEPARATOR):
                return permission, MatchType.WILDCARD

    for permission in wildcards:
        if _is_category_wildcard(permission):
            continue
        if match_wildcard(permission, required):
            return permission, MatchType.WILDCARD

    return None


def evaluate(granted: Iterable[str], required: str) -> PermissionCheckResult:
    """Evaluate one required permission against a granted set."""
    match = find_match(granted, required)
    if match is None:
        return PermissionCheckResult.deny(required)
    matched, match_type = match
    return PermissionCheckResult.allow(required, matched, match_type)


def has_permission(granted: Iterable[str], required: str) -> bool:
    return find_match(granted, required) is not None


def has_any_permission(granted: Iterable[str], required: List[str]) -> bool:
    """True if any required permission is satisfied.

    An empty requirement list imposes no restriction and returns True, even
    for an empty granted set.
    """
    if not required:
        return True
    granted_set = set(granted)
    return any(find_match(granted_set, permission) is not None for permission in required)


def has_all_permissions(granted: Iterable[str], required: List[str]) -> AllPermissionsResult:
    """Evaluate every required permission and report all that are missing."""
    granted_set = set(granted)
    return AllPermissionsResult.from_results([evaluate(granted_set, p) for p in required])


def has_resource_permission(
    granted: Iterable[str],
    resource_type: str,
    action: str,
    resource_owner_id: Any = None,
    current_user_id: Any = None,
) -> PermissionCheckResult:
    """Check ``{type}.{action}``, falling back to ``{type}.{action}.own`` for the owner."""
    granted_set = set(granted)
    general = f"{resource_type}{SEGMENT_SEPARATOR}{action}"

    result = evaluate(granted_set, general)
    if result.granted:
        return result

    if resource_owner_id is not None and current_user_id is not None and resource_owner_id == current_user_id:
        own = evaluate(granted_set, f"{general}{SEGMENT_SEPARATOR}{OWN_SUFFIX}")
        if own.granted:
            return own

    return result
