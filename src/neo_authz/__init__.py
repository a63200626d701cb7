"""
neo-authz: authorization core for NeoMultiTenant services.

Wildcard permission matching, permission hierarchy expansion, role-based
data scoping with SQL filter generation, and FastAPI integration.
"""

from .__version__ import __version__
from .config import AuthzSettings, get_settings, setup_logging
from .core.exceptions import (
    NeoAuthzError,
    AuthenticationRequiredError,
    PermissionDeniedError,
    StoreError,
    StoreUnavailableError,
    StoreQueryError,
    CacheBackendError,
    InvalidRequirementError,
    InvalidIdentifierError,
)
from .domain.entities import PermissionRecord, PermissionHierarchyNode, InheritanceChain
from .domain.value_objects import (
    MatchType,
    PermissionCheckResult,
    AllPermissionsResult,
    RoleLevel,
    ScopeType,
    DataLevelContext,
    DataScope,
    FilterConfig,
    FilteredQuery,
    PermissionMode,
    PermissionRequirement,
)
from .domain.protocols import PermissionStoreProtocol, UserPermissionCacheProtocol
from .permissions.cache import UserPermissionCache, HierarchyCache
from .application.services import (
    PermissionService,
    PermissionHierarchyService,
    DataScopeService,
    QueryFilterService,
    apply_scope,
)
from .interfaces.guards import AuthorizationGuard, AuthorizationDecision, RequestContext
from .interfaces.decorators import (
    require_permission,
    require_any_permission,
    require_all_permissions,
    require_resource_permission,
    skip_permission_check,
    apply_data_filter,
    PermissionMetadata,
)
from .interfaces.dependencies import (
    AuthorizationDependency,
    require_permissions,
    register_exception_handlers,
)

__all__ = [
    "__version__",

    # Configuration
    "AuthzSettings",
    "get_settings",
    "setup_logging",

    # Exceptions
    "NeoAuthzError",
    "AuthenticationRequiredError",
    "PermissionDeniedError",
    "StoreError",
    "StoreUnavailableError",
    "StoreQueryError",
    "CacheBackendError",
    "InvalidRequirementError",
    "InvalidIdentifierError",

    # Domain
    "PermissionRecord",
    "PermissionHierarchyNode",
    "InheritanceChain",
    "MatchType",
    "PermissionCheckResult",
    "AllPermissionsResult",
    "RoleLevel",
    "ScopeType",
    "DataLevelContext",
    "DataScope",
    "FilterConfig",
    "FilteredQuery",
    "PermissionMode",
    "PermissionRequirement",
    "PermissionStoreProtocol",
    "UserPermissionCacheProtocol",

    # Caches
    "UserPermissionCache",
    "HierarchyCache",

    # Services
    "PermissionService",
    "PermissionHierarchyService",
    "DataScopeService",
    "QueryFilterService",
    "apply_scope",

    # HTTP layer
    "AuthorizationGuard",
    "AuthorizationDecision",
    "RequestContext",
    "require_permission",
    "require_any_permission",
    "require_all_permissions",
    "require_resource_permission",
    "skip_permission_check",
    "apply_data_filter",
    "PermissionMetadata",
    "AuthorizationDependency",
    "require_permissions",
    "register_exception_handlers",
]
