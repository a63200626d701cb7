"""
Permission check value objects.

Immutable results produced by the permission matcher and permission service.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class MatchType(str, Enum):
    """How a required permission was satisfied."""
    EXACT = "exact"          # Required permission held verbatim
    ADMIN = "admin"          # system.admin or * held
    WILDCARD = "wildcard"    # Category or segment wildcard matched
    HIERARCHY = "hierarchy"  # Granted through a held ancestor in the hierarchy


@dataclass(frozen=True)
class PermissionCheckResult:
    """
    Outcome of evaluating one required permission against a granted set.

    ``missing_permissions`` holds the single required permission when denied.
    """
    granted: bool
    required_permission: str
    matched_permission: Optional[str] = None
    match_type: Optional[MatchType] = None
    missing_permissions: List[str] = field(default_factory=list)

    @classmethod
    def allow(cls, required: str, matched: str, match_type: MatchType) -> "PermissionCheckResult":
        """Create a granted result."""
        return cls(
            granted=True,
            required_permission=required,
            matched_permission=matched,
            match_type=match_type,
        )

    @classmethod
    def deny(cls, required: str) -> "PermissionCheckResult":
        """Create a denied result."""
        return cls(
            granted=False,
            required_permission=required,
            missing_permissions=[required],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "granted": self.granted,
            "required_permission": self.required_permission,
            "matched_permission": self.matched_permission,
            "match_type": self.match_type.value if self.match_type else None,
            "missing_permissions": list(self.missing_permissions),
        }

    def __str__(self) -> str:
        if self.granted:
            return f"GRANTED {self.required_permission} via {self.matched_permission} ({self.match_type.value})"
        return f"DENIED {self.required_permission}"


@dataclass(frozen=True)
class AllPermissionsResult:
    """Outcome of an ALL-check: every gap is reported, not just the first."""
    granted: bool
    missing_permissions: List[str] = field(default_factory=list)
    results: List[PermissionCheckResult] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[PermissionCheckResult]) -> "AllPermissionsResult":
        missing = [r.required_permission for r in results if not r.granted]
        return cls(granted=not missing, missing_permissions=missing, results=list(results))
