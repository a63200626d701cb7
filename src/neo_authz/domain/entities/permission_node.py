"""
Permission hierarchy entities.

Permission names are plain strings; these types carry the optional persisted
metadata (id, category, explicit parent) and the graph built from it.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Set


@dataclass(frozen=True)
class PermissionRecord:
    """A persisted permission row with its optional explicit parent."""
    id: int
    name: str
    category: Optional[str] = None
    parent_name: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Permission name cannot be empty")


@dataclass
class PermissionHierarchyNode:
    """
    Node of the permission forest.

    ``parent_permission`` comes from an explicit store relationship;
    ``inherits_from`` is the implicit ``category.*`` parent. At most one of
    them is set.
    """
    name: str
    id: int
    category: Optional[str] = None
    parent_permission: Optional[str] = None
    inherits_from: Optional[str] = None
    child_permissions: Set[str] = field(default_factory=set)
    is_virtual: bool = False

    @property
    def parent(self) -> Optional[str]:
        return self.parent_permission or self.inherits_from

    @property
    def is_root(self) -> bool:
        return self.parent is None


@dataclass(frozen=True)
class PermissionRelationship:
    """Flattened parent-to-child edge with its depth from the root."""
    parent: str
    child: str
    depth: int


@dataclass(frozen=True)
class InheritanceChain:
    """Ancestors a permission inherits from and descendants it grants."""
    permission: str
    inherits_from: List[str] = field(default_factory=list)
    grants_to: List[str] = field(default_factory=list)
