"""
Permission hierarchy service.

Builds the parent/child forest over permission names and answers
inheritance and expansion queries against it.

Two sources of edges:
- explicit: a permission's ``category`` names a parent permission row
- implicit: ``users.*`` parents every non-wildcard ``users.<...>`` permission
  that has no explicit parent (a virtual node is synthesized if needed)

Every walk carries a visited set; a revisit is reported as a data-integrity
warning and the walk stops there.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from ...config.constants import (
    CATEGORY_WILDCARD_SUFFIX,
    SEGMENT_SEPARATOR,
    SUPER_ADMIN_PERMISSIONS,
    VIRTUAL_PERMISSION_ID,
    WILDCARD,
)
from ...domain.entities import (
    InheritanceChain,
    PermissionHierarchyNode,
    PermissionRecord,
    PermissionRelationship,
)
from ...domain.protocols import PermissionStoreProtocol
from ...permissions.cache import HierarchyCache
from ...permissions.matcher import match_wildcard

logger = logging.getLogger(__name__)

Hierarchy = Dict[str, PermissionHierarchyNode]


def build_hierarchy(records: Iterable[PermissionRecord]) -> Hierarchy:
    """Build the permission forest from persisted rows."""
    hierarchy: Hierarchy = {}

    for record in records:
        parent = record.parent_name if record.parent_name != record.name else None
        hierarchy[record.name] = PermissionHierarchyNode(
            name=record.name,
            id=record.id,
            category=record.category,
            parent_permission=parent,
        )

    for name, node in hierarchy.items():
        if node.parent_permission and node.parent_permission in hierarchy:
            hierarchy[node.parent_permission].child_permissions.add(name)

    _add_implicit_hierarchy(hierarchy)
    return hierarchy


def _add_implicit_hierarchy(hierarchy: Hierarchy) -> None:
    categories = sorted({
        name.split(SEGMENT_SEPARATOR)[0]
        for name in hierarchy
        if len(name.split(SEGMENT_SEPARATOR)) >= 2
    })

    for category in categories:
        if category == WILDCARD:
            continue
        wildcard_name = f"{category}{CATEGORY_WILDCARD_SUFFIX}"
        if wildcard_name not in hierarchy:
            hierarchy[wildcard_name] = PermissionHierarchyNode(
                name=wildcard_name,
                id=VIRTUAL_PERMISSION_ID,
                category=category,
                is_virtual=True,
            )
        wildcard_node = hierarchy[wildcard_name]

        for name, node in hierarchy.items():
            if name == wildcard_name or WILDCARD in name:
                continue
            if not name.startswith(category + SEGMENT_SEPARATOR):
                continue
            # Explicit parent wins; a node never has two parents.
            if node.parent_permission is None and node.inherits_from is None:
                node.inherits_from = wildcard_name
                wildcard_node.child_permissions.add(name)


class PermissionHierarchyService:
    """
    Cache-backed resolver over the permission hierarchy.

    The hierarchy is loaded from the store at most once per cache epoch and
    shared by every request in the process.
    """

    def __init__(
        self,
        store: PermissionStoreProtocol,
        cache: Optional[HierarchyCache] = None,
    ):
        self.store = store
        self.cache = cache or HierarchyCache()
        self._reported_cycles: Set[str] = set()

    async def _load(self) -> Hierarchy:
        records = await self.store.fetch_explicit_permission_relationships()
        hierarchy = build_hierarchy(records)
        logger.debug("Loaded permission hierarchy with %d permissions", len(hierarchy))
        return hierarchy

    async def get_hierarchy(self) -> Hierarchy:
        """Return the (cached) permission forest keyed by permission name."""
        return await self.cache.get(self._load)

    def _report_cycle(self, permission: str, revisited: str) -> None:
        if revisited in self._reported_cycles:
            return
        self._reported_cycles.add(revisited)
        logger.warning(
            "Permission hierarchy cycle detected at %s while walking from %s; stopping walk",
            revisited,
            permission,
        )

    def _ancestors(self, hierarchy: Hierarchy, permission: str) -> List[str]:
        ancestors: List[str] = []
        visited = {permission}
        current = hierarchy.get(permission)
        while current is not None and current.parent is not None:
            parent = current.parent
            if parent in visited:
                self._report_cycle(permission, parent)
                break
            visited.add(parent)
            ancestors.append(parent)
            current = hierarchy.get(parent)
        return ancestors

    def _descendants(self, hierarchy: Hierarchy, permission: str) -> List[str]:
        descendants: List[str] = []
        visited = {permission}
        stack = [permission]
        while stack:
            node = hierarchy.get(stack.pop())
            if node is None:
                continue
            for child in sorted(node.child_permissions):
                if child in visited:
                    self._report_cycle(permission, child)
                    continue
                visited.add(child)
                descendants.append(child)
                stack.append(child)
        return descendants

    async def get_inheritance_chain(self, permission: str) -> InheritanceChain:
        """
        Get what a permission inherits from and what it grants.

        Args:
            permission: Permission name

        Returns:
            InheritanceChain with ancestors nearest-first and all descendants;
            both empty for an unknown permission
        """
        hierarchy = await self.get_hierarchy()
        if permission not in hierarchy:
            return InheritanceChain(permission=permission)
        return InheritanceChain(
            permission=permission,
            inherits_from=self._ancestors(hierarchy, permission),
            grants_to=self._descendants(hierarchy, permission),
        )

    async def inherits_from(self, child: str, parent: str) -> bool:
        chain = await self.get_inheritance_chain(child)
        return parent in chain.inherits_from

    async def grants_access_to(self, parent: str, target: str) -> bool:
        """Whether holding ``parent`` grants ``target``."""
        if parent == target:
            return True
        if parent in SUPER_ADMIN_PERMISSIONS:
            return True
        if WILDCARD in parent and match_wildcard(parent, target):
            return True
        chain = await self.get_inheritance_chain(parent)
        return target in chain.grants_to

    async def find_granting_ancestor(self, granted: Iterable[str], target: str) -> Optional[str]:
        """Return the nearest held ancestor of ``target``, if any."""
        granted_set = set(granted)
        chain = await self.get_inheritance_chain(target)
        for ancestor in chain.inherits_from:
            if ancestor in granted_set:
                return ancestor
        return None

    async def expand_permissions(self, direct: Iterable[str]) -> List[str]:
        """Union of ``direct`` with everything each entry grants."""
        direct = list(direct)
        hierarchy = await self.get_hierarchy()
        expanded = dict.fromkeys(direct)
        for permission in direct:
            if permission in hierarchy:
                expanded.update(dict.fromkeys(self._descendants(hierarchy, permission)))
        return list(expanded)

    async def get_all_relationships(self) -> List[PermissionRelationship]:
        """Flattened parent-to-child edges walked from every root, with depth."""
        hierarchy = await self.get_hierarchy()
        cached = self.cache.get_derived()
        if cached is not None:
            return list(cached)

        relationships: List[PermissionRelationship] = []
        visited: Set[str] = set()

        def walk(parent: str, depth: int) -> None:
            for child in sorted(hierarchy[parent].child_permissions):
                if child in visited:
                    self._report_cycle(parent, child)
                    continue
                visited.add(child)
                relationships.append(PermissionRelationship(parent=parent, child=child, depth=depth))
                if child in hierarchy:
                    walk(child, depth + 1)

        for name in sorted(hierarchy):
            if hierarchy[name].is_root:
                visited.add(name)
                walk(name, 1)

        self.cache.set_derived(relationships, hierarchy)
        return list(relationships)

    async def get_by_category(self, category: str) -> List[PermissionHierarchyNode]:
        hierarchy = await self.get_hierarchy()
        prefix = category + SEGMENT_SEPARATOR
        return [
            node for name, node in sorted(hierarchy.items())
            if node.category == category or name.startswith(prefix)
        ]

    def invalidate_cache(self) -> None:
        """Drop the hierarchy and its flattened relationships."""
        self.cache.invalidate()
        self._reported_cycles.clear()

    def get_cache_stats(self) -> Dict[str, object]:
        return self.cache.stats()
