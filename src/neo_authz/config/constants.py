"""Permission naming and role constants."""

# Permission string grammar
SEGMENT_SEPARATOR = "."
WILDCARD = "*"
CATEGORY_WILDCARD_SUFFIX = ".*"
OWN_SUFFIX = "own"

# Any of these grants every permission, reported in this order of preference
SUPER_ADMIN_PERMISSIONS = ("system.admin", WILDCARD)

# Role names (lowercased) recognised for each data level
ADMIN_ROLE_NAMES = frozenset({"admin", "administrator"})
MANAGER_ROLE_NAMES = frozenset({"manager", "supervisor"})

# Id given to synthesized category nodes
VIRTUAL_PERMISSION_ID = -1
