"""Infrastructure adapters for neo-authz."""
