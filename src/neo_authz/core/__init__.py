"""Core building blocks for neo-authz."""
