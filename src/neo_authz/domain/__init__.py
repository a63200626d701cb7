"""Domain layer: entities, value objects and protocols."""
