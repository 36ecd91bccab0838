"""Domain layer: value objects, configuration entities and the access gate."""
