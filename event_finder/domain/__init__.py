"""Domain layer: plain entities and exceptions with no I/O."""
