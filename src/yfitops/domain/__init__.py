"""Domain layer: DTOs, exceptions and ports."""
