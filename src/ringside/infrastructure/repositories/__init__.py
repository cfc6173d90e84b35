"""Per-entity-type repositories and the registry that resolves them."""

from ringside.infrastructure.repositories.registry import (
    RepositoryRegistry,
    build_default_registry,
)

__all__ = ["RepositoryRegistry", "build_default_registry"]
