"""Explicit entity-type to repository registry, built at roster start-up."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ringside.domain.errors import ConfigurationError
from ringside.domain.types import EntityType
from ringside.infrastructure.repositories.entities import (
    ManagerRepository,
    RefereeRepository,
    StableRepository,
    TagTeamRepository,
    WrestlerRepository,
)

if TYPE_CHECKING:
    from ringside.domain.capabilities import Entity
    from ringside.infrastructure.roster import Roster


class RepositoryRegistry:
    """Maps each entity type to the repository that persists it."""

    def __init__(self) -> None:
        self._repositories: dict[EntityType, Any] = {}

    def register(self, entity_type: EntityType | str, repository: Any) -> None:
        self._repositories[EntityType(entity_type)] = repository

    def get(self, entity_type: EntityType | str) -> Any:
        """Return the repository for *entity_type*.

        Raises :class:`ConfigurationError` when none is registered.
        """
        try:
            return self._repositories[EntityType(entity_type)]
        except (KeyError, ValueError):
            msg = f"No repository registered for entity type '{entity_type}'"
            raise ConfigurationError(msg) from None

    def for_entity(self, entity: Entity) -> Any:
        return self.get(entity.entity_type)

    def mutation(self, entity: Entity, name: str) -> Any:
        """Bound repository method *name* for *entity*'s type.

        Raises :class:`ConfigurationError` when the repository lacks it.
        """
        repository = self.for_entity(entity)
        method = getattr(repository, name, None)
        if method is None or not callable(method):
            msg = f"{type(repository).__name__} does not implement '{name}'"
            raise ConfigurationError(msg)
        return method

    def stables(self) -> StableRepository:
        return self.get(EntityType.STABLE)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._repositories


def build_default_registry(roster: Roster) -> RepositoryRegistry:
    """Register the built-in repository for every entity type."""
    registry = RepositoryRegistry()
    for repository_cls in (
        WrestlerRepository,
        ManagerRepository,
        RefereeRepository,
        TagTeamRepository,
        StableRepository,
    ):
        registry.register(repository_cls.entity_type, repository_cls(roster))
    return registry
