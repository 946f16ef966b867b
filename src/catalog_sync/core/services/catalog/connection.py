"""Interfaces of the catalog consumed by the provider and the resolvers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.catalog_sync.core.models.entity import (
    CompoundEntityRef,
    EntityProviderMutation,
    UserEntity,
)


class EntityProviderConnection(ABC):
    """Outbound channel from an entity provider to the catalog."""

    @abstractmethod
    async def apply_mutation(self, mutation: EntityProviderMutation) -> None:
        """Apply a batch of entities.

        Args:
            mutation: For ``full`` batches, every entity previously received
                from this provider that is absent from the batch is removed.
        """
        pass


class CatalogReader(ABC):
    """Read path of the catalog, possibly lagging behind applied mutations."""

    @abstractmethod
    async def get_entity_by_ref(self, ref: CompoundEntityRef) -> UserEntity | None:
        """Fetch an entity by its full reference.

        Returns:
            The entity, or None if the catalog does not know it (yet)
        """
        pass

    @abstractmethod
    async def find_entities_by_annotations(
        self, kind: str, annotations: dict[str, str]
    ) -> list[UserEntity]:
        """List entities of ``kind`` carrying every given annotation value."""
        pass
