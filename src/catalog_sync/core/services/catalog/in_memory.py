"""In-memory catalog for local runs and tests."""

from __future__ import annotations

from loguru import logger

from src.catalog_sync.core.models.entity import (
    CompoundEntityRef,
    EntityProviderMutation,
    UserEntity,
    stringify_entity_ref,
)
from src.catalog_sync.core.services.catalog.connection import (
    CatalogReader,
    EntityProviderConnection,
)

STATIC_SOURCE = "static"


class _ProviderConnection(EntityProviderConnection):
    def __init__(self, catalog: InMemoryCatalog, provider_name: str):
        self._catalog = catalog
        self._provider_name = provider_name

    async def apply_mutation(self, mutation: EntityProviderMutation) -> None:
        self._catalog.apply(self._provider_name, mutation)


class InMemoryCatalog(CatalogReader):
    """Catalog keeping one entity set per provider.

    Writes become readable only after ``read_lag`` further lookups, which
    mimics the asynchronous processing loop of a real catalog.
    """

    def __init__(self, read_lag: int = 0):
        self._read_lag = read_lag
        self._sources: dict[str, dict[str, UserEntity]] = {}
        self._visible: dict[str, UserEntity] = {}
        self._pending = False
        self._reads_until_visible = 0
        self.applied: list[tuple[str, EntityProviderMutation]] = []

    def connection_for(self, provider_name: str) -> EntityProviderConnection:
        return _ProviderConnection(self, provider_name)

    def apply(self, provider_name: str, mutation: EntityProviderMutation) -> None:
        prefix = f"{provider_name}:"
        for deferred in mutation.entities:
            if not deferred.location_key.startswith(prefix):
                raise ValueError(
                    f"Location key {deferred.location_key!r} does not belong to "
                    f"provider {provider_name!r}"
                )

        # full mutations replace everything previously received from the provider
        self._sources[provider_name] = {
            stringify_entity_ref(d.entity).lower(): d.entity for d in mutation.entities
        }
        self.applied.append((provider_name, mutation))
        logger.debug(
            f"Applied {mutation.type} mutation from {provider_name} "
            f"with {len(mutation.entities)} entities"
        )

        if self._read_lag == 0:
            self._stitch()
        else:
            self._pending = True
            self._reads_until_visible = self._read_lag

    def seed(self, *entities: UserEntity) -> None:
        """Make entities readable immediately, as if ingested by another source."""
        source = self._sources.setdefault(STATIC_SOURCE, {})
        for entity in entities:
            source[stringify_entity_ref(entity).lower()] = entity
        self._stitch()

    def _stitch(self) -> None:
        visible: dict[str, UserEntity] = {}
        for provider_name, entities in self._sources.items():
            for ref, entity in entities.items():
                if ref in visible:
                    logger.warning(
                        f"Entity {ref} from {provider_name} conflicts with an "
                        f"entity from another source, keeping the first"
                    )
                    continue
                visible[ref] = entity
        self._visible = visible
        self._pending = False

    def _before_read(self) -> None:
        if not self._pending:
            return
        if self._reads_until_visible > 0:
            self._reads_until_visible -= 1
            return
        self._stitch()

    async def get_entity_by_ref(self, ref: CompoundEntityRef) -> UserEntity | None:
        self._before_read()
        return self._visible.get(str(ref).lower())

    async def find_entities_by_annotations(
        self, kind: str, annotations: dict[str, str]
    ) -> list[UserEntity]:
        self._before_read()
        return [
            entity
            for entity in self._visible.values()
            if entity.kind.lower() == kind.lower()
            and all(
                entity.metadata.annotations.get(k) == v for k, v in annotations.items()
            )
        ]
