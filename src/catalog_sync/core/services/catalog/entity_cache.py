"""Entity provider holding dynamically provisioned users."""

from __future__ import annotations

from loguru import logger

from src.catalog_sync.core.errors import PublishFailure
from src.catalog_sync.core.models.entity import (
    DeferredEntity,
    EntityProviderMutation,
    UserEntity,
    entity_key,
)
from src.catalog_sync.core.services.catalog.connection import EntityProviderConnection


class EntityCache:
    """Authoritative set of users provisioned at sign-in.

    Every change publishes the whole cache as a ``full`` mutation, so the
    catalog converges to the current state after any successful publish
    even if earlier publishes failed.

    There is no internal locking. Concurrent ``upsert``/``remove`` calls may
    interleave a cache edit with another call's publish, letting the catalog
    briefly observe a snapshot older than the cache. Callers that need a
    strict order must serialize calls themselves.
    """

    def __init__(self, provider_name: str = "dynamic-user-provider"):
        self._provider_name = provider_name
        self._connection: EntityProviderConnection | None = None
        self._entities: dict[str, DeferredEntity] = {}

    def get_provider_name(self) -> str:
        return self._provider_name

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self, connection: EntityProviderConnection) -> None:
        """Register the channel used for publishing; replaces any previous one."""
        self._connection = connection
        logger.debug(f"Entity provider '{self._provider_name}' connected")

    def location_key(self, key: str) -> str:
        return f"{self._provider_name}:{key}"

    async def upsert(self, entity: UserEntity) -> None:
        """Store ``entity`` under its stable key and publish the full snapshot.

        The cache edit is kept even when publishing is impossible or fails.

        Raises:
            PublishFailure: the connection rejected the snapshot
        """
        key = entity_key(entity)
        self._entities[key] = DeferredEntity(
            entity=entity, location_key=self.location_key(key)
        )

        if self._connection is None:
            logger.warning(
                f"No connection available to catalog, kept {key} in cache only"
            )
            return

        await self._publish(key)
        logger.debug(f"Successfully added/updated user entity: {key}")

    async def remove(self, key: str) -> bool:
        """Drop the entity stored under ``key`` and publish the smaller snapshot.

        Returns:
            False, without publishing, when ``key`` was not cached

        Raises:
            PublishFailure: the connection rejected the snapshot
        """
        if self._entities.pop(key, None) is None:
            return False

        if self._connection is None:
            logger.warning(
                f"No connection available to catalog, removed {key} from cache only"
            )
            return True

        await self._publish(key)
        logger.info(f"Removed user entity: {key}")
        return True

    def snapshot(self) -> list[DeferredEntity]:
        """Return every cached entity in insertion order."""
        return list(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, key: object) -> bool:
        return key in self._entities

    async def _publish(self, key: str) -> None:
        assert self._connection is not None
        mutation = EntityProviderMutation(type="full", entities=self.snapshot())
        try:
            await self._connection.apply_mutation(mutation)
        except Exception as e:
            logger.error(f"Failed to publish catalog snapshot for {key}: {e}")
            raise PublishFailure(key, e) from e
