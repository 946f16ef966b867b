"""Tests for the in-memory catalog used for local runs."""

import pytest

from src.catalog_sync.core.models.entity import (
    DeferredEntity,
    EntityProviderMutation,
    parse_entity_ref,
)
from src.catalog_sync.core.services import EntityCache, InMemoryCatalog
from tests.utils import make_user


def _mutation(provider: str, *names: str) -> EntityProviderMutation:
    return EntityProviderMutation(
        entities=[
            DeferredEntity(
                entity=make_user(name), location_key=f"{provider}:User:default/{name}"
            )
            for name in names
        ]
    )


class TestInMemoryCatalog:
    @pytest.mark.asyncio
    async def test_full_mutation_replaces_provider_entities(self):
        catalog = InMemoryCatalog()
        connection = catalog.connection_for("p")

        await connection.apply_mutation(_mutation("p", "alice", "bob"))
        await connection.apply_mutation(_mutation("p", "bob"))

        assert await catalog.get_entity_by_ref(parse_entity_ref("alice")) is None
        assert await catalog.get_entity_by_ref(parse_entity_ref("bob")) is not None

    @pytest.mark.asyncio
    async def test_providers_do_not_replace_each_other(self):
        catalog = InMemoryCatalog()

        await catalog.connection_for("p1").apply_mutation(_mutation("p1", "alice"))
        await catalog.connection_for("p2").apply_mutation(_mutation("p2", "bob"))

        assert await catalog.get_entity_by_ref(parse_entity_ref("alice")) is not None
        assert await catalog.get_entity_by_ref(parse_entity_ref("bob")) is not None

    @pytest.mark.asyncio
    async def test_foreign_location_key_is_rejected(self):
        catalog = InMemoryCatalog()

        with pytest.raises(ValueError):
            await catalog.connection_for("p1").apply_mutation(_mutation("p2", "alice"))

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive_on_kind(self):
        catalog = InMemoryCatalog()
        catalog.seed(make_user("alice"))

        assert await catalog.get_entity_by_ref(parse_entity_ref("User:default/alice"))

    @pytest.mark.asyncio
    async def test_read_lag_delays_visibility(self):
        catalog = InMemoryCatalog(read_lag=2)
        cache = EntityCache(provider_name="p")
        cache.connect(catalog.connection_for("p"))
        ref = parse_entity_ref("alice")

        await cache.upsert(make_user("alice"))

        assert await catalog.get_entity_by_ref(ref) is None
        assert await catalog.get_entity_by_ref(ref) is None
        assert await catalog.get_entity_by_ref(ref) is not None

    @pytest.mark.asyncio
    async def test_find_by_annotations(self):
        catalog = InMemoryCatalog()
        catalog.seed(
            make_user("alice", annotations={"keycloak.org/id": "1"}),
            make_user("bob", annotations={"keycloak.org/id": "2"}),
        )

        matches = await catalog.find_entities_by_annotations(
            "User", {"keycloak.org/id": "2"}
        )

        assert [e.metadata.name for e in matches] == ["bob"]

    @pytest.mark.asyncio
    async def test_records_applied_mutations(self):
        catalog = InMemoryCatalog()

        await catalog.connection_for("p").apply_mutation(_mutation("p", "alice"))

        [(provider, mutation)] = catalog.applied
        assert provider == "p"
        assert mutation.type == "full"
