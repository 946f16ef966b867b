"""Tests for provisioning users from access token claims at sign-in."""

import pytest

from src.catalog_sync.core.errors import MalformedToken, MissingEmail, NotConverged
from src.catalog_sync.core.services import (
    CatalogAuthResolverContext,
    ConvergenceRetrier,
    EntityCache,
    InMemoryCatalog,
)
from src.catalog_sync.core.services.resolvers.sign_in_resolvers import (
    oauth2_token_claim_resolver,
)
from tests.fixtures.catalog import PROVIDER_NAME
from tests.utils import FakeSleep, RecordingConnection, make_user


@pytest.fixture
def provisioned_cache(catalog: InMemoryCatalog) -> EntityCache:
    cache = EntityCache(provider_name=PROVIDER_NAME)
    cache.connect(catalog.connection_for(PROVIDER_NAME))
    return cache


class TestOAuth2TokenClaimResolver:
    @pytest.mark.asyncio
    async def test_provisions_and_signs_in(
        self,
        provisioned_cache: EntityCache,
        resolver_context: CatalogAuthResolverContext,
        retrier: ConvergenceRetrier,
        fake_sleep: FakeSleep,
        make_oidc_info,
        access_token_claims,
    ):
        resolver = oauth2_token_claim_resolver(provisioned_cache, retrier=retrier)()

        result = await resolver(
            make_oidc_info(access_claims=access_token_claims), resolver_context
        )

        assert result.entity_ref == "user:default/jdoe"
        assert result.ownership_entity_refs == [
            "user:default/jdoe",
            "group:default/developers",
            "group:default/catalog-admin",
        ]
        assert "User:default/jdoe" in provisioned_cache
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_waits_for_catalog_to_converge(
        self,
        make_oidc_info,
        access_token_claims,
        fake_sleep: FakeSleep,
        retrier: ConvergenceRetrier,
    ):
        catalog = InMemoryCatalog(read_lag=3)
        cache = EntityCache(provider_name=PROVIDER_NAME)
        cache.connect(catalog.connection_for(PROVIDER_NAME))
        resolver = oauth2_token_claim_resolver(cache, retrier=retrier)()

        result = await resolver(
            make_oidc_info(access_claims=access_token_claims),
            CatalogAuthResolverContext(catalog),
        )

        assert result.entity_ref == "user:default/jdoe"
        assert fake_sleep.delays == [0.3] * 3

    @pytest.mark.asyncio
    async def test_not_converged_when_catalog_never_sees_user(
        self,
        connected_cache: EntityCache,
        recording_connection: RecordingConnection,
        resolver_context: CatalogAuthResolverContext,
        retrier: ConvergenceRetrier,
        fake_sleep: FakeSleep,
        make_oidc_info,
        access_token_claims,
    ):
        resolver = oauth2_token_claim_resolver(connected_cache, retrier=retrier)()

        with pytest.raises(NotConverged) as exc_info:
            await resolver(
                make_oidc_info(access_claims=access_token_claims), resolver_context
            )

        assert exc_info.value.entity_ref == "user:default/jdoe"
        assert exc_info.value.attempts == 10
        assert len(fake_sleep.delays) == 9
        # the entity was still published before the lookups started
        assert recording_connection.published_names() == ["jdoe"]

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_abort_sign_in(
        self,
        catalog: InMemoryCatalog,
        resolver_context: CatalogAuthResolverContext,
        retrier: ConvergenceRetrier,
        make_oidc_info,
        access_token_claims,
    ):
        catalog.seed(make_user("jdoe"))
        cache = EntityCache(provider_name=PROVIDER_NAME)
        cache.connect(RecordingConnection(error=RuntimeError("catalog down")))
        resolver = oauth2_token_claim_resolver(cache, retrier=retrier)()

        result = await resolver(
            make_oidc_info(access_claims=access_token_claims), resolver_context
        )

        assert result.entity_ref == "user:default/jdoe"
        assert "User:default/jdoe" in cache

    @pytest.mark.asyncio
    async def test_repeat_sign_in_refreshes_memberships(
        self,
        provisioned_cache: EntityCache,
        resolver_context: CatalogAuthResolverContext,
        retrier: ConvergenceRetrier,
        make_oidc_info,
    ):
        resolver = oauth2_token_claim_resolver(provisioned_cache, retrier=retrier)()

        await resolver(
            make_oidc_info(access_claims={"groups": ["old"]}), resolver_context
        )
        result = await resolver(
            make_oidc_info(access_claims={"groups": ["new"]}), resolver_context
        )

        assert result.ownership_entity_refs == [
            "user:default/jdoe",
            "group:default/new",
        ]
        assert len(provisioned_cache) == 1

    @pytest.mark.asyncio
    async def test_missing_access_token(
        self,
        provisioned_cache: EntityCache,
        resolver_context: CatalogAuthResolverContext,
        make_oidc_info,
    ):
        resolver = oauth2_token_claim_resolver(provisioned_cache)()

        with pytest.raises(MalformedToken):
            await resolver(make_oidc_info(), resolver_context)

        assert len(provisioned_cache) == 0

    @pytest.mark.asyncio
    async def test_empty_group_is_rejected_before_upsert(
        self,
        provisioned_cache: EntityCache,
        resolver_context: CatalogAuthResolverContext,
        make_oidc_info,
    ):
        resolver = oauth2_token_claim_resolver(provisioned_cache)()

        with pytest.raises(MalformedToken):
            await resolver(
                make_oidc_info(access_claims={"groups": ["developers", ""]}),
                resolver_context,
            )

        assert len(provisioned_cache) == 0

    @pytest.mark.asyncio
    async def test_missing_email(
        self,
        provisioned_cache: EntityCache,
        resolver_context: CatalogAuthResolverContext,
        make_oidc_info,
        access_token_claims,
    ):
        resolver = oauth2_token_claim_resolver(provisioned_cache)()

        with pytest.raises(MissingEmail):
            await resolver(
                make_oidc_info(email=None, access_claims=access_token_claims),
                resolver_context,
            )

        assert len(provisioned_cache) == 0

    @pytest.mark.asyncio
    async def test_dangerous_option_does_not_bypass_catalog(
        self,
        connected_cache: EntityCache,
        resolver_context: CatalogAuthResolverContext,
        fake_sleep: FakeSleep,
        make_oidc_info,
        access_token_claims,
    ):
        retrier = ConvergenceRetrier(max_attempts=2, sleep=fake_sleep)
        resolver = oauth2_token_claim_resolver(connected_cache, retrier=retrier)(
            {"dangerouslyAllowSignInWithoutUserInCatalog": True}
        )

        with pytest.raises(NotConverged):
            await resolver(
                make_oidc_info(access_claims=access_token_claims), resolver_context
            )
