import asyncio
from dataclasses import dataclass

from loguru import logger

from src.catalog_sync.core.models.sign_in import OAuth2ProxyResult, OidcAuthResult
from src.catalog_sync.core.services import (
    CatalogAuthResolverContext,
    CatalogReader,
    ClaimExtractor,
    ConvergenceRetrier,
    EntityCache,
    EntityProviderConnection,
    InMemoryCatalog,
    SignInResolverChain,
    build_resolver_registry,
)
from src.catalog_sync.core.services.resolvers.convergence import Sleep
from src.catalog_sync.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    catalog: CatalogReader
    entity_cache: EntityCache
    resolver_context: CatalogAuthResolverContext
    oidc_sign_in_resolver: SignInResolverChain
    oauth2_proxy_sign_in_resolver: SignInResolverChain


def build_application_dependencies(
    config: ConfigData,
    *,
    catalog: CatalogReader | None = None,
    connection: EntityProviderConnection | None = None,
    sleep: Sleep = asyncio.sleep,
) -> ApplicationDependencies:
    """Construct the entity cache once and wire it into the resolvers.

    Without an explicit catalog an ``InMemoryCatalog`` serves as both the
    read path and the provider connection.
    """
    if catalog is None:
        in_memory = InMemoryCatalog(read_lag=config.catalog.read_lag)
        catalog = in_memory
        connection = connection or in_memory.connection_for(config.catalog.provider_name)
    if connection is None:
        raise ValueError("A provider connection is required with an external catalog")

    entity_cache = EntityCache(provider_name=config.catalog.provider_name)
    entity_cache.connect(connection)

    registry = build_resolver_registry(
        entity_cache,
        extractor=ClaimExtractor.from_config(config.catalog),
        retrier=ConvergenceRetrier.from_config(config.convergence, sleep=sleep),
    )
    oidc_chain = SignInResolverChain.from_config(
        config.sign_in.oidc, registry, OidcAuthResult
    )
    oauth2_proxy_chain = SignInResolverChain.from_config(
        config.sign_in.oauth2_proxy, registry, OAuth2ProxyResult
    )
    logger.info(f"OIDC sign-in resolvers: {', '.join(oidc_chain.names)}")
    logger.info(
        f"oauth2-proxy sign-in resolvers: {', '.join(oauth2_proxy_chain.names)}"
    )

    return ApplicationDependencies(
        catalog=catalog,
        entity_cache=entity_cache,
        resolver_context=CatalogAuthResolverContext(catalog),
        oidc_sign_in_resolver=oidc_chain,
        oauth2_proxy_sign_in_resolver=oauth2_proxy_chain,
    )
