"""Core services exports."""

# Catalog
from .catalog import CatalogReader, EntityCache, EntityProviderConnection, InMemoryCatalog

# Claims
from .claims import ClaimExtractor, ClaimPath

# Resolvers
from .resolvers import (
    AuthResolverContext,
    CatalogAuthResolverContext,
    CatalogUserQuery,
    ConvergenceRetrier,
    SignInResolverChain,
    build_resolver_registry,
)

__all__ = [
    # Catalog
    "CatalogReader",
    "EntityCache",
    "EntityProviderConnection",
    "InMemoryCatalog",
    # Claims
    "ClaimExtractor",
    "ClaimPath",
    # Resolvers
    "AuthResolverContext",
    "CatalogAuthResolverContext",
    "CatalogUserQuery",
    "ConvergenceRetrier",
    "SignInResolverChain",
    "build_resolver_registry",
]
