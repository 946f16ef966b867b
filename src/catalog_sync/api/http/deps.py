"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Request

from src.catalog_sync.api.http.app_data import ApplicationDependencies
from src.catalog_sync.core.services import (
    CatalogAuthResolverContext,
    EntityCache,
    SignInResolverChain,
)


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_entity_cache(request: Request) -> EntityCache:
    """Get the entity cache instance."""
    return get_app_dependencies(request).entity_cache


def get_resolver_context(request: Request) -> CatalogAuthResolverContext:
    """Get the catalog-backed resolution context."""
    return get_app_dependencies(request).resolver_context


def get_oidc_sign_in_resolver(request: Request) -> SignInResolverChain:
    """Get the resolver chain for OIDC authentication results."""
    return get_app_dependencies(request).oidc_sign_in_resolver


def get_oauth2_proxy_sign_in_resolver(request: Request) -> SignInResolverChain:
    """Get the resolver chain for oauth2-proxy forwarded headers."""
    return get_app_dependencies(request).oauth2_proxy_sign_in_resolver
