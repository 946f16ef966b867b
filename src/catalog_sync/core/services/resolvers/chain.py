"""Resolver registry and the declarative resolver chain."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel

from src.catalog_sync.core.errors import NotFoundError, SignInFailed
from src.catalog_sync.core.models.sign_in import SignInInfo, SignInResult
from src.catalog_sync.core.services.catalog.entity_cache import EntityCache
from src.catalog_sync.core.services.claims.claim_extractor import ClaimExtractor
from src.catalog_sync.core.services.resolvers.context import AuthResolverContext
from src.catalog_sync.core.services.resolvers.convergence import ConvergenceRetrier
from src.catalog_sync.core.services.resolvers.factory import (
    SignInResolver,
    SignInResolverFactory,
)
from src.catalog_sync.core.services.resolvers.sign_in_resolvers import (
    oauth2_proxy_user_header_matching_user_entity_name,
    oauth2_token_claim_resolver,
    oidc_ldap_uuid_matching_annotation,
    oidc_sub_claim_matching_keycloak_user_id,
    oidc_sub_claim_matching_ping_identity_user_id,
    preferred_username_matching_user_entity_name,
)
from src.catalog_sync.runtime.config.config_data import ResolverChainConfig

PROVISIONING_RESOLVER = "oauth2TokenClaim"


def build_resolver_registry(
    entity_cache: EntityCache,
    *,
    extractor: ClaimExtractor | None = None,
    retrier: ConvergenceRetrier | None = None,
) -> dict[str, SignInResolverFactory]:
    """Every resolver factory by its configuration name."""
    return {
        "preferredUsernameMatchingUserEntityName": preferred_username_matching_user_entity_name,
        "oauth2ProxyUserHeaderMatchingUserEntityName": oauth2_proxy_user_header_matching_user_entity_name,
        "oidcSubClaimMatchingKeycloakUserId": oidc_sub_claim_matching_keycloak_user_id,
        "oidcSubClaimMatchingPingIdentityUserId": oidc_sub_claim_matching_ping_identity_user_id,
        "oidcLdapUuidMatchingAnnotation": oidc_ldap_uuid_matching_annotation,
        PROVISIONING_RESOLVER: oauth2_token_claim_resolver(
            entity_cache, extractor=extractor, retrier=retrier
        ),
    }


class SignInResolverChain:
    """Try resolvers in order, moving on only when a user is not found."""

    def __init__(
        self,
        resolvers: list[tuple[str, SignInResolver]],
        result_type: type[BaseModel] | None = None,
    ):
        if not resolvers:
            raise ValueError("A resolver chain needs at least one resolver")
        self._resolvers = resolvers
        self.result_type = result_type

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._resolvers]

    @classmethod
    def from_config(
        cls,
        config: ResolverChainConfig,
        registry: dict[str, SignInResolverFactory],
        result_type: type[BaseModel],
    ) -> SignInResolverChain:
        """Build the chain of one sign-in endpoint.

        Raises:
            ValueError: a resolver is unknown or reads a different
                authentication result than ``result_type``
        """
        resolvers = []
        for entry in config.resolvers:
            factory = registry.get(entry.resolver)
            if factory is None:
                raise ValueError(
                    f"Unknown sign-in resolver '{entry.resolver}', "
                    f"expected one of {sorted(registry)}"
                )
            if factory.result_type is not result_type:
                raise ValueError(
                    f"Sign-in resolver '{entry.resolver}' reads "
                    f"{factory.result_type.__name__}, not {result_type.__name__}"
                )
            resolvers.append((entry.resolver, factory(entry.options)))
        return cls(resolvers, result_type)

    async def __call__(
        self, info: SignInInfo, ctx: AuthResolverContext
    ) -> SignInResult:
        for name, resolver in self._resolvers:
            try:
                return await resolver(info, ctx)
            except NotFoundError:
                logger.debug(f"Resolver {name} found no user, trying the next one")
        raise SignInFailed(self.names)
