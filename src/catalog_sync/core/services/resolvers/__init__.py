"""Sign-in resolvers and the convergence retry used by provisioning."""

from .chain import PROVISIONING_RESOLVER, SignInResolverChain, build_resolver_registry
from .context import (
    AuthResolverContext,
    CatalogAuthResolverContext,
    CatalogUserQuery,
    ownership_entity_refs,
)
from .convergence import ConvergenceRetrier, RetryState
from .factory import (
    ResolverOptions,
    SignInResolver,
    SignInResolverFactory,
    create_sign_in_resolver_factory,
)
from .sign_in_resolvers import (
    KEYCLOAK_INFO,
    LDAP_UUID_ANNOTATION,
    PING_IDENTITY_INFO,
    LdapUuidOptions,
    OidcProviderInfo,
    create_oidc_sub_claim_resolver,
    oauth2_proxy_user_header_matching_user_entity_name,
    oauth2_token_claim_resolver,
    oidc_ldap_uuid_matching_annotation,
    oidc_sub_claim_matching_keycloak_user_id,
    oidc_sub_claim_matching_ping_identity_user_id,
    preferred_username_matching_user_entity_name,
)
