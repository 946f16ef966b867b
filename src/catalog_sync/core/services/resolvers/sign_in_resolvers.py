"""Sign-in resolvers mapping authentication results to catalog users."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from pydantic import Field

from src.catalog_sync.core.errors import (
    IdentityMismatch,
    MissingClaim,
    PublishFailure,
    SubjectMismatch,
    UuidMismatch,
)
from src.catalog_sync.core.models.entity import stringify_entity_ref
from src.catalog_sync.core.models.sign_in import (
    OAuth2ProxyResult,
    OidcAuthResult,
    SignInInfo,
    SignInResult,
)
from src.catalog_sync.core.services.catalog.entity_cache import EntityCache
from src.catalog_sync.core.services.claims.claim_extractor import ClaimExtractor
from src.catalog_sync.core.services.jwt.jwt_utils import decode_jwt_payload
from src.catalog_sync.core.services.resolvers.context import (
    AuthResolverContext,
    CatalogUserQuery,
)
from src.catalog_sync.core.services.resolvers.convergence import ConvergenceRetrier
from src.catalog_sync.core.services.resolvers.factory import (
    ResolverOptions,
    SignInResolver,
    SignInResolverFactory,
    create_sign_in_resolver_factory,
)
from src.catalog_sync.runtime.settings import load_environment

LDAP_UUID_ANNOTATION = "backstage.io/ldap-uuid"
DEFAULT_USER_HEADERS = ("x-forwarded-preferred-username", "x-forwarded-user")


@dataclass(frozen=True)
class OidcProviderInfo:
    user_id_key: str
    provider_name: str


KEYCLOAK_INFO = OidcProviderInfo(user_id_key="keycloak.org/id", provider_name="Keycloak")
PING_IDENTITY_INFO = OidcProviderInfo(
    user_id_key="pingidentity.org/id", provider_name="Ping Identity"
)


class LdapUuidOptions(ResolverOptions):
    ldap_uuid_key: str = Field(
        default="ldap_uuid",
        alias="ldapUuidKey",
        description="Userinfo and ID token claim holding the LDAP UUID",
    )


def _cross_check_id_token(
    info: SignInInfo[OidcAuthResult],
    claim: str,
    expected: object,
    provider_name: str,
    mismatch: type[IdentityMismatch],
) -> None:
    """Reject the sign-in unless the ID token carries the same ``claim`` value."""
    id_token = info.result.full_profile.tokenset.id_token
    if not id_token:
        raise MissingClaim(
            "id_token",
            f"The user ID token from {provider_name} is missing. "
            "Please contact your system administrator for assistance.",
        )
    if decode_jwt_payload(id_token).get(claim) != expected:
        raise mismatch(claim, provider_name)


# ---------------- username match ----------------
def _create_preferred_username(options: ResolverOptions) -> SignInResolver:
    async def resolver(
        info: SignInInfo[OidcAuthResult], ctx: AuthResolverContext
    ) -> SignInResult:
        user_id = info.result.full_profile.userinfo.get("preferred_username")
        if not user_id:
            raise MissingClaim(
                "preferred_username", "OIDC user profile does not contain a username"
            )

        return await ctx.sign_in_with_catalog_user(
            CatalogUserQuery(entity_ref={"name": user_id}),
            dangerous_entity_ref_fallback=options.fallback_ref(user_id),
        )

    return resolver


preferred_username_matching_user_entity_name = create_sign_in_resolver_factory(
    ResolverOptions, _create_preferred_username
)


# ---------------- oauth2-proxy header match ----------------
def _create_user_header(options: ResolverOptions) -> SignInResolver:
    async def resolver(
        info: SignInInfo[OAuth2ProxyResult], ctx: AuthResolverContext
    ) -> SignInResult:
        override = load_environment().oauth_user_header
        if override:
            name = info.result.get_header(override)
        else:
            name = None
            for header in DEFAULT_USER_HEADERS:
                name = info.result.get_header(header)
                if name:
                    break
        if not name:
            raise MissingClaim("user header", "Request did not contain a user")

        return await ctx.sign_in_with_catalog_user(
            CatalogUserQuery(entity_ref={"name": name}),
            dangerous_entity_ref_fallback=options.fallback_ref(name),
        )

    return resolver


oauth2_proxy_user_header_matching_user_entity_name = create_sign_in_resolver_factory(
    ResolverOptions, _create_user_header, result_type=OAuth2ProxyResult
)


# ---------------- provider subject match ----------------
def create_oidc_sub_claim_resolver(
    provider: OidcProviderInfo,
) -> SignInResolverFactory[ResolverOptions]:
    """Match the ``sub`` claim against the provider's user id annotation."""

    def create(options: ResolverOptions) -> SignInResolver:
        async def resolver(
            info: SignInInfo[OidcAuthResult], ctx: AuthResolverContext
        ) -> SignInResult:
            sub = info.result.full_profile.userinfo.get("sub")
            if not sub:
                raise MissingClaim(
                    "sub",
                    f"The user profile from {provider.provider_name} is missing a 'sub' "
                    "claim, likely due to a misconfiguration in the provider. "
                    "Please contact your system administrator for assistance.",
                )
            _cross_check_id_token(
                info, "sub", sub, provider.provider_name, SubjectMismatch
            )

            return await ctx.sign_in_with_catalog_user(
                CatalogUserQuery(annotations={provider.user_id_key: str(sub)}),
                dangerous_entity_ref_fallback=options.fallback_ref(str(sub)),
            )

        return resolver

    return create_sign_in_resolver_factory(ResolverOptions, create)


oidc_sub_claim_matching_keycloak_user_id = create_oidc_sub_claim_resolver(KEYCLOAK_INFO)
oidc_sub_claim_matching_ping_identity_user_id = create_oidc_sub_claim_resolver(
    PING_IDENTITY_INFO
)


# ---------------- LDAP UUID cross-check ----------------
def _create_ldap_uuid(options: LdapUuidOptions) -> SignInResolver:
    uuid_key = options.ldap_uuid_key

    async def resolver(
        info: SignInInfo[OidcAuthResult], ctx: AuthResolverContext
    ) -> SignInResult:
        uuid = info.result.full_profile.userinfo.get(uuid_key)
        if not uuid:
            raise MissingClaim(
                uuid_key,
                "The user profile from LDAP is missing the UUID, likely due to a "
                "misconfiguration in the provider. Please contact your system "
                "administrator for assistance.",
            )
        _cross_check_id_token(info, uuid_key, uuid, "LDAP", UuidMismatch)

        return await ctx.sign_in_with_catalog_user(
            CatalogUserQuery(annotations={LDAP_UUID_ANNOTATION: str(uuid)}),
            dangerous_entity_ref_fallback=options.fallback_ref(str(uuid)),
        )

    return resolver


oidc_ldap_uuid_matching_annotation = create_sign_in_resolver_factory(
    LdapUuidOptions, _create_ldap_uuid
)


# ---------------- provisioning match ----------------
def oauth2_token_claim_resolver(
    entity_cache: EntityCache,
    *,
    extractor: ClaimExtractor | None = None,
    retrier: ConvergenceRetrier | None = None,
) -> SignInResolverFactory[ResolverOptions]:
    """Provision the user from access token claims, then wait for the catalog.

    The entity is upserted into ``entity_cache`` on every sign-in so group
    memberships follow the latest token. A failed publish is only logged:
    the entity may already be in the catalog from an earlier sign-in, and
    the lookup retries decide the outcome.
    """
    extractor = extractor or ClaimExtractor(
        provider_name=entity_cache.get_provider_name()
    )
    retrier = retrier or ConvergenceRetrier()

    def create(options: ResolverOptions) -> SignInResolver:
        if options.dangerously_allow_sign_in_without_user_in_catalog:
            logger.warning(
                "dangerouslyAllowSignInWithoutUserInCatalog has no effect on the "
                "oauth2TokenClaim resolver"
            )

        async def resolver(
            info: SignInInfo[OidcAuthResult], ctx: AuthResolverContext
        ) -> SignInResult:
            entity = extractor.extract(
                info.result.full_profile.tokenset.access_token, info.profile.email
            )
            entity_ref = stringify_entity_ref(entity)

            try:
                await entity_cache.upsert(entity)
            except PublishFailure as e:
                logger.error(f"Failed to add user to catalog via provider: {e}")

            return await retrier.run(
                entity_ref,
                lambda: ctx.sign_in_with_catalog_user(
                    CatalogUserQuery(entity_ref=entity_ref)
                ),
            )

        return resolver

    return create_sign_in_resolver_factory(ResolverOptions, create)
