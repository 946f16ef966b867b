"""Catalog entity and sign-in models."""

from .entity import (
    CompoundEntityRef,
    DeferredEntity,
    EntityMetadata,
    EntityProviderMutation,
    UserEntity,
    UserProfile,
    UserSpec,
    entity_key,
    parse_entity_ref,
    stringify_entity_ref,
)
from .sign_in import (
    OAuth2ProxyResult,
    OidcAuthResult,
    OidcFullProfile,
    ProfileInfo,
    SignInInfo,
    SignInResult,
    TokenSet,
)

__all__ = [
    "CompoundEntityRef",
    "DeferredEntity",
    "EntityMetadata",
    "EntityProviderMutation",
    "UserEntity",
    "UserProfile",
    "UserSpec",
    "entity_key",
    "parse_entity_ref",
    "stringify_entity_ref",
    "OAuth2ProxyResult",
    "OidcAuthResult",
    "OidcFullProfile",
    "ProfileInfo",
    "SignInInfo",
    "SignInResult",
    "TokenSet",
]
