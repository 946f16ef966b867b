"""Authentication results handed to sign-in resolvers and their outcomes."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ProfileInfo(BaseModel):
    """Normalised profile produced by the authentication provider."""

    email: str | None = Field(default=None, description="Primary email address")
    display_name: str | None = Field(default=None, description="Display name")
    picture: str | None = Field(default=None, description="Avatar URL")


class TokenSet(BaseModel):
    """Raw tokens returned by the token endpoint."""

    access_token: str | None = Field(default=None, description="OAuth access token")
    id_token: str | None = Field(default=None, description="OIDC ID token")
    refresh_token: str | None = Field(default=None, description="OAuth refresh token")


class OidcFullProfile(BaseModel):
    """Userinfo claims together with the token set they were obtained with."""

    userinfo: dict[str, Any] = Field(default_factory=dict, description="Userinfo claims")
    tokenset: TokenSet = Field(default_factory=TokenSet, description="Token set")


class OidcAuthResult(BaseModel):
    full_profile: OidcFullProfile = Field(default_factory=OidcFullProfile)


class OAuth2ProxyResult(BaseModel):
    """Result of authenticating behind oauth2-proxy: only forwarded headers."""

    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")

    def get_header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


class SignInInfo(BaseModel, Generic[T]):
    """What a sign-in resolver receives from the authenticator."""

    profile: ProfileInfo = Field(default_factory=ProfileInfo)
    result: T


class SignInResult(BaseModel):
    """Identity the auth backend issues a session for."""

    model_config = ConfigDict(populate_by_name=True)

    entity_ref: str = Field(alias="entityRef", description="User entity reference")
    ownership_entity_refs: list[str] = Field(
        default_factory=list,
        alias="ownershipEntityRefs",
        description="References the user is considered to own through",
    )
