"""Authentication result fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from src.catalog_sync.core.models.sign_in import (
    OidcAuthResult,
    OidcFullProfile,
    ProfileInfo,
    SignInInfo,
    TokenSet,
)
from tests.utils import make_jwt

OidcInfoBuilder = Callable[..., SignInInfo[OidcAuthResult]]


@pytest.fixture
def access_token_claims() -> dict[str, Any]:
    return {
        "iss": "https://idp.example.com/realms/main",
        "sub": "f3a1c2d4",
        "groups": ["developers"],
        "resource_access": {"app": {"roles": ["catalog-admin"]}},
    }


@pytest.fixture
def make_oidc_info() -> OidcInfoBuilder:
    """Build an OIDC sign-in info from claims; ``None`` omits a token."""

    def build(
        *,
        email: str | None = "jdoe@example.com",
        access_claims: dict[str, Any] | None = None,
        id_claims: dict[str, Any] | None = None,
        userinfo: dict[str, Any] | None = None,
    ) -> SignInInfo[OidcAuthResult]:
        return SignInInfo[OidcAuthResult](
            profile=ProfileInfo(email=email),
            result=OidcAuthResult(
                full_profile=OidcFullProfile(
                    userinfo=userinfo or {},
                    tokenset=TokenSet(
                        access_token=make_jwt(access_claims)
                        if access_claims is not None
                        else None,
                        id_token=make_jwt(id_claims) if id_claims is not None else None,
                    ),
                )
            ),
        )

    return build
