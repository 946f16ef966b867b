"""Sign-in endpoints, each running its own configured resolver chain.

The authentication handshake happens upstream; these endpoints receive
its outcome and return the catalog identity to issue a session for.
"""

from fastapi import APIRouter, Depends, Request

from src.catalog_sync.api.http.deps import (
    get_oauth2_proxy_sign_in_resolver,
    get_oidc_sign_in_resolver,
    get_resolver_context,
)
from src.catalog_sync.core.models.sign_in import (
    OAuth2ProxyResult,
    OidcAuthResult,
    SignInInfo,
    SignInResult,
)
from src.catalog_sync.core.services import CatalogAuthResolverContext, SignInResolverChain

router = APIRouter(prefix="/auth", tags=["sign-in"])


@router.post("/oidc/sign-in", response_model=SignInResult, response_model_by_alias=True)
async def oidc_sign_in(
    info: SignInInfo[OidcAuthResult],
    resolver: SignInResolverChain = Depends(get_oidc_sign_in_resolver),
    ctx: CatalogAuthResolverContext = Depends(get_resolver_context),
) -> SignInResult:
    return await resolver(info, ctx)


@router.post(
    "/oauth2-proxy/sign-in", response_model=SignInResult, response_model_by_alias=True
)
async def oauth2_proxy_sign_in(
    request: Request,
    resolver: SignInResolverChain = Depends(get_oauth2_proxy_sign_in_resolver),
    ctx: CatalogAuthResolverContext = Depends(get_resolver_context),
) -> SignInResult:
    info = SignInInfo[OAuth2ProxyResult](
        result=OAuth2ProxyResult(headers=dict(request.headers))
    )
    return await resolver(info, ctx)
