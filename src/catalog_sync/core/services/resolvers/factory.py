"""Sign-in resolver factories with validated options."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from src.catalog_sync.core.models.sign_in import OidcAuthResult, SignInInfo, SignInResult
from src.catalog_sync.core.services.resolvers.context import AuthResolverContext

SignInResolver = Callable[[SignInInfo, AuthResolverContext], Awaitable[SignInResult]]


class ResolverOptions(BaseModel):
    """Options understood by every resolver."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    dangerously_allow_sign_in_without_user_in_catalog: bool = Field(
        default=False,
        alias="dangerouslyAllowSignInWithoutUserInCatalog",
        description="Sign users in even when the catalog has no entity for them",
    )

    def fallback_ref(self, entity_ref: str) -> str | None:
        """The dangerous fallback reference, if enabled."""
        return entity_ref if self.dangerously_allow_sign_in_without_user_in_catalog else None


O = TypeVar("O", bound=ResolverOptions)


@dataclass(frozen=True)
class SignInResolverFactory(Generic[O]):
    """Builds resolvers for one kind of authentication result.

    ``result_type`` is the ``SignInInfo.result`` model the built resolvers
    read; a chain only accepts factories matching its endpoint.
    """

    options_model: type[O]
    create: Callable[[O], SignInResolver]
    result_type: type[BaseModel] = OidcAuthResult

    def __call__(self, options: O | dict[str, Any] | None = None) -> SignInResolver:
        """Validate ``options`` and build the resolver.

        Raises:
            pydantic.ValidationError: unknown or mistyped options
        """
        if not isinstance(options, self.options_model):
            options = self.options_model.model_validate(options or {})
        return self.create(options)


def create_sign_in_resolver_factory(
    options_model: type[O],
    create: Callable[[O], SignInResolver],
    result_type: type[BaseModel] = OidcAuthResult,
) -> SignInResolverFactory[O]:
    return SignInResolverFactory(
        options_model=options_model, create=create, result_type=result_type
    )
