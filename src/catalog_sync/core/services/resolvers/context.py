"""Resolution context handed to sign-in resolvers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from loguru import logger
from pydantic import BaseModel, Field, model_validator

from src.catalog_sync.core.errors import ConflictError, NotFoundError
from src.catalog_sync.core.models.entity import (
    USER_KIND,
    UserEntity,
    parse_entity_ref,
    stringify_entity_ref,
)
from src.catalog_sync.core.models.sign_in import SignInResult
from src.catalog_sync.core.services.catalog.connection import CatalogReader


class CatalogUserQuery(BaseModel):
    """Either an entity reference or a set of annotations to match."""

    entity_ref: str | dict[str, str] | None = Field(
        default=None, description="Full or partial user entity reference"
    )
    annotations: dict[str, str] | None = Field(
        default=None, description="Annotation values the user must carry"
    )

    @model_validator(mode="after")
    def _exactly_one(self) -> CatalogUserQuery:
        if (self.entity_ref is None) == (self.annotations is None):
            raise ValueError("Provide exactly one of entity_ref or annotations")
        return self


class AuthResolverContext(ABC):
    @abstractmethod
    async def sign_in_with_catalog_user(
        self,
        query: CatalogUserQuery,
        *,
        dangerous_entity_ref_fallback: str | None = None,
    ) -> SignInResult:
        """Resolve ``query`` against the catalog and sign that user in.

        Args:
            query: How to find the user
            dangerous_entity_ref_fallback: Reference signed in without a
                catalog entity when the user is not found

        Raises:
            NotFoundError: no user matched and no fallback was given
            ConflictError: more than one user matched
        """
        pass


class CatalogAuthResolverContext(AuthResolverContext):
    """Resolution context backed by a catalog read path."""

    def __init__(self, catalog: CatalogReader):
        self._catalog = catalog

    async def find_catalog_user(self, query: CatalogUserQuery) -> UserEntity:
        if query.entity_ref is not None:
            ref = parse_entity_ref(query.entity_ref)
            entity = await self._catalog.get_entity_by_ref(ref)
            if entity is None:
                raise NotFoundError(f"User not found: {ref}", {"entity_ref": str(ref)})
            return entity

        annotations = query.annotations or {}
        entities = await self._catalog.find_entities_by_annotations(
            USER_KIND, annotations
        )
        if not entities:
            raise NotFoundError("User not found", {"annotations": annotations})
        if len(entities) > 1:
            raise ConflictError(
                "User lookup resulted in multiple matches",
                {"annotations": annotations, "matches": [e.ref for e in entities]},
            )
        return entities[0]

    async def sign_in_with_catalog_user(
        self,
        query: CatalogUserQuery,
        *,
        dangerous_entity_ref_fallback: str | None = None,
    ) -> SignInResult:
        try:
            entity = await self.find_catalog_user(query)
        except NotFoundError:
            if not dangerous_entity_ref_fallback:
                raise
            fallback_ref = str(parse_entity_ref(dangerous_entity_ref_fallback))
            logger.warning(
                f"User not in catalog, signing in as {fallback_ref} without a catalog entity"
            )
            return SignInResult(
                entity_ref=fallback_ref, ownership_entity_refs=[fallback_ref]
            )

        return SignInResult(
            entity_ref=stringify_entity_ref(entity),
            ownership_entity_refs=ownership_entity_refs(entity),
        )


def ownership_entity_refs(entity: UserEntity) -> list[str]:
    """The user's own reference followed by the groups it is a member of."""
    refs = [stringify_entity_ref(entity)]
    for group in entity.spec.member_of:
        ref = str(
            parse_entity_ref(
                group, default_kind="group", default_namespace=entity.metadata.namespace
            )
        )
        if ref not in refs:
            refs.append(ref)
    return refs
