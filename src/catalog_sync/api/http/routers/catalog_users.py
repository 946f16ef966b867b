"""Administrative endpoints over the dynamically provisioned users."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.catalog_sync.api.http.deps import get_entity_cache
from src.catalog_sync.core.models.entity import USER_KIND
from src.catalog_sync.core.services import EntityCache

router = APIRouter(prefix="/catalog/users", tags=["catalog-users"])


class RemoveUserResponse(BaseModel):
    key: str
    removed: bool


@router.get("")
async def list_users(
    entity_cache: EntityCache = Depends(get_entity_cache),
) -> list[dict[str, Any]]:
    """Current snapshot of the provider, as published to the catalog."""
    return [deferred.to_wire() for deferred in entity_cache.snapshot()]


@router.delete("/{namespace}/{name}", response_model=RemoveUserResponse)
async def remove_user(
    namespace: str,
    name: str,
    entity_cache: EntityCache = Depends(get_entity_cache),
) -> RemoveUserResponse:
    """Remove a provisioned user and republish the remaining snapshot.

    Removing a user that was never provisioned is a no-op.
    """
    key = f"{USER_KIND}:{namespace}/{name}"
    removed = await entity_cache.remove(key)
    return RemoveUserResponse(key=key, removed=removed)
