"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends

from src.catalog_sync.api.http.deps import get_entity_cache
from src.catalog_sync.core.services import EntityCache

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness check: 200 OK as long as the process is running."""
    return {"status": "healthy", "service": "catalog-sync"}


@router.get("/ready")
async def readiness(
    entity_cache: EntityCache = Depends(get_entity_cache),
) -> dict[str, Any]:
    """Report whether the provider can publish to the catalog."""
    return {
        "status": "ready" if entity_cache.is_connected else "degraded",
        "provider": entity_cache.get_provider_name(),
        "connected": entity_cache.is_connected,
        "cached_users": len(entity_cache),
    }
