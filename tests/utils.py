import base64
import json
from typing import Any

from src.catalog_sync.core.models.entity import (
    EntityMetadata,
    EntityProviderMutation,
    UserEntity,
    UserProfile,
    UserSpec,
)
from src.catalog_sync.core.services.catalog.connection import EntityProviderConnection


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_jwt(claims: dict[str, Any], header: dict[str, Any] | None = None) -> str:
    """Compact token with an unverifiable signature; only the payload matters."""
    header = header or {"alg": "RS256", "typ": "JWT"}
    return ".".join(
        [
            _b64url(json.dumps(header).encode()),
            _b64url(json.dumps(claims).encode()),
            _b64url(b"signature"),
        ]
    )


def make_user(
    name: str,
    *,
    namespace: str = "default",
    annotations: dict[str, str] | None = None,
    member_of: list[str] | None = None,
) -> UserEntity:
    return UserEntity(
        metadata=EntityMetadata(
            name=name, namespace=namespace, annotations=annotations or {}
        ),
        spec=UserSpec(
            profile=UserProfile(display_name=name, email=f"{name}@example.com"),
            member_of=member_of or [],
        ),
    )


class RecordingConnection(EntityProviderConnection):
    """Provider connection keeping every mutation; optionally failing."""

    def __init__(self, error: Exception | None = None):
        self.mutations: list[EntityProviderMutation] = []
        self.error = error

    async def apply_mutation(self, mutation: EntityProviderMutation) -> None:
        if self.error is not None:
            raise self.error
        self.mutations.append(mutation)

    def published_names(self, index: int = -1) -> list[str]:
        return [d.entity.metadata.name for d in self.mutations[index].entities]


class FakeSleep:
    """Async sleep replacement recording requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
