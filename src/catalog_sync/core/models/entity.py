"""Catalog entity models and entity reference helpers."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NAMESPACE = "default"
USER_KIND = "User"
API_VERSION = "backstage.io/v1alpha1"

ANNOTATION_LOCATION = "backstage.io/managed-by-location"
ANNOTATION_ORIGIN_LOCATION = "backstage.io/managed-by-origin-location"


class _WireModel(BaseModel):
    """Base for models exchanged with the catalog using camelCase field names."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EntityMetadata(_WireModel):
    name: str = Field(description="Entity name, unique within kind and namespace")
    namespace: str = Field(default=DEFAULT_NAMESPACE, description="Entity namespace")
    annotations: dict[str, str] = Field(
        default_factory=dict, description="Free-form string annotations"
    )


class UserProfile(_WireModel):
    display_name: str | None = Field(default=None, alias="displayName")
    email: str | None = Field(default=None)
    picture: str | None = Field(default=None)


class UserSpec(_WireModel):
    profile: UserProfile = Field(default_factory=UserProfile)
    member_of: list[str] = Field(default_factory=list, alias="memberOf")


class UserEntity(_WireModel):
    """A catalog ``User`` entity."""

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: Literal["User"] = Field(default=USER_KIND)
    metadata: EntityMetadata
    spec: UserSpec = Field(default_factory=UserSpec)

    @property
    def key(self) -> str:
        return entity_key(self)

    @property
    def ref(self) -> str:
        return stringify_entity_ref(self)


class DeferredEntity(_WireModel):
    """An entity paired with the location key the catalog attributes it to."""

    entity: UserEntity
    location_key: str = Field(alias="locationKey")


class EntityProviderMutation(_WireModel):
    """A batch sent from an entity provider to the catalog.

    ``full`` batches replace everything previously received under the
    provider's location keys.
    """

    type: Literal["full"] = "full"
    entities: list[DeferredEntity] = Field(default_factory=list)


class CompoundEntityRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind.lower()}:{self.namespace}/{self.name}"


def entity_key(entity: UserEntity) -> str:
    """Cache key of an entity: ``Kind:namespace/name`` with the kind as declared."""
    return f"{entity.kind}:{entity.metadata.namespace}/{entity.metadata.name}"


def stringify_entity_ref(entity: UserEntity | CompoundEntityRef) -> str:
    """Catalog reference of an entity: ``kind:namespace/name`` with the kind lowercased."""
    if isinstance(entity, CompoundEntityRef):
        return str(entity)
    return str(
        CompoundEntityRef(
            kind=entity.kind,
            namespace=entity.metadata.namespace,
            name=entity.metadata.name,
        )
    )


def parse_entity_ref(
    ref: str | dict[str, str],
    *,
    default_kind: str = "user",
    default_namespace: str = DEFAULT_NAMESPACE,
) -> CompoundEntityRef:
    """Parse ``[kind:][namespace/]name`` or a partial mapping into a full reference."""
    if isinstance(ref, dict):
        name = ref.get("name")
        if not name:
            raise ValueError(f"Entity reference {ref!r} has no name")
        return CompoundEntityRef(
            kind=ref.get("kind") or default_kind,
            namespace=ref.get("namespace") or default_namespace,
            name=name,
        )

    kind = default_kind
    namespace = default_namespace
    rest = ref
    if ":" in rest:
        kind, rest = rest.split(":", 1)
    if "/" in rest:
        namespace, rest = rest.split("/", 1)
    if not kind or not namespace or not rest:
        raise ValueError(f"Invalid entity reference {ref!r}")
    return CompoundEntityRef(kind=kind, namespace=namespace, name=rest)
