"""Derive catalog user entities from access token claims."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.catalog_sync.core.errors import MalformedToken, MissingEmail
from src.catalog_sync.core.models.entity import (
    ANNOTATION_LOCATION,
    ANNOTATION_ORIGIN_LOCATION,
    DEFAULT_NAMESPACE,
    EntityMetadata,
    UserEntity,
    UserProfile,
    UserSpec,
)
from src.catalog_sync.core.services.jwt.jwt_utils import decode_jwt_payload
from src.catalog_sync.runtime.config.config_data import CatalogConfig


@dataclass(frozen=True)
class ClaimPath:
    """Location of an optional string-list claim and the value used when it is absent.

    A claim is absent when any segment of the path is missing, when an
    intermediate value is not an object, or when the leaf is ``null``.
    A leaf that is present but not a list of non-empty strings is a
    malformed token.
    """

    path: tuple[str, ...]
    default: tuple[str, ...] = ()

    @property
    def dotted(self) -> str:
        return ".".join(self.path)

    def resolve(self, claims: dict[str, Any]) -> list[str]:
        node: Any = claims
        for segment in self.path:
            if not isinstance(node, dict) or segment not in node:
                return list(self.default)
            node = node[segment]

        if node is None:
            return list(self.default)
        if not isinstance(node, list) or not all(isinstance(v, str) for v in node):
            raise MalformedToken(f"claim '{self.dotted}' must be a list of strings")
        if not all(node):
            raise MalformedToken(f"claim '{self.dotted}' contains an empty string")
        return list(node)


class ClaimExtractor:
    """Build the user entity provisioned for a signed-in principal.

    Entitlements are the ``groups`` claim followed by the roles granted to
    ``roles_client`` under ``resource_access``, duplicates preserved. Each
    entitlement becomes a ``group:<group_namespace>/<entitlement>`` membership.
    """

    def __init__(
        self,
        *,
        provider_name: str = "dynamic-user-provider",
        namespace: str = DEFAULT_NAMESPACE,
        group_namespace: str = DEFAULT_NAMESPACE,
        roles_client: str = "app",
    ):
        self._provider_name = provider_name
        self._namespace = namespace
        self._group_namespace = group_namespace
        self._entitlement_paths = (
            ClaimPath(("groups",)),
            ClaimPath(("resource_access", roles_client, "roles")),
        )

    @classmethod
    def from_config(cls, config: CatalogConfig) -> ClaimExtractor:
        return cls(
            provider_name=config.provider_name,
            namespace=config.namespace,
            group_namespace=config.group_namespace,
            roles_client=config.roles_client,
        )

    def entitlements(self, claims: dict[str, Any]) -> list[str]:
        entitlements: list[str] = []
        for claim_path in self._entitlement_paths:
            entitlements.extend(claim_path.resolve(claims))
        return entitlements

    def group_refs(self, entitlements: list[str]) -> list[str]:
        return [f"group:{self._group_namespace}/{e}" for e in entitlements]

    def extract(self, access_token: str | None, email: str | None) -> UserEntity:
        """Decode ``access_token`` and build the user entity for ``email``.

        Raises:
            MalformedToken: the token is missing or its payload cannot be decoded
            MissingEmail: no usable email was provided
        """
        if not access_token:
            raise MalformedToken("access token is missing")
        claims = decode_jwt_payload(access_token)

        username = email.split("@", 1)[0] if email else ""
        if not username:
            raise MissingEmail()

        location = f"url:{self._provider_name}"
        return UserEntity(
            metadata=EntityMetadata(
                name=username,
                namespace=self._namespace,
                annotations={
                    ANNOTATION_LOCATION: location,
                    ANNOTATION_ORIGIN_LOCATION: location,
                },
            ),
            spec=UserSpec(
                profile=UserProfile(display_name=username, email=email),
                member_of=self.group_refs(self.entitlements(claims)),
            ),
        )
