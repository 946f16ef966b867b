"""Errors raised while provisioning users and resolving sign-ins.

Every error carries a machine-readable ``error_code`` and a ``details``
mapping so callers can log or serialise failures uniformly.
"""

from __future__ import annotations

from typing import Any


class CatalogSyncError(Exception):
    """Base class for all errors raised by this package."""

    error_code = "CATALOG_SYNC_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ---------------- claim decoding and validation ----------------
class ResolutionError(CatalogSyncError):
    """Sign-in resolution failed before any catalog lookup."""

    error_code = "RESOLUTION_FAILED"


class MalformedToken(ResolutionError):
    error_code = "MALFORMED_TOKEN"

    def __init__(self, reason: str):
        super().__init__(f"Malformed token: {reason}", {"reason": reason})
        self.reason = reason


class MissingEmail(ResolutionError):
    error_code = "MISSING_EMAIL"

    def __init__(self) -> None:
        super().__init__("Login failed, user profile does not contain an email")


class MissingClaim(ResolutionError):
    """A required claim, header or token is absent from the authentication result."""

    error_code = "MISSING_CLAIM"

    def __init__(self, claim: str, message: str | None = None):
        super().__init__(
            message or f"User profile does not contain '{claim}'", {"claim": claim}
        )
        self.claim = claim


class IdentityMismatch(ResolutionError):
    """A claim disagrees with the same claim decoded from the ID token."""

    error_code = "IDENTITY_MISMATCH"

    def __init__(self, claim: str, provider: str):
        super().__init__(
            f"There was a problem verifying your identity with {provider} "
            f"due to a mismatching '{claim}' claim",
            {"claim": claim, "provider": provider},
        )
        self.claim = claim
        self.provider = provider


class UuidMismatch(IdentityMismatch):
    error_code = "UUID_MISMATCH"


class SubjectMismatch(IdentityMismatch):
    error_code = "SUBJECT_MISMATCH"


# ---------------- catalog lookups ----------------
class CatalogLookupError(CatalogSyncError):
    error_code = "CATALOG_LOOKUP_FAILED"


class NotFoundError(CatalogLookupError):
    """The catalog has no entity matching the query."""

    error_code = "NOT_FOUND"


class ConflictError(CatalogLookupError):
    """The catalog query matched more than one entity."""

    error_code = "CONFLICT"


class NotConverged(CatalogSyncError):
    """A provisioned entity did not become visible within the retry budget."""

    error_code = "NOT_CONVERGED"

    def __init__(self, entity_ref: str, attempts: int):
        super().__init__(
            f"User entity {entity_ref} not found in catalog after {attempts} attempts",
            {"entity_ref": entity_ref, "attempts": attempts},
        )
        self.entity_ref = entity_ref
        self.attempts = attempts


class SignInFailed(CatalogSyncError):
    """No resolver of a chain could resolve the user identity."""

    error_code = "SIGN_IN_FAILED"

    def __init__(self, resolvers: list[str]):
        super().__init__(
            "Failed to sign-in, unable to resolve user identity",
            {"resolvers": resolvers},
        )


# ---------------- cache publishing ----------------
class PublishFailure(CatalogSyncError):
    """Publishing the cache snapshot to the catalog connection failed."""

    error_code = "PUBLISH_FAILED"

    def __init__(self, entity_key: str, cause: BaseException):
        super().__init__(
            f"Failed to publish catalog snapshot for {entity_key}: {cause}",
            {"entity_key": entity_key},
        )
        self.entity_key = entity_key
