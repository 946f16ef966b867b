"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")


class CatalogConfig(BaseModel):
    """Catalog entity provider configuration."""

    provider_name: str = Field(
        default="dynamic-user-provider",
        description="Name of the entity provider; prefixes every location key",
    )
    namespace: str = Field(
        default="default", description="Namespace of provisioned user entities"
    )
    group_namespace: str = Field(
        default="default", description="Namespace used for group membership refs"
    )
    roles_client: str = Field(
        default="app",
        description="Client id under resource_access whose roles become entitlements",
    )
    read_lag: int = Field(
        default=0,
        ge=0,
        description="Simulated read lag of the in-memory catalog (lookups per write)",
    )


class ConvergenceConfig(BaseModel):
    """Retry policy used while waiting for a provisioned user to become visible."""

    max_attempts: int = Field(default=10, ge=1, description="Maximum lookup attempts")
    retry_delay_ms: int = Field(
        default=300, ge=0, description="Fixed delay between attempts in milliseconds"
    )

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000


class SignInResolverConfig(BaseModel):
    """A single entry of the declarative sign-in resolver chain."""

    resolver: str = Field(description="Registered resolver name")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Options passed to the resolver factory"
    )


class ResolverChainConfig(BaseModel):
    """Ordered resolvers of one sign-in endpoint."""

    resolvers: list[SignInResolverConfig] = Field(
        description="Ordered resolver chain; later entries are tried on NotFoundError",
    )

    @field_validator("resolvers")
    @classmethod
    def _require_resolvers(
        cls, value: list[SignInResolverConfig]
    ) -> list[SignInResolverConfig]:
        if not value:
            raise ValueError("At least one sign-in resolver must be configured")
        return value


def _chain(*names: str) -> ResolverChainConfig:
    return ResolverChainConfig(
        resolvers=[SignInResolverConfig(resolver=name) for name in names]
    )


class SignInConfig(BaseModel):
    """Resolver chains per sign-in endpoint.

    Each chain only accepts resolvers built for its authentication result:
    OIDC results for `oidc`, forwarded request headers for `oauth2_proxy`.
    """

    oidc: ResolverChainConfig = Field(
        default_factory=lambda: _chain("oauth2TokenClaim"),
        description="Resolvers behind POST /auth/oidc/sign-in",
    )
    oauth2_proxy: ResolverChainConfig = Field(
        default_factory=lambda: _chain("oauth2ProxyUserHeaderMatchingUserEntityName"),
        description="Resolvers behind POST /auth/oauth2-proxy/sign-in",
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    catalog: CatalogConfig = Field(
        default_factory=CatalogConfig, description="Catalog provider configuration"
    )
    convergence: ConvergenceConfig = Field(
        default_factory=ConvergenceConfig, description="Convergence retry policy"
    )
    sign_in: SignInConfig = Field(
        default_factory=SignInConfig, description="Sign-in resolver configuration"
    )
