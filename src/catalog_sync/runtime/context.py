"""Application-wide context holding the active configuration."""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src.catalog_sync.runtime.config.config_data import ConfigData
from src.catalog_sync.runtime.config.config_template import load_templated_yaml

CONFIG_PATH = Path("config.yaml")


@dataclass
class AppContext:
    """Application context containing configuration and other app-wide state."""

    config: ConfigData


def _load_default_config() -> ConfigData:
    if CONFIG_PATH.exists():
        return load_templated_yaml(CONFIG_PATH)
    return ConfigData()


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=AppContext(config=_load_default_config())
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    """Make ``context`` current; the returned token restores the previous one."""
    return _app_context.set(context)


def _explicit_values(model: BaseModel) -> dict[str, Any]:
    """Fields of ``model`` that were set explicitly, at any depth.

    Nested models count as set when one of their own fields was, which
    covers overrides built by mutating a default instance.
    """
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_values(value)
            if nested:
                values[name] = nested
            elif name in model.model_fields_set:
                values[name] = value.model_dump()
        elif name in model.model_fields_set:
            values[name] = (
                [v.model_dump() if isinstance(v, BaseModel) else v for v in value]
                if isinstance(value, list)
                else value
            )
    return values


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily apply the explicitly set fields of ``config_override``.

    Example:
        override = ConfigData()
        override.convergence.max_attempts = 3
        with with_context(override):
            assert get_config().convergence.max_attempts == 3
    """
    if config_override is None:
        yield
        return
    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    current = get_context()
    merged = ConfigData.model_validate(
        _deep_merge(current.config.model_dump(), _explicit_values(config_override))
    )
    token = set_context(replace(current, config=merged))
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the entire current configuration."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
