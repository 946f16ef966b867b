"""Load config.yaml with ``${VAR}`` placeholders resolved from the environment."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.catalog_sync.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def _resolve_placeholder(expr: str) -> str:
    if ":-" in expr:
        name, default = expr.split(":-", 1)
        return os.getenv(name, default)

    name, _, message = expr.partition(":?")
    value = os.getenv(name)
    if value is None:
        reason = message or "not set"
        raise ValueError(f"Required environment variable {name}: {reason}")
    return value


def substitute_env_vars(text: str) -> str:
    """Replace environment placeholders in ``text``.

    Supported forms:
    - ``${NAME}``: required, fails when unset
    - ``${NAME:-default}``: falls back to ``default``
    - ``${NAME:?message}``: required, fails with ``message``
    """
    return _PLACEHOLDER.sub(lambda m: _resolve_placeholder(m.group(1)), text)


def _promote_environment_overrides(environment: str) -> None:
    """Copy ``<ENVIRONMENT>_NAME`` variables onto ``NAME``."""
    prefix = f"{environment.upper()}_"
    overrides = {
        name[len(prefix):]: value
        for name, value in os.environ.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    for name, value in overrides.items():
        os.environ[name] = value
        logger.debug(f"Set environment variable {name} from {prefix}{name}")


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Read ``file_path``, resolve placeholders and validate the ``config`` section.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: a required variable is unset, the YAML is empty or
            invalid, or the values do not validate
    """
    environment = os.getenv("APP_ENVIRONMENT", "development")
    logger.info(f"Loading configuration for environment: {environment}")
    _promote_environment_overrides(environment)

    text = substitute_env_vars(Path(file_path).read_text())
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not document:
        raise ValueError(f"Configuration file {file_path} is empty")

    try:
        return ConfigData(**(document.get("config") or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
