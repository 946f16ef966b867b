"""Shared pytest fixtures and helpers for catalog sync tests."""

from .api import *  # noqa: F401,F403
from .auth import *  # noqa: F401,F403
from .catalog import *  # noqa: F401,F403
