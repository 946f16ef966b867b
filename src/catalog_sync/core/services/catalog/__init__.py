"""Catalog connection, provider cache and in-memory catalog."""

from .connection import CatalogReader, EntityProviderConnection
from .entity_cache import EntityCache
from .in_memory import InMemoryCatalog
