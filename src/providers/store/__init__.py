"""Entity store adapters."""

from src.providers.store.http_store import HttpEntityStore
from src.providers.store.memory_store import InMemoryEntityStore

__all__ = ["HttpEntityStore", "InMemoryEntityStore"]
