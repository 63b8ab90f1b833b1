"""Cache providers.

MemoryCacheProvider keeps entries in a process-local TTL cache.  For
multi-worker deployments a shared backend can implement ICacheProvider
without touching the services that use it.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
