"""Abstract base class for cache service providers.

Used for process-wide, slowly-changing derived data such as the category
taxonomy tree.  Request snapshots are never cached through this
interface: they live and die with their request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    Operations are async so that a network-backed store can be dropped in
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, ``None`` if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* with the provider's default lifetime."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; a no-op when the key does not exist."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""
