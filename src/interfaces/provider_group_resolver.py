"""Abstract base class for provider-group resolution.

Organisations are grouped: a member organisation belongs to a parent
group, and members of the same group are siblings of each other.  Filters
and facets expand every organisation through this resolver.

``expand`` is synchronous on purpose: it is called from filter workers
running in threads and must only read an in-memory table that is
refreshed out of band by ``refresh``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.discovery import ProviderGroup


class IProviderGroupResolver(ABC):
    """Contract for resolving organisations to their provider groups."""

    @abstractmethod
    def expand(self, organization_id: str) -> ProviderGroup:
        """Return the group id and sibling ids of *organization_id*.

        An unknown organisation is its own group and has no siblings.
        """

    @abstractmethod
    def owners_of(self, instance_id: str) -> set[str]:
        """Ids of organisations that declare ownership of *instance_id*."""

    @abstractmethod
    def label(self, organization_id: str) -> str | None:
        """Display name of an organisation, ``None`` when unknown."""

    @abstractmethod
    async def refresh(self) -> None:
        """Rebuild the lookup tables from the entity store."""
