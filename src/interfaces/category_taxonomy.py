"""Abstract base class for category taxonomies.

A taxonomy supplies the hierarchy the category facet mirrors.  The facet
aggregator prunes it per response; the taxonomy itself is shared and must
be treated as read-only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.facets import FacetNode


class ICategoryTaxonomy(ABC):
    """Contract for services that provide the category hierarchy."""

    @abstractmethod
    async def tree(self) -> FacetNode:
        """Return the full category tree, rooted at a synthetic node."""

    @abstractmethod
    async def refresh(self) -> None:
        """Drop any cached hierarchy so the next ``tree()`` rebuilds it."""
