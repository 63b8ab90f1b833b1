"""Facet structures returned alongside search results.

Two shapes exist:

    - FacetNode  — a hierarchical node (category taxonomy, provider
      groupings).  It only carries ``id``, ``label`` and ``children``; any
      per-record bookkeeping used while building the tree is dropped
      before a node is created.
    - FilterNode — one entry of a flat filter list (keywords, organisations,
      science domains, service types).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FacetNode(BaseModel):
    """A node of a facet tree."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    children: tuple[FacetNode, ...] = ()


class FilterNode(BaseModel):
    """A selectable value in a flat filter list."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class Facets(BaseModel):
    """All facet structures of one search response."""

    model_config = ConfigDict(frozen=True)

    categories: FacetNode | None = None
    keywords: tuple[FilterNode, ...] = ()
    organisations: tuple[FilterNode, ...] = ()
    science_domains: tuple[FilterNode, ...] = ()
    service_types: tuple[FilterNode, ...] = ()
