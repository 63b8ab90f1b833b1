"""Catalog search domain models — re-exports all public model classes.

Submodules by concern:
    - catalog.py   — Record, Reference and the entity-type / status enums
    - snapshot.py  — immutable request-scoped lookup table and its builder
    - criteria.py  — typed search criteria parsed from query parameters
    - facets.py    — facet tree nodes and flat filter lists
    - discovery.py — result view models (DiscoveryItem, formats, responses)
"""

from __future__ import annotations

from src.models.catalog import EntityType, Record, RecordStatus, Reference
from src.models.criteria import BoundingBox, FacetsType, FilterCriteria, RequestUser
from src.models.discovery import (
    AvailableFormat,
    AvailableFormatType,
    DataServiceProvider,
    DiscoveryItem,
    OrganizationItem,
    Plugin,
    PluginRelation,
    ProviderGroup,
    SearchResponse,
)
from src.models.facets import FacetNode, Facets, FilterNode
from src.models.snapshot import RelationPath, Snapshot, SnapshotBuilder, SnapshotKey

__all__ = [
    "AvailableFormat",
    "AvailableFormatType",
    "BoundingBox",
    "DataServiceProvider",
    "DiscoveryItem",
    "EntityType",
    "FacetNode",
    "Facets",
    "FacetsType",
    "FilterCriteria",
    "FilterNode",
    "OrganizationItem",
    "Plugin",
    "PluginRelation",
    "ProviderGroup",
    "Record",
    "RecordStatus",
    "Reference",
    "RelationPath",
    "RequestUser",
    "SearchResponse",
    "Snapshot",
    "SnapshotBuilder",
    "SnapshotKey",
]
