"""Category taxonomy built from the entity store's category records.

Only categories whose uid contains ``category:`` belong to the browsable
scheme; the rest are science-domain and service-type labels and never
appear in the tree.  Parent links come from each category's ``broader``
relation.  A category whose parent is unknown (or outside the scheme)
hangs directly below the synthetic root.

The assembled tree is kept in an :class:`ICacheProvider` until the TTL
expires or :meth:`refresh` is called by the cache-sync job.
"""

from __future__ import annotations

from collections import defaultdict

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.category_taxonomy import ICategoryTaxonomy
from src.interfaces.entity_store import IEntityStore
from src.models.catalog import EntityType, Record
from src.models.facets import FacetNode
from src.utils.logging import get_logger

logger = get_logger(__name__)

ROOT_ID = "categories"
SCHEME_MARKER = "category:"
_CACHE_KEY = "category_tree"


def category_id(record: Record) -> str:
    """Identifier a category is known by in facets and discovery items."""
    return record.uid or record.instance_id


def category_label(record: Record) -> str:
    names = record.texts("name")
    return names[0] if names else category_id(record)


def is_scheme_category(record: Record) -> bool:
    return SCHEME_MARKER in (record.uid or "")


class StoreCategoryTaxonomy(ICategoryTaxonomy):
    """:class:`ICategoryTaxonomy` assembled from ``retrieve_all(CATEGORY)``."""

    def __init__(self, store: IEntityStore, cache: ICacheProvider) -> None:
        self._store = store
        self._cache = cache

    async def tree(self) -> FacetNode:
        cached = await self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached
        categories = await self._store.retrieve_all(EntityType.CATEGORY)
        root = build_tree(categories)
        await self._cache.set(_CACHE_KEY, root)
        logger.info("category_tree_built", categories=len(categories))
        return root

    async def refresh(self) -> None:
        await self._cache.delete(_CACHE_KEY)


def build_tree(categories: list[Record]) -> FacetNode:
    """Assemble scheme categories into a tree below a synthetic root.

    Siblings are ordered by ``(label, id)`` so the shape never depends on
    the order the store returned the records in.  A ``broader`` chain that
    loops back on itself is broken at the first repeated category, which
    becomes top level.
    """
    scheme = {r.instance_id: r for r in categories if is_scheme_category(r)}
    parent_of: dict[str, str | None] = {}
    for record in scheme.values():
        parents = [ref.target_id for ref in record.references("broader")]
        parent_of[record.instance_id] = parents[0] if parents and parents[0] in scheme else None

    for start in sorted(parent_of):
        seen: set[str] = set()
        node: str | None = start
        while node is not None and node not in seen:
            seen.add(node)
            node = parent_of[node]
        if node is not None:
            parent_of[node] = None

    children: dict[str | None, list[Record]] = defaultdict(list)
    for instance_id, parent in parent_of.items():
        children[parent].append(scheme[instance_id])

    def build(record: Record) -> FacetNode:
        kids = [build(child) for child in children.get(record.instance_id, [])]
        return FacetNode(
            id=category_id(record),
            label=category_label(record),
            children=tuple(sorted(kids, key=lambda n: (n.label, n.id))),
        )

    top = [build(r) for r in children.get(None, [])]
    return FacetNode(
        id=ROOT_ID,
        label="Categories",
        children=tuple(sorted(top, key=lambda n: (n.label, n.id))),
    )
