"""Facet aggregation over a filtered result set.

Produces, from the surviving root records, the assembled items and the
snapshot:

    categories      the taxonomy tree pruned to branches that contain at
                    least one category of a result item
    keywords        sorted root keywords, each with a base64 id
    organisations   every reachable organisation, expanded through its
                    provider group, rendered once per id
    science_domains categories reachable from the roots that are not part
                    of the browsable scheme
    service_types   categories of the roots' access services

Every list is sorted by ``(label, id)``, so the output does not depend on
the order records were visited in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.models.catalog import Record
from src.models.criteria import FacetsType
from src.models.discovery import DiscoveryItem
from src.models.facets import FacetNode, Facets, FilterNode
from src.models.snapshot import RelationPath, Snapshot
from src.providers.taxonomy.store_taxonomy import category_label, is_scheme_category
from src.services.result_assembler import organization_name
from src.utils.text_normalizer import keyword_id, keyword_set


@dataclass(frozen=True)
class FacetSpec:
    """Where a profile's facets are read from, as relation paths."""

    organisation_paths: tuple[RelationPath, ...] = ()
    science_domain_paths: tuple[RelationPath, ...] = ()
    service_type_paths: tuple[RelationPath, ...] = ()
    keyword_field: str = "keywords"
    owner_organisations: bool = False


def prune_tree(node: FacetNode, keep: set[str]) -> FacetNode | None:
    """Copy of *node* restricted to branches leading to an id in *keep*.

    Returns ``None`` when nothing below (or at) *node* is kept.
    """
    children = tuple(
        pruned for child in node.children if (pruned := prune_tree(child, keep)) is not None
    )
    if node.id in keep or children:
        return FacetNode(id=node.id, label=node.label, children=children)
    return None


def _sorted_nodes(nodes: Iterable[FilterNode]) -> tuple[FilterNode, ...]:
    unique = {n.id: n for n in nodes}
    return tuple(sorted(unique.values(), key=lambda n: (n.label, n.id)))


class FacetAggregator:
    """Builds :class:`Facets` for one response."""

    def __init__(self, groups: IProviderGroupResolver) -> None:
        self._groups = groups

    def keywords(self, roots: Iterable[Record], field_name: str = "keywords") -> tuple[FilterNode, ...]:
        collected: set[str] = set()
        for record in roots:
            for raw in record.texts(field_name):
                collected |= keyword_set(raw)
        return tuple(FilterNode(id=keyword_id(k), label=k) for k in sorted(collected))

    def organisations(
        self,
        roots: Iterable[Record],
        snapshot: Snapshot,
        paths: Sequence[RelationPath],
        owners: bool = False,
    ) -> tuple[FilterNode, ...]:
        reached: dict[str, Record | None] = {}
        for record in roots:
            for org in snapshot.walk_many(record, paths):
                reached.setdefault(org.instance_id, org)
            if owners:
                for owner_id in self._groups.owners_of(record.instance_id):
                    reached.setdefault(owner_id, None)

        nodes: list[FilterNode] = []
        for organization_id in reached:
            group = self._groups.expand(organization_id)
            for provider_id in (organization_id, group.group_id, *group.sibling_ids):
                label = self._label(provider_id, reached.get(provider_id))
                nodes.append(FilterNode(id=provider_id, label=label))
        return _sorted_nodes(nodes)

    def _label(self, organization_id: str, record: Record | None) -> str:
        if record is not None:
            name = organization_name(record)
            if name:
                return name
        return self._groups.label(organization_id) or organization_id

    @staticmethod
    def categories(
        roots: Iterable[Record],
        snapshot: Snapshot,
        paths: Sequence[RelationPath],
        scheme: bool | None = False,
    ) -> tuple[FilterNode, ...]:
        """Categories reachable along *paths*; *scheme* ``None`` keeps all."""
        nodes = [
            FilterNode(id=category.instance_id, label=category_label(category))
            for record in roots
            for category in snapshot.walk_many(record, paths)
            if scheme is None or is_scheme_category(category) == scheme
        ]
        return _sorted_nodes(nodes)

    def aggregate(
        self,
        spec: FacetSpec,
        roots: Sequence[Record],
        items: Sequence[DiscoveryItem],
        snapshot: Snapshot,
        taxonomy: FacetNode | None,
    ) -> Facets:
        category_tree = None
        if taxonomy is not None:
            used = {c for item in items for c in (item.categories or ())}
            category_tree = prune_tree(taxonomy, used) or FacetNode(
                id=taxonomy.id, label=taxonomy.label
            )
        return Facets(
            categories=category_tree,
            keywords=self.keywords(roots, spec.keyword_field),
            organisations=self.organisations(
                roots, snapshot, spec.organisation_paths, spec.owner_organisations
            ),
            science_domains=self.categories(roots, snapshot, spec.science_domain_paths),
            service_types=self.categories(
                roots, snapshot, spec.service_type_paths, scheme=None
            ),
        )

    @staticmethod
    def facet_tree(
        facets_type: FacetsType, facets: Facets, items: Sequence[DiscoveryItem]
    ) -> FacetNode | None:
        """The grouping selected by ``facetstype`` in facet mode."""
        if facets_type is FacetsType.CATEGORIES:
            return facets.categories
        if facets_type is FacetsType.DATA_PROVIDERS:
            names = {n for item in items for n in item.data_provider}
            return _provider_tree("dataproviders", "Data providers", names)
        names = {n for item in items for n in item.service_provider}
        return _provider_tree("serviceproviders", "Service providers", names)


def _provider_tree(root_id: str, label: str, names: set[str]) -> FacetNode:
    return FacetNode(
        id=root_id,
        label=label,
        children=tuple(FacetNode(id=n, label=n) for n in sorted(names)),
    )
