"""Declarative relation schema and reference collection.

A :class:`RelationSchema` lists which relations of which record types the
prefetch cache follows, e.g. ``(DATA_PRODUCT, "distribution",
DISTRIBUTION)``.  One schema per search profile replaces hand-written
prefetch code per entity kind.

:func:`collect_references` is one hop of the walk: it looks at a set of
records, follows every declared relation, and returns the referenced ids
grouped by target type, minus anything already known.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Container, Iterable, Iterator

from src.models.catalog import EntityType, Record
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Relation:
    """One followed relation: ``source.name -> target``."""

    source: EntityType
    name: str
    target: EntityType


class RelationSchema:
    """An immutable set of :class:`Relation` triples, indexed by source type."""

    def __init__(self, relations: Iterable[Relation]) -> None:
        by_source: dict[EntityType, list[Relation]] = defaultdict(list)
        for relation in relations:
            if relation not in by_source[relation.source]:
                by_source[relation.source].append(relation)
        self._by_source = {k: tuple(v) for k, v in by_source.items()}

    @classmethod
    def of(cls, *triples: tuple[EntityType, str, EntityType]) -> RelationSchema:
        return cls(Relation(*triple) for triple in triples)

    def relations_of(self, source: EntityType) -> tuple[Relation, ...]:
        return self._by_source.get(source, ())

    def target_types(self) -> set[EntityType]:
        return {r.target for rels in self._by_source.values() for r in rels}

    def depth(self, root: EntityType) -> int:
        """Length of the longest relation chain starting at *root*.

        A chain never revisits a type, so cyclic schemas stay finite.
        """

        def walk(source: EntityType, seen: frozenset[EntityType]) -> int:
            return max(
                (
                    1 + walk(r.target, seen | {r.target})
                    for r in self.relations_of(source)
                    if r.target not in seen
                ),
                default=0,
            )

        return walk(root, frozenset({root}))

    def __iter__(self) -> Iterator[Relation]:
        for relations in self._by_source.values():
            yield from relations

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_source.values())


def collect_references(
    records: Iterable[Record],
    schema: RelationSchema,
    known: Container[tuple[EntityType, str]] = frozenset(),
) -> dict[EntityType, set[str]]:
    """Group the ids referenced by *records* through *schema* by target type.

    Parameters
    ----------
    records:
        Records whose outgoing relations are inspected.
    schema:
        Which relations to follow.
    known:
        Keys to leave out (already resolved or already requested).

    Returns
    -------
    dict
        ``{target type: {instance id, ...}}``; types with nothing new are
        absent.
    """
    wanted: dict[EntityType, set[str]] = defaultdict(set)
    for record in records:
        for relation in schema.relations_of(record.entity_type):
            for reference in record.references(relation.name):
                if reference.target_type != relation.target:
                    logger.debug(
                        "reference_type_mismatch",
                        source=record.instance_id,
                        relation=relation.name,
                        expected=relation.target.value,
                        actual=reference.target_type.value,
                    )
                    continue
                key = (reference.target_type, reference.target_id)
                if key not in known:
                    wanted[reference.target_type].add(reference.target_id)
    return dict(wanted)
