"""Request-scoped snapshot of resolved records.

A :class:`Snapshot` maps ``(entity type, instance id)`` to the record the
store returned for it.  It is produced once per request by the prefetch
cache and never changes afterwards, which is what lets the filter
pipeline read it from several worker threads without locks.

An absent key resolves to ``None``: once the snapshot is frozen there is
no such thing as a lazy fetch.

:class:`SnapshotBuilder` is the only mutable piece.  The prefetch cache
merges batch results into it phase by phase, then calls ``freeze()``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence

from src.models.catalog import EntityType, Record, Reference

SnapshotKey = tuple[EntityType, str]

# A relation path such as ("distribution", "accessService", "provider").
RelationPath = Sequence[str]


class Snapshot:
    """Immutable lookup table of resolved records."""

    __slots__ = ("_records",)

    def __init__(self, records: Mapping[SnapshotKey, Record] | None = None) -> None:
        self._records: Mapping[SnapshotKey, Record] = MappingProxyType(dict(records or {}))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[SnapshotKey]:
        return iter(self._records)

    def get(self, entity_type: EntityType, instance_id: str) -> Record | None:
        return self._records.get((entity_type, instance_id))

    def resolve(self, reference: Reference) -> Record | None:
        """Resolve one reference; ``None`` when it is not in the snapshot."""
        return self._records.get((reference.target_type, reference.target_id))

    def resolve_all(self, references: Iterable[Reference]) -> list[Record]:
        """Resolve references in order, silently skipping unresolved ones."""
        resolved: list[Record] = []
        for reference in references:
            record = self.resolve(reference)
            if record is not None:
                resolved.append(record)
        return resolved

    def follow(self, record: Record, relation: str) -> list[Record]:
        """Records directly referenced by *record* through *relation*."""
        return self.resolve_all(record.references(relation))

    def walk(self, record: Record, path: RelationPath) -> list[Record]:
        """Records reachable from *record* along *path*, one hop per name.

        Duplicates reached through different intermediate records are
        returned once, in first-seen order.  An empty path returns the
        record itself.
        """
        frontier: list[Record] = [record]
        for relation in path:
            seen: set[SnapshotKey] = set()
            next_frontier: list[Record] = []
            for current in frontier:
                for target in self.follow(current, relation):
                    if target.key not in seen:
                        seen.add(target.key)
                        next_frontier.append(target)
            frontier = next_frontier
            if not frontier:
                break
        return frontier

    def walk_many(self, record: Record, paths: Iterable[RelationPath]) -> list[Record]:
        """Union of :meth:`walk` over several paths, deduplicated by key."""
        seen: set[SnapshotKey] = set()
        reached: list[Record] = []
        for path in paths:
            for target in self.walk(record, path):
                if target.key not in seen:
                    seen.add(target.key)
                    reached.append(target)
        return reached

    def records_of(self, entity_type: EntityType) -> list[Record]:
        return [r for (t, _), r in self._records.items() if t == entity_type]

    def ids_of(self, entity_type: EntityType) -> set[str]:
        return {i for (t, i) in self._records if t == entity_type}


class SnapshotBuilder:
    """Accumulates batch results before they are frozen into a Snapshot.

    ``merge`` is idempotent: a key that is already present keeps its first
    record, so re-adding an id never changes what it resolves to.
    """

    def __init__(self) -> None:
        self._records: dict[SnapshotKey, Record] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def merge(self, records: Iterable[Record]) -> list[Record]:
        """Add *records*; return only the ones that were not present yet."""
        added: list[Record] = []
        for record in records:
            if record.key in self._records:
                continue
            self._records[record.key] = record
            added.append(record)
        return added

    def freeze(self) -> Snapshot:
        return Snapshot(self._records)
