"""Batched, multi-hop reference prefetch.

Turns "resolve every reference of every record" into at most one batch
call per (entity type, hop):

    phase 0   the root records themselves are merged into the snapshot
    phase k   ids referenced by the records added in phase k-1 (and not yet
              known or requested) are grouped by type; one ``retrieve_bunch``
              per type is issued concurrently; results are merged
    stop      when a phase discovers nothing new or ``max_hops`` is reached

Each phase waits for all of its batch calls before the next one starts,
since the next phase's input is this phase's output.  The store semaphore
caps how many batch calls are in flight at once across the process.

Failure policy: a failed batch call is logged and that type contributes
nothing for this phase.  Only when every batch call of the whole prefetch
failed is :class:`StoreUnavailableError` raised.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from src.interfaces.entity_store import IEntityStore
from src.models.catalog import EntityType, Record
from src.models.snapshot import Snapshot, SnapshotBuilder, SnapshotKey
from src.services.reference_collector import RelationSchema, collect_references
from src.utils.concurrency import throttled_gather
from src.utils.errors import StoreUnavailableError
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PrefetchStats:
    """Bookkeeping of one prefetch run."""

    hops: int = 0
    round_trips: Counter[EntityType] = field(default_factory=Counter)
    failed_types: list[tuple[int, EntityType]] = field(default_factory=list)
    records: int = 0
    duration_ms: float = 0.0

    @property
    def total_round_trips(self) -> int:
        return sum(self.round_trips.values())


@dataclass(frozen=True)
class PrefetchResult:
    snapshot: Snapshot
    stats: PrefetchStats


class PrefetchCache:
    """Builds request snapshots from root records.

    Parameters
    ----------
    store:
        Where batches are fetched from.
    schema:
        Relations to follow.
    max_hops:
        Upper bound on the number of fetch phases.  ``None`` follows the
        longest relation chain of *schema* from the root types.
    semaphore:
        Optional limiter shared with every other user of *store*.
    """

    def __init__(
        self,
        store: IEntityStore,
        schema: RelationSchema,
        max_hops: int | None = None,
        semaphore: asyncio.Semaphore | None = None,
    ) -> None:
        self._store = store
        self._schema = schema
        self._max_hops = None if max_hops is None else max(0, max_hops)
        self._semaphore = semaphore

    async def prefetch(self, roots: Sequence[Record]) -> PrefetchResult:
        """Resolve everything reachable from *roots* within ``max_hops``.

        Raises
        ------
        StoreUnavailableError
            If at least one batch call was made and all of them failed.
        """
        started = time.perf_counter()
        stats = PrefetchStats()
        builder = SnapshotBuilder()
        requested: set[SnapshotKey] = set()
        frontier = builder.merge(roots)
        attempted = 0
        failed = 0

        for hop in range(1, self._hop_limit(roots) + 1):
            known = _Known(builder, requested)
            wanted = collect_references(frontier, self._schema, known)
            if not wanted:
                break

            types = sorted(wanted, key=lambda t: t.value)
            for entity_type in types:
                requested.update((entity_type, i) for i in wanted[entity_type])

            phase_started = time.perf_counter()
            results = await throttled_gather(
                [self._store.retrieve_bunch(t, sorted(wanted[t])) for t in types],
                semaphore=self._semaphore,
            )

            added: list[Record] = []
            for entity_type, result in zip(types, results):
                attempted += 1
                stats.round_trips[entity_type] += 1
                if isinstance(result, BaseException):
                    failed += 1
                    stats.failed_types.append((hop, entity_type))
                    logger.warning(
                        "batch_fetch_failed",
                        hop=hop,
                        entity_type=entity_type.value,
                        ids=len(wanted[entity_type]),
                        error=str(result),
                    )
                    continue
                added.extend(
                    builder.merge(r for r in result if r.entity_type == entity_type)
                )

            stats.hops = hop
            logger.debug(
                "prefetch_phase_complete",
                hop=hop,
                types=[t.value for t in types],
                requested=sum(len(wanted[t]) for t in types),
                added=len(added),
                duration_ms=round((time.perf_counter() - phase_started) * 1000, 2),
            )
            frontier = added
            if not frontier:
                break

        if attempted and failed == attempted:
            raise StoreUnavailableError(
                f"All {attempted} batch calls failed during prefetch"
            )

        stats.records = len(builder)
        stats.duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "prefetch_complete",
            roots=len(roots),
            hops=stats.hops,
            round_trips=stats.total_round_trips,
            records=stats.records,
            failed=len(stats.failed_types),
            duration_ms=stats.duration_ms,
        )
        return PrefetchResult(snapshot=builder.freeze(), stats=stats)

    def _hop_limit(self, roots: Sequence[Record]) -> int:
        if self._max_hops is not None:
            return self._max_hops
        root_types = {r.entity_type for r in roots}
        return max((self._schema.depth(t) for t in root_types), default=0)


class _Known:
    """Membership view over resolved and already-requested keys."""

    __slots__ = ("_builder", "_requested")

    def __init__(self, builder: SnapshotBuilder, requested: set[SnapshotKey]) -> None:
        self._builder = builder
        self._requested = requested

    def __contains__(self, key: object) -> bool:
        return key in self._requested or key in self._builder
