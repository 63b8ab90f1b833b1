"""In-memory entity store.

Holds a fixed set of records in a dict keyed by ``(type, instance id)``.
Used by the CLI (loaded from a JSON fixture catalogue) and by tests, which
rely on ``call_counts`` to check how many round trips a search made.

Fixture format::

    {
      "DATAPRODUCT": [{"instanceId": "dp1", "uid": "...", ...}, ...],
      "DISTRIBUTION": [...],
      ...
    }
"""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Iterable

from src.interfaces.entity_store import IEntityStore
from src.models.catalog import EntityType, Record
from src.utils.errors import NotFoundError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryEntityStore(IEntityStore):
    """Dict-backed :class:`IEntityStore`.

    Parameters
    ----------
    records:
        Initial records.  A later record with the same key replaces an
        earlier one.
    """

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: dict[tuple[EntityType, str], Record] = {}
        for record in records:
            self._records[record.key] = record
        # (operation, entity type) -> number of calls
        self.call_counts: Counter[tuple[str, EntityType]] = Counter()

    @classmethod
    def from_catalog(cls, catalog: dict[str, list[dict[str, Any]]]) -> InMemoryEntityStore:
        records = [
            Record.from_payload(EntityType(type_name), payload)
            for type_name, payloads in catalog.items()
            for payload in payloads
        ]
        return cls(records)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryEntityStore:
        with open(path, encoding="utf-8") as handle:
            catalog = json.load(handle)
        store = cls.from_catalog(catalog)
        logger.info("fixture_catalog_loaded", path=str(path), records=len(store))
        return store

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: Record) -> None:
        self._records[record.key] = record

    def calls(self, operation: str, entity_type: EntityType) -> int:
        return self.call_counts[(operation, entity_type)]

    # ------------------------------------------------------------------
    # IEntityStore implementation
    # ------------------------------------------------------------------

    async def retrieve(self, entity_type: EntityType, instance_id: str) -> Record:
        self.call_counts[("retrieve", entity_type)] += 1
        record = self._records.get((entity_type, instance_id))
        if record is None:
            raise NotFoundError(
                f"{entity_type.value} {instance_id} not found",
                provider_name=self.get_provider_name(),
            )
        return record

    async def retrieve_bunch(
        self, entity_type: EntityType, instance_ids: Iterable[str]
    ) -> list[Record]:
        self.call_counts[("retrieve_bunch", entity_type)] += 1
        found: list[Record] = []
        for instance_id in instance_ids:
            record = self._records.get((entity_type, instance_id))
            if record is not None:
                found.append(record)
        return found

    async def retrieve_all(self, entity_type: EntityType) -> list[Record]:
        self.call_counts[("retrieve_all", entity_type)] += 1
        return [r for (t, _), r in self._records.items() if t == entity_type]

    def get_provider_name(self) -> str:
        return "memory"
