"""Process-wide registry of conversion plugins.

Readers call :meth:`PluginRegistry.current` and keep the returned
:class:`PluginSnapshot` for the whole request; it never changes under
them.  :meth:`PluginRegistry.refresh` builds a complete new snapshot and
swaps the reference, so readers never wait for a refresh.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from src.interfaces.plugin_source import IPluginSource
from src.models.discovery import Plugin, PluginRelation
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PluginSnapshot:
    """Immutable ``distribution id -> plugin relations`` table."""

    version: int = 0
    relations: Mapping[str, tuple[PluginRelation, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def for_distribution(self, distribution_id: str) -> tuple[PluginRelation, ...]:
        return self.relations.get(distribution_id, ())

    def __len__(self) -> int:
        return len(self.relations)


def build_snapshot(plugins: Iterable[Plugin], version: int) -> PluginSnapshot:
    """Index *plugins* by distribution; the first descriptor per id wins."""
    table: dict[str, tuple[PluginRelation, ...]] = {}
    for plugin in plugins:
        if plugin.distribution_id in table:
            continue
        table[plugin.distribution_id] = plugin.relations
    return PluginSnapshot(version=version, relations=MappingProxyType(table))


class PluginRegistry:
    """Holds the current :class:`PluginSnapshot` and refreshes it."""

    def __init__(self, source: IPluginSource) -> None:
        self._source = source
        self._snapshot = PluginSnapshot()
        self._lock = asyncio.Lock()

    def current(self) -> PluginSnapshot:
        return self._snapshot

    async def refresh(self) -> PluginSnapshot:
        """Fetch plugins and publish a new snapshot.

        Raises whatever the source raises; the previous snapshot stays in
        place in that case.
        """
        async with self._lock:
            plugins = await self._source.fetch_plugins()
            snapshot = build_snapshot(plugins, self._snapshot.version + 1)
            self._snapshot = snapshot
        logger.info(
            "plugin_registry_refreshed",
            version=snapshot.version,
            distributions=len(snapshot),
        )
        return snapshot
