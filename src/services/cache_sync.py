"""Periodic refresh of process-wide lookup tables.

Every ``interval_seconds`` the job refreshes, concurrently:

    - the plugin registry (conversion plugins per distribution),
    - the organisation group directory,
    - the category taxonomy cache.

A failed refresh keeps the previous table in place and increments a
cumulative error counter.  Once the counter reaches ``max_errors`` the
injected ``terminate`` callback runs (by default the process sends itself
SIGTERM so the orchestrator restarts it).  Request handling never reaches
this code path.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
from typing import Awaitable, Callable

from src.interfaces.category_taxonomy import ICategoryTaxonomy
from src.interfaces.provider_group_resolver import IProviderGroupResolver
from src.services.plugin_registry import PluginRegistry
from src.utils.logging import get_logger

logger = get_logger(__name__)


def _terminate_process() -> None:
    os.kill(os.getpid(), signal.SIGTERM)


class CacheSyncJob:
    """Background refresher with a cumulative error threshold."""

    def __init__(
        self,
        registry: PluginRegistry,
        directory: IProviderGroupResolver,
        taxonomy: ICategoryTaxonomy,
        interval_seconds: float = 300.0,
        max_errors: int = 18,
        terminate: Callable[[], None] | None = None,
    ) -> None:
        self._refreshers: list[tuple[str, Callable[[], Awaitable[object]]]] = [
            ("plugins", registry.refresh),
            ("organizations", directory.refresh),
            ("taxonomy", taxonomy.refresh),
        ]
        self._interval = interval_seconds
        self._max_errors = max_errors
        self._terminate = terminate or _terminate_process
        self._errors = 0
        self._terminated = False
        self._task: asyncio.Task[None] | None = None

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Run one refresh cycle; return how many refreshers failed."""
        results = await asyncio.gather(
            *(refresh() for _, refresh in self._refreshers), return_exceptions=True
        )
        failed = 0
        for (name, _), result in zip(self._refreshers, results):
            if isinstance(result, Exception):
                failed += 1
                logger.error("cache_refresh_failed", target=name, error=str(result))
        self._errors += failed
        logger.info("cache_sync_complete", failed=failed, total_errors=self._errors)

        if self._errors >= self._max_errors and not self._terminated:
            self._terminated = True
            logger.critical(
                "cache_sync_error_threshold_reached",
                errors=self._errors,
                max_errors=self._max_errors,
            )
            self._terminate()
        return failed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()

    def start(self) -> None:
        """Schedule refreshes every interval; the first runs after one interval."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="cache-sync")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
