"""Unit tests for the background cache-sync job."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.services.cache_sync import CacheSyncJob
from src.utils.errors import UpstreamUnavailableError


def _job(failing: bool = False, max_errors: int = 3, interval: float = 60.0):
    registry = MagicMock()
    registry.refresh = AsyncMock(
        side_effect=UpstreamUnavailableError("plugins down") if failing else None
    )
    directory = MagicMock()
    directory.refresh = AsyncMock()
    taxonomy = MagicMock()
    taxonomy.refresh = AsyncMock()
    terminate = MagicMock()
    job = CacheSyncJob(
        registry, directory, taxonomy,
        interval_seconds=interval, max_errors=max_errors, terminate=terminate,
    )
    return job, registry, directory, taxonomy, terminate


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_refreshes_every_table(self) -> None:
        job, registry, directory, taxonomy, terminate = _job()
        assert await job.run_once() == 0
        registry.refresh.assert_awaited_once()
        directory.refresh.assert_awaited_once()
        taxonomy.refresh.assert_awaited_once()
        assert job.errors == 0
        terminate.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_counts_without_stopping_others(self) -> None:
        job, _, directory, _, terminate = _job(failing=True)
        assert await job.run_once() == 1
        directory.refresh.assert_awaited_once()
        assert job.errors == 1
        terminate.assert_not_called()

    @pytest.mark.asyncio
    async def test_threshold_terminates_once(self) -> None:
        job, _, _, _, terminate = _job(failing=True, max_errors=3)
        for _ in range(5):
            await job.run_once()
        assert job.errors == 5
        terminate.assert_called_once()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        job, registry, *_ = _job(interval=0.01)
        job.start()
        assert job.running
        await asyncio.sleep(0.05)
        await job.stop()
        assert not job.running
        assert registry.refresh.await_count >= 1

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self) -> None:
        job, *_ = _job()
        await job.stop()
        assert not job.running
