"""Unit tests for the concurrency helpers."""

from __future__ import annotations

import asyncio

import pytest

from src.utils.concurrency import chunked, partitioned_filter, throttled_gather


class TestChunked:
    def test_near_equal_contiguous_chunks(self) -> None:
        assert chunked(list(range(7)), 3) == [[0, 1, 2], [3, 4], [5, 6]]

    def test_more_parts_than_items(self) -> None:
        assert chunked([1, 2], 5) == [[1], [2]]

    def test_empty(self) -> None:
        assert chunked([], 4) == []


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_caps_concurrency_and_keeps_order(self) -> None:
        active = 0
        peak = 0

        async def job(value: int) -> int:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return value * 2

        results = await throttled_gather([job(i) for i in range(6)], asyncio.Semaphore(2))
        assert results == [0, 2, 4, 6, 8, 10]
        assert peak == 2

    @pytest.mark.asyncio
    async def test_exceptions_are_returned(self) -> None:
        async def boom() -> None:
            raise ValueError("bad")

        async def ok() -> str:
            return "ok"

        results = await throttled_gather([boom(), ok()])
        assert isinstance(results[0], ValueError)
        assert results[1] == "ok"


class TestPartitionedFilter:
    @pytest.mark.asyncio
    async def test_matches_sequential_filter(self) -> None:
        items = list(range(101))
        kept = await partitioned_filter(items, lambda x: x % 3 == 0, workers=4)
        assert kept == [x for x in items if x % 3 == 0]
