"""Unit tests for FilterPipeline execution (ordering, isolation, parallelism)."""

from __future__ import annotations

import itertools
from typing import Callable

import pytest

from src.models.catalog import EntityType, Record
from src.models.criteria import FilterCriteria
from src.models.snapshot import Snapshot
from src.services.filter_pipeline import FilterExecutionConfig, FilterPipeline
from src.services.filter_stages import (
    FilterStage,
    KeywordStage,
    Predicate,
    StageContext,
)
from src.services.search_profiles import data_product_profile

E = EntityType


class _ExplodingStage(FilterStage):
    name = "exploding"

    def bind(self, context: StageContext) -> Predicate | None:
        raise RuntimeError("cannot bind")


class _FlakyStage(FilterStage):
    """Raises for one record, keeps every other one."""

    name = "flaky"

    def __init__(self, bad_id: str) -> None:
        self._bad_id = bad_id

    def bind(self, context: StageContext) -> Predicate | None:
        def predicate(record: Record) -> bool:
            if record.instance_id == self._bad_id:
                raise ValueError("broken record")
            return True

        return predicate


def _context(snapshot: Snapshot, groups, **params: str) -> StageContext:
    return StageContext(criteria=FilterCriteria.from_params(params), snapshot=snapshot, groups=groups)


class TestExecutionConfig:
    def test_threshold(self) -> None:
        config = FilterExecutionConfig(workers=4, parallel_threshold=100)
        assert not config.use_parallel(99)
        assert config.use_parallel(100)

    def test_single_worker_never_parallel(self) -> None:
        assert not FilterExecutionConfig(workers=1, parallel_threshold=1).use_parallel(1000)


class TestFilterPipeline:
    @pytest.mark.asyncio
    async def test_no_active_stage_keeps_everything(
        self, product_roots, product_snapshot, group_directory
    ) -> None:
        pipeline = FilterPipeline(data_product_profile().stages)
        kept = await pipeline.run(product_roots, _context(product_snapshot, group_directory))
        assert kept == product_roots

    @pytest.mark.asyncio
    async def test_bind_failure_skips_only_that_stage(
        self, product_roots, product_snapshot, group_directory
    ) -> None:
        pipeline = FilterPipeline([_ExplodingStage(), KeywordStage()])
        kept = await pipeline.run(
            product_roots, _context(product_snapshot, group_directory, keywords="gnss")
        )
        assert [r.instance_id for r in kept] == ["dp-2"]

    @pytest.mark.asyncio
    async def test_record_failure_excludes_only_that_record(
        self, product_roots, product_snapshot, group_directory
    ) -> None:
        pipeline = FilterPipeline([_FlakyStage("dp-1")])
        kept = await pipeline.run(product_roots, _context(product_snapshot, group_directory))
        assert [r.instance_id for r in kept] == ["dp-2"]

    @pytest.mark.asyncio
    async def test_stage_order_does_not_change_result(
        self, product_roots, product_snapshot, group_directory
    ) -> None:
        params = {
            "q": "fdsn",
            "keywords": "waveform",
            "organisations": "org-c",
            "endDate": "2016-01-01",
            "servicetypes": "FDSN service",
        }
        context = _context(product_snapshot, group_directory, **params)
        stages = list(data_product_profile().stages)
        results = set()
        for order in itertools.islice(itertools.permutations(stages), 0, None, 97):
            kept = await FilterPipeline(order).run(product_roots, context)
            results.add(tuple(sorted(r.instance_id for r in kept)))
        assert results == {("dp-1",)}


class TestParallelExecution:
    @staticmethod
    def _products(make_record: Callable[..., Record], count: int) -> list[Record]:
        return [
            make_record(E.DATA_PRODUCT, f"p{i:04d}", keywords="even" if i % 2 == 0 else "odd")
            for i in range(count)
        ]

    @pytest.mark.asyncio
    async def test_parallel_equals_sequential(self, make_record, group_directory) -> None:
        products = self._products(make_record, 1000)
        context = _context(Snapshot({p.key: p for p in products}), group_directory, keywords="even")

        sequential = await FilterPipeline(
            [KeywordStage()], FilterExecutionConfig(workers=1)
        ).run(products, context)
        parallel = await FilterPipeline(
            [KeywordStage()], FilterExecutionConfig(workers=4, parallel_threshold=10)
        ).run(products, context)

        assert parallel == sequential
        assert len(parallel) == 500
        assert [p.instance_id for p in parallel] == sorted(p.instance_id for p in parallel)

    @pytest.mark.asyncio
    async def test_parallel_isolates_record_failures(self, make_record, group_directory) -> None:
        products = self._products(make_record, 200)
        context = _context(Snapshot({p.key: p for p in products}), group_directory)
        kept = await FilterPipeline(
            [_FlakyStage("p0007")], FilterExecutionConfig(workers=4, parallel_threshold=10)
        ).run(products, context)
        assert len(kept) == 199
        assert "p0007" not in {p.instance_id for p in kept}
