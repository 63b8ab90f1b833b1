"""Ordered execution of filter stages.

Each active stage narrows the candidate list.  Below
``parallel_threshold`` candidates a stage runs inline; at or above it the
candidates are split across ``workers`` threads with
:func:`~src.utils.concurrency.partitioned_filter`.  Both paths keep the
input order, so the result is identical whichever one ran.

Failure isolation:
    - a stage whose ``bind`` raises is logged and skipped;
    - a predicate that raises for one record excludes that record only.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Sequence

from src.models.catalog import Record
from src.services.filter_stages import FilterStage, Predicate, StageContext
from src.utils.concurrency import partitioned_filter
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FilterExecutionConfig:
    """How stages are executed.

    Attributes
    ----------
    workers:
        Number of worker threads for data-parallel evaluation.
    parallel_threshold:
        Candidate count from which the data-parallel path is used.
    """

    workers: int = 4
    parallel_threshold: int = 100

    def use_parallel(self, candidates: int) -> bool:
        return self.workers > 1 and candidates >= self.parallel_threshold


def _guarded(stage: FilterStage, predicate: Predicate) -> Predicate:
    def run(record: Record) -> bool:
        try:
            return bool(predicate(record))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "filter_record_failed",
                stage=stage.name,
                record=record.instance_id,
                error=str(exc),
            )
            return False

    return run


class FilterPipeline:
    """Runs a fixed, ordered list of stages."""

    def __init__(
        self,
        stages: Sequence[FilterStage],
        execution: FilterExecutionConfig | None = None,
    ) -> None:
        self._stages = tuple(stages)
        self._execution = execution or FilterExecutionConfig()

    @property
    def stages(self) -> tuple[FilterStage, ...]:
        return self._stages

    async def run(self, records: Sequence[Record], context: StageContext) -> list[Record]:
        """Return the records surviving every active stage, in input order."""
        candidates = list(records)
        for stage in self._stages:
            if not candidates:
                break
            try:
                predicate = stage.bind(context)
            except Exception as exc:  # noqa: BLE001
                logger.warning("filter_stage_skipped", stage=stage.name, error=str(exc))
                continue
            if predicate is None:
                continue

            started = time.perf_counter()
            guarded = _guarded(stage, predicate)
            parallel = self._execution.use_parallel(len(candidates))
            before = len(candidates)
            if parallel:
                candidates = await partitioned_filter(
                    candidates, guarded, self._execution.workers
                )
            else:
                candidates = [r for r in candidates if guarded(r)]
            logger.debug(
                "filter_stage_complete",
                stage=stage.name,
                parallel=parallel,
                before=before,
                after=len(candidates),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        return candidates
