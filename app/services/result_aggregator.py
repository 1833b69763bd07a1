"""
app/services/result_aggregator.py

Folds per-batch upsert results into one ``SyncSummary``.
"""

from __future__ import annotations

from typing import Iterable

from app.domain.inventory import BatchUpsertResult, SyncSummary


def summarize(results: Iterable[BatchUpsertResult]) -> SyncSummary:
    """
    Field-wise sum of batch counts. Order of ``results`` does not matter.
    """

    inserted = 0
    updated = 0
    total = 0
    for result in results:
        inserted += result.inserted
        updated += result.updated
        total += result.total
    return SyncSummary(inserted=inserted, updated=updated, total=total)


class ResultAggregator:
    """
    Collects batch results in processing order for one workflow run.
    """

    def __init__(self) -> None:
        self._results: list[BatchUpsertResult] = []

    def add(self, result: BatchUpsertResult) -> None:
        self._results.append(result)

    @property
    def batch_results(self) -> tuple[BatchUpsertResult, ...]:
        return tuple(self._results)

    def summary(self) -> SyncSummary:
        return summarize(self._results)
