"""
tests/test_batch_partitioner.py

Pytest unit tests for batch partitioning.

Coverage
--------
- Chunk sizes and ordering
- Empty input
- Clamping to the bind parameter ceiling
- Invalid batch sizes
"""

from __future__ import annotations

import pytest

from app.domain.inventory import FIELDS_PER_RECORD
from app.services.batch_partitioner import (
    DEFAULT_BATCH_SIZE,
    POSTGRES_PARAM_LIMIT,
    effective_batch_size,
    max_batch_size,
    partition,
)


class TestPartition:
    def test_250_records_split_100_100_50(self) -> None:
        records = list(range(250))

        batches = partition(records, 100)

        assert [len(batch) for batch in batches] == [100, 100, 50]

    def test_concatenation_restores_input_order(self) -> None:
        records = [f"r{i}" for i in range(37)]

        batches = partition(records, 10)

        assert [item for batch in batches for item in batch] == records

    def test_only_last_batch_may_be_short(self) -> None:
        batches = partition(list(range(23)), 5)

        assert all(len(batch) == 5 for batch in batches[:-1])
        assert 0 < len(batches[-1]) <= 5

    def test_exact_multiple_has_no_short_batch(self) -> None:
        assert [len(batch) for batch in partition(list(range(200)), 100)] == [100, 100]

    def test_empty_input_gives_no_batches(self) -> None:
        assert partition([], 100) == []

    def test_default_batch_size(self) -> None:
        batches = partition(list(range(DEFAULT_BATCH_SIZE + 1)))
        assert [len(batch) for batch in batches] == [DEFAULT_BATCH_SIZE, 1]

    @pytest.mark.parametrize("batch_size", [0, -5])
    def test_non_positive_batch_size_becomes_one(self, batch_size: int) -> None:
        assert [len(batch) for batch in partition([1, 2, 3], batch_size)] == [1, 1, 1]


class TestParameterCeiling:
    def test_default_ceiling(self) -> None:
        assert max_batch_size() == POSTGRES_PARAM_LIMIT // FIELDS_PER_RECORD == 9362

    def test_oversized_batch_is_clamped(self) -> None:
        assert effective_batch_size(50_000) == 9362

    def test_custom_limit(self) -> None:
        batches = partition(list(range(10)), 100, param_limit=21, fields_per_record=7)
        assert [len(batch) for batch in batches] == [3, 3, 3, 1]

    def test_every_batch_respects_limit(self) -> None:
        for batch in partition(list(range(20_000)), 20_000):
            assert len(batch) * FIELDS_PER_RECORD <= POSTGRES_PARAM_LIMIT

    def test_invalid_fields_per_record(self) -> None:
        with pytest.raises(ValueError):
            max_batch_size(fields_per_record=0)
