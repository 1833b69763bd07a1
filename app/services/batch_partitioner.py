"""
app/services/batch_partitioner.py

Splits validated records into batches that fit one upsert statement.
"""

from __future__ import annotations

import logging
from typing import Sequence, TypeVar

from app.domain.inventory import FIELDS_PER_RECORD

logger = logging.getLogger(__name__)

# PostgreSQL wire protocol limit on bind parameters per statement.
POSTGRES_PARAM_LIMIT = 65535
DEFAULT_BATCH_SIZE = 100

T = TypeVar("T")


def max_batch_size(
    *,
    param_limit: int = POSTGRES_PARAM_LIMIT,
    fields_per_record: int = FIELDS_PER_RECORD,
) -> int:
    """
    Largest batch whose bind parameters stay within ``param_limit``.
    """

    if fields_per_record < 1:
        raise ValueError("fields_per_record must be positive.")
    return max(1, param_limit // fields_per_record)


def effective_batch_size(
    batch_size: int,
    *,
    param_limit: int = POSTGRES_PARAM_LIMIT,
    fields_per_record: int = FIELDS_PER_RECORD,
) -> int:
    """
    Clamp a configured batch size into ``[1, max_batch_size]``.
    """

    ceiling = max_batch_size(param_limit=param_limit, fields_per_record=fields_per_record)
    if batch_size > ceiling:
        logger.warning(
            "Batch size clamped to parameter ceiling requested=%s ceiling=%s",
            batch_size,
            ceiling,
        )
        return ceiling
    return max(1, batch_size)


def partition(
    records: Sequence[T],
    batch_size: int = DEFAULT_BATCH_SIZE,
    *,
    param_limit: int = POSTGRES_PARAM_LIMIT,
    fields_per_record: int = FIELDS_PER_RECORD,
) -> list[list[T]]:
    """
    Split ``records`` into ordered, non-empty chunks of at most the effective
    batch size; only the last chunk may be shorter. Empty input gives [].
    """

    size = effective_batch_size(
        batch_size,
        param_limit=param_limit,
        fields_per_record=fields_per_record,
    )
    return [list(records[start : start + size]) for start in range(0, len(records), size)]
