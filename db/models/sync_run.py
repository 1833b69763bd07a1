"""
db/models/sync_run.py

One row per inventory sync attempt, written by the scheduler and the API.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class SyncRunTrigger:
    SCHEDULE = "schedule"
    RETRY = "retry"
    MANUAL = "manual"


class SyncRunStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncRun(Base, TimestampMixin):
    __tablename__ = "sync_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    trigger: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="schedule, retry, manual",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=SyncRunStatus.RUNNING,
    )
    attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    inserted: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    failure_kind: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="retriable, non_retriable",
    )
    failed_state: Mapped[str | None] = mapped_column(String(32), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_sync_runs_status", "status"),
        Index("ix_sync_runs_created_at", "created_at"),
    )
