import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from matching_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class EmbeddingJobType(str, Enum):
    CHOICE = "choice_embedding"
    IMAGE = "image_embedding"
    PHOTOGRAPHER_PROFILE = "photographer_profile"


class EmbeddingJobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Literal predicate so ON CONFLICT can infer the partial index on both dialects.
PENDING_PREDICATE = "job_status = 'pending'"


class EmbeddingJob(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "embedding_jobs"
    __table_args__ = (
        # One in-flight job per target; finished rows are history.
        sa.Index(
            "uq_embedding_jobs_pending_target",
            "job_type",
            "target_id",
            unique=True,
            postgresql_where=sa.text(PENDING_PREDICATE),
            sqlite_where=sa.text(PENDING_PREDICATE),
        ),
        sa.Index("ix_embedding_jobs_status_created_at", "job_status", "created_at"),
    )

    job_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    job_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EmbeddingJobStatus.PENDING.value
    )

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    requested_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
