"""Embedding job queue: reconciliation scan, single-target enqueue, admin views.

Both enqueue paths use the same atomic primitive: an INSERT that does nothing
when a pending job already exists for ``(job_type, target_id)``. The partial
unique index on ``embedding_jobs`` is what makes that safe under concurrency.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from matching_api.core.config import settings
from matching_api.models import EmbeddingJob, PhotographerProfile, SurveyChoice, SurveyImage
from matching_api.models.base import utcnow
from matching_api.models.embedding_job import (
    PENDING_PREDICATE,
    EmbeddingJobStatus,
    EmbeddingJobType,
)
from matching_api.services.error_codes import ErrorCode
from matching_api.services.exceptions import ServiceError, ValidationError

logger = structlog.get_logger(__name__)

# text-embedding-3-small pricing, ~20 tokens per survey label
TOKENS_PER_PENDING_JOB = 20
COST_PER_1K_TOKENS_USD = 0.00002

_QUEUE_ATTEMPTS = 3


@dataclass(frozen=True)
class GenerateAllResult:
    created: int
    choices: int
    images: int
    profiles: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "created": self.created,
            "total": {
                "choices": self.choices,
                "images": self.images,
                "profiles": self.profiles,
            },
        }


@dataclass(frozen=True)
class QueueResult:
    job_id: uuid.UUID
    already_queued: bool

    @property
    def message(self) -> str:
        return "Job already queued" if self.already_queued else "Job queued successfully"


@dataclass(frozen=True)
class JobStats:
    total: int
    pending: int
    completed: int
    failed: int
    estimated_cost: float


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise RuntimeError(f"unsupported database dialect for job upserts: {dialect}")


def _job_row(
    job_type: EmbeddingJobType,
    target_id: uuid.UUID,
    requested_by: uuid.UUID | None = None,
) -> dict[str, Any]:
    now = utcnow()
    return {
        "id": uuid.uuid4(),
        "job_type": job_type.value,
        "target_id": target_id,
        "job_status": EmbeddingJobStatus.PENDING.value,
        "requested_by": requested_by,
        "created_at": now,
        "updated_at": now,
    }


def _insert_pending(db: Session, rows: list[dict[str, Any]]):
    stmt = _insert_for(db)(EmbeddingJob).values(rows)
    return stmt.on_conflict_do_nothing(
        index_elements=["job_type", "target_id"],
        index_where=sa.text(PENDING_PREDICATE),
    )


def scan_candidates(db: Session) -> dict[EmbeddingJobType, list[uuid.UUID]]:
    """Return ids of every entity that still needs an embedding, per job type."""
    choices = db.scalars(
        select(SurveyChoice.id).where(
            SurveyChoice.is_active.is_(True),
            SurveyChoice.choice_embedding.is_(None),
        )
    ).all()
    images = db.scalars(
        select(SurveyImage.id).where(
            SurveyImage.is_active.is_(True),
            SurveyImage.image_embedding.is_(None),
        )
    ).all()
    profiles = db.scalars(
        select(PhotographerProfile.photographer_id).where(
            PhotographerProfile.profile_completed.is_(True),
            PhotographerProfile.embeddings_generated_at.is_(None),
        )
    ).all()

    return {
        EmbeddingJobType.CHOICE: list(choices),
        EmbeddingJobType.IMAGE: list(images),
        EmbeddingJobType.PHOTOGRAPHER_PROFILE: list(profiles),
    }


def enqueue_pending(
    db: Session,
    job_type: EmbeddingJobType,
    target_ids: list[uuid.UUID],
    requested_by: uuid.UUID | None = None,
) -> int:
    """Ensure a pending job exists for each target; returns rows processed.

    Rows that already had a pending job count as processed. A chunk that fails
    is rolled back and skipped; earlier chunks stay committed.
    """
    chunk_size = max(1, settings.embedding_upsert_chunk_size)
    processed = 0

    for start in range(0, len(target_ids), chunk_size):
        chunk = target_ids[start : start + chunk_size]
        rows = [_job_row(job_type, target_id, requested_by) for target_id in chunk]
        try:
            db.execute(_insert_pending(db, rows))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "embedding_job_upsert_failed",
                job_type=job_type.value,
                chunk_start=start,
                chunk_size=len(chunk),
            )
            continue
        processed += len(chunk)

    return processed


def generate_all(db: Session) -> GenerateAllResult:
    candidates = scan_candidates(db)

    created = 0
    for job_type, target_ids in candidates.items():
        created += enqueue_pending(db, job_type, target_ids)

    result = GenerateAllResult(
        created=created,
        choices=len(candidates[EmbeddingJobType.CHOICE]),
        images=len(candidates[EmbeddingJobType.IMAGE]),
        profiles=len(candidates[EmbeddingJobType.PHOTOGRAPHER_PROFILE]),
    )
    logger.info(
        "embedding_jobs_generated",
        created=result.created,
        choices=result.choices,
        images=result.images,
        profiles=result.profiles,
    )
    return result


def _parse_queue_request(
    job_type: str | None, target_id: str | None
) -> tuple[EmbeddingJobType, uuid.UUID]:
    if not job_type or not target_id:
        raise ValidationError(ErrorCode.MISSING_FIELDS.value, "Type and targetId are required")

    try:
        parsed_type = EmbeddingJobType(job_type)
    except ValueError:
        raise ValidationError(ErrorCode.INVALID_JOB_TYPE.value, "Invalid job type") from None

    try:
        parsed_target = uuid.UUID(str(target_id))
    except ValueError:
        raise ValidationError(ErrorCode.INVALID_TARGET_ID.value, "Invalid targetId") from None

    return parsed_type, parsed_target


def _pending_job_id(
    db: Session, job_type: EmbeddingJobType, target_id: uuid.UUID
) -> uuid.UUID | None:
    return db.scalar(
        select(EmbeddingJob.id).where(
            EmbeddingJob.job_type == job_type.value,
            EmbeddingJob.target_id == target_id,
            EmbeddingJob.job_status == EmbeddingJobStatus.PENDING.value,
        )
    )


def queue_job(
    db: Session,
    job_type: str | None,
    target_id: str | None,
    requested_by: uuid.UUID | None = None,
) -> QueueResult:
    parsed_type, parsed_target = _parse_queue_request(job_type, target_id)

    for _ in range(_QUEUE_ATTEMPTS):
        stmt = _insert_pending(db, [_job_row(parsed_type, parsed_target, requested_by)])
        new_id = db.execute(stmt.returning(EmbeddingJob.id)).scalar_one_or_none()
        if new_id is not None:
            db.commit()
            logger.info(
                "embedding_job_queued",
                job_id=str(new_id),
                job_type=parsed_type.value,
                target_id=str(parsed_target),
            )
            return QueueResult(job_id=new_id, already_queued=False)

        existing_id = _pending_job_id(db, parsed_type, parsed_target)
        db.commit()
        if existing_id is not None:
            return QueueResult(job_id=existing_id, already_queued=True)
        # the pending row was picked up between the insert and the lookup

    logger.warning(
        "embedding_job_queue_contended",
        job_type=parsed_type.value,
        target_id=str(parsed_target),
        attempts=_QUEUE_ATTEMPTS,
    )
    raise ServiceError(ErrorCode.INTERNAL_ERROR.value, "Internal server error")


def list_jobs(db: Session, limit: int = 50) -> tuple[list[EmbeddingJob], JobStats]:
    jobs = list(
        db.scalars(
            select(EmbeddingJob).order_by(EmbeddingJob.created_at.desc()).limit(limit)
        ).all()
    )

    counts = {status: 0 for status in EmbeddingJobStatus}
    for job in jobs:
        try:
            counts[EmbeddingJobStatus(job.job_status)] += 1
        except ValueError:
            logger.warning("embedding_job_unknown_status", job_id=str(job.id), status=job.job_status)

    pending = counts[EmbeddingJobStatus.PENDING]
    stats = JobStats(
        total=len(jobs),
        pending=pending,
        completed=counts[EmbeddingJobStatus.COMPLETED],
        failed=counts[EmbeddingJobStatus.FAILED],
        estimated_cost=pending * TOKENS_PER_PENDING_JOB / 1000 * COST_PER_1K_TOKENS_USD,
    )
    return jobs, stats


def _failed_candidates(db: Session) -> list[tuple[uuid.UUID, str, uuid.UUID]]:
    """Newest failed job per target, as (id, job_type, target_id)."""
    rows = db.execute(
        select(EmbeddingJob.id, EmbeddingJob.job_type, EmbeddingJob.target_id)
        .where(EmbeddingJob.job_status == EmbeddingJobStatus.FAILED.value)
        .order_by(EmbeddingJob.created_at.desc())
    ).all()

    seen: set[tuple[str, uuid.UUID]] = set()
    candidates = []
    for job_id, job_type, target_id in rows:
        if (job_type, target_id) in seen:
            continue
        seen.add((job_type, target_id))
        candidates.append((job_id, job_type, target_id))
    return candidates


def _reset_failed(job_id: uuid.UUID, job_type: str, target_id: uuid.UUID):
    pending = aliased(EmbeddingJob)
    has_pending = (
        sa.exists()
        .where(
            pending.job_type == job_type,
            pending.target_id == target_id,
            pending.job_status == EmbeddingJobStatus.PENDING.value,
        )
    )
    return (
        update(EmbeddingJob)
        .where(
            EmbeddingJob.id == job_id,
            EmbeddingJob.job_status == EmbeddingJobStatus.FAILED.value,
            ~has_pending,
        )
        .values(
            job_status=EmbeddingJobStatus.PENDING.value,
            error_message=None,
            processed_at=None,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )


def retry_failed_jobs(db: Session) -> int:
    """Move failed jobs back to pending, newest failure per target only.

    A target that already has a pending job is skipped, including one enqueued
    by a concurrent scan after the candidates were read.
    """
    candidates = _failed_candidates(db)
    db.commit()

    retried = 0
    for job_id, job_type, target_id in candidates:
        try:
            result = db.execute(_reset_failed(job_id, job_type, target_id))
            db.commit()
        except IntegrityError:
            # a pending row for this target committed after the NOT EXISTS check
            db.rollback()
            logger.info(
                "embedding_job_retry_skipped",
                job_id=str(job_id),
                job_type=job_type,
                target_id=str(target_id),
            )
            continue
        retried += result.rowcount

    logger.info("embedding_jobs_retried", retried=retried, failed=len(candidates))
    return retried
