from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from matching_api.core.config import settings
from matching_api.models import EmbeddingJob, PhotographerProfile, SurveyChoice, SurveyImage
from matching_api.models.base import utcnow
from matching_api.models.embedding_job import EmbeddingJobStatus, EmbeddingJobType
from matching_api.models.photographer_profile import PROFILE_DIMENSIONS
from matching_api.services.embedding_client import EmbeddingClient, EmbeddingClientError

logger = structlog.get_logger(__name__)


class JobTargetError(RuntimeError):
    pass


@dataclass(frozen=True)
class BatchResult:
    total: int
    completed: int
    failed: int

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No pending jobs"
        return f"{self.completed}/{self.total} jobs completed"

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "total": self.total,
            "processed": self.processed,
            "completed": self.completed,
            "failed": self.failed,
            "message": self.message,
        }


def _no_text(job: EmbeddingJob) -> JobTargetError:
    return JobTargetError(f"No text found for {job.job_type} with ID {job.target_id}")


def _encode(vector: list[float]) -> str:
    return json.dumps(vector)


def _embed_choice(db: Session, job: EmbeddingJob, client: EmbeddingClient, now: datetime) -> None:
    choice = db.get(SurveyChoice, job.target_id)
    if choice is None or not (choice.choice_label or "").strip():
        raise _no_text(job)
    choice.choice_embedding = _encode(client.embed(choice.choice_label))
    choice.embedding_generated_at = now


def _embed_image(db: Session, job: EmbeddingJob, client: EmbeddingClient, now: datetime) -> None:
    image = db.get(SurveyImage, job.target_id)
    if image is None or not (image.image_label or "").strip():
        raise _no_text(job)
    image.image_embedding = _encode(client.embed(image.image_label))
    image.embedding_generated_at = now


def _embed_profile(db: Session, job: EmbeddingJob, client: EmbeddingClient, now: datetime) -> None:
    profile = db.get(PhotographerProfile, job.target_id)
    if profile is None:
        raise _no_text(job)

    texts = [
        (column, text)
        for field, column in PROFILE_DIMENSIONS
        if (text := getattr(profile, field)) and text.strip()
    ]
    if not texts:
        raise _no_text(job)

    for column, text in texts:
        setattr(profile, column, _encode(client.embed(text)))
    profile.embeddings_generated_at = now


_HANDLERS: dict[str, Callable[[Session, EmbeddingJob, EmbeddingClient, datetime], None]] = {
    EmbeddingJobType.CHOICE.value: _embed_choice,
    EmbeddingJobType.IMAGE.value: _embed_image,
    EmbeddingJobType.PHOTOGRAPHER_PROFILE.value: _embed_profile,
}


def _claim(db: Session, job_id: uuid.UUID) -> bool:
    result = db.execute(
        update(EmbeddingJob)
        .where(
            EmbeddingJob.id == job_id,
            EmbeddingJob.job_status == EmbeddingJobStatus.PENDING.value,
        )
        .values(job_status=EmbeddingJobStatus.PROCESSING.value, updated_at=utcnow())
    )
    db.commit()
    return bool(result.rowcount)


def process_job(db: Session, job_id: uuid.UUID, client: EmbeddingClient) -> bool | None:
    """Run one job. Returns None when another worker already claimed it."""
    if not _claim(db, job_id):
        return None

    job = db.get(EmbeddingJob, job_id, populate_existing=True)
    try:
        handler = _HANDLERS.get(job.job_type)
        if handler is None:
            raise JobTargetError(f"Unknown job type {job.job_type}")

        now = utcnow()
        handler(db, job, client, now)
        job.job_status = EmbeddingJobStatus.COMPLETED.value
        job.processed_at = now
        job.error_message = None
        db.commit()
    except (EmbeddingClientError, JobTargetError, SQLAlchemyError) as exc:
        db.rollback()
        job = db.get(EmbeddingJob, job_id, populate_existing=True)
        job.job_status = EmbeddingJobStatus.FAILED.value
        job.error_message = str(exc) or type(exc).__name__
        job.processed_at = utcnow()
        db.commit()
        logger.warning(
            "embedding_job_failed",
            job_id=str(job_id),
            job_type=job.job_type,
            error=job.error_message,
        )
        return False

    logger.info("embedding_job_completed", job_id=str(job_id), job_type=job.job_type)
    return True


def process_pending_jobs(
    db: Session,
    client: EmbeddingClient,
    limit: int | None = None,
    delay_ms: int | None = None,
) -> BatchResult:
    limit = limit or settings.embedding_batch_limit
    delay_ms = settings.embedding_batch_delay_ms if delay_ms is None else delay_ms

    job_ids = db.scalars(
        select(EmbeddingJob.id)
        .where(EmbeddingJob.job_status == EmbeddingJobStatus.PENDING.value)
        .order_by(EmbeddingJob.created_at)
        .limit(limit)
    ).all()
    db.commit()

    completed = failed = 0
    for index, job_id in enumerate(job_ids):
        if index and delay_ms > 0:
            # provider rate limits
            time.sleep(delay_ms / 1000)

        outcome = process_job(db, job_id, client)
        if outcome is True:
            completed += 1
        elif outcome is False:
            failed += 1

    result = BatchResult(total=len(job_ids), completed=completed, failed=failed)
    logger.info(
        "embedding_batch_finished",
        total=result.total,
        completed=result.completed,
        failed=result.failed,
    )
    return result
