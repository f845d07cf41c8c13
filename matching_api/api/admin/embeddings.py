from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matching_api.api.schemas.embeddings import (
    BatchOut,
    EmbeddingJobOut,
    GenerateAllOut,
    JobListOut,
    JobStatsOut,
    QueueJobIn,
    QueueJobOut,
    RetryFailedOut,
)
from matching_api.auth.deps import require_role
from matching_api.db import get_db
from matching_api.models import User
from matching_api.models.user import UserRole
from matching_api.services import embedding_jobs_service, embedding_worker
from matching_api.services.embedding_client import EmbeddingClient
from matching_api.services.error_codes import ErrorCode
from matching_api.services.exceptions import ConfigurationError

router = APIRouter(
    prefix="/admin/matching/embeddings",
    tags=["admin", "embeddings"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)

DBSession = Annotated[Session, Depends(get_db)]
AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]


def get_embedding_client() -> EmbeddingClient:
    client = EmbeddingClient.from_settings()
    if not client.configured:
        raise ConfigurationError(
            ErrorCode.EMBEDDING_PROVIDER_NOT_CONFIGURED.value,
            "OPENAI_API_KEY not configured",
        )
    return client


Embedder = Annotated[EmbeddingClient, Depends(get_embedding_client)]


@router.post("/generate-all", response_model=GenerateAllOut)
def generate_all_jobs(db: DBSession):
    result = embedding_jobs_service.generate_all(db)
    return result.as_dict()


@router.post("/queue", response_model=QueueJobOut)
def queue_job(payload: QueueJobIn, db: DBSession, admin: AdminUser):
    result = embedding_jobs_service.queue_job(
        db,
        payload.type,
        payload.target_id,
        requested_by=admin.id,
    )
    return QueueJobOut(message=result.message, job_id=result.job_id)


@router.post("/batch", response_model=BatchOut)
def process_batch(db: DBSession, client: Embedder):
    result = embedding_worker.process_pending_jobs(db, client)
    return result.as_dict()


@router.get("/jobs", response_model=JobListOut)
def list_jobs(db: DBSession, limit: int = Query(default=50, ge=1, le=500)):
    jobs, stats = embedding_jobs_service.list_jobs(db, limit=limit)
    return JobListOut(
        jobs=[EmbeddingJobOut.model_validate(job) for job in jobs],
        stats=JobStatsOut(**asdict(stats)),
    )


@router.post("/retry-failed", response_model=RetryFailedOut)
def retry_failed(db: DBSession):
    retried = embedding_jobs_service.retry_failed_jobs(db)
    return RetryFailedOut(retried=retried)
