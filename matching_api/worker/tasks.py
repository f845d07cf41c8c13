from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from matching_api.db import SessionLocal
from matching_api.services.embedding_client import EmbeddingClient
from matching_api.services.embedding_jobs_service import generate_all
from matching_api.services.embedding_worker import process_pending_jobs
from matching_api.worker.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="generate_embedding_jobs")
def generate_embedding_jobs() -> dict:
    db: Session = SessionLocal()
    try:
        result = generate_all(db)
        logger.info(
            "generate_embedding_jobs created=%s choices=%s images=%s profiles=%s",
            result.created,
            result.choices,
            result.images,
            result.profiles,
        )
        return result.as_dict()
    finally:
        db.close()


@celery_app.task(name="process_embedding_jobs")
def process_embedding_jobs(limit: int | None = None) -> dict:
    client = EmbeddingClient.from_settings()
    if not client.configured:
        logger.warning("process_embedding_jobs skipped: OPENAI_API_KEY not configured")
        return {"success": False, "message": "embedding provider not configured"}

    db: Session = SessionLocal()
    try:
        result = process_pending_jobs(db, client, limit=limit)
        logger.info(
            "process_embedding_jobs total=%s completed=%s failed=%s",
            result.total,
            result.completed,
            result.failed,
        )
        return result.as_dict()
    finally:
        db.close()
