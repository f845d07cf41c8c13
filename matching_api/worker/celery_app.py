from celery import Celery

from matching_api.core.config import settings

celery_app = Celery(
    "matching_api",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["matching_api.worker.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

if settings.embedding_scan_interval_seconds > 0:
    celery_app.conf.beat_schedule = {
        "generate-embedding-jobs": {
            "task": "generate_embedding_jobs",
            "schedule": float(settings.embedding_scan_interval_seconds),
        },
        "process-embedding-jobs": {
            "task": "process_embedding_jobs",
            "schedule": float(settings.embedding_scan_interval_seconds),
        },
    }
