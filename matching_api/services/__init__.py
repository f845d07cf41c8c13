from matching_api.services.embedding_jobs_service import (
    generate_all,
    list_jobs,
    queue_job,
    retry_failed_jobs,
)
from matching_api.services.embedding_worker import process_pending_jobs

__all__ = [
    "generate_all",
    "queue_job",
    "list_jobs",
    "retry_failed_jobs",
    "process_pending_jobs",
]
