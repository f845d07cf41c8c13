from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore", populate_by_name=True)


class QueueJobIn(SchemaBase):
    type: str | None = None
    target_id: str | None = Field(default=None, alias="targetId")


class QueueJobOut(SchemaBase):
    success: bool = True
    message: str
    job_id: UUID = Field(alias="jobId")


class CandidateTotalsOut(SchemaBase):
    choices: int = Field(ge=0)
    images: int = Field(ge=0)
    profiles: int = Field(ge=0)


class GenerateAllOut(SchemaBase):
    success: bool = True
    created: int = Field(ge=0)
    total: CandidateTotalsOut


class BatchOut(SchemaBase):
    success: bool = True
    total: int = Field(ge=0)
    processed: int = Field(ge=0)
    completed: int = Field(ge=0)
    failed: int = Field(ge=0)
    message: str


class EmbeddingJobOut(SchemaBase):
    id: UUID
    job_type: str
    target_id: UUID
    job_status: str
    error_message: str | None = None
    processed_at: datetime | None = None
    requested_by: UUID | None = None
    created_at: datetime


class JobStatsOut(SchemaBase):
    total: int
    pending: int
    completed: int
    failed: int
    estimated_cost: float


class JobListOut(SchemaBase):
    jobs: list[EmbeddingJobOut]
    stats: JobStatsOut


class RetryFailedOut(SchemaBase):
    success: bool = True
    retried: int = Field(ge=0)
