from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy import func, select

from matching_api.core.config import settings
from matching_api.models import EmbeddingJob, PhotographerProfile, SurveyChoice, SurveyImage, User
from matching_api.models.embedding_job import EmbeddingJobStatus, EmbeddingJobType
from matching_api.models.user import UserRole

VECTOR = json.dumps([0.1, 0.2, 0.3])


def add_choice(db, *, label: str = "Warm and candid", active: bool = True, embedded: bool = False) -> SurveyChoice:
    choice = SurveyChoice(
        choice_key=f"choice-{uuid.uuid4().hex[:8]}",
        choice_label=label,
        choice_order=0,
        is_active=active,
        choice_embedding=VECTOR if embedded else None,
    )
    db.add(choice)
    db.commit()
    return choice


def add_image(db, *, label: str = "Golden hour beach", active: bool = True, embedded: bool = False) -> SurveyImage:
    image = SurveyImage(
        image_key=f"image-{uuid.uuid4().hex[:8]}",
        image_label=label,
        image_url="https://cdn.example.com/survey/beach.jpg",
        image_order=0,
        is_active=active,
        image_embedding=VECTOR if embedded else None,
    )
    db.add(image)
    db.commit()
    return image


def add_profile(
    db,
    *,
    completed: bool = True,
    generated: bool = False,
    style: str | None = "Natural light, quiet emotion",
    communication: str | None = "Talks clients through every pose",
    purpose: str | None = None,
    companion: str | None = "  ",
) -> PhotographerProfile:
    photographer = User(
        email=f"photographer-{uuid.uuid4().hex[:8]}@example.com",
        role=UserRole.PHOTOGRAPHER.value,
    )
    db.add(photographer)
    db.flush()

    profile = PhotographerProfile(
        photographer_id=photographer.id,
        style_emotion_description=style,
        communication_psychology_description=communication,
        purpose_story_description=purpose,
        companion_description=companion,
        profile_completed=completed,
        embeddings_generated_at=datetime.now(timezone.utc) if generated else None,
    )
    db.add(profile)
    db.commit()
    return profile


def add_job(
    db,
    job_type: EmbeddingJobType,
    target_id: uuid.UUID,
    status: EmbeddingJobStatus = EmbeddingJobStatus.PENDING,
    error_message: str | None = None,
) -> EmbeddingJob:
    job = EmbeddingJob(
        job_type=job_type.value,
        target_id=target_id,
        job_status=status.value,
        error_message=error_message,
    )
    db.add(job)
    db.commit()
    return job


def job_count(db, status: EmbeddingJobStatus | None = None) -> int:
    stmt = select(func.count()).select_from(EmbeddingJob)
    if status is not None:
        stmt = stmt.where(EmbeddingJob.job_status == status.value)
    return int(db.scalar(stmt) or 0)


def make_user(db, email: str, role: UserRole = UserRole.USER) -> User:
    user = User(email=email, name=None, role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def admin_headers(db, email: str = "admin@example.com") -> dict[str, str]:
    make_user(db, email, role=UserRole.ADMIN)
    return {"Authorization": f"Bearer dev_{email}"}


def access_token(user_id: uuid.UUID, role: str, ttl_seconds: int = 900) -> str:
    """Mint a token the way the identity provider would."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
