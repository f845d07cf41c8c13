from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from matching_api.models.base import Base, TimestampMixin

# (description column, embedding column) per matching dimension
PROFILE_DIMENSIONS: tuple[tuple[str, str], ...] = (
    ("style_emotion_description", "style_emotion_embedding"),
    ("communication_psychology_description", "communication_psychology_embedding"),
    ("purpose_story_description", "purpose_story_embedding"),
    ("companion_description", "companion_embedding"),
)


class PhotographerProfile(Base, TimestampMixin):
    __tablename__ = "photographer_profiles"

    photographer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    style_emotion_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    communication_psychology_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    purpose_story_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    companion_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    style_emotion_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)
    communication_psychology_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)
    purpose_story_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)
    companion_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)

    profile_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    embeddings_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
