import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from matching_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SurveyChoice(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "survey_choices"

    question_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    choice_key: Mapped[str] = mapped_column(String(100), nullable=False)
    choice_label: Mapped[str] = mapped_column(Text, nullable=False)
    choice_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    choice_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # JSON array of floats
    choice_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)
    embedding_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class SurveyImage(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "survey_images"

    question_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    image_key: Mapped[str] = mapped_column(String(100), nullable=False)
    image_label: Mapped[str] = mapped_column(Text, nullable=False)
    image_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    image_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    image_embedding: Mapped[str | None] = mapped_column(Text, nullable=True)
    embedding_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
