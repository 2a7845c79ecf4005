"""SQLAlchemy ORM models for generated forms and their submissions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_SUBMISSION_STATUS, FieldType, FormTheme

if TYPE_CHECKING:
    from app.db.models import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_form_settings() -> dict[str, Any]:
    return {
        "theme": FormTheme.DEFAULT.value,
        "show_progress_bar": True,
        "redirect_url": None,
    }


class Form(Base):
    """AI-generated form definition owned by a creator."""

    __tablename__ = "forms"
    __table_args__ = (
        Index("idx_forms_creator_created", "creator_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)

    # Ordered list of field definitions (camelCase keys, as served to clients)
    fields: Mapped[list[dict[str, Any]]] = mapped_column(default=list, nullable=False)

    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_multiple_submissions: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    submission_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_submission_at: Mapped[datetime | None] = mapped_column(nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(
        default=default_form_settings, nullable=False
    )
    ai_generated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    public_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )

    creator: Mapped["User"] = relationship()
    submissions: Mapped[list["Submission"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Submission(Base):
    """One accepted, validated response to a form."""

    __tablename__ = "submissions"
    __table_args__ = (
        Index("idx_submissions_form_created", "form_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    # ip, userAgent, timestamp
    submitter_info: Mapped[dict[str, Any]] = mapped_column(default=dict, nullable=False)
    # FieldResponse dicts in submission order
    responses: Mapped[list[dict[str, Any]]] = mapped_column(default=list, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_SUBMISSION_STATUS.value, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_files: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_file_size: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )

    form: Mapped["Form"] = relationship(back_populates="submissions")

    @property
    def response_count(self) -> int:
        return len(self.responses or [])

    def file_responses(self) -> list[dict[str, Any]]:
        return [
            response
            for response in self.responses or []
            if response.get("fieldType") == FieldType.FILE.value and response.get("fileUrls")
        ]

    def file_urls(self) -> list[str]:
        urls: list[str] = []
        for response in self.file_responses():
            urls.extend(response["fileUrls"])
        return urls
