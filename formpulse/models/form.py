import uuid
from datetime import datetime

from sqlalchemy import Boolean, Float, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formpulse.core.database import Base


class Form(Base):
    """Survey/form definition with a JSONB fields array.

    Each entry of ``fields`` is a dict:
        {
            "id": "f1",
            "label": "Question text",
            "type": "short_text" | "long_text" | "single_select"
                    | "multi_select" | "date" | "checkbox",
            "required": true/false,
            "options": ["A", "B"],           # select types only
            "aiEnabled": true/false,
            "visibility": {"dependsOnId": "f0", "operator": "equals", "value": "A"},
            "validation": {"minLength": 1, "maxLength": 200,
                           "minDate": "2026-01-01", "maxDate": "2026-12-31"}
        }

    Only ``active`` forms are reachable through ``share_id``.
    """

    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_org_id", "org_id"),
        Index("ix_forms_share_status", "share_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="draft")
    share_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    fields: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    ai_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ai_overall_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ai_min_confidence: Mapped[float | None] = mapped_column(Float, default=0.6)

    notification_email: Mapped[str | None] = mapped_column(String(255))
    webhook_url: Mapped[str | None] = mapped_column(String(1000))
    slack_webhook_url: Mapped[str | None] = mapped_column(String(1000))
    google_sheet_url: Mapped[str | None] = mapped_column(String(1000))

    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("user_profiles.id"))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    organization: Mapped["Organization"] = relationship(back_populates="forms")
    responses: Mapped[list["FormResponse"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Form {self.title} ({self.status})>"
