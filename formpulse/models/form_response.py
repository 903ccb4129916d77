import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formpulse.core.database import Base


def build_response_id(form_id: uuid.UUID | str, respondent_id: str) -> str:
    """Deterministic identity of a (form, respondent) pair.

    A second insert with the same id collides on the primary key, which is
    what enforces one submission per respondent.
    """
    return f"{form_id}_{respondent_id}"


class FormResponse(Base):
    """A respondent's answers to a form.

    ``answers`` maps field id to the answer value:
        {
            "f1": "Yes",                 # single_select / short_text / date
            "f2": ["A", "C"],            # multi_select
            "f3": true,                  # checkbox
            "f4": null
        }

    ``analysis`` holds the normalized LLM result (or the degraded default)
    captured at submission time, or null when analysis was not requested.
    """

    __tablename__ = "form_responses"
    __table_args__ = (
        Index("ix_form_responses_form_id", "form_id"),
        Index("ix_form_responses_form_org", "form_id", "org_id"),
    )

    id: Mapped[str] = mapped_column(String(200), primary_key=True)
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id"), nullable=False
    )
    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False
    )
    respondent_id: Mapped[str] = mapped_column(String(120), nullable=False)
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    analysis: Mapped[dict | None] = mapped_column(JSONB)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="new")
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    memo: Mapped[str | None] = mapped_column(Text, default="")
    assignee_uid: Mapped[str | None] = mapped_column(String(120))
    assignee_name: Mapped[str | None] = mapped_column(String(255))
    submitted_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    form: Mapped["Form"] = relationship(back_populates="responses")

    def __repr__(self) -> str:
        return f"<FormResponse {self.id} ({self.status})>"
