import uuid
from datetime import datetime
from typing import Literal

from pydantic import Field

from formpulse.schemas.common import CamelModel
from formpulse.schemas.fields import SurveyField

FormStatus = Literal["draft", "active"]


# ---------------------------------------------------------------------------
# Form CRUD schemas
# ---------------------------------------------------------------------------


class FormSettings(CamelModel):
    ai_enabled: bool = False
    ai_overall_enabled: bool = False
    ai_min_confidence: float = Field(0.6, ge=0.0, le=1.0)
    notification_email: str = Field("", max_length=255)
    webhook_url: str = Field("", max_length=1000)
    slack_webhook_url: str = Field("", max_length=1000)
    google_sheet_url: str = Field("", max_length=1000)


class FormCreate(FormSettings):
    title: str = Field(..., max_length=255)
    description: str = ""
    status: FormStatus = "active"
    fields: list[SurveyField] = Field(default_factory=list)


class FormUpdate(CamelModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    status: FormStatus | None = None
    fields: list[SurveyField] | None = None
    ai_enabled: bool | None = None
    ai_overall_enabled: bool | None = None
    ai_min_confidence: float | None = Field(None, ge=0.0, le=1.0)
    notification_email: str | None = Field(None, max_length=255)
    webhook_url: str | None = Field(None, max_length=1000)
    slack_webhook_url: str | None = Field(None, max_length=1000)
    google_sheet_url: str | None = Field(None, max_length=1000)


class FormOut(FormSettings):
    id: uuid.UUID
    org_id: uuid.UUID
    title: str
    description: str
    status: FormStatus
    share_id: str
    fields: list[SurveyField]
    created_at: datetime
    updated_at: datetime
    created_by: str


class FormListResponse(CamelModel):
    items: list[FormOut]
    total: int


class PublicFormOut(CamelModel):
    """What an anonymous respondent sees at the share URL."""

    id: uuid.UUID
    title: str
    description: str
    fields: list[SurveyField]
    already_responded: bool = False


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class FormTemplateOut(CamelModel):
    id: str
    name: str
    summary: str
    title: str
    description: str
    field_count: int
