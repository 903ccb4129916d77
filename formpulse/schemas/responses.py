import uuid
from datetime import datetime
from typing import Literal

from pydantic import Field

from formpulse.schemas.analysis import AnalysisResult
from formpulse.schemas.common import CamelModel
from formpulse.schemas.fields import AnswerValue

ResponseStatus = Literal["new", "in_progress", "done"]


# ---------------------------------------------------------------------------
# Public submission
# ---------------------------------------------------------------------------


class SubmissionRequest(CamelModel):
    answers: dict[str, AnswerValue] = Field(default_factory=dict)
    respondent_id: str | None = Field(None, min_length=1, max_length=120)


class SubmissionResult(CamelModel):
    id: str
    respondent_id: str
    analysis: AnalysisResult | None = None


class VisibilityRequest(CamelModel):
    answers: dict[str, AnswerValue] = Field(default_factory=dict)


class VisibilityResult(CamelModel):
    visible_field_ids: list[str]


# ---------------------------------------------------------------------------
# Response management
# ---------------------------------------------------------------------------


class ResponseOut(CamelModel):
    id: str
    form_id: uuid.UUID
    org_id: uuid.UUID
    respondent_id: str
    answers: dict[str, AnswerValue]
    status: ResponseStatus
    tags: list[str]
    memo: str
    assignee_uid: str | None
    assignee_name: str | None
    submitted_at: datetime
    updated_at: datetime
    analysis: AnalysisResult | None = None


class ResponseUpdate(CamelModel):
    status: ResponseStatus | None = None
    tags: list[str] | None = None
    memo: str | None = None
    assignee_uid: str | None = None
    assignee_name: str | None = None


class ResponseListResponse(CamelModel):
    items: list[ResponseOut]
    total: int
    page: int
    page_size: int
