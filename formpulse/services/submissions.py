"""Submission service — validate, analyze and persist a public form response.

Steps run strictly in order and stop at the first failure:

1. visibility + validation of the submitted answers (no I/O)
2. identity check for the (form, respondent) pair (one DB round-trip)
3. optional Gemini analysis (one HTTP round-trip, never fatal)
4. insert of the response row (one DB round-trip)
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from formpulse.core.decoding import decode_form
from formpulse.models.form import Form
from formpulse.models.form_response import FormResponse, build_response_id
from formpulse.schemas.analysis import AnalysisResult, AnalyzeRequest, degraded_analysis
from formpulse.schemas.fields import FREE_TEXT_TYPES, SurveyField
from formpulse.schemas.forms import FormOut
from formpulse.services.analysis import AnalysisError, analyze
from formpulse.services.validation import validate_answers
from formpulse.services.visibility import visible_fields

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """Base class for rejected submissions."""


class SubmissionValidationError(SubmissionError):
    """Raised when one or more visible fields fail validation."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(f"{len(errors)} field(s) failed validation")
        self.errors = errors


class DuplicateSubmissionError(SubmissionError):
    """Raised when the respondent has already answered this form."""

    def __init__(self, response_id: str) -> None:
        super().__init__("This form has already been answered.")
        self.response_id = response_id


# ---------------------------------------------------------------------------
# Text blocks for analysis
# ---------------------------------------------------------------------------


def format_answer(value: Any) -> str:
    if isinstance(value, list):
        return " / ".join(str(v) for v in value)
    if value is True:
        return "Yes"
    if value is False:
        return "No"
    return str(value) if value else ""


def build_text_for_ai(fields: Iterable[SurveyField], answers: Mapping[str, Any]) -> str:
    """Join "Q:<label>\\nA:<answer>" blocks for the answered fields."""
    blocks = []
    for field in fields:
        value = format_answer(answers.get(field.id))
        if value:
            blocks.append(f"Q:{field.label}\nA:{value}")
    return "\n\n".join(blocks)


def build_analysis_request(form: FormOut, answers: Mapping[str, Any]) -> AnalyzeRequest | None:
    """Build the gateway request, or None when there is nothing to analyze."""
    if not form.ai_enabled:
        return None

    sentiment_fields = [f for f in form.fields if f.ai_enabled and f.type in FREE_TEXT_TYPES]
    free_text = build_text_for_ai(sentiment_fields, answers)
    overall_text = build_text_for_ai(form.fields, answers) if form.ai_overall_enabled else ""

    if not free_text and not overall_text:
        return None

    return AnalyzeRequest(
        free_text=free_text,
        overall_text=overall_text,
        wants_sentiment=bool(free_text),
        wants_overall=bool(overall_text),
        min_confidence=form.ai_min_confidence,
    )


async def request_analysis(request: AnalyzeRequest) -> AnalysisResult:
    """Call the gateway; any failure degrades to a needs_review result."""
    try:
        return await analyze(request)
    except AnalysisError as exc:
        logger.warning("Analysis unavailable, storing degraded result: %s", exc)
        return degraded_analysis()


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def collect_visible_answers(fields: list[SurveyField], answers: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only answers that belong to fields visible for these answers."""
    return {f.id: answers[f.id] for f in visible_fields(fields, answers) if f.id in answers}


async def submit_response(
    db: Session,
    form_row: Form,
    respondent_id: str,
    answers: Mapping[str, Any],
) -> tuple[FormResponse, AnalysisResult | None]:
    """Validate and store one response for ``respondent_id``.

    Returns:
        The stored FormResponse row and the analysis attached to it, if any.

    Raises:
        SubmissionValidationError: With every visible field that failed.
        DuplicateSubmissionError: If this respondent already answered, either
            found up front or detected as a key collision on insert.
    """
    form = decode_form(form_row)

    errors = validate_answers(form.fields, answers)
    if errors:
        raise SubmissionValidationError(errors)

    response_id = build_response_id(form.id, respondent_id)
    if db.get(FormResponse, response_id) is not None:
        logger.warning("Duplicate submission rejected for %s", response_id)
        raise DuplicateSubmissionError(response_id)

    payload = collect_visible_answers(form.fields, answers)

    analysis: AnalysisResult | None = None
    analysis_request = build_analysis_request(form, payload)
    if analysis_request is not None:
        analysis = await request_analysis(analysis_request)

    form_response = FormResponse(
        id=response_id,
        form_id=form.id,
        org_id=form.org_id,
        respondent_id=respondent_id,
        answers=payload,
        analysis=analysis.model_dump(by_alias=True, exclude_unset=True) if analysis is not None else None,
        status="new",
        tags=[],
        memo="",
        assignee_uid=None,
        assignee_name=None,
    )
    db.add(form_response)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Concurrent duplicate submission for %s", response_id)
        raise DuplicateSubmissionError(response_id) from exc
    db.refresh(form_response)

    logger.info("Stored response %s for form %s", response_id, form.id)
    return form_response, analysis
