"""Decoding boundary — maps stored, loosely-typed records to typed entities.

Rows come back from the database with JSON blobs (form ``fields``, response
``answers``/``analysis``/``tags``) whose shape is not enforced by the store.
Every read path goes through the functions here so that defaults and
coercions live in one place:

- form ``status`` other than ``active`` reads as ``draft``
- response ``status`` other than ``done``/``in_progress`` reads as ``new``
- ``aiMinConfidence`` that is not a number reads as the configured default (0.6)
- notification/webhook settings that are not strings read as ``""``
- timestamps go through :func:`to_datetime`, which falls back to *now*
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from formpulse.core.config import settings
from formpulse.schemas.analysis import SENTIMENT_LABELS, AnalysisResult, AnalyzeRequest
from formpulse.schemas.auth import UserProfileResponse
from formpulse.schemas.fields import SELECT_TYPES, SurveyField, ValidationRule, VisibilityRule
from formpulse.schemas.forms import FormOut
from formpulse.schemas.responses import ResponseOut

logger = logging.getLogger(__name__)

_FIELD_TYPES = {"short_text", "long_text", "single_select", "multi_select", "date", "checkbox"}
_OPERATORS = {"equals", "not_equals", "includes", "checked"}


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


def to_datetime(raw: Any) -> datetime:
    """Convert a stored timestamp of unknown shape into a ``datetime``.

    Accepts a ``datetime``, an ISO-8601 string, or a provider timestamp object
    exposing ``to_date()``/``toDate()``/``to_datetime()``. Anything else, or
    any conversion failure, yields the current UTC time.
    """
    if not raw:
        return datetime.now(timezone.utc)
    if isinstance(raw, datetime):
        return raw
    for attr in ("to_datetime", "to_date", "toDate"):
        converter = getattr(raw, attr, None)
        if callable(converter):
            try:
                value = converter()
            except Exception:
                return datetime.now(timezone.utc)
            return value if isinstance(value, datetime) else datetime.now(timezone.utc)
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return datetime.now(timezone.utc)
    return datetime.now(timezone.utc)


def clamp_score(value: float) -> int:
    """Round half up and clamp into the 1..10 overall-score range."""
    return min(10, max(1, math.floor(value + 0.5)))


def as_number(raw: Any) -> float | None:
    """Return ``raw`` as a finite float, or None. Booleans are not numbers."""
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str) and raw.strip():
        try:
            value = float(raw)
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def _as_str(raw: Any) -> str:
    return raw if isinstance(raw, str) else ""


def _str_or_empty(raw: Any) -> str:
    return "" if raw is None else str(raw)


def _opt_int(raw: Any) -> int | None:
    value = as_number(raw)
    return int(value) if value is not None and value >= 0 else None


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


def decode_field(raw: Any) -> SurveyField | None:
    """Decode one stored field dict. Records without an id are dropped."""
    if not isinstance(raw, dict):
        return None
    field_id = raw.get("id")
    if not isinstance(field_id, str) or not field_id:
        return None

    field_type = raw.get("type")
    if field_type not in _FIELD_TYPES:
        field_type = "short_text"

    options = None
    if field_type in SELECT_TYPES:
        raw_options = raw.get("options")
        options = [str(o) for o in raw_options] if isinstance(raw_options, list) else []

    visibility = None
    raw_visibility = raw.get("visibility")
    if isinstance(raw_visibility, dict) and isinstance(raw_visibility.get("dependsOnId"), str) and raw_visibility["dependsOnId"]:
        operator = raw_visibility.get("operator")
        value = raw_visibility.get("value")
        visibility = VisibilityRule(
            depends_on_id=raw_visibility["dependsOnId"],
            operator=operator if operator in _OPERATORS else "equals",
            value=None if value is None else str(value),
        )

    validation = None
    raw_validation = raw.get("validation")
    if isinstance(raw_validation, dict):
        validation = ValidationRule(
            min_length=_opt_int(raw_validation.get("minLength")),
            max_length=_opt_int(raw_validation.get("maxLength")),
            min_date=raw_validation.get("minDate") if isinstance(raw_validation.get("minDate"), str) else None,
            max_date=raw_validation.get("maxDate") if isinstance(raw_validation.get("maxDate"), str) else None,
        )

    return SurveyField(
        id=field_id,
        label=_str_or_empty(raw.get("label")),
        type=field_type,
        required=bool(raw.get("required")),
        options=options,
        ai_enabled=bool(raw.get("aiEnabled")),
        visibility=visibility,
        validation=validation,
    )


def decode_fields(raw: Any) -> list[SurveyField]:
    if not isinstance(raw, list):
        return []
    fields = []
    for item in raw:
        field = decode_field(item)
        if field is None:
            logger.debug("Dropping undecodable field record: %r", item)
            continue
        fields.append(field)
    return fields


def encode_fields(fields: list[SurveyField]) -> list[dict]:
    """Inverse of :func:`decode_fields` for writes (camelCase, no nulls)."""
    return [f.model_dump(by_alias=True, exclude_none=True) for f in fields]


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def decode_form(record: Any) -> FormOut:
    """Decode a ``Form`` row (or any object with the same attributes)."""
    min_confidence = as_number(getattr(record, "ai_min_confidence", None))
    return FormOut(
        id=record.id,
        org_id=record.org_id,
        title=_str_or_empty(record.title),
        description=_str_or_empty(record.description),
        status="active" if record.status == "active" else "draft",
        share_id=_str_or_empty(record.share_id),
        fields=decode_fields(record.fields),
        ai_enabled=bool(record.ai_enabled),
        ai_overall_enabled=bool(record.ai_overall_enabled),
        ai_min_confidence=(
            min(1.0, max(0.0, min_confidence))
            if min_confidence is not None
            else settings.ANALYSIS_DEFAULT_MIN_CONFIDENCE
        ),
        notification_email=_as_str(record.notification_email),
        webhook_url=_as_str(record.webhook_url),
        slack_webhook_url=_as_str(record.slack_webhook_url),
        google_sheet_url=_as_str(record.google_sheet_url),
        created_at=to_datetime(record.created_at),
        updated_at=to_datetime(record.updated_at),
        created_by=_str_or_empty(record.created_by),
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def decode_answers(raw: Any) -> dict[str, Any]:
    """Keep only answer values of a supported shape; drop the rest."""
    if not isinstance(raw, dict):
        return {}
    answers: dict[str, Any] = {}
    for key, value in raw.items():
        if value is None or isinstance(value, (str, bool)):
            answers[str(key)] = value
        elif isinstance(value, list):
            answers[str(key)] = [str(v) for v in value if v is not None]
        elif isinstance(value, (int, float)):
            answers[str(key)] = str(value)
    return answers


def decode_analysis(raw: Any) -> AnalysisResult | None:
    if not raw or not isinstance(raw, dict):
        return None
    score = as_number(raw.get("overallScore"))
    confidence = as_number(raw.get("confidence"))
    label = raw.get("sentimentLabel")
    keywords = raw.get("keywords")
    model = raw.get("model")
    return AnalysisResult(
        overall_score=clamp_score(score) if score is not None else None,
        sentiment_label=label if label in SENTIMENT_LABELS else "needs_review",
        confidence=min(1.0, max(0.0, confidence)) if confidence is not None else None,
        keywords=[k for k in keywords if isinstance(k, str)][:6] if isinstance(keywords, list) else [],
        model=model if isinstance(model, str) else "",
    )


def decode_response(record: Any) -> ResponseOut:
    if record.status == "done":
        status = "done"
    elif record.status == "in_progress":
        status = "in_progress"
    else:
        status = "new"
    tags = record.tags if isinstance(record.tags, list) else []
    return ResponseOut(
        id=record.id,
        form_id=record.form_id,
        org_id=record.org_id,
        respondent_id=_str_or_empty(record.respondent_id),
        answers=decode_answers(record.answers),
        status=status,
        tags=[str(t) for t in tags],
        memo=_as_str(record.memo),
        assignee_uid=record.assignee_uid or None,
        assignee_name=record.assignee_name or None,
        submitted_at=to_datetime(record.submitted_at),
        updated_at=to_datetime(record.updated_at),
        analysis=decode_analysis(record.analysis),
    )


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


def decode_role(raw: Any) -> str:
    if raw == "admin":
        return "admin"
    if raw == "member":
        return "member"
    return "owner"


def decode_profile(record: Any) -> UserProfileResponse:
    organization = getattr(record, "organization", None)
    return UserProfileResponse(
        uid=record.id,
        email=_str_or_empty(record.email),
        org_id=record.org_id,
        org_name=_str_or_empty(getattr(organization, "name", "")),
        role=decode_role(record.role),
        created_at=to_datetime(record.created_at),
    )


# ---------------------------------------------------------------------------
# Analysis requests
# ---------------------------------------------------------------------------


def decode_analyze_request(payload: Any) -> AnalyzeRequest:
    """Coerce an arbitrary JSON object into an :class:`AnalyzeRequest`.

    Text values are stringified and stripped, flags are truthiness-coerced,
    and ``minConfidence`` falls back to the default unless it is a finite
    number.
    """
    if not isinstance(payload, dict):
        payload = {}
    min_confidence = payload.get("minConfidence")
    if isinstance(min_confidence, str) or as_number(min_confidence) is None:
        min_confidence = settings.ANALYSIS_DEFAULT_MIN_CONFIDENCE
    return AnalyzeRequest(
        free_text=_str_or_empty(payload.get("freeText")).strip(),
        overall_text=_str_or_empty(payload.get("overallText")).strip(),
        wants_sentiment=bool(payload.get("wantsSentiment")),
        wants_overall=bool(payload.get("wantsOverall")),
        min_confidence=float(min_confidence),
    )
