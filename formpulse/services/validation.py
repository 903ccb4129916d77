"""Per-field answer validation for form submissions."""

from collections.abc import Iterable, Mapping
from typing import Any

from formpulse.schemas.fields import SurveyField
from formpulse.services.visibility import visible_fields

REQUIRED_MESSAGE = "This field is required."
CONSENT_MESSAGE = "You must check this box to continue."


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def has_required_answer(field: SurveyField, value: Any) -> bool:
    """Presence rule used both for validation and for completion rate."""
    if field.type == "multi_select":
        return isinstance(value, list) and len(value) > 0
    if field.type == "checkbox":
        return value is True
    return not is_empty(value)


def validate_field(field: SurveyField, value: Any) -> str:
    """Validate one answer. Returns an error message, or "" when valid."""
    if not field.required and is_empty(value):
        return ""

    if field.required and not has_required_answer(field, value):
        return CONSENT_MESSAGE if field.type == "checkbox" else REQUIRED_MESSAGE

    rule = field.validation
    if rule is None:
        return ""

    if isinstance(value, str):
        if rule.min_length and len(value) < rule.min_length:
            return f"Enter at least {rule.min_length} characters."
        if rule.max_length and len(value) > rule.max_length:
            return f"Enter no more than {rule.max_length} characters."

    # ISO YYYY-MM-DD strings order correctly as plain strings
    if field.type == "date" and isinstance(value, str):
        if rule.min_date and value < rule.min_date:
            return f"Choose a date on or after {rule.min_date}."
        if rule.max_date and value > rule.max_date:
            return f"Choose a date on or before {rule.max_date}."

    return ""


def validate_answers(fields: Iterable[SurveyField], answers: Mapping[str, Any]) -> dict[str, str]:
    """Validate every visible field. Returns {field_id: message} for failures."""
    errors: dict[str, str] = {}
    for field in visible_fields(fields, answers):
        message = validate_field(field, answers.get(field.id))
        if message:
            errors[field.id] = message
    return errors
