"""Tests for per-field answer validation."""

import pytest

from formpulse.schemas.fields import SurveyField, ValidationRule, VisibilityRule
from formpulse.services.validation import (
    CONSENT_MESSAGE,
    REQUIRED_MESSAGE,
    validate_answers,
    validate_field,
)

ALL_TYPES = ["short_text", "long_text", "single_select", "multi_select", "date", "checkbox"]


def _field(field_type="short_text", required=False, **kwargs):
    return SurveyField(id="f1", label="Question", type=field_type, required=required, **kwargs)


# ---------------------------------------------------------------------------
# Optional fields
# ---------------------------------------------------------------------------


class TestOptionalFields:
    @pytest.mark.parametrize("field_type", ALL_TYPES)
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_optional_is_valid(self, field_type, value):
        assert validate_field(_field(field_type), value) == ""

    def test_empty_optional_skips_length_rule(self):
        field = _field(validation=ValidationRule(min_length=5))
        assert validate_field(field, "") == ""

    def test_filled_optional_still_checks_length(self):
        field = _field(validation=ValidationRule(min_length=5))
        assert validate_field(field, "abc") == "Enter at least 5 characters."


# ---------------------------------------------------------------------------
# Required fields
# ---------------------------------------------------------------------------


class TestRequiredFields:
    def test_checkbox_requires_true(self):
        field = _field("checkbox", required=True)
        assert validate_field(field, False) == CONSENT_MESSAGE
        assert validate_field(field, None) == CONSENT_MESSAGE
        assert validate_field(field, True) == ""

    def test_multi_select_requires_non_empty_list(self):
        field = _field("multi_select", required=True, options=["x", "y"])
        assert validate_field(field, []) == REQUIRED_MESSAGE
        assert validate_field(field, None) == REQUIRED_MESSAGE
        assert validate_field(field, "x") == REQUIRED_MESSAGE
        assert validate_field(field, ["x"]) == ""

    @pytest.mark.parametrize("field_type", ["short_text", "long_text", "single_select", "date"])
    def test_other_types_require_value(self, field_type):
        field = _field(field_type, required=True, options=["A"] if field_type == "single_select" else None)
        assert validate_field(field, None) == REQUIRED_MESSAGE
        assert validate_field(field, "") == REQUIRED_MESSAGE

    def test_required_text_with_value(self):
        assert validate_field(_field(required=True), "hello") == ""


# ---------------------------------------------------------------------------
# Length and date rules
# ---------------------------------------------------------------------------


class TestRules:
    def test_max_length(self):
        field = _field(validation=ValidationRule(max_length=3))
        assert validate_field(field, "abcd") == "Enter no more than 3 characters."
        assert validate_field(field, "abc") == ""

    def test_zero_bounds_are_ignored(self):
        field = _field(validation=ValidationRule(min_length=0, max_length=0))
        assert validate_field(field, "anything") == ""

    def test_length_rule_ignored_for_lists(self):
        field = _field("multi_select", options=["a", "b"], validation=ValidationRule(max_length=1))
        assert validate_field(field, ["a", "b"]) == ""

    def test_date_range(self):
        field = _field("date", validation=ValidationRule(min_date="2026-01-01", max_date="2026-12-31"))
        assert validate_field(field, "2025-12-31") == "Choose a date on or after 2026-01-01."
        assert validate_field(field, "2027-01-01") == "Choose a date on or before 2026-12-31."
        assert validate_field(field, "2026-01-01") == ""
        assert validate_field(field, "2026-12-31") == ""

    def test_date_rule_only_for_date_type(self):
        field = _field("short_text", validation=ValidationRule(min_date="2026-01-01"))
        assert validate_field(field, "2000-01-01") == ""


# ---------------------------------------------------------------------------
# validate_answers
# ---------------------------------------------------------------------------


class TestValidateAnswers:
    def _fields(self):
        return [
            SurveyField(id="f1", label="Q1", type="single_select", required=True, options=["Yes", "No"]),
            SurveyField(
                id="f2",
                label="Q2",
                type="long_text",
                required=True,
                visibility=VisibilityRule(depends_on_id="f1", operator="equals", value="Yes"),
            ),
        ]

    def test_hidden_required_field_not_validated(self):
        assert validate_answers(self._fields(), {"f1": "No"}) == {}

    def test_visible_required_field_validated(self):
        assert validate_answers(self._fields(), {"f1": "Yes"}) == {"f2": REQUIRED_MESSAGE}

    def test_all_failures_reported(self):
        fields = [
            SurveyField(id="a", type="short_text", required=True),
            SurveyField(id="b", type="checkbox", required=True),
            SurveyField(id="c", type="short_text"),
        ]
        assert validate_answers(fields, {}) == {"a": REQUIRED_MESSAGE, "b": CONSENT_MESSAGE}
