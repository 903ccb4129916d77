"""Tests for the public survey surface and the submission service."""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from formpulse.core.config import settings
from formpulse.schemas.analysis import AnalysisResult
from formpulse.schemas.fields import SurveyField
from formpulse.schemas.responses import SubmissionRequest
from formpulse.services.analysis import AnalysisUpstreamError
from formpulse.services.submissions import build_text_for_ai, collect_visible_answers, format_answer

# f2 only shows (and is only required) when f1 is "Yes"
CONDITIONAL_FIELDS = [
    {
        "id": "f1",
        "label": "Did you have any issues?",
        "type": "single_select",
        "required": True,
        "options": ["Yes", "No"],
    },
    {
        "id": "f2",
        "label": "Describe the issue",
        "type": "long_text",
        "required": True,
        "aiEnabled": True,
        "visibility": {"dependsOnId": "f1", "operator": "equals", "value": "Yes"},
    },
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_form(client, auth_headers, fields=None, **overrides) -> dict:
    payload = {"title": "Customer survey", "fields": fields or CONDITIONAL_FIELDS}
    payload.update(overrides)
    resp = client.post("/api/forms", json=payload, headers=auth_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _submit(client, share_id, answers, respondent_id=None):
    body = {"answers": answers}
    if respondent_id is not None:
        body["respondentId"] = respondent_id
    return client.post(f"/api/public/forms/{share_id}/responses", json=body)


# ---------------------------------------------------------------------------
# Text blocks
# ---------------------------------------------------------------------------


class TestTextForAi:
    def test_format_answer(self):
        assert format_answer(["A", "B"]) == "A / B"
        assert format_answer(True) == "Yes"
        assert format_answer(False) == "No"
        assert format_answer(None) == ""
        assert format_answer("text") == "text"

    def test_blocks_skip_unanswered_fields(self):
        fields = [
            SurveyField(id="a", label="First", type="short_text"),
            SurveyField(id="b", label="Second", type="long_text"),
            SurveyField(id="c", label="Third", type="multi_select", options=["x", "y"]),
        ]
        text = build_text_for_ai(fields, {"a": "hello", "b": "", "c": ["x", "y"]})
        assert text == "Q:First\nA:hello\n\nQ:Third\nA:x / y"

    def test_hidden_answers_not_collected(self):
        fields = [SurveyField.model_validate(f) for f in CONDITIONAL_FIELDS]
        assert collect_visible_answers(fields, {"f1": "No", "f2": "leftover"}) == {"f1": "No"}


# ---------------------------------------------------------------------------
# GET /public/forms/{share_id}
# ---------------------------------------------------------------------------


class TestPublicForm:
    def test_active_form_is_served(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        resp = client.get(f"/api/public/forms/{form['shareId']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["title"] == "Customer survey"
        assert [f["id"] for f in data["fields"]] == ["f1", "f2"]
        assert data["alreadyResponded"] is False
        # Internal settings are not exposed publicly
        assert "aiEnabled" not in data
        assert "webhookUrl" not in data

    def test_draft_form_is_404(self, client, auth_headers):
        form = _create_form(client, auth_headers, status="draft")
        assert client.get(f"/api/public/forms/{form['shareId']}").status_code == 404
        assert _submit(client, form["shareId"], {"f1": "No"}).status_code == 404

    def test_visibility_endpoint(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        url = f"/api/public/forms/{form['shareId']}/visibility"

        resp = client.post(url, json={"answers": {"f1": "Yes"}})
        assert resp.json() == {"visibleFieldIds": ["f1", "f2"]}

        resp = client.post(url, json={"answers": {"f1": "No"}})
        assert resp.json() == {"visibleFieldIds": ["f1"]}

        resp = client.post(url, json={"answers": {}})
        assert resp.json() == {"visibleFieldIds": ["f1"]}


# ---------------------------------------------------------------------------
# POST /public/forms/{share_id}/responses
# ---------------------------------------------------------------------------


class TestSubmission:
    def test_numeric_answer_is_rejected(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        resp = _submit(client, form["shareId"], {"f1": 1}, respondent_id="r-1")
        assert resp.status_code == 422
        listing = client.get(f"/api/forms/{form['id']}/responses", headers=auth_headers).json()
        assert listing["total"] == 0

    def test_hidden_required_field_is_not_enforced(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        resp = _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-1")
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == f"{form['id']}_r-1"
        assert data["respondentId"] == "r-1"
        assert data["analysis"] is None

    def test_only_first_field_fails_when_nothing_answered(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        resp = _submit(client, form["shareId"], {}, respondent_id="r-1")
        assert resp.status_code == 422
        detail = resp.json()["detail"]
        assert detail["message"] == "Please check your answers."
        assert detail["errors"] == {"f1": "This field is required."}

    def test_visible_required_field_is_enforced(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        resp = _submit(client, form["shareId"], {"f1": "Yes"}, respondent_id="r-1")
        assert resp.status_code == 422
        assert resp.json()["detail"]["errors"] == {"f2": "This field is required."}

    def test_failed_validation_stores_nothing(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        _submit(client, form["shareId"], {}, respondent_id="r-1")
        listing = client.get(f"/api/forms/{form['id']}/responses", headers=auth_headers).json()
        assert listing["total"] == 0

    def test_hidden_answers_are_dropped_on_store(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        resp = _submit(client, form["shareId"], {"f1": "No", "f2": "stale text"}, respondent_id="r-1")
        stored = client.get(f"/api/responses/{resp.json()['id']}", headers=auth_headers).json()
        assert stored["answers"] == {"f1": "No"}
        assert stored["status"] == "new"
        assert stored["tags"] == []
        assert stored["memo"] == ""

    def test_same_respondent_is_rejected(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        first = _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-1")
        assert first.status_code == 201

        # Without cookies only the stored record can catch the repeat
        client.cookies.clear()
        second = _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-1")
        assert second.status_code == 409
        assert second.json()["detail"] == "This form has already been answered."

        listing = client.get(f"/api/forms/{form['id']}/responses", headers=auth_headers).json()
        assert listing["total"] == 1

    def test_different_respondents_are_accepted(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        assert _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-1").status_code == 201
        client.cookies.clear()
        assert _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-2").status_code == 201

    def test_responded_cookie_short_circuits(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        assert _submit(client, form["shareId"], {"f1": "No"}).status_code == 201

        assert client.get(f"/api/public/forms/{form['shareId']}").json()["alreadyResponded"] is True
        # Rejected before validation, so an invalid body still gets 409
        resp = _submit(client, form["shareId"], {})
        assert resp.status_code == 409

    def test_respondent_cookie_identity_is_reused(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        first = _submit(client, form["shareId"], {"f1": "No"})
        respondent_id = first.json()["respondentId"]
        assert respondent_id
        assert client.cookies.get(settings.RESPONDENT_COOKIE_NAME) == respondent_id

        # Forget the responded marker but keep the identity cookie
        client.cookies.delete(f"{settings.RESPONDED_COOKIE_PREFIX}{form['id']}")
        second = _submit(client, form["shareId"], {"f1": "No"})
        assert second.status_code == 409

    def test_responses_of_other_forms_do_not_collide(self, client, auth_headers):
        form_a = _create_form(client, auth_headers)
        form_b = _create_form(client, auth_headers, title="Second survey")
        assert _submit(client, form_a["shareId"], {"f1": "No"}, respondent_id="r-1").status_code == 201
        assert _submit(client, form_b["shareId"], {"f1": "No"}, respondent_id="r-1").status_code == 201


# ---------------------------------------------------------------------------
# Analysis during submission
# ---------------------------------------------------------------------------


class TestSubmissionAnalysis:
    def test_analysis_attached_when_enabled(self, client, auth_headers):
        form = _create_form(client, auth_headers, aiEnabled=True)
        result = AnalysisResult(sentiment_label="negative", confidence=0.9, keywords=["slow"], model="gemini-test")

        with patch("formpulse.services.submissions.analyze", new=AsyncMock(return_value=result)) as mock_analyze:
            resp = _submit(client, form["shareId"], {"f1": "Yes", "f2": "Shipping was slow"}, respondent_id="r-1")

        assert resp.status_code == 201
        assert resp.json()["analysis"]["sentimentLabel"] == "negative"

        request = mock_analyze.await_args.args[0]
        assert request.free_text == "Q:Describe the issue\nA:Shipping was slow"
        assert request.overall_text == ""
        assert request.wants_sentiment is True
        assert request.wants_overall is False
        assert request.min_confidence == 0.6

        stored = client.get(f"/api/responses/{resp.json()['id']}", headers=auth_headers).json()
        assert stored["analysis"]["sentimentLabel"] == "negative"
        assert stored["analysis"]["keywords"] == ["slow"]

    def test_overall_text_covers_all_answers(self, client, auth_headers):
        form = _create_form(client, auth_headers, aiEnabled=True, aiOverallEnabled=True, aiMinConfidence=0.8)
        with patch(
            "formpulse.services.submissions.analyze", new=AsyncMock(return_value=AnalysisResult())
        ) as mock_analyze:
            _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-1")

        request = mock_analyze.await_args.args[0]
        assert request.free_text == ""
        assert request.overall_text == "Q:Did you have any issues?\nA:No"
        assert request.wants_sentiment is False
        assert request.wants_overall is True
        assert request.min_confidence == 0.8

    def test_no_analysis_when_disabled(self, client, auth_headers):
        form = _create_form(client, auth_headers)
        with patch("formpulse.services.submissions.analyze", new=AsyncMock()) as mock_analyze:
            resp = _submit(client, form["shareId"], {"f1": "Yes", "f2": "Broken"}, respondent_id="r-1")
        assert resp.status_code == 201
        mock_analyze.assert_not_awaited()

    def test_no_analysis_without_text(self, client, auth_headers):
        form = _create_form(client, auth_headers, aiEnabled=True)
        with patch("formpulse.services.submissions.analyze", new=AsyncMock()) as mock_analyze:
            _submit(client, form["shareId"], {"f1": "No"}, respondent_id="r-1")
        mock_analyze.assert_not_awaited()

    def test_gateway_failure_degrades(self, client, auth_headers):
        form = _create_form(client, auth_headers, aiEnabled=True)
        with patch(
            "formpulse.services.submissions.analyze",
            new=AsyncMock(side_effect=AnalysisUpstreamError(503, "down")),
        ):
            resp = _submit(client, form["shareId"], {"f1": "Yes", "f2": "Everything broke"}, respondent_id="r-1")

        assert resp.status_code == 201
        analysis = resp.json()["analysis"]
        assert analysis["sentimentLabel"] == "needs_review"
        assert analysis["confidence"] == 0.0

        stored = client.get(f"/api/responses/{resp.json()['id']}", headers=auth_headers).json()
        assert stored["analysis"]["sentimentLabel"] == "needs_review"
        assert stored["analysis"]["confidence"] == 0.0

    def test_validation_failure_skips_analysis(self, client, auth_headers):
        form = _create_form(client, auth_headers, aiEnabled=True)
        with patch("formpulse.services.submissions.analyze", new=AsyncMock()) as mock_analyze:
            resp = _submit(client, form["shareId"], {"f1": "Yes"}, respondent_id="r-1")
        assert resp.status_code == 422
        mock_analyze.assert_not_awaited()


# ---------------------------------------------------------------------------
# Answer value types
# ---------------------------------------------------------------------------


class TestAnswerValues:
    def test_booleans_and_strings_accepted(self):
        request = SubmissionRequest.model_validate({"answers": {"a": True, "b": "1", "c": ["x"], "d": None}})
        assert request.answers == {"a": True, "b": "1", "c": ["x"], "d": None}

    @pytest.mark.parametrize("value", [0, 1, 2.5, [1]])
    def test_numbers_are_not_coerced(self, value):
        with pytest.raises(ValidationError):
            SubmissionRequest.model_validate({"answers": {"a": value}})

    def test_numeric_answer_cannot_satisfy_checked_rule(self, client, auth_headers):
        fields = [
            {"id": "agree", "label": "Agree", "type": "checkbox"},
            {
                "id": "why",
                "label": "Why?",
                "type": "short_text",
                "visibility": {"dependsOnId": "agree", "operator": "checked"},
            },
        ]
        form = _create_form(client, auth_headers, fields=fields)
        url = f"/api/public/forms/{form['shareId']}/visibility"
        assert client.post(url, json={"answers": {"agree": 1}}).status_code == 422
        assert client.post(url, json={"answers": {"agree": True}}).json() == {"visibleFieldIds": ["agree", "why"]}
