"""Pydantic schemas for the form analytics endpoint."""

import uuid

from formpulse.schemas.common import CamelModel

# ---------------------------------------------------------------------------
# Supporting models
# ---------------------------------------------------------------------------


class OptionCount(CamelModel):
    option: str
    count: int


class FieldDistribution(CamelModel):
    """Selection counts for one single/multi select field."""

    field_id: str
    label: str
    options: list[OptionCount]


class KeywordCount(CamelModel):
    keyword: str
    count: int


class SentimentTally(CamelModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


# ---------------------------------------------------------------------------
# GET /forms/{id}/analytics
# ---------------------------------------------------------------------------


class FormAnalytics(CamelModel):
    form_id: uuid.UUID
    total_responses: int

    completion_rate: int  # percentage 0-100
    average_answered_fields: int

    option_distribution: list[FieldDistribution]
    top_keywords: list[KeywordCount]

    # Lexicon-based tally over raw answer text
    heuristic_sentiment: SentimentTally
    # Stored LLM labels, counted as-is; deliberately kept apart from the above
    analysis_labels: dict[str, int]
