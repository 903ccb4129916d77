from typing import Literal

from pydantic import Field

from formpulse.schemas.common import CamelModel

SentimentLabel = Literal["positive", "neutral", "negative", "needs_review"]

SENTIMENT_LABELS: tuple[str, ...] = ("positive", "neutral", "negative", "needs_review")
MAX_KEYWORDS = 6


class AnalyzeRequest(CamelModel):
    """Body of POST /ai/analyze, already coerced by the decoding layer."""

    free_text: str = ""
    overall_text: str = ""
    wants_sentiment: bool = False
    wants_overall: bool = False
    min_confidence: float = 0.6


class AnalysisResult(CamelModel):
    overall_score: int | None = Field(None, ge=1, le=10)
    sentiment_label: SentimentLabel = "needs_review"
    confidence: float | None = Field(None, ge=0.0, le=1.0)
    keywords: list[str] = Field(default_factory=list, max_length=MAX_KEYWORDS)
    model: str = ""


def degraded_analysis() -> AnalysisResult:
    """Result attached to a submission when the gateway call fails."""
    return AnalysisResult(sentiment_label="needs_review", confidence=0.0)
