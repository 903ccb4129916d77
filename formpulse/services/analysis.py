"""Response analysis service — classify survey answers via Gemini."""

import json
import logging
import re
from typing import Any

import httpx

from formpulse.core.config import settings
from formpulse.core.decoding import as_number, clamp_score
from formpulse.schemas.analysis import MAX_KEYWORDS, SENTIMENT_LABELS, AnalysisResult, AnalyzeRequest

logger = logging.getLogger(__name__)

GEMINI_GENERATE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

ANALYSIS_INSTRUCTIONS = "\n".join(
    [
        "You are an AI that classifies B2B survey responses.",
        "Return JSON only with keys: overallScore, sentimentLabel, confidence, keywords.",
        "overallScore: integer 1-10 or null if not requested.",
        "sentimentLabel: positive, neutral, negative, or needs_review.",
        "confidence: number 0-1.",
        "keywords: array of up to 6 short phrases.",
    ]
)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class AnalysisError(Exception):
    """Raised when response analysis cannot be performed."""


class AnalysisConfigError(AnalysisError):
    """Raised when the service credential is not configured."""


class AnalysisUpstreamError(AnalysisError):
    """Raised when the text-generation service does not answer with 2xx.

    ``status_code`` is 0 when no HTTP response was received at all.
    """

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"Gemini API error: {status_code}")
        self.status_code = status_code
        self.detail = detail


# ---------------------------------------------------------------------------
# Parsing / normalization
# ---------------------------------------------------------------------------


def extract_json(text: str) -> dict | None:
    """Parse model output as a JSON object.

    Falls back to the outermost ``{...}`` span when the text has prose or
    code fences around the object. Returns None when nothing parses.
    """
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        match = _JSON_OBJECT_RE.search(text or "")
        if match is None:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def empty_result(model: str) -> AnalysisResult:
    return AnalysisResult(
        overall_score=None,
        sentiment_label="needs_review",
        confidence=0.0,
        keywords=[],
        model=model,
    )


def normalize_analysis(
    parsed: dict[str, Any] | None,
    *,
    wants_sentiment: bool,
    wants_overall: bool,
    min_confidence: float,
    model: str,
) -> AnalysisResult:
    """Clamp a parsed model answer into the fixed result schema.

    A confidence below ``min_confidence`` forces the label to
    ``needs_review``; the overall score is left as computed.
    """
    if parsed is None:
        return empty_result(model)

    overall_score = None
    raw_score = parsed.get("overallScore")
    score = as_number(raw_score if raw_score is not None else parsed.get("score"))
    if wants_overall and score is not None:
        overall_score = clamp_score(score)

    label = parsed.get("sentimentLabel")
    if not isinstance(label, str):
        label = parsed.get("sentiment")
    if not wants_sentiment or label not in SENTIMENT_LABELS:
        label = "needs_review"

    confidence = as_number(parsed.get("confidence"))
    confidence = min(1.0, max(0.0, confidence)) if confidence is not None else 0.0

    raw_keywords = parsed.get("keywords")
    keywords = (
        [k for k in raw_keywords if isinstance(k, str)][:MAX_KEYWORDS]
        if isinstance(raw_keywords, list)
        else []
    )

    if confidence < min_confidence:
        label = "needs_review"

    return AnalysisResult(
        overall_score=overall_score,
        sentiment_label=label,
        confidence=confidence,
        keywords=keywords,
        model=model,
    )


def build_prompt(request: AnalyzeRequest) -> str:
    input_text = "\n".join(
        [
            "FREE_TEXT:",
            request.free_text or "(none)",
            "",
            "OVERALL_TEXT:",
            request.overall_text or "(none)",
            "",
            f"REQUEST: sentiment={str(request.wants_sentiment).lower()}, "
            f"overallScore={str(request.wants_overall).lower()}",
        ]
    )
    return f"{ANALYSIS_INSTRUCTIONS}\n\n{input_text}"


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


async def analyze(request: AnalyzeRequest) -> AnalysisResult:
    """Classify free-text and overall answer blocks with Gemini.

    Args:
        request: The two text blocks, the wanted outputs and the confidence
            floor below which the label is forced to ``needs_review``.

    Returns:
        The normalized AnalysisResult. Unparseable model output yields the
        empty result rather than an error.

    Raises:
        AnalysisConfigError: If GEMINI_API_KEY is not configured.
        AnalysisUpstreamError: If the API call fails or answers non-2xx.
    """
    model = settings.GEMINI_MODEL

    if not request.free_text and not request.overall_text:
        logger.debug("Nothing to analyze, returning empty result")
        return empty_result(model)

    api_key = settings.GEMINI_API_KEY
    if not api_key:
        raise AnalysisConfigError("GEMINI_API_KEY is not configured")

    payload = {
        "contents": [
            {
                "role": "user",
                "parts": [{"text": build_prompt(request)}],
            }
        ],
        "generationConfig": {
            "temperature": settings.ANALYSIS_TEMPERATURE,
            "maxOutputTokens": settings.ANALYSIS_MAX_OUTPUT_TOKENS,
        },
    }

    try:
        async with httpx.AsyncClient(timeout=settings.ANALYSIS_TIMEOUT_SECONDS) as client:
            response = await client.post(
                GEMINI_GENERATE_URL.format(model=model),
                json=payload,
                params={"key": api_key},
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("Gemini API returned %d: %s", exc.response.status_code, exc.response.text)
        raise AnalysisUpstreamError(exc.response.status_code, exc.response.text) from exc
    except httpx.RequestError as exc:
        logger.error("Gemini API request failed: %s", exc)
        raise AnalysisUpstreamError(0, str(exc)) from exc

    try:
        data = response.json()
        parts = data["candidates"][0]["content"]["parts"]
        raw_text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.warning("Unexpected Gemini response shape: %s", exc)
        raw_text = ""

    result = normalize_analysis(
        extract_json(raw_text),
        wants_sentiment=request.wants_sentiment,
        wants_overall=request.wants_overall,
        min_confidence=request.min_confidence,
        model=model,
    )
    logger.info(
        "Analysis complete: label=%s confidence=%.2f score=%s",
        result.sentiment_label,
        result.confidence or 0.0,
        result.overall_score,
    )
    return result
