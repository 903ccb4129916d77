"""Response aggregation — dashboard statistics computed over a response set.

Nothing here is persisted; every figure is recomputed from the responses
passed in. The lexicon sentiment tally is independent of the stored LLM
labels and the two are reported side by side, never reconciled.
"""

import logging
import math
import re
import uuid
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Any

from formpulse.schemas.analytics import (
    FieldDistribution,
    FormAnalytics,
    KeywordCount,
    OptionCount,
    SentimentTally,
)
from formpulse.schemas.fields import FREE_TEXT_TYPES, SELECT_TYPES, SurveyField
from formpulse.schemas.responses import ResponseOut
from formpulse.services.validation import has_required_answer

logger = logging.getLogger(__name__)

TOP_KEYWORDS = 6
MIN_TOKEN_LENGTH = 2

POSITIVE_WORDS = frozenset(
    {
        "good", "great", "excellent", "amazing", "love", "like", "happy",
        "satisfied", "helpful", "easy", "fast", "friendly", "recommend",
        "best", "nice", "perfect", "smooth", "clear", "useful", "thanks",
    }
)
NEGATIVE_WORDS = frozenset(
    {
        "bad", "poor", "terrible", "awful", "hate", "slow", "difficult",
        "hard", "confusing", "broken", "unhappy", "disappointed", "expensive",
        "worst", "problem", "issue", "bug", "rude", "late", "complicated",
    }
)

_TOKEN_SPLIT_RE = re.compile(r"[\W_]+", re.UNICODE)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def tokenize(text: str) -> list[str]:
    """Lowercase and split on whitespace/punctuation.

    Tokens shorter than two characters and purely numeric tokens are dropped.
    """
    return [
        token
        for token in _TOKEN_SPLIT_RE.split(text.lower())
        if len(token) >= MIN_TOKEN_LENGTH and not token.isdigit()
    ]


def _answer_texts(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def has_any_answer(value: Any) -> bool:
    """Whether an answer is non-empty, regardless of field type."""
    if value is None or value == "":
        return False
    if isinstance(value, list):
        return len(value) > 0
    return True


# ---------------------------------------------------------------------------
# Individual metrics
# ---------------------------------------------------------------------------


def completion_rate(fields: Sequence[SurveyField], responses: Sequence[ResponseOut]) -> int:
    """Average share of required fields answered, as a whole percentage.

    Every required field counts, whether or not it was visible to the
    respondent. Forms without required fields score 100 per response.
    """
    if not responses:
        return 0
    required = [f for f in fields if f.required]
    total = 0.0
    for response in responses:
        if not required:
            total += 1.0
            continue
        answered = sum(1 for f in required if has_required_answer(f, response.answers.get(f.id)))
        total += answered / len(required)
    return _round_half_up(total / len(responses) * 100)


def average_answered_fields(fields: Sequence[SurveyField], responses: Sequence[ResponseOut]) -> int:
    if not responses:
        return 0
    counts = [sum(1 for f in fields if has_any_answer(r.answers.get(f.id))) for r in responses]
    return _round_half_up(sum(counts) / len(responses))


def option_distribution(
    fields: Sequence[SurveyField], responses: Sequence[ResponseOut]
) -> list[FieldDistribution]:
    """Count selections per declared option of every select field.

    A multi-select response counts each selected option once. Answers that
    are not among the declared options are ignored.
    """
    distributions = []
    for field in fields:
        if field.type not in SELECT_TYPES:
            continue
        options = field.options or []
        counts = dict.fromkeys(options, 0)
        for response in responses:
            value = response.answers.get(field.id)
            selected = set(value) if isinstance(value, list) else {value}
            for option in counts:
                if option in selected:
                    counts[option] += 1
        distributions.append(
            FieldDistribution(
                field_id=field.id,
                label=field.label,
                options=[OptionCount(option=o, count=c) for o, c in counts.items()],
            )
        )
    return distributions


def keyword_frequency(
    fields: Sequence[SurveyField], responses: Sequence[ResponseOut], limit: int = TOP_KEYWORDS
) -> list[KeywordCount]:
    """Most frequent tokens across free-text answers.

    Ties keep first-encountered order (Counter preserves insertion order and
    ``most_common`` sorts stably).
    """
    text_field_ids = [f.id for f in fields if f.type in FREE_TEXT_TYPES]
    counter: Counter[str] = Counter()
    for response in responses:
        for field_id in text_field_ids:
            for text in _answer_texts(response.answers.get(field_id)):
                counter.update(tokenize(text))
    return [KeywordCount(keyword=word, count=count) for word, count in counter.most_common(limit)]


def lexicon_score(texts: Iterable[str]) -> int:
    score = 0
    for text in texts:
        for token in tokenize(text):
            if token in POSITIVE_WORDS:
                score += 1
            elif token in NEGATIVE_WORDS:
                score -= 1
    return score


def heuristic_sentiment(responses: Sequence[ResponseOut]) -> SentimentTally:
    """Classify each response by the sign of its lexicon score and tally."""
    tally = SentimentTally()
    for response in responses:
        texts = [t for value in response.answers.values() for t in _answer_texts(value)]
        score = lexicon_score(texts)
        if score > 0:
            tally.positive += 1
        elif score < 0:
            tally.negative += 1
        else:
            tally.neutral += 1
    return tally


def analysis_label_counts(responses: Sequence[ResponseOut]) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for response in responses:
        if response.analysis is not None:
            counts[response.analysis.sentiment_label] += 1
    return dict(counts)


# ---------------------------------------------------------------------------
# GET /forms/{id}/analytics
# ---------------------------------------------------------------------------


def summarize_responses(
    form_id: uuid.UUID,
    fields: Sequence[SurveyField],
    responses: Sequence[ResponseOut],
) -> FormAnalytics:
    summary = FormAnalytics(
        form_id=form_id,
        total_responses=len(responses),
        completion_rate=completion_rate(fields, responses),
        average_answered_fields=average_answered_fields(fields, responses),
        option_distribution=option_distribution(fields, responses),
        top_keywords=keyword_frequency(fields, responses),
        heuristic_sentiment=heuristic_sentiment(responses),
        analysis_labels=analysis_label_counts(responses),
    )
    logger.debug("Summarized %d responses for form %s", len(responses), form_id)
    return summary
