"""Parse structured model output into Verdict and clarification questions."""

import json
import logging
import re
from numbers import Real

from warroom.errors import MalformedQuestionsError, MalformedVerdictError
from warroom.models import Source, Verdict

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

_DEFAULT_SOURCE_TITLE = "Market Source"

VERDICT_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "viabilityScore": {"type": "number"},
        "summary": {"type": "string"},
        "keyRisks": {"type": "array", "items": {"type": "string"}},
        "keyOpportunities": {"type": "array", "items": {"type": "string"}},
        "marketTrends": {"type": "array", "items": {"type": "string"}},
        "socialSentiment": {"type": "string"},
        "estimatedCAC": {"type": "string"},
    },
    "required": [
        "viabilityScore",
        "summary",
        "keyRisks",
        "keyOpportunities",
        "marketTrends",
        "socialSentiment",
        "estimatedCAC",
    ],
}

QUESTIONS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "questions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["questions"],
}

QUESTION_COUNT = 3


def _load_json_object(text: str) -> dict:
    """Decode a JSON object, tolerating a surrounding markdown code fence.

    Raises ValueError when the text is not a JSON object.
    """
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        stripped = match.group(1)
    data = json.loads(stripped)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _require_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise MalformedVerdictError("judge", f"field '{key}' must be a string")
    return value


def _require_str_list(data: dict, key: str) -> tuple[str, ...]:
    value = data.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedVerdictError("judge", f"field '{key}' must be a list of strings")
    return tuple(value)


def normalize_sources(raw_sources: list[dict]) -> tuple[Source, ...]:
    """Drop sources without a uri and default missing titles."""
    sources: list[Source] = []
    for raw in raw_sources:
        uri = (raw.get("uri") or "").strip()
        if not uri:
            continue
        title = (raw.get("title") or "").strip() or _DEFAULT_SOURCE_TITLE
        sources.append(Source(title=title, uri=uri))
    return tuple(sources)


def parse_verdict(text: str, sources: tuple[Source, ...] = ()) -> Verdict:
    """Parse the judge's JSON payload into a Verdict without a ruling.

    Raises:
        MalformedVerdictError: On invalid JSON, a missing or mistyped field,
            or a viability score outside 0..10.
    """
    try:
        data = _load_json_object(text)
    except ValueError as exc:
        raise MalformedVerdictError("judge", f"Invalid JSON payload: {exc}") from exc

    missing = [k for k in VERDICT_SCHEMA["required"] if k not in data]
    if missing:
        raise MalformedVerdictError("judge", f"Missing required fields: {', '.join(missing)}")

    score = data["viabilityScore"]
    # bool is a Real subclass
    if isinstance(score, bool) or not isinstance(score, Real):
        raise MalformedVerdictError("judge", f"viabilityScore is not numeric: {score!r}")
    if not 0 <= score <= 10:
        raise MalformedVerdictError("judge", f"viabilityScore out of range 0-10: {score}")

    return Verdict(
        viability_score=float(score),
        summary=_require_str(data, "summary"),
        key_risks=_require_str_list(data, "keyRisks"),
        key_opportunities=_require_str_list(data, "keyOpportunities"),
        market_trends=_require_str_list(data, "marketTrends"),
        social_sentiment=_require_str(data, "socialSentiment"),
        estimated_cac=_require_str(data, "estimatedCAC"),
        sources=sources,
    )


def parse_questions(text: str) -> list[str]:
    """Parse the clarification payload into exactly three questions.

    Raises:
        MalformedQuestionsError: On invalid JSON, a missing 'questions' field,
            blank entries, or any count other than three.
    """
    try:
        data = _load_json_object(text)
    except ValueError as exc:
        raise MalformedQuestionsError("clarifier", f"Invalid JSON payload: {exc}") from exc

    questions = data.get("questions")
    if not isinstance(questions, list):
        raise MalformedQuestionsError("clarifier", "Missing 'questions' list")
    if len(questions) != QUESTION_COUNT:
        raise MalformedQuestionsError(
            "clarifier", f"Expected {QUESTION_COUNT} questions, got {len(questions)}"
        )
    if not all(isinstance(q, str) and q.strip() for q in questions):
        raise MalformedQuestionsError("clarifier", "Questions must be non-empty strings")

    logger.debug("Parsed clarifying questions: %s", questions)
    return [q.strip() for q in questions]
