from __future__ import annotations
from typing import Any, Dict, Optional
import json
import math

from practice_coach.errors import MalformedFeedback
from practice_coach.models import FeedbackResult, FeedbackScores

SCORE_KEYS = ["communication", "structure", "relevance", "timing"]
TEXT_KEYS = ["annotatedAnswer", "explanation", "sampleAnswer"]


def extract_json_object(text: Optional[str]) -> Optional[str]:
    """
    Return the first balanced top-level {...} in text, or None.

    Models sometimes wrap the JSON in commentary or markdown fences; braces
    inside JSON strings are skipped so they do not unbalance the scan.
    """
    if not text:
        return None
    if not isinstance(text, str):
        raise MalformedFeedback(f"Model response is {type(text).__name__}, not text")
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    # truncated object
    return None


def try_parse_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Best-effort JSON extraction (handles extra text around the JSON).
    """
    chunk = extract_json_object(text)
    if chunk is None:
        raise MalformedFeedback("No JSON object found in model response")
    try:
        obj = json.loads(chunk)
    except json.JSONDecodeError as e:
        raise MalformedFeedback(f"JSON parse failed: {e}") from e
    return obj


def _score(raw: Dict[str, Any], key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedFeedback(f"Score '{key}' is missing or not numeric")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedFeedback(f"Score '{key}' is not finite")
    return max(0, min(100, int(round(value))))


def parse_feedback(obj: Dict[str, Any]) -> FeedbackResult:
    """
    Validate a decoded feedback object; accepts the {"feedback": {...}} wrapper
    the prompt asks for as well as a bare record.
    """
    if isinstance(obj.get("feedback"), dict):
        obj = obj["feedback"]

    mistakes = obj.get("mistakes")
    if not isinstance(mistakes, list):
        raise MalformedFeedback("Field 'mistakes' is missing or not a list")

    for key in TEXT_KEYS:
        if not isinstance(obj.get(key), str):
            raise MalformedFeedback(f"Field '{key}' is missing or not a string")

    scores = obj.get("scores")
    if not isinstance(scores, dict):
        raise MalformedFeedback("Field 'scores' is missing or not an object")

    return FeedbackResult(
        mistakes=[str(m).strip() for m in mistakes if str(m).strip()],
        annotated_answer=obj["annotatedAnswer"],
        explanation=obj["explanation"].strip(),
        sample_answer=obj["sampleAnswer"].strip(),
        scores=FeedbackScores(**{k: _score(scores, k) for k in SCORE_KEYS}),
    )


def parse_completion(text: Optional[str]) -> FeedbackResult:
    """Turn raw completion text into a FeedbackResult or raise MalformedFeedback."""
    if text is not None and not isinstance(text, str):
        raise MalformedFeedback(f"Model response is {type(text).__name__}, not text")
    obj = try_parse_json(text)
    if not isinstance(obj, dict):
        raise MalformedFeedback("Model did not return a JSON object")
    return parse_feedback(obj)


def canned_feedback() -> FeedbackResult:
    """Deterministic sample used when no API key is configured."""
    return FeedbackResult(
        mistakes=["Usage of filler words (um, uh)", "Answer could be more structured using the STAR method"],
        annotated_answer=(
            "I managed a team [Comment: Strong opening] to deliver a high-impact feature. "
            "We [Comment: Use 'I' instead of 'We' here] completed it on time."
        ),
        explanation=(
            "Overall, your response was relevant, but it lacked specific quantifiable metrics "
            "and a clear conclusion."
        ),
        sample_answer=(
            "In my previous role, I led the redesign of our core dashboard. I identified three "
            "bottlenecks, implemented a new caching layer, and reduced load times by 40% over two months."
        ),
        scores=FeedbackScores(communication=82, structure=75, relevance=88, timing=95),
    )


def degraded_feedback(failure_mode: str, detail: str, answer_text: str = "") -> FeedbackResult:
    """
    Displayable stand-in for a failed analysis so the report is never blank.
    """
    return FeedbackResult(
        mistakes=["AI Evaluation Error", failure_mode],
        annotated_answer=answer_text,
        explanation=f"Error during AI analysis: {detail}",
        sample_answer="Please try again later or check your API configuration.",
        scores=FeedbackScores(communication=0, structure=0, relevance=0, timing=0),
    )
