"""Strict validation of generated question JSON.

validate_questions(raw) returns the canonical (compact) JSON string or raises.
The only recovery is one fence-stripping retry when the first parse fails:
a leading ```json / ``` marker and a trailing ``` marker are removed and
the text is parsed once more. There is no further repair.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from character_chat.models import Question

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")

REQUIRED_FIELDS = ("id", "text", "type", "marks")


class QuestionValidationError(ValueError):
    """The question set violates the schema. Aborts the whole batch."""


class QuestionFormatError(QuestionValidationError):
    """The model output is not JSON, even after stripping code fences."""


def strip_code_fence(text: str) -> str:
    text = text.strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


def _parse(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as e:
        raise QuestionFormatError("Invalid JSON format in response") from e


def _check_question(q: Any, idx: int) -> None:
    n = idx + 1
    if not isinstance(q, dict):
        raise QuestionValidationError(f"Question {n} is not an object")
    if any(not q.get(field) for field in REQUIRED_FIELDS):
        raise QuestionValidationError(f"Question {n} is missing required fields")

    if q["type"] == "objective":
        options = q.get("options")
        if not isinstance(options, list) or len(options) != 4:
            raise QuestionValidationError(f"Question {n} must have exactly 4 options")
        if not q.get("correctAnswer") or not q.get("explanation"):
            raise QuestionValidationError(f"Question {n} is missing correctAnswer or explanation")
    elif q["type"] == "subjective":
        scheme = q.get("markingScheme")
        if (
            not isinstance(scheme, dict)
            or not isinstance(scheme.get("points"), list)
            or not isinstance(scheme.get("marksPerPoint"), list)
        ):
            raise QuestionValidationError(f"Question {n} has invalid marking scheme")
        if len(scheme["points"]) != len(scheme["marksPerPoint"]):
            raise QuestionValidationError(f"Question {n} has mismatched points and marks arrays")
    else:
        raise QuestionValidationError(f"Question {n} has unknown type {q['type']!r}")


def validate_questions(raw: str) -> str:
    """Validate a model response and return it re-serialised as compact JSON."""
    parsed = _parse(raw)
    if not isinstance(parsed, dict) or not isinstance(parsed.get("questions"), list):
        raise QuestionValidationError("Invalid response format: missing questions array")
    seen_ids = set()
    for idx, q in enumerate(parsed["questions"]):
        _check_question(q, idx)
        # answers are keyed by question id
        key = json.dumps(q["id"], sort_keys=True)
        if key in seen_ids:
            raise QuestionValidationError(f"Question {idx + 1} has a duplicate id {q['id']!r}")
        seen_ids.add(key)
    return json.dumps(parsed, ensure_ascii=False, separators=(",", ":"))


def parse_questions(canonical: str) -> list[Question]:
    """Turn validated question JSON into Question objects."""
    data = json.loads(canonical)
    questions = []
    for idx, q in enumerate(data["questions"]):
        try:
            questions.append(Question.model_validate(q))
        except ValidationError as e:
            raise QuestionValidationError(f"Question {idx + 1} is malformed: {e}") from e
    return questions
