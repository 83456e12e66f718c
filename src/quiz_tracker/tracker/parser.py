"""Turn pasted, AI-generated quiz text into a :class:`Quiz`.

The input is usually a chat transcript: prose around a fenced ``json`` block
or a bare JSON array. Extraction tries the fenced block first, then the first
array of objects, then the raw text. Each decoded item is mapped through an
ordered field-fallback table, so loosely shaped items still produce a
question instead of an error.
"""

from __future__ import annotations

import json
import logging
import re
import time
import uuid
from typing import Any, Callable, Mapping, Optional, Sequence

from .models import Question, QuestionType, Quiz

__all__ = [
    "ParseError",
    "PARSE_FAILURE_MESSAGE",
    "STRUCTURE_FAILURE_MESSAGE",
    "extract_json_text",
    "parse_quiz_input",
]

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = (
    "Could not parse the input. Please ensure it is a valid JSON format."
)
STRUCTURE_FAILURE_MESSAGE = (
    "Invalid JSON structure. Expected an array of questions or an object "
    "with a 'questions' array."
)
MISSING_TEXT = "No question text provided"

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_OBJECT_ARRAY_RE = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")

# Source keys tried in order for each question field.
_TEXT_KEYS = ("question", "text")
_ANSWER_KEYS = ("answer", "correctAnswer")
_EXPLANATION_KEYS = ("explanation", "reasoning")

IdFactory = Callable[[], str]
Clock = Callable[[], int]


class ParseError(ValueError):
    """Raised when pasted text cannot be turned into a question list."""


def parse_quiz_input(
    text: str,
    topic: str,
    *,
    id_factory: Optional[IdFactory] = None,
    clock: Optional[Clock] = None,
) -> Quiz:
    """Parse ``text`` into a quiz titled ``"{topic} Practice"``.

    ``id_factory`` supplies quiz and question ids and ``clock`` the creation
    time in epoch milliseconds; both default to real uuids and wall time.
    Raises :class:`ParseError` with a user-facing message on failure.
    """

    new_id = id_factory or _new_id
    now = clock or _now_ms

    candidate = extract_json_text(text)
    try:
        decoded = json.loads(candidate, parse_constant=_reject_constant)
    except (ValueError, TypeError, RecursionError) as exc:
        logger.warning(
            "Failed to decode quiz input",
            extra={"error": str(exc), "input_chars": len(candidate or "")},
        )
        raise ParseError(PARSE_FAILURE_MESSAGE) from exc

    items = _resolve_items(decoded)
    questions = tuple(_map_item(item, new_id) for item in items)
    quiz = Quiz(
        id=new_id(),
        title=f"{topic} Practice",
        topic=topic,
        created_at=now(),
        questions=questions,
    )
    logger.info(
        "Parsed quiz",
        extra={
            "quiz_id": quiz.id,
            "topic": topic,
            "questions": len(questions),
        },
    )
    return quiz


def extract_json_text(text: str) -> str:
    """Return the most likely JSON payload embedded in ``text``."""

    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        return fenced.group(1)
    array = _OBJECT_ARRAY_RE.search(text)
    if array:
        return array.group(0)
    return text


def _resolve_items(decoded: Any) -> Sequence[Any]:
    if isinstance(decoded, list):
        return decoded
    if isinstance(decoded, dict):
        questions = decoded.get("questions")
        if isinstance(questions, list):
            return questions
    logger.warning(
        "Quiz input has unexpected structure",
        extra={"decoded_type": type(decoded).__name__},
    )
    raise ParseError(STRUCTURE_FAILURE_MESSAGE)


def _map_item(item: Any, new_id: IdFactory) -> Question:
    source: Mapping[str, Any] = item if isinstance(item, Mapping) else {}
    options = _first_present(source, ("options",))
    answer = _first_present(source, _ANSWER_KEYS)
    text = _first_present(source, _TEXT_KEYS)
    return Question(
        id=new_id(),
        text=MISSING_TEXT if text is None else str(text),
        type=(
            QuestionType.MULTIPLE_CHOICE
            if options is not None
            else QuestionType.SHORT_ANSWER
        ),
        options=tuple(options) if isinstance(options, list) else options,
        correct_answer=None if answer is None else _as_text(answer),
        explanation=_first_present(source, _EXPLANATION_KEYS),
        graph=_first_present(source, ("graph",)),
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _first_present(source: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = source.get(key)
        if value is None or value == "":
            continue
        return value
    return None


def _as_text(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _new_id() -> str:
    return uuid.uuid4().hex


def _now_ms() -> int:
    return int(time.time() * 1000)
