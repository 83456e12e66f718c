"""Answer checking and assembly of the result for one quiz attempt."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .models import AnswerRecord, Question, Quiz, QuizResult

__all__ = [
    "QuizAttempt",
    "grade_answer",
    "normalize_answer",
]

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_answer(text: object) -> str:
    """Strip all whitespace and lower-case: ``3x^2 + 4`` matches ``3X^2+4``."""

    return _WHITESPACE_RE.sub("", str(text)).lower()


def grade_answer(question: Question, user_answer: str) -> bool:
    if question.correct_answer is None:
        return False
    return normalize_answer(user_answer) == normalize_answer(
        question.correct_answer
    )


@dataclass
class QuizAttempt:
    """Answers collected while a quiz is being taken.

    Answers are kept in the order they were given; answering the same
    question again replaces the earlier record in place.
    """

    quiz: Quiz
    answers: dict[str, AnswerRecord] = field(default_factory=dict)

    @property
    def score(self) -> int:
        return sum(1 for record in self.answers.values() if record.is_correct)

    def answer(self, question_id: str, user_answer: str) -> AnswerRecord:
        question = self.quiz.question_by_id(question_id)
        if question is None:
            raise KeyError(f"Question {question_id} is not part of this quiz.")
        record = AnswerRecord(
            user_answer=user_answer,
            is_correct=grade_answer(question, user_answer),
        )
        self.answers[question_id] = record
        return record

    def finish(
        self,
        *,
        now: Optional[int] = None,
        id_factory: Optional[Callable[[int], str]] = None,
    ) -> QuizResult:
        completed_at = now if now is not None else int(time.time() * 1000)
        result_id = (
            id_factory(completed_at) if id_factory else str(completed_at)
        )
        return QuizResult(
            id=result_id,
            quiz_id=self.quiz.id,
            quiz_title=self.quiz.title,
            topic=self.quiz.topic,
            date=completed_at,
            score=self.score,
            total_questions=len(self.quiz.questions),
            answers=dict(self.answers),
        )
