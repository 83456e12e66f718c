"""Domain records for quizzes, results and the running user statistics.

Every record is an immutable dataclass that converts to and from the
camelCase JSON shape the store persists. Optional fields that are absent are
left out of the serialised payload rather than written as ``null``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, MutableMapping

__all__ = [
    "QuestionType",
    "Question",
    "Quiz",
    "AnswerRecord",
    "QuizResult",
    "UserStats",
]


class QuestionType(str, Enum):
    """Supported question kinds."""

    SHORT_ANSWER = "short-answer"
    MULTIPLE_CHOICE = "multiple-choice"


@dataclass(frozen=True)
class Question:
    """One gradable prompt inside a quiz."""

    id: str
    text: str
    type: QuestionType
    # A list from the source becomes a tuple; other values are kept as-is.
    options: Any = None
    correct_answer: str | None = None
    explanation: str | None = None
    graph: str | None = None

    @property
    def is_multiple_choice(self) -> bool:
        return self.type is QuestionType.MULTIPLE_CHOICE

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "id": self.id,
            "text": self.text,
            "type": self.type.value,
        }
        if self.options is not None:
            payload["options"] = (
                list(self.options)
                if isinstance(self.options, tuple)
                else self.options
            )
        if self.correct_answer is not None:
            payload["correctAnswer"] = self.correct_answer
        if self.explanation is not None:
            payload["explanation"] = self.explanation
        if self.graph is not None:
            payload["graph"] = self.graph
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        options = payload.get("options")
        return cls(
            id=str(payload["id"]),
            text=str(payload.get("text", "")),
            type=QuestionType(payload.get("type", "short-answer")),
            options=tuple(options) if isinstance(options, list) else options,
            correct_answer=payload.get("correctAnswer"),
            explanation=payload.get("explanation"),
            graph=payload.get("graph"),
        )


@dataclass(frozen=True)
class Quiz:
    """An ordered, immutable set of questions from one parse."""

    id: str
    title: str
    topic: str
    created_at: int
    questions: tuple[Question, ...] = ()

    def question_by_id(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "topic": self.topic,
            "createdAt": self.created_at,
            "questions": [question.to_dict() for question in self.questions],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Quiz":
        return cls(
            id=str(payload["id"]),
            title=str(payload["title"]),
            topic=str(payload["topic"]),
            created_at=int(payload["createdAt"]),
            questions=tuple(
                Question.from_dict(item)
                for item in payload.get("questions", [])
            ),
        )


@dataclass(frozen=True)
class AnswerRecord:
    """What the user answered for one question and whether it was right."""

    user_answer: str
    is_correct: bool

    def to_dict(self) -> MutableMapping[str, Any]:
        return {"userAnswer": self.user_answer, "isCorrect": self.is_correct}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AnswerRecord":
        return cls(
            user_answer=str(payload.get("userAnswer", "")),
            is_correct=bool(payload.get("isCorrect", False)),
        )


@dataclass(frozen=True)
class QuizResult:
    """Immutable record of one completed attempt at a quiz."""

    id: str
    quiz_id: str
    quiz_title: str
    topic: str
    date: int
    score: int
    total_questions: int
    answers: Mapping[str, AnswerRecord] = field(default_factory=dict)

    @property
    def percentage(self) -> int:
        if self.total_questions <= 0:
            return 0
        return round_half_up(self.score / self.total_questions * 100)

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "topic": self.topic,
            "date": self.date,
            "score": self.score,
            "totalQuestions": self.total_questions,
            "answers": {
                question_id: record.to_dict()
                for question_id, record in self.answers.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizResult":
        answers = payload.get("answers") or {}
        return cls(
            id=str(payload["id"]),
            quiz_id=str(payload["quizId"]),
            quiz_title=str(payload.get("quizTitle", "")),
            topic=str(payload["topic"]),
            date=int(payload["date"]),
            score=int(payload["score"]),
            total_questions=int(payload["totalQuestions"]),
            answers={
                str(question_id): AnswerRecord.from_dict(record)
                for question_id, record in answers.items()
            },
        )


@dataclass(frozen=True)
class UserStats:
    """Running aggregate of every recorded quiz result."""

    total_quizzes_taken: int = 0
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    streak_days: int = 0
    last_activity_date: int = 0
    topic_mastery: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "UserStats":
        return cls()

    @property
    def accuracy(self) -> float:
        if self.total_questions_answered == 0:
            return 0.0
        return self.total_correct_answers / self.total_questions_answered

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "totalQuizzesTaken": self.total_quizzes_taken,
            "totalQuestionsAnswered": self.total_questions_answered,
            "totalCorrectAnswers": self.total_correct_answers,
            "streakDays": self.streak_days,
            "lastActivityDate": self.last_activity_date,
            "topicMastery": dict(self.topic_mastery),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "UserStats":
        mastery = payload.get("topicMastery") or {}
        return cls(
            total_quizzes_taken=int(payload.get("totalQuizzesTaken", 0)),
            total_questions_answered=int(
                payload.get("totalQuestionsAnswered", 0)
            ),
            total_correct_answers=int(payload.get("totalCorrectAnswers", 0)),
            streak_days=int(payload.get("streakDays", 0)),
            last_activity_date=int(payload.get("lastActivityDate", 0)),
            topic_mastery={
                str(topic): int(value) for topic, value in mastery.items()
            },
        )


def round_half_up(value: float) -> int:
    # Halves round up, unlike the builtin round(); inputs are never negative.
    return int(value + 0.5)
