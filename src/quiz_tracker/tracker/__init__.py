from .models import (
    AnswerRecord,
    Question,
    QuestionType,
    Quiz,
    QuizResult,
    UserStats,
)
from .parser import ParseError, extract_json_text, parse_quiz_input
from .stats import (
    InvalidResultError,
    calendar_day_gap,
    record_result,
    replay_results,
)
from .grading import QuizAttempt, grade_answer, normalize_answer
from .store import QuizStore, StoreError
from .session import SessionOutcome, run_quiz_session

__all__ = [
    "AnswerRecord",
    "Question",
    "QuestionType",
    "Quiz",
    "QuizResult",
    "UserStats",
    "ParseError",
    "extract_json_text",
    "parse_quiz_input",
    "InvalidResultError",
    "calendar_day_gap",
    "record_result",
    "replay_results",
    "QuizAttempt",
    "grade_answer",
    "normalize_answer",
    "QuizStore",
    "StoreError",
    "SessionOutcome",
    "run_quiz_session",
]
