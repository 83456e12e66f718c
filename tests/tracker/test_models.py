from __future__ import annotations

from fixtures import make_question, make_quiz, make_result
from quiz_tracker.tracker.models import (
    AnswerRecord,
    Question,
    QuestionType,
    Quiz,
    QuizResult,
    UserStats,
    round_half_up,
)


def test_question_payload_uses_camel_case_and_omits_absent_fields():
    question = make_question("q1", "2+2?", "4")

    assert question.to_dict() == {
        "id": "q1",
        "text": "2+2?",
        "type": "short-answer",
        "correctAnswer": "4",
    }


def test_question_from_payload():
    question = Question.from_dict(
        {
            "id": "q9",
            "text": "Pick",
            "type": "multiple-choice",
            "options": ["A", "B"],
            "correctAnswer": "B",
            "explanation": "B is right",
            "graph": "x^2",
        }
    )

    assert question.type is QuestionType.MULTIPLE_CHOICE
    assert question.is_multiple_choice
    assert question.options == ("A", "B")
    assert question.explanation == "B is right"
    assert question.graph == "x^2"


def test_quiz_round_trip_through_payload():
    quiz = make_quiz(
        questions=[
            make_question("q1"),
            make_question("q2", "Pick", "A", options=["A", "B"]),
        ]
    )

    payload = quiz.to_dict()

    assert payload["createdAt"] == quiz.created_at
    assert Quiz.from_dict(payload) == quiz
    assert quiz.question_by_id("q2").options == ("A", "B")
    assert quiz.question_by_id("missing") is None


def test_result_payload_shape():
    result = make_result(
        1,
        2,
        date=1_700_000_000_000,
        answers={
            "q1": AnswerRecord("4", True),
            "q2": AnswerRecord("5", False),
        },
    )

    payload = result.to_dict()

    assert payload["quizId"] == "quiz-1"
    assert payload["totalQuestions"] == 2
    assert payload["answers"]["q2"] == {"userAnswer": "5", "isCorrect": False}
    assert QuizResult.from_dict(payload) == result


def test_result_percentage_rounds_half_up():
    assert make_result(1, 8).percentage == 13
    assert make_result(2, 3).percentage == 67
    assert make_result(0, 0).percentage == 0


def test_stats_defaults_and_payload():
    stats = UserStats.empty()

    assert stats.to_dict() == {
        "totalQuizzesTaken": 0,
        "totalQuestionsAnswered": 0,
        "totalCorrectAnswers": 0,
        "streakDays": 0,
        "lastActivityDate": 0,
        "topicMastery": {},
    }
    assert stats.accuracy == 0.0
    assert UserStats.from_dict({}) == stats


def test_stats_accuracy():
    stats = UserStats(total_questions_answered=8, total_correct_answers=6)

    assert stats.accuracy == 0.75


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
