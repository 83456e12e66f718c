from __future__ import annotations

from datetime import datetime

from rich.console import Console

from fixtures import local_ms, make_question, make_quiz, make_result
from quiz_tracker.tracker import report
from quiz_tracker.tracker.models import UserStats


def _console() -> Console:
    return Console(record=True, width=120, force_terminal=False)


def test_format_timestamp_uses_local_time():
    stamp = local_ms(2024, 5, 10, 14, 5)

    assert report.format_timestamp(stamp) == "May 10, 2024 14:05"


def test_quiz_table_empty_state():
    console = _console()

    report.render_quiz_table(console, [])

    assert "No quizzes saved yet" in console.export_text()


def test_quiz_table_lists_newest_first():
    console = _console()
    older = make_quiz(
        "aaaaaaaa-old", topic="Old", created_at=local_ms(2024, 1, 1)
    )
    newer = make_quiz(
        "bbbbbbbb-new", topic="New", created_at=local_ms(2024, 2, 1)
    )

    report.render_quiz_table(console, [older, newer])

    text = console.export_text()
    assert text.index("New Practice") < text.index("Old Practice")
    assert "bbbbbbbb" in text
    assert "bbbbbbbb-new" not in text


def test_quiz_detail_hides_answers_by_default():
    quiz = make_quiz(
        questions=[make_question("q1", "Pick", "B", options=["A", "B"])]
    )
    console = _console()

    report.render_quiz_detail(console, quiz)

    text = console.export_text()
    assert "1. [multiple-choice]" in text
    assert "2) B" in text
    assert "Answer:" not in text


def test_quiz_detail_with_answers():
    console = _console()

    report.render_quiz_detail(console, make_quiz(), show_answers=True)

    assert "Answer: 4" in console.export_text()


def test_history_newest_first_with_limit():
    results = [
        make_result(1, 2, topic="Alpha", date=local_ms(2024, 5, 1)),
        make_result(2, 2, topic="Gamma", date=local_ms(2024, 5, 3)),
        make_result(0, 2, topic="Beta", date=local_ms(2024, 5, 2)),
    ]
    console = _console()

    report.render_history(console, results, limit=2)

    text = console.export_text()
    assert text.index("Gamma") < text.index("Beta")
    assert "Alpha" not in text
    assert "100%" in text


def test_history_empty_state():
    console = _console()

    report.render_history(console, [])

    assert "No quiz results recorded yet." in console.export_text()


def test_stats_dashboard():
    stats = UserStats(
        total_quizzes_taken=3,
        total_questions_answered=20,
        total_correct_answers=15,
        streak_days=4,
        last_activity_date=int(datetime(2024, 5, 10, 9).timestamp() * 1000),
        topic_mastery={"Algebra": 47, "Biology": 90},
    )
    console = _console()

    report.render_stats(console, stats)

    text = console.export_text()
    assert "Your progress" in text
    assert "Day streak" in text
    assert "75.0%" in text
    assert "May 10, 2024 09:00" in text
    assert text.index("Biology") < text.index("Algebra")


def test_stats_dashboard_for_new_user():
    console = _console()

    report.render_stats(console, UserStats.empty())

    text = console.export_text()
    assert "never" in text
    assert "Topic mastery" not in text
