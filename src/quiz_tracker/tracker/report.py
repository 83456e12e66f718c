"""Rich tables for saved quizzes, result history and the stats dashboard."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Quiz, QuizResult, UserStats
from .session import choice_labels


def format_timestamp(timestamp_ms: int) -> str:
    """Format epoch milliseconds as local time, e.g. ``May 10, 2024 14:05``."""

    return datetime.fromtimestamp(timestamp_ms / 1000).strftime(
        "%b %d, %Y %H:%M"
    )


def render_quiz_table(console: Console, quizzes: Sequence[Quiz]) -> None:
    if not quizzes:
        console.print(
            "No quizzes saved yet. Import one with `quiz-tracker import`."
        )
        return
    table = Table(title="Quizzes", box=box.SIMPLE, expand=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Questions", justify="right")
    table.add_column("Created")
    for quiz in sorted(quizzes, key=lambda q: q.created_at, reverse=True):
        table.add_row(
            quiz.id[:8],
            Text(quiz.title),
            str(len(quiz.questions)),
            format_timestamp(quiz.created_at),
        )
    console.print(table)


def render_quiz_detail(
    console: Console, quiz: Quiz, *, show_answers: bool = False
) -> None:
    console.rule(Text(quiz.title, style="bold cyan"))
    console.print(
        Text(
            f"{quiz.id} | {len(quiz.questions)} question(s) | "
            f"created {format_timestamp(quiz.created_at)}",
            style="dim",
        )
    )
    for number, question in enumerate(quiz.questions, start=1):
        console.print()
        console.print(
            Text(f"{number}. [{question.type.value}]", style="bold")
        )
        console.print(Markdown(question.text))
        for index, label in enumerate(choice_labels(question), start=1):
            console.print(Text(f"   {index}) {label}"))
        if show_answers:
            answer = question.correct_answer or "(no answer provided)"
            console.print(Text(f"   Answer: {answer}", style="green"))


def render_history(
    console: Console, results: Sequence[QuizResult], *, limit: int = 0
) -> None:
    """Print results newest first; ``limit`` of zero shows everything."""

    if not results:
        console.print("No quiz results recorded yet.")
        return
    ordered = sorted(results, key=lambda r: r.date, reverse=True)
    if limit > 0:
        ordered = ordered[:limit]
    table = Table(title="History", box=box.SIMPLE, expand=True)
    table.add_column("Date")
    table.add_column("Quiz")
    table.add_column("Topic", style="magenta")
    table.add_column("Correct", justify="right")
    table.add_column("Score", justify="right")
    for result in ordered:
        table.add_row(
            format_timestamp(result.date),
            Text(result.quiz_title),
            Text(result.topic),
            f"{result.score} / {result.total_questions}",
            Text(
                f"{result.percentage}%",
                style=_score_style(result.percentage),
            ),
        )
    console.print(table)


def render_stats(console: Console, stats: UserStats) -> None:
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Day streak", str(stats.streak_days))
    overview.add_row("Quizzes taken", str(stats.total_quizzes_taken))
    overview.add_row("Questions answered", str(stats.total_questions_answered))
    overview.add_row("Correct answers", str(stats.total_correct_answers))
    overview.add_row("Accuracy", f"{stats.accuracy * 100:.1f}%")
    last = (
        format_timestamp(stats.last_activity_date)
        if stats.last_activity_date
        else "never"
    )
    overview.add_row("Last activity", last)
    console.print(Panel(overview, title="Your progress", expand=False))

    if not stats.topic_mastery:
        return
    mastery = Table(title="Topic mastery", box=box.SIMPLE, expand=False)
    mastery.add_column("Topic")
    mastery.add_column("Mastery", justify="right")
    mastery.add_column("")
    for topic, value in sorted(
        stats.topic_mastery.items(), key=lambda item: (-item[1], item[0])
    ):
        mastery.add_row(
            Text(topic),
            Text(f"{value}%", style=_score_style(value)),
            Text("█" * (value // 5), style=_score_style(value)),
        )
    console.print(mastery)


def _score_style(percentage: int) -> str:
    if percentage >= 80:
        return "green"
    if percentage >= 50:
        return "yellow"
    return "red"
