"""Rich-powered terminal loop that replays a saved quiz.

The loop renders one question at a time, reads answers from an injectable
input provider, grades them immediately and returns a ``SessionOutcome``.
Only a fully answered quiz produces a ``QuizResult``; quitting early leaves
nothing to record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .grading import QuizAttempt
from .models import AnswerRecord, Question, Quiz, QuizResult

InputProvider = Callable[[], str]
Clock = Callable[[], int]
ExitAction = Literal["completed", "quit", "empty"]

_QUIT_WORDS = {":q", ":quit", ":exit"}


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user input for the current question."""

    type: Literal["answer", "quit"]
    answer: Optional[str] = None


@dataclass(frozen=True)
class SessionOutcome:
    """Return value from ``run_quiz_session``."""

    attempt: QuizAttempt
    exit_action: ExitAction
    result: Optional[QuizResult] = None


def choice_labels(question: Question) -> list[str]:
    """Option texts for a multiple-choice question, else an empty list."""

    options = question.options
    if not question.is_multiple_choice or not isinstance(
        options, (list, tuple)
    ):
        return []
    return [str(option) for option in options]


def parse_session_command(
    raw: Optional[str], question: Question
) -> Optional[SessionCommand]:
    """Parse raw console input for ``question``.

    Multiple-choice questions accept the option text itself or its 1-based
    number; text wins when an option reads like a number. Everything else
    is taken as a free-text answer.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if text.lower() in _QUIT_WORDS:
        return SessionCommand("quit")
    labels = choice_labels(question)
    if not labels:
        return SessionCommand("answer", text)
    for label in labels:
        if label.strip().lower() == text.lower():
            return SessionCommand("answer", label)
    if text.isdigit():
        index = int(text)
        if 1 <= index <= len(labels):
            return SessionCommand("answer", labels[index - 1])
    return None


def run_quiz_session(
    quiz: Quiz,
    console: Console,
    input_provider: InputProvider,
    *,
    show_explanations: bool = True,
    clock: Optional[Clock] = None,
) -> SessionOutcome:
    """Run an interactive session over every question of ``quiz``."""

    attempt = QuizAttempt(quiz)
    if not quiz.questions:
        console.print(
            Panel(
                "This quiz has no questions.",
                title=quiz.title,
                border_style="yellow",
            )
        )
        return SessionOutcome(attempt, "empty")

    total = len(quiz.questions)
    for index, question in enumerate(quiz.questions):
        _render_question(console, quiz, question, index, total)
        command = _read_command(console, question, input_provider)
        if command is None or command.type == "quit":
            console.print("\n[bold yellow]Ending session without saving.[/]")
            return SessionOutcome(attempt, "quit")
        record = attempt.answer(question.id, command.answer or "")
        _render_feedback(
            console, question, record, show_explanations=show_explanations
        )

    now = clock() if clock is not None else None
    result = attempt.finish(now=now)
    _render_summary(console, quiz, result)
    return SessionOutcome(attempt, "completed", result)


def _read_command(
    console: Console, question: Question, input_provider: InputProvider
) -> Optional[SessionCommand]:
    while True:
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            return None
        command = parse_session_command(raw, question)
        if command is not None:
            return command
        if choice_labels(question):
            console.print(
                "[red]Enter an option number between 1 and "
                f"{len(choice_labels(question))}, or :q to quit.[/red]"
            )
        else:
            console.print("[red]Type an answer, or :q to quit.[/red]")


def _render_question(
    console: Console,
    quiz: Quiz,
    question: Question,
    index: int,
    total: int,
) -> None:
    header = Text.assemble(
        (f"Question {index + 1}", "bold cyan"),
        (f" / {total}", "dim"),
        (f"  {quiz.topic}", "magenta"),
    )
    console.print()
    console.rule(header)
    console.print(Markdown(question.text))
    if question.graph:
        console.print(Text(f"Graph: y = {question.graph}", style="dim"))

    labels = choice_labels(question)
    if labels:
        table = Table(show_header=False, box=box.SIMPLE, expand=True)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Option")
        for number, label in enumerate(labels, start=1):
            table.add_row(str(number), Text(label))
        console.print(table)
        hint = f"Answer with 1-{len(labels)}, or :q to quit"
    else:
        hint = "Type your answer, or :q to quit"
    console.print(Text(hint, style="dim"))


def _render_feedback(
    console: Console,
    question: Question,
    record: AnswerRecord,
    *,
    show_explanations: bool,
) -> None:
    if record.is_correct:
        console.print("[bold green]Correct![/]")
    else:
        expected = question.correct_answer or "(no answer provided)"
        console.print(
            Text.assemble(
                ("Incorrect.", "bold red"), f" Expected: {expected}"
            )
        )
    if show_explanations and question.explanation:
        border = "green" if record.is_correct else "red"
        console.print(
            Panel(
                Markdown(str(question.explanation)),
                title="Explanation",
                border_style=border,
            )
        )


def _render_summary(
    console: Console, quiz: Quiz, result: QuizResult
) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Quiz", Text(quiz.title))
    overview.add_row("Correct", f"{result.score} / {result.total_questions}")
    overview.add_row("Score", f"{result.percentage}%")
    console.print(overview)

    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Result", justify="center")
    by_id = {question.id: question for question in quiz.questions}
    for number, (question_id, record) in enumerate(
        result.answers.items(), start=1
    ):
        question = by_id.get(question_id)
        responses.add_row(
            str(number),
            Text(question.text if question else question_id),
            Text(record.user_answer),
            "✅" if record.is_correct else "❌",
        )
    console.print(responses)
