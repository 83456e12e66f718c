"""Subcommand entry points for importing, taking and reviewing quizzes."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markup import escape

from quiz_tracker.core import configure_logger
from quiz_tracker.core.workspace import WorkspaceError

from . import report
from .config import (
    ConfigOverrides,
    LoadResult,
    TrackerConfigError,
    load_config,
)
from .models import Quiz
from .parser import ParseError, parse_quiz_input
from .session import run_quiz_session
from .stats import InvalidResultError, replay_results
from .store import QuizStore, StoreError


def _make_console() -> Console:
    return Console()


def _read_stdin() -> str:
    return sys.stdin.read()


def _input_provider(console: Console) -> Callable[[], str]:
    return lambda: console.input("[bold]> [/]")


@dataclass(frozen=True)
class CommandContext:
    """Resolved config, store and logger shared by every subcommand."""

    settings: LoadResult
    store: QuizStore
    logger: logging.Logger
    console: Console


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Override the workspace root (defaults to QUIZ_TRACKER_DATA_HOME "
            "or ~/.quiz-tracker-data)."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to tracker.toml (defaults to the workspace config dir).",
    )
    parser.add_argument(
        "--log-level",
        help="Override the file log level (e.g. DEBUG, INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr.",
    )


def _build_context(
    args: argparse.Namespace, *, history_limit: Optional[int] = None
) -> CommandContext:
    load_dotenv(find_dotenv(usecwd=True))
    settings = load_config(
        config_path=args.config,
        workspace_path=args.workspace,
        overrides=ConfigOverrides(
            log_level=args.log_level,
            history_limit=history_limit,
        ),
    )
    logger, _ = configure_logger(
        settings.layout.path_for("logs"),
        level=settings.config.log_level,
        verbose=args.verbose,
    )
    store = QuizStore(settings.layout.path_for("data"))
    return CommandContext(
        settings=settings,
        store=store,
        logger=logger,
        console=_make_console(),
    )


def _run(
    parser: argparse.ArgumentParser,
    argv: Optional[Sequence[str]],
    handler: Callable[[argparse.Namespace, CommandContext], int],
) -> int:
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = _build_context(
            args, history_limit=getattr(args, "limit", None)
        )
        return handler(args, context)
    except (
        TrackerConfigError,
        WorkspaceError,
        StoreError,
        ParseError,
        InvalidResultError,
    ) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1


def _resolve_quiz(store: QuizStore, ident: str) -> Optional[Quiz]:
    exact = store.load_quiz_by_id(ident)
    if exact is not None:
        return exact
    matches = [
        quiz for quiz in store.load_quizzes() if quiz.id.startswith(ident)
    ]
    if len(matches) == 1:
        return matches[0]
    return None


def _missing_quiz(ident: str) -> int:
    sys.stderr.write(f"Error: no quiz matches id '{ident}'.\n")
    return 1


# import


def _import_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker import",
        description=(
            "Parse pasted AI quiz output (JSON, optionally inside prose or a "
            "```json fence) and save it as a quiz."
        ),
    )
    parser.add_argument("--topic", required=True, help="Quiz topic.")
    parser.add_argument(
        "--file",
        type=Path,
        help="Read the pasted text from a file instead of stdin.",
    )
    _add_common_arguments(parser)
    return parser


def _handle_import(args: argparse.Namespace, ctx: CommandContext) -> int:
    topic = args.topic.strip()
    if not topic:
        sys.stderr.write("Error: --topic must not be empty.\n")
        return 2
    if args.file is not None:
        try:
            text = args.file.read_text(encoding="utf-8")
        except OSError as exc:
            sys.stderr.write(f"Error: cannot read {args.file}: {exc}\n")
            return 1
    else:
        text = _read_stdin()

    quiz = parse_quiz_input(text, topic)
    if not quiz.questions:
        sys.stderr.write("Error: the input did not contain any questions.\n")
        return 1
    ctx.store.save_quiz(quiz)
    ctx.console.print(
        f"Saved [bold]{len(quiz.questions)}[/] question(s) as "
        f"[cyan]{quiz.id}[/] ({escape(quiz.title)})."
    )
    return 0


def import_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_import_parser(), argv, _handle_import)


# quizzes / show / delete


def _quizzes_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker quizzes",
        description="List saved quizzes, newest first.",
    )
    _add_common_arguments(parser)
    return parser


def _handle_quizzes(args: argparse.Namespace, ctx: CommandContext) -> int:
    report.render_quiz_table(ctx.console, ctx.store.load_quizzes())
    return 0


def quizzes_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_quizzes_parser(), argv, _handle_quizzes)


def _show_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker show",
        description="Show the questions of a saved quiz.",
    )
    parser.add_argument("quiz_id", help="Quiz id or unique id prefix.")
    parser.add_argument(
        "--answers",
        action="store_true",
        help="Include the correct answers.",
    )
    _add_common_arguments(parser)
    return parser


def _handle_show(args: argparse.Namespace, ctx: CommandContext) -> int:
    quiz = _resolve_quiz(ctx.store, args.quiz_id)
    if quiz is None:
        return _missing_quiz(args.quiz_id)
    report.render_quiz_detail(ctx.console, quiz, show_answers=args.answers)
    return 0


def show_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_show_parser(), argv, _handle_show)


def _delete_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker delete",
        description="Delete a saved quiz. Its past results are kept.",
    )
    parser.add_argument("quiz_id", help="Quiz id or unique id prefix.")
    _add_common_arguments(parser)
    return parser


def _handle_delete(args: argparse.Namespace, ctx: CommandContext) -> int:
    quiz = _resolve_quiz(ctx.store, args.quiz_id)
    if quiz is None or not ctx.store.delete_quiz(quiz.id):
        return _missing_quiz(args.quiz_id)
    ctx.console.print(f"Deleted [cyan]{quiz.id}[/].")
    return 0


def delete_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_delete_parser(), argv, _handle_delete)


# take


def _take_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker take",
        description="Replay a saved quiz and record the result.",
    )
    parser.add_argument("quiz_id", help="Quiz id or unique id prefix.")
    parser.add_argument(
        "--no-explanations",
        action="store_true",
        help="Do not show explanations after each answer.",
    )
    _add_common_arguments(parser)
    return parser


def _handle_take(args: argparse.Namespace, ctx: CommandContext) -> int:
    quiz = _resolve_quiz(ctx.store, args.quiz_id)
    if quiz is None:
        return _missing_quiz(args.quiz_id)

    show_explanations = ctx.settings.config.show_explanations
    if args.no_explanations:
        show_explanations = False

    console = ctx.console
    outcome = run_quiz_session(
        quiz,
        console,
        _input_provider(console),
        show_explanations=show_explanations,
    )
    if outcome.result is None:
        return 0 if outcome.exit_action == "quit" else 1

    stats = ctx.store.save_result(outcome.result, now=outcome.result.date)
    mastery = stats.topic_mastery.get(quiz.topic, 0)
    console.print(
        f"Streak: [bold]{stats.streak_days}[/] day(s) | "
        f"{escape(quiz.topic)} mastery: [bold]{mastery}%[/]"
    )
    return 0


def take_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_take_parser(), argv, _handle_take)


# history / stats


def _history_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker history",
        description="List recorded quiz results, newest first.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of results to show (0 shows all).",
    )
    _add_common_arguments(parser)
    return parser


def _handle_history(args: argparse.Namespace, ctx: CommandContext) -> int:
    report.render_history(
        ctx.console,
        ctx.store.load_results(),
        limit=ctx.settings.config.history_limit,
    )
    return 0


def history_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_history_parser(), argv, _handle_history)


def _stats_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-tracker stats",
        description="Show streak, totals and per-topic mastery.",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Recompute the stats by replaying every recorded result.",
    )
    _add_common_arguments(parser)
    return parser


def _handle_stats(args: argparse.Namespace, ctx: CommandContext) -> int:
    if args.rebuild:
        results = sorted(ctx.store.load_results(), key=lambda r: r.date)
        stats = replay_results(results)
        ctx.store.replace_stats(stats)
        ctx.logger.info(
            "Rebuilt stats from history", extra={"results": len(results)}
        )
    else:
        stats = ctx.store.load_stats()
    report.render_stats(ctx.console, stats)
    return 0


def stats_main(argv: Optional[Sequence[str]] = None) -> int:
    return _run(_stats_parser(), argv, _handle_stats)
