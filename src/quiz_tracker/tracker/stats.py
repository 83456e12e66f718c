"""Fold quiz results into the running :class:`UserStats`."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from .models import QuizResult, UserStats, round_half_up

__all__ = [
    "InvalidResultError",
    "MASTERY_HISTORY_WEIGHT",
    "MASTERY_RECENCY_WEIGHT",
    "calendar_day_gap",
    "record_result",
    "replay_results",
    "validate_result",
]

logger = logging.getLogger(__name__)

MASTERY_RECENCY_WEIGHT = 0.3
MASTERY_HISTORY_WEIGHT = 0.7


class InvalidResultError(ValueError):
    """Raised when a quiz result breaks its numeric invariants."""


def validate_result(result: QuizResult) -> None:
    """Reject results whose score or question count cannot be aggregated."""

    total = result.total_questions
    score = result.score
    if not _is_int(total) or total <= 0:
        raise InvalidResultError(
            f"Result {result.id} has totalQuestions={total!r}; "
            "expected a positive integer."
        )
    if not _is_int(score) or not 0 <= score <= total:
        raise InvalidResultError(
            f"Result {result.id} has score={score!r}; expected an integer "
            f"between 0 and {total}."
        )


def record_result(
    stats: UserStats, result: QuizResult, now: int
) -> UserStats:
    """Return ``stats`` updated with one completed ``result``.

    ``now`` is the recording time in epoch milliseconds. The input ``stats``
    is never modified, and nothing is applied when the result is invalid.
    """

    validate_result(result)

    streak = _next_streak(stats.streak_days, stats.last_activity_date, now)

    mastery = dict(stats.topic_mastery)
    current = mastery.get(result.topic, 0)
    percentage = result.score / result.total_questions * 100
    mastery[result.topic] = round_half_up(
        current * MASTERY_HISTORY_WEIGHT
        + percentage * MASTERY_RECENCY_WEIGHT
    )

    updated = UserStats(
        total_quizzes_taken=stats.total_quizzes_taken + 1,
        total_questions_answered=(
            stats.total_questions_answered + result.total_questions
        ),
        total_correct_answers=stats.total_correct_answers + result.score,
        streak_days=streak,
        last_activity_date=now,
        topic_mastery=mastery,
    )
    logger.debug(
        "Recorded quiz result",
        extra={
            "result_id": result.id,
            "topic": result.topic,
            "streak_days": streak,
            "mastery": mastery[result.topic],
        },
    )
    return updated


def replay_results(
    results: Iterable[QuizResult], *, initial: Optional[UserStats] = None
) -> UserStats:
    """Rebuild stats by recording ``results`` in order at their own dates."""

    stats = initial if initial is not None else UserStats.empty()
    for result in results:
        stats = record_result(stats, result, result.date)
    return stats


def calendar_day_gap(earlier: int, later: int) -> int:
    """Number of local calendar days between two epoch-ms timestamps."""

    return abs((_local_day(later) - _local_day(earlier)).days)


def _next_streak(streak: int, last_activity: int, now: int) -> int:
    gap = calendar_day_gap(last_activity, now)
    if gap == 1:
        return streak + 1
    if gap > 1:
        return 1
    if streak == 0:
        return 1
    return streak


def _local_day(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
