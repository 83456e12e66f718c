from __future__ import annotations

import pytest

from fixtures import local_ms, make_result
from quiz_tracker.tracker.models import UserStats
from quiz_tracker.tracker.stats import (
    InvalidResultError,
    calendar_day_gap,
    record_result,
    replay_results,
    validate_result,
)


def test_counters_accumulate():
    now = local_ms(2024, 5, 10)

    stats = record_result(UserStats.empty(), make_result(3, 5), now)
    stats = record_result(stats, make_result(4, 4), now)

    assert stats.total_quizzes_taken == 2
    assert stats.total_questions_answered == 9
    assert stats.total_correct_answers == 7
    assert stats.last_activity_date == now


def test_first_activity_starts_streak_at_one():
    stats = record_result(
        UserStats.empty(), make_result(1, 1), local_ms(2024, 5, 10)
    )

    assert stats.streak_days == 1


def test_consecutive_day_increments_streak():
    stats = UserStats(streak_days=4, last_activity_date=local_ms(2024, 5, 9))

    updated = record_result(
        stats, make_result(1, 1), local_ms(2024, 5, 10, 8)
    )

    assert updated.streak_days == 5


def test_late_night_then_early_morning_counts_as_next_day():
    stats = UserStats(
        streak_days=2, last_activity_date=local_ms(2024, 5, 9, 23, 50)
    )

    updated = record_result(
        stats, make_result(1, 1), local_ms(2024, 5, 10, 0, 10)
    )

    assert updated.streak_days == 3


def test_gap_of_three_days_resets_streak():
    stats = UserStats(streak_days=9, last_activity_date=local_ms(2024, 5, 7))

    updated = record_result(stats, make_result(1, 1), local_ms(2024, 5, 10))

    assert updated.streak_days == 1


def test_same_day_keeps_existing_streak():
    stats = UserStats(
        streak_days=3, last_activity_date=local_ms(2024, 5, 10, 9)
    )

    updated = record_result(
        stats, make_result(1, 1), local_ms(2024, 5, 10, 21)
    )

    assert updated.streak_days == 3
    assert updated.last_activity_date == local_ms(2024, 5, 10, 21)


def test_second_activity_on_first_day_does_not_increment():
    now = local_ms(2024, 5, 10, 9)
    stats = record_result(UserStats.empty(), make_result(1, 2), now)

    stats = record_result(stats, make_result(2, 2), now + 60_000)

    assert stats.streak_days == 1


def test_topic_mastery_is_smoothed():
    now = local_ms(2024, 5, 10)

    stats = record_result(
        UserStats.empty(), make_result(8, 10, topic="Algebra"), now
    )
    assert stats.topic_mastery["Algebra"] == 24

    stats = record_result(stats, make_result(10, 10, topic="Algebra"), now)
    assert stats.topic_mastery["Algebra"] == 47


def test_mastery_rounds_half_up():
    stats = UserStats(topic_mastery={"T": 5})

    # 5 * 0.7 + 0.3 * (1/2 * 100) = 3.5 + 15 = 18.5 -> 19
    updated = record_result(
        stats, make_result(1, 2, topic="T"), local_ms(2024, 5, 10)
    )

    assert updated.topic_mastery["T"] == 19


def test_other_topics_are_untouched():
    stats = UserStats(topic_mastery={"History": 60})

    updated = record_result(
        stats, make_result(5, 5, topic="Math"), local_ms(2024, 5, 10)
    )

    assert updated.topic_mastery == {"History": 60, "Math": 30}


def test_input_stats_are_not_modified():
    mastery = {"Math": 50}
    stats = UserStats(
        total_quizzes_taken=1,
        streak_days=1,
        last_activity_date=local_ms(2024, 5, 9),
        topic_mastery=mastery,
    )
    before = stats.to_dict()

    record_result(stats, make_result(1, 1), local_ms(2024, 5, 10))

    assert stats.to_dict() == before
    assert mastery == {"Math": 50}


def test_zero_total_questions_is_rejected_without_changes():
    stats = UserStats(
        total_quizzes_taken=2,
        total_questions_answered=10,
        total_correct_answers=6,
        streak_days=2,
        last_activity_date=local_ms(2024, 5, 9),
        topic_mastery={"Math": 40},
    )
    before = stats.to_dict()

    with pytest.raises(InvalidResultError):
        record_result(stats, make_result(0, 0), local_ms(2024, 5, 10))

    assert stats.to_dict() == before


@pytest.mark.parametrize(
    ("score", "total"),
    [(-1, 5), (6, 5), (1, -3), (True, 2), (1.5, 3), (1, 2.0)],
)
def test_invalid_scores_are_rejected(score, total):
    with pytest.raises(InvalidResultError):
        validate_result(make_result(score, total))


def test_sequential_recording_is_independent_of_batching():
    results = [
        make_result(3, 5, topic="Math", date=local_ms(2024, 5, 1)),
        make_result(4, 4, topic="Bio", date=local_ms(2024, 5, 2)),
        make_result(1, 5, topic="Math", date=local_ms(2024, 5, 2, 18)),
        make_result(5, 5, topic="Math", date=local_ms(2024, 5, 6)),
        make_result(2, 3, topic="Bio", date=local_ms(2024, 5, 7)),
    ]

    all_at_once = replay_results(results)
    first_batch = replay_results(results[:2])
    in_batches = replay_results(results[2:], initial=first_batch)

    assert in_batches == all_at_once
    assert all_at_once.total_quizzes_taken == 5
    assert all_at_once.streak_days == 2


def test_replay_of_nothing_is_empty_stats():
    assert replay_results([]) == UserStats.empty()


def test_calendar_day_gap_is_symmetric():
    earlier = local_ms(2024, 5, 10, 23)
    later = local_ms(2024, 5, 12, 1)

    assert calendar_day_gap(earlier, later) == 2
    assert calendar_day_gap(later, earlier) == 2
    assert calendar_day_gap(earlier, earlier + 1000) == 0
