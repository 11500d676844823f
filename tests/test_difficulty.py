# ABOUTME: Tests difficulty recommendations for single answer events.
# ABOUTME: Covers delta ordering, strategy selection, clamping, and rounding.

import pytest

from src.adaptive.difficulty import recent_accuracy, recommend_next_difficulty
from src.common.schemas import Strategy


def test_quick_correct_with_strong_trend_and_high_mastery_challenges():
    rec = recommend_next_difficulty(3, True, 5, [1, 1, 1, 1, 1], 0.9)

    assert rec.next_difficulty == pytest.approx(4.5)
    assert rec.strategy is Strategy.CHALLENGE
    assert rec.confidence == pytest.approx(0.8)
    assert len(rec.reasoning) == 3
    assert "quick correct" in rec.reasoning[0]
    assert "recent accuracy" in rec.reasoning[1]
    assert "high mastery" in rec.reasoning[2]


def test_slow_incorrect_with_weak_trend_and_low_mastery_reviews():
    rec = recommend_next_difficulty(3, False, 35, [0, 0, 1, 0], 0.2)

    assert rec.next_difficulty == pytest.approx(1.2)
    assert rec.strategy is Strategy.REVIEW
    assert rec.confidence == pytest.approx(0.9)
    assert "slow incorrect" in rec.reasoning[0]
    assert "weak recent accuracy" in rec.reasoning[1]
    assert "low mastery" in rec.reasoning[2]


@pytest.mark.parametrize(
    "is_correct,seconds,expected",
    [
        (True, 9.9, 4.0),
        (True, 10, 3.5),
        (True, 19.9, 3.5),
        (True, 20, 3.2),
        (False, 4.9, 1.5),
        (False, 5, 2.3),
        (False, 30, 2.3),
        (False, 30.1, 2.0),
    ],
)
def test_answer_speed_bands(is_correct, seconds, expected):
    # Neutral trend (0.5) and neutral mastery leave only the answer delta.
    rec = recommend_next_difficulty(3, is_correct, seconds, [1, 0], 0.5)
    assert rec.next_difficulty == pytest.approx(expected)
    assert rec.strategy is Strategy.TARGETED
    assert rec.confidence == pytest.approx(0.6)
    assert len(rec.reasoning) == 2


def test_empty_window_counts_as_neutral_accuracy():
    assert recent_accuracy([]) == 0.5
    rec = recommend_next_difficulty(2.0, True, 15, [], 0.5)
    assert rec.strategy is Strategy.TARGETED
    assert rec.next_difficulty == pytest.approx(2.5)


def test_trend_thresholds_are_strict():
    # Exactly 0.8 and exactly 0.4 stay targeted.
    assert recommend_next_difficulty(3, True, 15, [1, 1, 1, 1, 0], 0.5).strategy is Strategy.TARGETED
    assert recommend_next_difficulty(3, True, 15, [1, 1, 0, 0, 0], 0.5).strategy is Strategy.TARGETED


def test_result_is_clamped_to_scale():
    assert recommend_next_difficulty(5, True, 1, [1] * 10, 1.0).next_difficulty == 5.0
    assert recommend_next_difficulty(1, False, 1, [0] * 10, 0.0).next_difficulty == 1.0


def test_random_strategy_never_emerges():
    strategies = {
        recommend_next_difficulty(3, ok, t, window, m).strategy
        for ok in (True, False)
        for t in (2, 12, 40)
        for window in ([], [0], [1], [0, 1, 1], [1] * 10)
        for m in (0.1, 0.5, 0.9)
    }
    assert Strategy.RANDOM not in strategies


def test_next_difficulty_stays_on_tenth_grid_within_bounds():
    for tenths in range(10, 51):
        current = tenths / 10
        for ok in (True, False):
            for t in (3, 7, 15, 25, 45):
                for window in ([], [0, 0, 0], [1, 0, 1, 0], [1, 1, 1, 1, 1]):
                    for mastery in (0.0, 0.5, 1.0):
                        value = recommend_next_difficulty(current, ok, t, window, mastery).next_difficulty
                        assert 1.0 <= value <= 5.0
                        assert value * 10 == pytest.approx(round(value * 10))
