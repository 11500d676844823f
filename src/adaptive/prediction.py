# ABOUTME: Forecasts expected accuracy and a sensible session length from current mastery.
# ABOUTME: Used for planning and reporting, outside the live answer loop.

from __future__ import annotations

from src.common.schemas import PerformancePrediction, clamp

CONFIDENCE_MARGIN = 0.1
FATIGUE_QUESTION_THRESHOLD = 15
FATIGUE_DISCOUNT = 0.95


def recommended_session_length(current_mastery: float) -> int:
    if current_mastery < 0.3:
        return 8
    if current_mastery > 0.8:
        return 15
    return 10


def predict_performance(
    current_mastery: float,
    target_difficulty: float,
    questions_planned: int,
) -> PerformancePrediction:
    """
    Predict accuracy for a planned session at ``target_difficulty``.

    Mastery is mapped onto the 1-5 difficulty scale (mastery * 5); every point
    the target sits above that costs 0.1 expected accuracy. Sessions longer than
    15 questions take a 5% fatigue discount.
    """

    difficulty_gap = target_difficulty - current_mastery * 5
    expected = clamp(current_mastery - difficulty_gap * 0.1, 0.1, 0.95)
    if questions_planned > FATIGUE_QUESTION_THRESHOLD:
        expected *= FATIGUE_DISCOUNT

    interval = (
        clamp(expected - CONFIDENCE_MARGIN, 0.0, 1.0),
        clamp(expected + CONFIDENCE_MARGIN, 0.0, 1.0),
    )
    return PerformancePrediction(
        expected_accuracy=expected,
        confidence_interval=interval,
        recommended_session_length=recommended_session_length(current_mastery),
    )
