# ABOUTME: Recommends the next question difficulty from one answer event and recent trend.
# ABOUTME: Produces a strategy label, confidence, and an ordered reasoning trace.

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from src.common.schemas import Recommendation, Strategy, clamp, round_tenth

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 5.0


class AdjustmentThresholds:
    QUICK_CORRECT_SECONDS = 10
    PACED_CORRECT_SECONDS = 20
    QUICK_INCORRECT_SECONDS = 5
    SLOW_INCORRECT_SECONDS = 30
    STRONG_RECENT_ACCURACY = 0.8
    WEAK_RECENT_ACCURACY = 0.4
    HIGH_MASTERY = 0.8
    LOW_MASTERY = 0.3
    EMPTY_WINDOW_ACCURACY = 0.5


def _answer_delta(is_correct: bool, response_time_seconds: float) -> Tuple[float, str]:
    t = response_time_seconds
    if is_correct:
        if t < AdjustmentThresholds.QUICK_CORRECT_SECONDS:
            return 1.0, "quick correct answer: +1.0"
        if t < AdjustmentThresholds.PACED_CORRECT_SECONDS:
            return 0.5, "correct answer at a good pace: +0.5"
        return 0.2, "correct but slow answer: +0.2"
    if t < AdjustmentThresholds.QUICK_INCORRECT_SECONDS:
        return -1.5, "quick incorrect answer: -1.5"
    if t > AdjustmentThresholds.SLOW_INCORRECT_SECONDS:
        return -1.0, "slow incorrect answer: -1.0"
    return -0.7, "incorrect answer: -0.7"


def recent_accuracy(window: Sequence[int]) -> float:
    if len(window) == 0:
        return AdjustmentThresholds.EMPTY_WINDOW_ACCURACY
    return float(np.mean(np.asarray(window, dtype=float)))


def recommend_next_difficulty(
    current_difficulty: float,
    is_correct: bool,
    response_time_seconds: float,
    recent_window: Sequence[int],
    mastery_level: float,
) -> Recommendation:
    """
    Compute the next difficulty for a learner after one answer.

    Deltas accumulate in a fixed order: answer correctness and speed, then the
    recent-accuracy trend (which also sets strategy and confidence), then the
    mastery level. The result is clamped to [1, 5] and rounded to 0.1.
    """

    reasoning: List[str] = []

    delta, reason = _answer_delta(is_correct, response_time_seconds)
    reasoning.append(reason)

    accuracy = recent_accuracy(recent_window)
    if accuracy > AdjustmentThresholds.STRONG_RECENT_ACCURACY:
        delta += 0.3
        strategy, confidence = Strategy.CHALLENGE, 0.8
        reasoning.append(f"strong recent accuracy {accuracy:.2f}: +0.3, challenging learner")
    elif accuracy < AdjustmentThresholds.WEAK_RECENT_ACCURACY:
        delta -= 0.5
        strategy, confidence = Strategy.REVIEW, 0.9
        reasoning.append(f"weak recent accuracy {accuracy:.2f}: -0.5, reviewing fundamentals")
    else:
        strategy, confidence = Strategy.TARGETED, 0.6
        reasoning.append(f"steady recent accuracy {accuracy:.2f}: targeting current level")

    if mastery_level > AdjustmentThresholds.HIGH_MASTERY:
        delta += 0.2
        reasoning.append(f"high mastery {mastery_level:.2f}: +0.2")
    elif mastery_level < AdjustmentThresholds.LOW_MASTERY:
        delta -= 0.3
        reasoning.append(f"low mastery {mastery_level:.2f}: -0.3, building foundation")

    next_difficulty = round_tenth(clamp(current_difficulty + delta, MIN_DIFFICULTY, MAX_DIFFICULTY))

    return Recommendation(
        next_difficulty=next_difficulty,
        strategy=strategy,
        confidence=clamp(confidence, 0.0, 1.0),
        reasoning=tuple(reasoning),
    )
