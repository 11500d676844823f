# ABOUTME: Estimates topic mastery from accuracy, item difficulty, and consistency.
# ABOUTME: Recomputes persisted mastery records after each answer event.

from __future__ import annotations

from dataclasses import replace

from src.common.schemas import MasteryRecord, SessionState, clamp

from .consistency import score_consistency

BASELINE_DIFFICULTY = 3.0
DIFFICULTY_BONUS_PER_LEVEL = 0.1
FULL_RELIABILITY_QUESTIONS = 20


def estimate_mastery(
    correct_answers: int,
    total_questions: int,
    average_difficulty: float,
    consistency_score: float,
) -> float:
    """
    Estimate mastery in [0, 1].

    Steps:
    - Start from raw accuracy.
    - Add 0.1 per difficulty level above the baseline of 3 (subtract below it).
    - Scale by the consistency score.
    - Scale by a reliability factor that reaches full weight at 20 questions.
    """

    if total_questions == 0:
        return 0.0

    accuracy = correct_answers / total_questions
    mastery = accuracy + (average_difficulty - BASELINE_DIFFICULTY) * DIFFICULTY_BONUS_PER_LEVEL
    mastery *= consistency_score
    mastery *= min(1.0, total_questions / FULL_RELIABILITY_QUESTIONS)
    return clamp(mastery, 0.0, 1.0)


def update_mastery_record(
    record: MasteryRecord, session: SessionState, average_difficulty: float
) -> MasteryRecord:
    """Return ``record`` with its value recomputed from the session's counters and window."""

    consistency = score_consistency(session.performance_window)
    value = estimate_mastery(
        session.correct_answers,
        session.questions_answered,
        average_difficulty,
        consistency,
    )
    return replace(record, value=value)
