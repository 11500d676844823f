# ABOUTME: Drives one learner/topic session through answer events.
# ABOUTME: Returns updated session state, recommendation, and mastery for the caller to persist.

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from loguru import logger

from src.common.schemas import (
    Item,
    MasteryRecord,
    Recommendation,
    ResponseRecord,
    SessionState,
    SessionStatus,
    Strategy,
    append_outcome,
    clamp,
)

from .config import SessionConfig
from .difficulty import MAX_DIFFICULTY, MIN_DIFFICULTY, recommend_next_difficulty
from .mastery import update_mastery_record
from .selector import select_next_item


@dataclass(frozen=True)
class AnswerOutcome:
    session: SessionState
    recommendation: Recommendation
    mastery: MasteryRecord
    response: ResponseRecord


def start_session(
    session_id: str,
    learner_id: str,
    topic_id: str,
    config: Optional[SessionConfig] = None,
) -> SessionState:
    config = config or SessionConfig()
    difficulty = clamp(config.initial_difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY)
    logger.debug(f"Starting session {session_id} for {learner_id} on {topic_id} at difficulty {difficulty}")
    return SessionState(
        session_id=session_id,
        learner_id=learner_id,
        topic_id=topic_id,
        current_difficulty=difficulty,
    )


def record_answer(
    session: SessionState,
    item_id: str,
    is_correct: bool,
    response_time_seconds: float,
    mastery: MasteryRecord,
    config: Optional[SessionConfig] = None,
) -> AnswerOutcome:
    """
    Apply one answer event to a session.

    The new outcome is appended to the performance window before the
    difficulty recommendation is computed, so the trend includes this answer.
    Mastery is recomputed from the updated counters against the difficulty
    the question was served at.
    """

    if not session.is_active:
        raise ValueError(f"Session {session.session_id} is {session.status.value}; cannot record answers.")

    config = config or SessionConfig()
    window = append_outcome(session.performance_window, is_correct, cap=config.window_size)

    recommendation = recommend_next_difficulty(
        session.current_difficulty,
        is_correct,
        response_time_seconds,
        window,
        mastery.value,
    )

    answered = session.answered_item_ids
    if item_id not in answered:
        answered = answered + (item_id,)

    updated = replace(
        session,
        current_difficulty=recommendation.next_difficulty,
        questions_answered=session.questions_answered + 1,
        correct_answers=session.correct_answers + (1 if is_correct else 0),
        answered_item_ids=answered,
        performance_window=window,
    )
    new_mastery = update_mastery_record(mastery, updated, average_difficulty=session.current_difficulty)

    logger.debug(
        f"Session {session.session_id}: item={item_id} correct={is_correct} "
        f"difficulty {session.current_difficulty} -> {recommendation.next_difficulty} "
        f"({recommendation.strategy.value}), mastery {mastery.value:.2f} -> {new_mastery.value:.2f}"
    )

    return AnswerOutcome(
        session=updated,
        recommendation=recommendation,
        mastery=new_mastery,
        response=ResponseRecord(
            item_id=item_id,
            correct=is_correct,
            response_time_seconds=response_time_seconds,
            session_id=session.session_id,
        ),
    )


def choose_next_item(
    session: SessionState,
    pool: Sequence[Item],
    recommendation: Optional[Recommendation] = None,
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    """
    Select the next item for a session.

    Before the first answer there is no recommendation yet, so the session's
    current difficulty is used with the random strategy.
    """

    if recommendation is None:
        target, strategy = session.current_difficulty, Strategy.RANDOM
    else:
        target, strategy = recommendation.next_difficulty, recommendation.strategy

    item_id = select_next_item(pool, target, strategy, session.answered_item_ids, rng=rng)
    if item_id is None and not pool:
        logger.info(f"Session {session.session_id}: item pool is empty")
    elif item_id is None:
        logger.info(f"Session {session.session_id}: item pool exhausted (all {len(pool)} items answered)")
    return item_id


def reset_history(session: SessionState) -> SessionState:
    """Clear served-item history so an exhausted pool can be reused."""
    return replace(session, answered_item_ids=())


def close_session(session: SessionState) -> SessionState:
    logger.debug(
        f"Closing session {session.session_id}: {session.correct_answers}/{session.questions_answered} correct"
    )
    return replace(session, status=SessionStatus.COMPLETED)
