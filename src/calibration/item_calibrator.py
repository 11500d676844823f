# ABOUTME: Recalibrates item difficulty and discrimination from accumulated response logs.
# ABOUTME: Aggregates per-item metrics consumed by the adaptive question selector.

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd
from loguru import logger

from src.adaptive.config import CalibrationConfig
from src.common.schemas import Item, clamp, round_tenth

DEFAULT_DIFFICULTY = 3.0
DEFAULT_DISCRIMINATION = 0.5

RESPONSE_COLUMNS = ["item_id", "correct", "response_time_seconds", "session_id"]
SESSION_COLUMNS = ["session_id", "correct_answers", "questions_answered"]
METRIC_COLUMNS = [
    "item_id",
    "topic",
    "difficulty",
    "average_response_time_seconds",
    "success_rate",
    "discrimination_index",
    "response_count",
]


def calibrate_difficulty(outcomes: Sequence[int], min_responses: int = 5) -> float:
    """
    Map an item's empirical success rate onto the 1-5 difficulty scale.

    90% success maps to 1.5, 50% to 3.5, 10% to 5 (after clamping). Items with
    fewer than ``min_responses`` responses keep the neutral default of 3.
    """

    if len(outcomes) < min_responses:
        return DEFAULT_DIFFICULTY
    success_rate = sum(1 for o in outcomes if o) / len(outcomes)
    return clamp(round_tenth(6 - success_rate * 5), 1.0, 5.0)


def discrimination_from_groups(top_success_rate: float, bottom_success_rate: float) -> float:
    return clamp(top_success_rate - bottom_success_rate, 0.0, 1.0)


def compute_discrimination_index(
    outcomes: Sequence[int],
    session_accuracies: Sequence[float],
    min_responses: int = 10,
) -> float:
    """
    Upper-lower discrimination index for one item.

    Responders are ranked by their session's overall accuracy (descending,
    stable on ties). The top and bottom thirds, by floor division of the
    count, are compared on this item's success rate; the middle is discarded.
    """

    if len(outcomes) != len(session_accuracies):
        raise ValueError(
            f"Expected one session accuracy per response, got {len(session_accuracies)} for {len(outcomes)}."
        )
    if len(outcomes) < min_responses:
        return DEFAULT_DISCRIMINATION

    ranked = sorted(zip(outcomes, session_accuracies), key=lambda pair: pair[1], reverse=True)
    group_size = len(ranked) // 3
    if group_size == 0:
        return DEFAULT_DISCRIMINATION
    top = ranked[:group_size]
    bottom = ranked[-group_size:]

    top_rate = sum(1 for correct, _ in top if correct) / len(top)
    bottom_rate = sum(1 for correct, _ in bottom if correct) / len(bottom)
    return discrimination_from_groups(top_rate, bottom_rate)


def session_accuracy_frame(sessions: pd.DataFrame) -> pd.DataFrame:
    """Overall accuracy per session; sessions with nothing answered score 0."""

    if sessions is None or sessions.empty:
        return pd.DataFrame(columns=["session_id", "session_accuracy"])
    frame = sessions[SESSION_COLUMNS].copy()
    frame["session_id"] = frame["session_id"].astype(str)
    answered = frame["questions_answered"].astype(float)
    frame["session_accuracy"] = (frame["correct_answers"].astype(float) / answered.where(answered > 0)).fillna(0.0)
    return frame[["session_id", "session_accuracy"]]


def item_metrics_frame(
    items: pd.DataFrame,
    responses: pd.DataFrame,
    sessions: Optional[pd.DataFrame] = None,
    config: Optional[CalibrationConfig] = None,
) -> pd.DataFrame:
    """
    Aggregate selector metrics for every item in ``items``.

    Expected columns:
    - items: item_id, optional topic
    - responses: item_id, correct, response_time_seconds, session_id
    - sessions: session_id, correct_answers, questions_answered

    Responses whose session is unknown count toward success rate, response
    time, and difficulty but not toward the discrimination index.
    """

    config = config or CalibrationConfig()
    if items is None or items.empty:
        return pd.DataFrame(columns=METRIC_COLUMNS)

    if responses is None or responses.empty:
        responses = pd.DataFrame(columns=RESPONSE_COLUMNS)
    responses = responses.copy()
    responses["item_id"] = responses["item_id"].astype(str)
    responses["correct"] = responses["correct"].astype(bool)
    responses["session_id"] = responses["session_id"].astype(str)

    accuracy = session_accuracy_frame(sessions)
    if accuracy.empty:
        joined = responses.assign(session_accuracy=float("nan"))
    else:
        joined = responses.merge(accuracy, on="session_id", how="left")
    grouped = {str(item_id): group for item_id, group in joined.groupby("item_id", sort=False)}

    rows = []
    for row in items.itertuples(index=False):
        item_id = str(row.item_id)
        group = grouped.get(item_id)
        outcomes: List[int] = [] if group is None else group["correct"].astype(int).tolist()

        if outcomes:
            success_rate = sum(outcomes) / len(outcomes)
            avg_time = float(group["response_time_seconds"].astype(float).mean())
        else:
            success_rate = config.default_success_rate
            avg_time = config.default_response_time_seconds

        if group is None:
            discrimination = DEFAULT_DISCRIMINATION
        else:
            linked = group.dropna(subset=["session_accuracy"])
            discrimination = compute_discrimination_index(
                linked["correct"].astype(int).tolist(),
                linked["session_accuracy"].astype(float).tolist(),
                min_responses=config.min_responses_discrimination,
            )

        rows.append(
            {
                "item_id": item_id,
                "topic": getattr(row, "topic", None),
                "difficulty": calibrate_difficulty(outcomes, min_responses=config.min_responses_difficulty),
                "average_response_time_seconds": avg_time,
                "success_rate": clamp(success_rate, 0.0, 1.0),
                "discrimination_index": discrimination,
                "response_count": len(outcomes),
            }
        )

    logger.debug(f"Calibrated metrics for {len(rows)} items from {len(responses)} responses")
    return pd.DataFrame(rows, columns=METRIC_COLUMNS)


def build_item_metrics(
    items: pd.DataFrame,
    responses: pd.DataFrame,
    sessions: Optional[pd.DataFrame] = None,
    config: Optional[CalibrationConfig] = None,
) -> List[Item]:
    """Same as ``item_metrics_frame`` but returns ``Item`` objects ready for selection."""

    frame = item_metrics_frame(items, responses, sessions, config)
    return [
        Item(
            item_id=str(row.item_id),
            difficulty=float(row.difficulty),
            average_response_time_seconds=float(row.average_response_time_seconds),
            success_rate=float(row.success_rate),
            discrimination_index=float(row.discrimination_index),
            topic=None if pd.isna(row.topic) else str(row.topic),
        )
        for row in frame.itertuples(index=False)
    ]


def refresh_item_difficulty(store, item_id: str, config: Optional[CalibrationConfig] = None) -> float:
    """
    Recompute one item's difficulty from the store's response log and write it back.

    ``store`` is any question store exposing ``responses_for(item_id)`` and
    ``update_item(item_id, **fields)``.
    """

    config = config or CalibrationConfig()
    outcomes = [int(r.correct) for r in store.responses_for(item_id)]
    difficulty = calibrate_difficulty(outcomes, min_responses=config.min_responses_difficulty)
    store.update_item(item_id, difficulty=difficulty)
    logger.info(f"Recalibrated item {item_id}: difficulty={difficulty:.1f} from {len(outcomes)} responses")
    return difficulty
