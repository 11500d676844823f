# ABOUTME: Tests item recalibration from response logs.
# ABOUTME: Covers sample-size defaults, upper-lower discrimination, and metric aggregation.

import pandas as pd
import pytest

from src.calibration.item_calibrator import (
    build_item_metrics,
    calibrate_difficulty,
    compute_discrimination_index,
    discrimination_from_groups,
    item_metrics_frame,
    refresh_item_difficulty,
    session_accuracy_frame,
)
from src.common.schemas import Item, ResponseRecord
from src.common.stores import InMemoryQuestionStore

# Twelve responders ranked by session accuracy; the top third all answered
# correctly and the bottom third all missed.
OUTCOMES = [1, 1, 1, 1, 1, 0, 1, 0, 0, 0, 0, 0]
ACCURACIES = [0.9, 0.85, 0.8, 0.75, 0.6, 0.55, 0.5, 0.45, 0.3, 0.25, 0.2, 0.1]
SESSION_CORRECT = [18, 17, 16, 15, 12, 11, 10, 9, 6, 5, 4, 2]


def test_difficulty_defaults_with_few_responses():
    assert calibrate_difficulty([1, 1, 1, 1]) == 3.0
    assert calibrate_difficulty([]) == 3.0


def test_difficulty_tracks_success_rate():
    assert calibrate_difficulty([1] * 9 + [0]) == pytest.approx(1.5)
    assert calibrate_difficulty([1, 0] * 5) == pytest.approx(3.5)
    assert calibrate_difficulty([1] * 5) == 1.0
    assert calibrate_difficulty([0] * 5) == 5.0


def test_discrimination_from_groups_clamps():
    assert discrimination_from_groups(1.0, 0.0) == 1.0
    assert discrimination_from_groups(0.6, 0.6) == 0.0
    assert discrimination_from_groups(0.2, 0.7) == 0.0


def test_discrimination_index_separates_top_and_bottom_thirds():
    assert compute_discrimination_index(OUTCOMES, ACCURACIES) == 1.0
    # Input order does not matter; responders are ranked first.
    assert compute_discrimination_index(OUTCOMES[::-1], ACCURACIES[::-1]) == 1.0


def test_discrimination_index_equal_groups_and_inverted_item():
    assert compute_discrimination_index([1] * 12, ACCURACIES) == 0.0
    inverted = [1 - o for o in OUTCOMES]
    assert compute_discrimination_index(inverted, ACCURACIES) == 0.0


def test_discrimination_index_uses_floor_thirds():
    # Eleven responders: groups of three, the middle five are discarded.
    outcomes = [1, 1, 0, 1, 1, 1, 1, 1, 0, 0, 1]
    accuracies = [1.0 - i * 0.05 for i in range(11)]
    assert compute_discrimination_index(outcomes, accuracies) == pytest.approx(2 / 3 - 1 / 3)


def test_discrimination_index_defaults_and_validation():
    assert compute_discrimination_index([1, 0] * 4, [0.5] * 8) == 0.5
    with pytest.raises(ValueError):
        compute_discrimination_index([1, 0], [0.5])


def test_session_accuracy_handles_unanswered_sessions():
    sessions = pd.DataFrame({"session_id": ["a", "b"], "correct_answers": [3, 0], "questions_answered": [4, 0]})
    frame = session_accuracy_frame(sessions)
    assert frame.set_index("session_id")["session_accuracy"].to_dict() == {"a": 0.75, "b": 0.0}


def _logs():
    items = pd.DataFrame({"item_id": ["i1", "i2"], "topic": ["ratios", "ratios"]})
    responses = pd.DataFrame(
        {
            "item_id": ["i1"] * 12,
            "correct": OUTCOMES,
            "response_time_seconds": [10.0, 20.0] * 6,
            "session_id": [f"s{i}" for i in range(12)],
        }
    )
    sessions = pd.DataFrame(
        {
            "session_id": [f"s{i}" for i in range(12)],
            "correct_answers": SESSION_CORRECT,
            "questions_answered": [20] * 12,
        }
    )
    return items, responses, sessions


def test_item_metrics_frame_aggregates_and_defaults():
    items, responses, sessions = _logs()
    metrics = item_metrics_frame(items, responses, sessions).set_index("item_id")

    i1 = metrics.loc["i1"]
    assert i1["success_rate"] == pytest.approx(0.5)
    assert i1["difficulty"] == pytest.approx(3.5)
    assert i1["average_response_time_seconds"] == pytest.approx(15.0)
    assert i1["discrimination_index"] == pytest.approx(1.0)
    assert i1["response_count"] == 12

    i2 = metrics.loc["i2"]
    assert i2["difficulty"] == 3.0
    assert i2["success_rate"] == 0.5
    assert i2["average_response_time_seconds"] == 15.0
    assert i2["discrimination_index"] == 0.5
    assert i2["response_count"] == 0


def test_item_metrics_without_sessions_keep_default_discrimination():
    items, responses, _ = _logs()
    metrics = item_metrics_frame(items, responses, None).set_index("item_id")
    assert metrics.loc["i1", "discrimination_index"] == 0.5
    assert metrics.loc["i1", "difficulty"] == pytest.approx(3.5)


def test_build_item_metrics_returns_items():
    items, responses, sessions = _logs()
    built = build_item_metrics(items, responses, sessions)

    assert [item.item_id for item in built] == ["i1", "i2"]
    assert all(isinstance(item, Item) for item in built)
    assert built[0].topic == "ratios"
    assert built[0].discrimination_index == pytest.approx(1.0)


def test_empty_items_yield_empty_frame():
    assert item_metrics_frame(pd.DataFrame(), pd.DataFrame()).empty


def test_refresh_item_difficulty_writes_back_to_store():
    store = InMemoryQuestionStore([Item(item_id="i1", difficulty=3.0), Item(item_id="i2", difficulty=2.0)])
    for n in range(5):
        store.record_response(ResponseRecord("i1", False, 30.0, f"s{n}"))

    assert refresh_item_difficulty(store, "i1") == 5.0
    assert store.get_item("i1").difficulty == 5.0
    # Too few responses resets to the neutral default.
    assert refresh_item_difficulty(store, "i2") == 3.0
    assert store.get_item("i2").difficulty == 3.0


def test_discrimination_index_defaults_when_thirds_are_empty():
    # Two responders floor-divide into empty groups.
    assert compute_discrimination_index([1, 0], [0.9, 0.1], min_responses=1) == 0.5
    assert compute_discrimination_index([1, 0, 0], [0.9, 0.5, 0.1], min_responses=1) == 1.0


def test_unlinked_responses_count_toward_rates_but_not_discrimination():
    items, responses, sessions = _logs()
    unlinked = pd.DataFrame(
        {
            "item_id": ["i1"] * 3,
            "correct": [1, 1, 1],
            "response_time_seconds": [15.0] * 3,
            "session_id": ["x0", "x1", "x2"],
        }
    )
    metrics = item_metrics_frame(items, pd.concat([responses, unlinked], ignore_index=True), sessions)
    i1 = metrics.set_index("item_id").loc["i1"]

    assert i1["response_count"] == 15
    assert i1["success_rate"] == pytest.approx(0.6)
    assert i1["difficulty"] == pytest.approx(3.0)
    assert i1["discrimination_index"] == pytest.approx(1.0)


def test_discrimination_needs_enough_linked_responses():
    items, responses, sessions = _logs()
    # Only eight of twelve responses match a known session.
    metrics = item_metrics_frame(items, responses, sessions.iloc[:8]).set_index("item_id")
    assert metrics.loc["i1", "response_count"] == 12
    assert metrics.loc["i1", "discrimination_index"] == 0.5
