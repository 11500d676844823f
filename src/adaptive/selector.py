# ABOUTME: Selects the next question from an item pool for a difficulty recommendation.
# ABOUTME: Dispatches on selection strategy and never re-serves items from session history.

from __future__ import annotations

import random
from typing import Callable, Collection, Dict, List, Optional, Sequence

from src.common.schemas import Item, Strategy

TARGETED_BAND = 0.5
CHALLENGE_BAND = 1.0
REVIEW_BAND = 1.0
RANDOM_BAND = 1.0

Chooser = Callable[[List[Item], float, random.Random], Item]


def _targeted(pool: List[Item], target: float, rng: random.Random) -> Item:
    candidates = [item for item in pool if abs(item.difficulty - target) <= TARGETED_BAND]
    if not candidates:
        return rng.choice(pool)
    # max() keeps the first item among equal discrimination indices.
    return max(candidates, key=lambda item: item.discrimination_index)


def _challenge(pool: List[Item], target: float, rng: random.Random) -> Item:
    candidates = [item for item in pool if target < item.difficulty <= target + CHALLENGE_BAND]
    if not candidates:
        return max(pool, key=lambda item: item.difficulty)
    return rng.choice(candidates)


def _review(pool: List[Item], target: float, rng: random.Random) -> Item:
    candidates = [item for item in pool if target - REVIEW_BAND <= item.difficulty < target]
    if not candidates:
        return min(pool, key=lambda item: item.difficulty)
    return rng.choice(candidates)


def _random(pool: List[Item], target: float, rng: random.Random) -> Item:
    candidates = [item for item in pool if abs(item.difficulty - target) <= RANDOM_BAND]
    return rng.choice(candidates or pool)


STRATEGY_CHOOSERS: Dict[Strategy, Chooser] = {
    Strategy.TARGETED: _targeted,
    Strategy.CHALLENGE: _challenge,
    Strategy.REVIEW: _review,
    Strategy.RANDOM: _random,
}


def unanswered_items(pool: Sequence[Item], answered_item_ids: Collection[str]) -> List[Item]:
    answered = set(answered_item_ids)
    return [item for item in pool if item.item_id not in answered]


def select_next_item(
    pool: Sequence[Item],
    target_difficulty: float,
    strategy: Strategy,
    answered_item_ids: Collection[str],
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    """
    Pick the next item id for a learner, or ``None`` when every pool item was answered.

    Args:
        pool: Items for the topic with their current metrics
        target_difficulty: Recommended difficulty on the 1-5 scale
        strategy: Selection policy from the difficulty recommendation
        answered_item_ids: Items already served in this session
        rng: Random source for uniform draws; defaults to a fresh unseeded generator

    Returns:
        The selected item id, or None when the caller must widen the pool or reset history
    """

    remaining = unanswered_items(pool, answered_item_ids)
    if not remaining:
        return None

    chooser = STRATEGY_CHOOSERS[Strategy(strategy)]
    return chooser(remaining, target_difficulty, rng or random.Random()).item_id
