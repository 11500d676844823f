# ABOUTME: Scores how stable a learner's recent correctness has been.
# ABOUTME: Converts the population standard deviation of a 0/1 window into a 0.1-1 score.

from __future__ import annotations

from typing import Sequence

import numpy as np

MIN_CONSISTENCY = 0.1


def score_consistency(window: Sequence[int]) -> float:
    """
    Consistency of a binary performance window.

    Windows shorter than two samples are treated as perfectly consistent.
    """

    if len(window) < 2:
        return 1.0
    stddev = float(np.std(np.asarray(window, dtype=float)))
    return max(MIN_CONSISTENCY, 1.0 - stddev)
