# ABOUTME: Groups item recalibration helpers for the question store's background jobs.
# ABOUTME: Re-exports difficulty, discrimination, and metric aggregation functions.

from .item_calibrator import (
    build_item_metrics,
    calibrate_difficulty,
    compute_discrimination_index,
    item_metrics_frame,
    refresh_item_difficulty,
)

__all__ = [
    "build_item_metrics",
    "calibrate_difficulty",
    "compute_discrimination_index",
    "item_metrics_frame",
    "refresh_item_difficulty",
]
