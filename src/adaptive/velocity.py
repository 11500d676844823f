# ABOUTME: Analyzes a learner's mastery time series for trend and intervention hints.
# ABOUTME: Computes mastery change per day over the most recent samples.

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from src.common.schemas import MasterySample, VelocityReport

TREND_THRESHOLD = 0.02
SECONDS_PER_DAY = 86400.0


class Trend:
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


INTERVENTION_DECLINING = "Consider reviewing fundamentals or reducing difficulty."
INTERVENTION_ADVANCE = "Learner is ready for more challenging topics."
INTERVENTION_SUPPORT = "Learner may need additional support or a different learning approach."


def _elapsed_days(oldest: MasterySample, newest: MasterySample) -> float:
    start = pd.Timestamp(oldest.date)
    end = pd.Timestamp(newest.date)
    if (start.tzinfo is None) != (end.tzinfo is None):
        start = start.tz_localize("UTC") if start.tzinfo is None else start
        end = end.tz_localize("UTC") if end.tzinfo is None else end
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _intervention(trend: str, newest_mastery: float) -> Optional[str]:
    if trend == Trend.DECLINING:
        return INTERVENTION_DECLINING
    if trend == Trend.STABLE and newest_mastery > 0.8:
        return INTERVENTION_ADVANCE
    if trend == Trend.STABLE and newest_mastery < 0.4:
        return INTERVENTION_SUPPORT
    return None


def analyze_learning_velocity(history: Sequence[MasterySample], timeframe: int = 7) -> VelocityReport:
    """
    Estimate mastery velocity (change per day) over the last ``timeframe`` samples.

    ``timeframe`` counts samples, not calendar days: the slice is the most
    recent N entries and the rate divides by the days actually elapsed between
    its first and last sample.
    """

    if len(history) < 2:
        return VelocityReport(velocity=0.0, trend=Trend.STABLE, intervention=None)

    recent = list(history)[-timeframe:] if timeframe > 0 else list(history)
    oldest, newest = recent[0], recent[-1]

    days = _elapsed_days(oldest, newest)
    velocity = (newest.mastery - oldest.mastery) / days if days > 0 else 0.0

    if velocity > TREND_THRESHOLD:
        trend = Trend.IMPROVING
    elif velocity < -TREND_THRESHOLD:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    return VelocityReport(velocity=velocity, trend=trend, intervention=_intervention(trend, newest.mastery))


def history_from_frame(frame: pd.DataFrame) -> List[MasterySample]:
    """Convert a ``date``/``mastery`` DataFrame into chronologically ordered samples."""
    if frame is None or frame.empty:
        return []
    ordered = frame.assign(date=pd.to_datetime(frame["date"], utc=True)).sort_values("date", kind="mergesort")
    return [MasterySample(date=row.date, mastery=float(row.mastery)) for row in ordered.itertuples(index=False)]
