# ABOUTME: Defines canonical data structures shared by the adaptive engine and calibrator.
# ABOUTME: Centralizes item, session, mastery, and recommendation schema definitions.

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple, Union

DateLike = Union[str, date, datetime]


class Strategy(str, Enum):
    """Question-selection policy chosen from the recent performance trend."""

    RANDOM = "random"
    TARGETED = "targeted"
    REVIEW = "review"
    CHALLENGE = "challenge"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Item:
    """Calibrated question metadata supplied by the question store."""

    item_id: str
    difficulty: float
    average_response_time_seconds: float = 15.0
    success_rate: float = 0.5
    discrimination_index: float = 0.5
    topic: Optional[str] = None


@dataclass(frozen=True)
class ResponseRecord:
    """One historical answer, as logged by the question store."""

    item_id: str
    correct: bool
    response_time_seconds: float
    session_id: str


@dataclass(frozen=True)
class SessionState:
    """Per-learner, per-topic session state persisted between answer events."""

    session_id: str
    learner_id: str
    topic_id: str
    current_difficulty: float = 3.0
    questions_answered: int = 0
    correct_answers: int = 0
    answered_item_ids: Tuple[str, ...] = ()
    performance_window: Tuple[int, ...] = ()
    status: SessionStatus = SessionStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE


@dataclass(frozen=True)
class MasteryRecord:
    learner_id: str
    topic_id: str
    value: float = 0.0


@dataclass(frozen=True)
class Recommendation:
    """Difficulty decision for the next question plus an explainability trace."""

    next_difficulty: float
    strategy: Strategy
    confidence: float
    reasoning: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MasterySample:
    date: DateLike
    mastery: float


@dataclass(frozen=True)
class PerformancePrediction:
    expected_accuracy: float
    confidence_interval: Tuple[float, float]
    recommended_session_length: int


@dataclass(frozen=True)
class VelocityReport:
    velocity: float
    trend: str
    intervention: Optional[str] = None


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_tenth(value: float) -> float:
    """Round half-up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def append_outcome(window: Tuple[int, ...], is_correct: bool, cap: int = 10) -> Tuple[int, ...]:
    """Append an outcome to a performance window, dropping the oldest past ``cap``."""
    updated = tuple(window) + (1 if is_correct else 0,)
    if cap <= 0:
        return ()
    return updated[-cap:]
