# ABOUTME: Makes the shared common package importable across the engine and calibrator.
# ABOUTME: Re-exports schema types and the in-memory stores for convenience.

from .schemas import (
    Item,
    MasteryRecord,
    MasterySample,
    PerformancePrediction,
    Recommendation,
    ResponseRecord,
    SessionState,
    SessionStatus,
    Strategy,
    VelocityReport,
)
from .stores import InMemoryQuestionStore, InMemorySessionStore

__all__ = [
    "Item",
    "MasteryRecord",
    "MasterySample",
    "PerformancePrediction",
    "Recommendation",
    "ResponseRecord",
    "SessionState",
    "SessionStatus",
    "Strategy",
    "VelocityReport",
    "InMemoryQuestionStore",
    "InMemorySessionStore",
]
