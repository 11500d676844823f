# ABOUTME: Exposes the adaptive assessment engine entrypoints.
# ABOUTME: Groups difficulty adjustment, selection, mastery, prediction, and velocity analysis.

from .config import EngineConfig, load_engine_config
from .consistency import score_consistency
from .difficulty import recommend_next_difficulty
from .mastery import estimate_mastery, update_mastery_record
from .prediction import predict_performance
from .selector import select_next_item
from .session import choose_next_item, close_session, record_answer, start_session
from .velocity import analyze_learning_velocity

__all__ = [
    "EngineConfig",
    "load_engine_config",
    "score_consistency",
    "recommend_next_difficulty",
    "estimate_mastery",
    "update_mastery_record",
    "predict_performance",
    "select_next_item",
    "choose_next_item",
    "close_session",
    "record_answer",
    "start_session",
    "analyze_learning_velocity",
]
