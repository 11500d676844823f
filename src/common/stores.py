# ABOUTME: Provides in-memory question and session stores used by demos and tests.
# ABOUTME: Serializes per-session updates and item metadata writes with locks.

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger

from .schemas import Item, MasteryRecord, ResponseRecord, SessionState


class InMemoryQuestionStore:
    """Item pool per topic plus an append-only response log."""

    def __init__(self, items: Iterable[Item] = ()):
        self._items: Dict[str, Item] = {}
        self._responses: List[ResponseRecord] = []
        self._lock = threading.Lock()
        for item in items:
            self._items[item.item_id] = item

    def items_for_topic(self, topic: Optional[str] = None) -> List[Item]:
        with self._lock:
            return [item for item in self._items.values() if topic is None or item.topic == topic]

    def get_item(self, item_id: str) -> Item:
        with self._lock:
            return self._items[item_id]

    def update_item(self, item_id: str, **fields) -> Item:
        with self._lock:
            updated = replace(self._items[item_id], **fields)
            self._items[item_id] = updated
        logger.debug(f"Updated item {item_id}: {fields}")
        return updated

    def record_response(self, response: ResponseRecord) -> None:
        with self._lock:
            self._responses.append(response)

    def responses_for(self, item_id: str) -> List[ResponseRecord]:
        with self._lock:
            return [r for r in self._responses if r.item_id == item_id]

    def items_frame(self) -> pd.DataFrame:
        with self._lock:
            rows = [{"item_id": i.item_id, "topic": i.topic} for i in self._items.values()]
        return pd.DataFrame(rows, columns=["item_id", "topic"])

    def responses_frame(self) -> pd.DataFrame:
        with self._lock:
            rows = [
                {
                    "item_id": r.item_id,
                    "correct": r.correct,
                    "response_time_seconds": r.response_time_seconds,
                    "session_id": r.session_id,
                }
                for r in self._responses
            ]
        return pd.DataFrame(rows, columns=["item_id", "correct", "response_time_seconds", "session_id"])


class InMemorySessionStore:
    """
    Session state and mastery records keyed by id.

    ``update`` runs the caller's transition under a per-session lock so two
    answers for the same session cannot interleave and lose an update.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}
        self._mastery: Dict[tuple, MasteryRecord] = {}
        self._guard = threading.Lock()
        self._session_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            return self._session_locks[session_id]

    def save(self, session: SessionState) -> None:
        with self._lock_for(session.session_id):
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> SessionState:
        if session_id not in self._sessions:
            raise KeyError(f"Unknown session '{session_id}'")
        return self._sessions[session_id]

    def update(self, session_id: str, transition: Callable[[SessionState], SessionState]) -> SessionState:
        with self._lock_for(session_id):
            updated = transition(self.get(session_id))
            self._sessions[session_id] = updated
        return updated

    def discard(self, session_id: str) -> None:
        """Drop a finished session and its lock."""
        with self._guard:
            self._sessions.pop(session_id, None)
            self._session_locks.pop(session_id, None)

    def sessions_frame(self) -> pd.DataFrame:
        rows = [
            {
                "session_id": s.session_id,
                "correct_answers": s.correct_answers,
                "questions_answered": s.questions_answered,
            }
            for s in list(self._sessions.values())
        ]
        return pd.DataFrame(rows, columns=["session_id", "correct_answers", "questions_answered"])

    def get_mastery(self, learner_id: str, topic_id: str) -> MasteryRecord:
        return self._mastery.get((learner_id, topic_id), MasteryRecord(learner_id=learner_id, topic_id=topic_id))

    def save_mastery(self, record: MasteryRecord) -> None:
        with self._guard:
            self._mastery[(record.learner_id, record.topic_id)] = record
