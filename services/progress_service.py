from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional

from models.dao.progress_dao import ProgressDAO
from models.opening_progress import DEFAULT_EASE_FACTOR, OpeningProgress
from services import spaced_repetition
from utils.clock import utcnow

# a position counts as learned at this streak or ease factor
LEARNED_STREAK = 3
LEARNED_EASE = 2.5


class ProgressService:
    def __init__(self, progress: ProgressDAO, clock: Callable[[], datetime] = utcnow):
        self.progress = progress
        self.clock = clock

    def get_progress(self, user_id: str, repertoire_id: str, node_id: str) -> Optional[OpeningProgress]:
        return self.progress.find(user_id, repertoire_id, node_id)

    def record_review(self, user_id: str, repertoire_id: str, node_id: str, was_correct: bool) -> OpeningProgress:
        now = self.clock()
        record = self.progress.find(user_id, repertoire_id, node_id)
        if record is None:
            record = spaced_repetition.new_progress(user_id, repertoire_id, node_id, now)
        spaced_repetition.apply_review(record, was_correct, now)
        return self.progress.save(record)

    def get_repertoire_progress(self, user_id: str, repertoire_id: str) -> List[OpeningProgress]:
        return self.progress.list_for_repertoire(user_id, repertoire_id)

    def get_due_positions(self, user_id: str, repertoire_id: str | None = None) -> List[OpeningProgress]:
        return self.progress.list_due(user_id, self.clock(), repertoire_id)

    def reset_progress(self, user_id: str, repertoire_id: str, node_id: str) -> OpeningProgress:
        now = self.clock()
        record = self.progress.find(user_id, repertoire_id, node_id)
        if record is None:
            record = spaced_repetition.new_progress(user_id, repertoire_id, node_id, now)
        else:
            spaced_repetition.reset(record, now)
        return self.progress.save(record)

    def get_user_stats(self, user_id: str) -> dict:
        raw = self.progress.stats(user_id, self.clock(), LEARNED_STREAK, LEARNED_EASE)
        return {
            "total_positions": raw["total"],
            "positions_learned": raw["learned"],
            "average_ease_factor": float(raw["avg_ease"]) if raw["avg_ease"] is not None else DEFAULT_EASE_FACTOR,
            "longest_streak": raw["max_streak"] or 0,
            "positions_due_today": raw["due"],
        }
