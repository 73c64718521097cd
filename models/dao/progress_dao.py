from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_

from models.db_storage import DBStorage
from models.opening_progress import OpeningProgress


class ProgressDAO:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _query(self, user_id: str):
        return self.storage.get_session().query(OpeningProgress).filter(OpeningProgress.user_id == user_id)

    def find(self, user_id: str, repertoire_id: str, node_id: str) -> Optional[OpeningProgress]:
        return (
            self._query(user_id)
            .filter(OpeningProgress.repertoire_id == repertoire_id, OpeningProgress.node_id == node_id)
            .first()
        )

    def save(self, progress: OpeningProgress) -> OpeningProgress:
        self.storage.new(progress)
        self.storage.save()
        return progress

    def list_for_repertoire(self, user_id: str, repertoire_id: str) -> List[OpeningProgress]:
        return (
            self._query(user_id)
            .filter(OpeningProgress.repertoire_id == repertoire_id)
            .order_by(OpeningProgress.last_review.desc())
            .all()
        )

    def list_due(self, user_id: str, now: datetime, repertoire_id: str | None = None) -> List[OpeningProgress]:
        query = self._query(user_id).filter(OpeningProgress.next_review <= now)
        if repertoire_id:
            query = query.filter(OpeningProgress.repertoire_id == repertoire_id)
        return query.order_by(OpeningProgress.next_review.asc()).all()

    def stats(self, user_id: str, now: datetime, learned_streak: int, learned_ease: float) -> dict:
        total = self._query(user_id).count()
        learned = (
            self._query(user_id)
            .filter(or_(OpeningProgress.streak >= learned_streak, OpeningProgress.ease_factor >= learned_ease))
            .count()
        )
        due = self._query(user_id).filter(OpeningProgress.next_review <= now).count()
        avg_ease, max_streak = (
            self.storage.get_session()
            .query(func.avg(OpeningProgress.ease_factor), func.max(OpeningProgress.streak))
            .filter(OpeningProgress.user_id == user_id)
            .one()
        )
        return {
            "total": total,
            "learned": learned,
            "due": due,
            "avg_ease": avg_ease,
            "max_streak": max_streak,
        }
