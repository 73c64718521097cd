"""
Refresh token rows. Every removal is a bulk DELETE whose row count is
returned, so callers can tell "deleted it" from "someone else already did".
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken


class RefreshTokenDAO:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _query(self):
        return self.storage.get_session().query(RefreshToken)

    def _delete_where(self, *criteria) -> int:
        try:
            removed = self._query().filter(*criteria).delete(synchronize_session=False)
            self.storage.save()
        except SQLAlchemyError:
            self.storage.rollback()
            raise
        return removed

    def create(self, user_id: str, token_hash: str, expires_at: datetime) -> RefreshToken:
        row = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        self.storage.new(row)
        self.storage.save()
        return row

    def find_by_hash(self, token_hash: str) -> Optional[RefreshToken]:
        return self._query().filter(RefreshToken.token_hash == token_hash).first()

    def delete_by_id(self, row_id: str) -> int:
        return self._delete_where(RefreshToken.id == row_id)

    def delete_by_hash(self, token_hash: str) -> int:
        return self._delete_where(RefreshToken.token_hash == token_hash)

    def delete_all_for_user(self, user_id: str) -> int:
        return self._delete_where(RefreshToken.user_id == user_id)

    def delete_expired(self, now: datetime) -> int:
        return self._delete_where(RefreshToken.expires_at <= now)

    def count_for_user(self, user_id: str) -> int:
        return self._query().filter(RefreshToken.user_id == user_id).count()
