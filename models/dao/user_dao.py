from __future__ import annotations

from typing import Optional

from sqlalchemy import func

from models.db_storage import DBStorage
from models.user import User

# columns a caller may change through update()
UPDATABLE_FIELDS = ("email", "username", "password_hash", "is_email_verified")


class UserDAO:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _query(self):
        return self.storage.get_session().query(User)

    def create(self, email: str, username: str, password_hash: str, is_email_verified: bool = False) -> User:
        user = User(
            email=email,
            username=username,
            password_hash=password_hash,
            is_email_verified=is_email_verified,
        )
        self.storage.new(user)
        self.storage.save()
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.storage.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self._query().filter(User.email == email).first()

    def find_by_username(self, username: str) -> Optional[User]:
        return self._query().filter(func.lower(User.username) == username.lower()).first()

    def update(self, user_id: str, **changes) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        for key, value in changes.items():
            if key not in UPDATABLE_FIELDS:
                raise KeyError(f"User field {key!r} cannot be updated")
            setattr(user, key, value)
        self.storage.new(user)
        self.storage.save()
        return user

    def verify_email(self, user_id: str) -> bool:
        return self.update(user_id, is_email_verified=True) is not None

    def delete(self, user_id: str) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        self.storage.delete(user)
        self.storage.save()
        return True
