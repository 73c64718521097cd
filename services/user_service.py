from __future__ import annotations

from typing import Optional

from models.dao.user_dao import UserDAO
from models.user import User
from utils.exceptions import ConflictError, NotFoundError
from utils.security import hash_password, verify_password


class UserService:
    """Credential store operations; the only place passwords get hashed."""

    def __init__(self, users: UserDAO):
        self.users = users

    def create_user(self, email: str, username: str, password: str) -> User:
        if self.find_by_email(email) is not None:
            raise ConflictError("User with this email already exists")
        # usernames compare case-insensitively
        if self.find_by_username(username) is not None:
            raise ConflictError("User with this username already exists")
        return self.users.create(
            email=email,
            username=username,
            password_hash=hash_password(password),
            is_email_verified=False,
        )

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.users.find_by_id(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.users.find_by_email(email)

    def find_by_username(self, username: str) -> Optional[User]:
        return self.users.find_by_username(username)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return verify_password(password, password_hash)

    def change_password(self, user_id: str, new_password: str) -> User:
        user = self.users.update(user_id, password_hash=hash_password(new_password))
        if user is None:
            raise NotFoundError("User not found")
        return user

    def mark_email_verified(self, user_id: str) -> bool:
        return self.users.verify_email(user_id)
