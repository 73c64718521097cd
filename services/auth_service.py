"""
Auth service: register / login / refresh / logout / logout-all, plus the
e-mail verification and password reset flows.

Returned users are always the public dump (UserOutSchema); the password hash
never leaves this module.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from models.schemas.user import UserOutSchema
from models.user import User
from services.token_service import (
    EMAIL_VERIFICATION,
    PASSWORD_RESET,
    AuthTokens,
    RevokeResult,
    TokenService,
)
from services.mailer import Mailer
from services.user_service import UserService
from utils.exceptions import AuthenticationError, ValidationFailed
from utils.password_policy import password_problem

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"

user_out_schema = UserOutSchema()


@dataclass(frozen=True)
class AuthResult:
    user: Dict[str, Any]
    tokens: AuthTokens


def _password_fingerprint(password_hash: str) -> str:
    # changes whenever the password does, which retires outstanding reset tokens
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


class AuthService:
    def __init__(
        self,
        user_service: UserService,
        token_service: TokenService,
        mailer: Mailer,
        email_verification_ttl: int = 86400,
        password_reset_ttl: int = 3600,
    ):
        self.user_service = user_service
        self.token_service = token_service
        self.mailer = mailer
        self.email_verification_ttl = email_verification_ttl
        self.password_reset_ttl = password_reset_ttl

    def _issue(self, user: User) -> AuthTokens:
        return self.token_service.generate_tokens(
            {"user_id": user.id, "email": user.email, "username": user.username}
        )

    @staticmethod
    def sanitize_user(user: User) -> Dict[str, Any]:
        return user_out_schema.dump(user)

    def register(self, data: Dict[str, Any]) -> AuthResult:
        password = data.get("password") or ""
        if password != data.get("confirm_password"):
            raise ValidationFailed("Passwords do not match", details={"confirmPassword": ["Passwords do not match"]})

        problem = password_problem(password)
        if problem:
            raise ValidationFailed(problem, details={"password": [problem]})

        user = self.user_service.create_user(
            email=data["email"].strip().lower(),
            username=data["username"].strip(),
            password=password,
        )
        logger.info("User %s registered", user.id)

        self.issue_email_verification(user)
        return AuthResult(user=self.sanitize_user(user), tokens=self._issue(user))

    def login(self, credentials: Dict[str, Any]) -> AuthResult:
        email = (credentials.get("email") or "").strip().lower()
        user = self.user_service.find_by_email(email)
        # same error for unknown e-mail and wrong password
        if user is None:
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not self.user_service.verify_password(credentials.get("password") or "", user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)
        return AuthResult(user=self.sanitize_user(user), tokens=self._issue(user))

    def refresh_tokens(self, refresh_token: str) -> AuthTokens:
        """Rotate on use: the presented token is gone before the new pair exists."""
        user_id = self.token_service.consume_refresh_token(refresh_token)
        if user_id is None:
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        user = self.user_service.find_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return self._issue(user)

    def logout(self, refresh_token: str) -> RevokeResult:
        return self.token_service.revoke_refresh_token(refresh_token)

    def logout_all_devices(self, user_id: str) -> Optional[int]:
        return self.token_service.revoke_all_user_tokens(user_id)

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self.user_service.find_by_id(user_id)
        if user is None:
            return None
        return self.sanitize_user(user)

    # ---- e-mail verification ----
    def issue_email_verification(self, user: User) -> str:
        token = self.token_service.create_purpose_token(user.id, EMAIL_VERIFICATION, self.email_verification_ttl)
        if not self.mailer.send_verification_email(user.email, user.username, token):
            logger.warning("Verification e-mail for user %s was not delivered", user.id)
        return token

    def verify_email(self, token: str) -> Dict[str, Any]:
        payload = self.token_service.verify_purpose_token(token, EMAIL_VERIFICATION)
        if payload is None:
            raise ValidationFailed("Invalid or expired verification token")
        if not self.user_service.mark_email_verified(payload["sub"]):
            raise ValidationFailed("Invalid or expired verification token")
        return self.get_user_by_id(payload["sub"])

    # ---- password reset ----
    def request_password_reset(self, email: str) -> Optional[str]:
        """
        Mint a reset token when the account exists. Callers must respond the
        same way either way so the endpoint cannot be used to probe e-mails.
        """
        user = self.user_service.find_by_email((email or "").strip().lower())
        if user is None:
            logger.info("Password reset requested for unknown e-mail")
            return None
        token = self.token_service.create_purpose_token(
            user.id,
            PASSWORD_RESET,
            self.password_reset_ttl,
            extra={"pwd": _password_fingerprint(user.password_hash)},
        )
        if not self.mailer.send_password_reset_email(user.email, user.username, token):
            logger.warning("Password reset e-mail for user %s was not delivered", user.id)
        return token

    def confirm_password_reset(self, token: str, new_password: str) -> None:
        payload = self.token_service.verify_purpose_token(token, PASSWORD_RESET)
        user = self.user_service.find_by_id(payload["sub"]) if payload else None
        if user is None or payload.get("pwd") != _password_fingerprint(user.password_hash):
            raise ValidationFailed("Invalid or expired reset token")

        problem = password_problem(new_password)
        if problem:
            raise ValidationFailed(problem, details={"newPassword": [problem]})

        self.user_service.change_password(user.id, new_password)
        self.token_service.revoke_all_user_tokens(user.id)
        logger.info("Password reset for user %s; all sessions revoked", user.id)
