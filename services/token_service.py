"""
Token issuer/verifier.

- Access tokens: HS256 JWTs via PyJWT, stateless, checked by signature and expiry only
- Refresh tokens: opaque UUIDs; the store keeps an HMAC of the value, keyed with the refresh secret
- Purpose tokens: short-lived JWTs for e-mail verification and password reset

Verification never raises: a bad token is reported as None. Revocation never
raises either: store failures are logged and surfaced through RevokeResult.
"""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import jwt
from sqlalchemy.exc import SQLAlchemyError

from models.dao.refresh_token_dao import RefreshTokenDAO
from utils.clock import ensure_utc, utcnow
from utils.security import new_opaque_token, token_digest

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_TTL_SECONDS = 1800
DEFAULT_REFRESH_TTL = timedelta(days=7)

ACCESS_TOKEN_TYPE = "access"
EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"

_DURATION_RE = re.compile(r"^(\d+)([dhm])$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_DURATION_UNITS = {"d": "days", "h": "hours", "m": "minutes"}


def parse_access_ttl(value) -> int:
    """Seconds from the leading integer of ``value``; missing, unparsable or non-positive -> 1800."""
    if isinstance(value, int):
        seconds = value
    else:
        m = _LEADING_INT_RE.match(str(value or ""))
        seconds = int(m.group(1)) if m else 0
    return seconds if seconds > 0 else DEFAULT_ACCESS_TTL_SECONDS


def parse_duration(value) -> timedelta:
    """"7d" / "24h" / "60m" -> timedelta; anything else (including zero) -> 7 days."""
    m = _DURATION_RE.fullmatch(str(value or ""))
    if not m or int(m.group(1)) == 0:
        return DEFAULT_REFRESH_TTL
    return timedelta(**{_DURATION_UNITS[m.group(2)]: int(m.group(1))})


@dataclass(frozen=True)
class JwtSettings:
    secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_ttl_seconds: int = DEFAULT_ACCESS_TTL_SECONDS
    refresh_ttl: timedelta = DEFAULT_REFRESH_TTL

    @classmethod
    def from_config(cls, config) -> "JwtSettings":
        return cls(
            secret=config["JWT_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl_seconds=parse_access_ttl(config.get("JWT_EXPIRES_IN")),
            refresh_ttl=parse_duration(config.get("JWT_REFRESH_EXPIRES_IN")),
        )


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str
    expires_in: int


class RevokeResult(enum.Enum):
    REVOKED = "revoked"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"

    @property
    def revoked(self) -> bool:
        return self is RevokeResult.REVOKED


class TokenService:
    def __init__(
        self,
        settings: JwtSettings,
        tokens: RefreshTokenDAO,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.tokens = tokens
        self.clock = clock

    # ---- access tokens ----
    def _sign(self, claims: Dict[str, Any], secret: str, lifetime: timedelta) -> str:
        now = self.clock()
        to_encode = dict(claims)
        to_encode["iat"] = int(now.timestamp())
        to_encode["exp"] = int((now + lifetime).timestamp())
        return jwt.encode(to_encode, secret, algorithm=self.settings.algorithm)

    def _decode(self, token: str, secret: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, secret, algorithms=[self.settings.algorithm])
        except jwt.PyJWTError:
            return None

    def generate_tokens(self, payload: Dict[str, Any]) -> AuthTokens:
        """
        Issue an access/refresh pair for ``payload`` ({user_id, email, username}).
        The refresh token is persisted before the pair is returned.
        """
        claims = {k: v for k, v in payload.items() if k not in ("iat", "exp")}
        claims["sub"] = str(claims["user_id"])
        claims["type"] = ACCESS_TOKEN_TYPE
        access_token = self._sign(claims, self.settings.secret, timedelta(seconds=self.settings.access_ttl_seconds))

        refresh_token = new_opaque_token()
        self.tokens.create(
            user_id=str(claims["user_id"]),
            token_hash=token_digest(refresh_token, self.settings.refresh_secret),
            expires_at=self.clock() + self.settings.refresh_ttl,
        )

        decoded = jwt.decode(access_token, options={"verify_signature": False})
        exp = decoded.get("exp")
        if exp:
            expires_in = int(exp) - int(self.clock().timestamp())
        else:
            expires_in = DEFAULT_ACCESS_TTL_SECONDS

        return AuthTokens(access_token=access_token, refresh_token=refresh_token, expires_in=expires_in)

    def verify_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        if not token:
            return None
        payload = self._decode(token, self.settings.secret)
        if not payload or payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("user_id"):
            return None
        return payload

    # ---- refresh tokens ----
    def _digest(self, token: str) -> str:
        return token_digest(token, self.settings.refresh_secret)

    def _is_expired(self, row) -> bool:
        return ensure_utc(row.expires_at) <= self.clock()

    def verify_refresh_token(self, token: str) -> Optional[str]:
        """Return the owning user id, or None. Expired rows found here are deleted."""
        if not token:
            return None
        try:
            row = self.tokens.find_by_hash(self._digest(token))
            if row is None:
                return None
            if self._is_expired(row):
                self.tokens.delete_by_id(row.id)
                return None
            return row.user_id
        except SQLAlchemyError:
            logger.exception("Refresh token lookup failed")
            return None

    def consume_refresh_token(self, token: str) -> Optional[str]:
        """
        Verify and revoke in one step. The conditional delete decides the
        winner when two requests present the same token: only the request
        whose DELETE removed the row gets the user id back. Store errors
        are logged and reported as None, like any other failed verification.
        """
        if not token:
            return None
        try:
            row = self.tokens.find_by_hash(self._digest(token))
            if row is None:
                return None
            expired = self._is_expired(row)
            removed = self.tokens.delete_by_id(row.id)
        except SQLAlchemyError:
            logger.exception("Refresh token consumption failed")
            return None
        if removed != 1:
            logger.warning("Refresh token for user %s was already consumed", row.user_id)
            return None
        if expired:
            return None
        return row.user_id

    def revoke_refresh_token(self, token: str) -> RevokeResult:
        if not token:
            return RevokeResult.NOT_FOUND
        try:
            removed = self.tokens.delete_by_hash(self._digest(token))
        except SQLAlchemyError:
            logger.exception("Could not revoke refresh token")
            return RevokeResult.STORE_UNAVAILABLE
        return RevokeResult.REVOKED if removed else RevokeResult.NOT_FOUND

    def revoke_all_user_tokens(self, user_id: str) -> Optional[int]:
        """Delete every refresh token of ``user_id``; None if the store failed."""
        try:
            removed = self.tokens.delete_all_for_user(user_id)
        except SQLAlchemyError:
            logger.exception("Could not revoke refresh tokens of user %s", user_id)
            return None
        logger.info("Revoked %d refresh token(s) of user %s", removed, user_id)
        return removed

    def purge_expired(self) -> int:
        return self.tokens.delete_expired(self.clock())

    # ---- purpose tokens ----
    def create_purpose_token(
        self,
        user_id: str,
        purpose: str,
        ttl_seconds: int,
        extra: Dict[str, Any] | None = None,
    ) -> str:
        claims = {"sub": str(user_id), "type": purpose}
        if extra:
            claims.update(extra)
        return self._sign(claims, self.settings.refresh_secret, timedelta(seconds=ttl_seconds))

    def verify_purpose_token(self, token: str, purpose: str) -> Optional[Dict[str, Any]]:
        if not token:
            return None
        payload = self._decode(token, self.settings.refresh_secret)
        if not payload or payload.get("type") != purpose or not payload.get("sub"):
            return None
        return payload
