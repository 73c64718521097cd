"""
security helpers:
- Argon2 password hashing via argon2-cffi
- keyed digests for opaque refresh tokens (only the digest is stored)
"""
from __future__ import annotations

import hashlib
import hmac
import uuid

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, InvalidHashError):
        return False
    except VerificationError:
        # malformed or foreign hash parameters
        return False


def new_opaque_token() -> str:
    """Generate an opaque refresh token value."""
    return str(uuid.uuid4())


def token_digest(token: str, secret: str) -> str:
    """HMAC-SHA256 of an opaque token; this is the lookup key in the store."""
    return hmac.new(secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).hexdigest()
