from __future__ import annotations
from functools import wraps
from flask import request, g, abort

from chess_api.deps import get_services


def _bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def jwt_required():
    """
    Require a valid access token. The decoded claims land in g.current_user;
    the token is never looked up in storage.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            if not token:
                abort(401, description="Access token required")
            decoded = get_services().tokens.verify_access_token(token)
            if not decoded:
                abort(401, description="Invalid or expired access token")
            g.current_user = decoded
            return fn(*args, **kwargs)

        return wrapper

    return decorator

