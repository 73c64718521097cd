"""
Flask extensions that must exist before the blueprints are imported so
their decorators can be applied; each app binds them in create_app().
"""
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)


def configured_limit(key: str):
    """Limit string read from app.config at request time, e.g. "5 per hour"."""
    return lambda: current_app.config[key]
