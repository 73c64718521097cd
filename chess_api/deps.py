"""
Service container built once per application and reached through
``current_app.extensions``; nothing here is a module-level singleton.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from models import DBStorage
from services.auth_service import AuthService
from services.mailer import Mailer
from services.progress_service import ProgressService
from services.token_reaper import TokenReaper
from services.token_service import TokenService
from services.user_service import UserService

EXTENSION_KEY = "chess_api"


@dataclass
class Services:
    storage: DBStorage
    tokens: TokenService
    users: UserService
    auth: AuthService
    mailer: Mailer
    progress: ProgressService
    reaper: TokenReaper


def get_services() -> Services:
    services = current_app.extensions.get(EXTENSION_KEY)
    if services is None:
        raise RuntimeError("Services are not initialised; build the app with create_app()")
    return services
