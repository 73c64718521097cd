from __future__ import annotations

import pytest

from chess_api import create_app
from chess_api.deps import EXTENSION_KEY

STRONG_PASSWORD = "Str0ng!Pass"


@pytest.fixture()
def app():
    app = create_app("testing")
    yield app
    services = app.extensions[EXTENSION_KEY]
    services.reaper.stop()
    services.storage.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app):
    with app.app_context():
        yield app.extensions[EXTENSION_KEY]


@pytest.fixture()
def register_payload():
    def make(email="alice@example.com", username="alice", password=STRONG_PASSWORD, confirm=None):
        return {
            "email": email,
            "username": username,
            "password": password,
            "confirmPassword": password if confirm is None else confirm,
        }

    return make


@pytest.fixture()
def registered(services):
    """A registered user as returned by AuthService.register."""
    return services.auth.register(
        {
            "email": "bob@example.com",
            "username": "bob",
            "password": STRONG_PASSWORD,
            "confirm_password": STRONG_PASSWORD,
        }
    )