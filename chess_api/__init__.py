import logging

import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .deps import EXTENSION_KEY, Services
from .errors import register_error_handlers
from .extensions import limiter

from models import DBStorage
from models.dao import ProgressDAO, RefreshTokenDAO, UserDAO
from services.auth_service import AuthService
from services.mailer import build_mailer
from services.progress_service import ProgressService
from services.token_reaper import TokenReaper
from services.token_service import JwtSettings, TokenService
from services.user_service import UserService

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Chess Trainer API",
        "version": "1.0.0",
        "description": "Accounts, JWT access/refresh tokens and spaced-repetition progress for opening training.",
    },
    "basePath": "/",  # blueprints are mounted under /api
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def build_services(config) -> Services:
    """Wire storage, DAOs and services once for an application."""
    storage = DBStorage(config["DATABASE_URL"], echo=config.get("SQL_ECHO", False))
    storage.reload()

    token_service = TokenService(JwtSettings.from_config(config), RefreshTokenDAO(storage))
    user_service = UserService(UserDAO(storage))
    mailer = build_mailer(config)
    auth_service = AuthService(
        user_service,
        token_service,
        mailer,
        email_verification_ttl=config.get("EMAIL_VERIFICATION_EXPIRES", 86400),
        password_reset_ttl=config.get("PASSWORD_RESET_EXPIRES", 3600),
    )
    return Services(
        storage=storage,
        tokens=token_service,
        users=user_service,
        auth=auth_service,
        mailer=mailer,
        progress=ProgressService(ProgressDAO(storage)),
        reaper=TokenReaper(token_service, storage, config.get("TOKEN_REAPER_INTERVAL_SECONDS", 0)),
    )


def _check_secrets(app: Flask) -> None:
    missing = [key for key in ("JWT_SECRET", "JWT_REFRESH_SECRET") if not app.config.get(key)]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Services are built here, once, and stored in app.extensions.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    _check_secrets(app)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    # Rate limits on the public auth routes (limits come from config)
    limiter.init_app(app)

    services = build_services(app.config)
    app.extensions[EXTENSION_KEY] = services

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .progress import bp as progress_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(progress_bp, url_prefix="/api/progress")

    # This calls scoped_session.remove(), preventing connection leaks
    @app.teardown_appcontext
    def remove_session(exception=None):
        services.storage.close()

    @app.cli.command("purge-tokens")
    def purge_tokens():
        """Delete expired refresh tokens now."""
        removed = services.reaper.sweep()
        click.echo(f"Purged {removed} expired refresh token(s)")

    services.reaper.start()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to the Chess Trainer API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    return app
