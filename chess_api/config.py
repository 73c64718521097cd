"""
Environment-aware configuration.
Secrets, token lifetimes and the database URL are read from the environment
(.env is loaded if present). Token lifetimes are kept as raw strings because
the token service owns their parsing.
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///chess-trainer.db")
    SQL_ECHO = _env_bool("SQL_ECHO", False)

    # jwt configurations
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "1800")  # seconds
    JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")  # <n>d | <n>h | <n>m

    # lifetimes of the one-off tokens mailed to users (seconds)
    EMAIL_VERIFICATION_EXPIRES = _env_int("EMAIL_VERIFICATION_EXPIRES_SECONDS", 86400)
    PASSWORD_RESET_EXPIRES = _env_int("PASSWORD_RESET_EXPIRES_SECONDS", 3600)

    # background sweep of expired refresh tokens; 0 disables the thread
    TOKEN_REAPER_INTERVAL_SECONDS = _env_int("TOKEN_REAPER_INTERVAL_SECONDS", 300)

    # outbound e-mail; with no SMTP_HOST the messages are only logged
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")  # smtp | log | memory
    MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@chess-trainer.local")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = _env_int("SMTP_PORT", 587)
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", True)

    # Flask-Limiter; counters live in RATELIMIT_STORAGE_URI (use redis:// with several workers)
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10 per 15 minutes")  # login + refresh
    REGISTER_RATE_LIMIT = os.getenv("REGISTER_RATE_LIMIT", "5 per hour")
    PASSWORD_RESET_RATE_LIMIT = os.getenv("PASSWORD_RESET_RATE_LIMIT", "3 per hour")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    SQL_ECHO = _env_bool("SQL_ECHO", True)


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite:///:memory:"
    SQL_ECHO = False
    JWT_SECRET = "test-access-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"
    JWT_EXPIRES_IN = "1800"
    JWT_REFRESH_EXPIRES_IN = "7d"
    TOKEN_REAPER_INTERVAL_SECONDS = 0
    MAIL_BACKEND = "memory"
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    JWT_SECRET = os.getenv("JWT_SECRET", "")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
