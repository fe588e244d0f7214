from __future__ import annotations
import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # срок жизни токена (сек), по умолчанию сутки
    TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", 60 * 60 * 24))

    # superadmin живёт только в конфиге, в БД его нет
    SUPERADMIN_USER_ID = os.getenv("SUPERADMIN_USER_ID")
    SUPERADMIN_PASSWORD = os.getenv("SUPERADMIN_PASSWORD")
    SUPERADMIN_EMAIL = os.getenv("SUPERADMIN_EMAIL", "")

    MIN_PASSWORD_LENGTH = 4

    # доска
    POST_COOLDOWN_SECONDS = int(os.getenv("POST_COOLDOWN_SECONDS", 60))
    COMMENT_COOLDOWN_SECONDS = int(os.getenv("COMMENT_COOLDOWN_SECONDS", 60))
    BOARD_MODERATION = os.getenv("BOARD_MODERATION", "strict")  # strict | admin
    BOARD_BLOCK_USER_ROLE = _env_bool("BOARD_BLOCK_USER_ROLE", False)
    BOARD_PIN_NOTICES = _env_bool("BOARD_PIN_NOTICES", True)
    NOTICE_COMMENTS_SUPERADMIN_EXEMPT = _env_bool("NOTICE_COMMENTS_SUPERADMIN_EXEMPT", False)
    BOARD_PAGE_SIZE = 10
    BOARD_MAX_PAGE_SIZE = 100

    # Flask-Limiter
    RATELIMIT_DEFAULT = "100 per minute"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_RATE_LIMIT = "10 per minute"

    # почта: smtp | log
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "log")
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_SENDER = os.getenv("MAIL_SENDER", "no-reply@timemate.local")
    MAIL_TIMEOUT = 15

    DEFAULT_ADMIN = None


class DevConfig(BaseConfig):
    DEBUG = True
    SEED_DEFAULT_ADMIN = True
    DEFAULT_ADMIN = {
        "user_id": os.getenv("ADMIN_USER_ID", "admin"),
        "password": os.getenv("ADMIN_PASSWORD", "admin1234"),
        "email": os.getenv("ADMIN_EMAIL", "admin@timemate.local"),
    }


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret-key"
    SUPERADMIN_USER_ID = "root"
    SUPERADMIN_PASSWORD = "rootpass"
    SUPERADMIN_EMAIL = "root@example.com"
    RATELIMIT_ENABLED = False
    MAIL_BACKEND = "log"
    SEED_DEFAULT_ADMIN = False


class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_DEFAULT_ADMIN = True
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")
    DEFAULT_ADMIN = {
        "user_id": os.getenv("ADMIN_USER_ID", "admin"),
        "password": os.getenv("ADMIN_PASSWORD", "admin1234"),
        "email": os.getenv("ADMIN_EMAIL", "admin@timemate.local"),
    }


config_map = {
    "dev": DevConfig,
    "testing": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
