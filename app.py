from __future__ import annotations
import logging
import os
from typing import Any, Mapping

from flask import Flask
from sqlalchemy import inspect
from werkzeug.security import generate_password_hash

from config import config_map
from extensions import db, migrate, login_manager, limiter

log = logging.getLogger(__name__)


def _seed_from_config(app: Flask) -> None:
    """Идемпотентно создаёт админа по умолчанию (DEFAULT_ADMIN)."""
    admin_cfg = app.config.get("DEFAULT_ADMIN")
    if not app.config.get("SEED_DEFAULT_ADMIN") or not admin_cfg:
        return
    with app.app_context():
        # таблица может ещё не быть создана (alembic upgrade и т.п.)
        if not inspect(db.engine).has_table("accounts"):
            return

        from models import Account, Role  # локальный импорт, чтобы избежать циклов
        if Account.query.filter_by(user_id=admin_cfg["user_id"]).first():
            return
        db.session.add(Account(
            user_id=admin_cfg["user_id"],
            password_hash=generate_password_hash(admin_cfg["password"]),
            email=admin_cfg["email"],
            role=Role.ADMIN.value,
            registered_teachers=[],
        ))
        db.session.commit()
        log.info("default admin %s created", admin_cfg["user_id"])


def build_services(app: Flask) -> None:
    """Один набор сервисов на приложение; хэндлеры берут их из app.extensions."""
    from blueprints.auth.credentials import CredentialService
    from blueprints.auth.mailer import build_mailer
    from blueprints.auth.policy import PolicyOptions
    from blueprints.auth.services import AccountService, SuperadminIdentity
    from blueprints.board.services import BoardService
    from blueprints.core.rate_gate import RateGate
    from blueprints.schedule.services import ScheduleService

    cfg = app.config
    options = PolicyOptions.from_config(cfg)
    credentials = CredentialService(cfg["SECRET_KEY"], max_age=int(cfg["TOKEN_MAX_AGE"]))

    app.extensions["timemate.credentials"] = credentials
    app.extensions["timemate.accounts"] = AccountService(
        db.session, credentials, build_mailer(cfg), options,
        superadmin=SuperadminIdentity.from_config(cfg),
        min_password_length=int(cfg.get("MIN_PASSWORD_LENGTH", 4)),
    )
    app.extensions["timemate.schedules"] = ScheduleService(db.session, options)
    app.extensions["timemate.board"] = BoardService(
        db.session, RateGate(db.session), options,
        post_cooldown=int(cfg["POST_COOLDOWN_SECONDS"]),
        comment_cooldown=int(cfg["COMMENT_COOLDOWN_SECONDS"]),
        pin_notices=bool(cfg.get("BOARD_PIN_NOTICES", True)),
    )


def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp
    from blueprints.auth.routes import api_bp as auth_api_bp
    from blueprints.schedule.routes import api_bp as schedule_api_bp
    from blueprints.board.routes import api_bp as board_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_api_bp, url_prefix="/api/auth")
    app.register_blueprint(schedule_api_bp, url_prefix="/api/schedules")
    app.register_blueprint(board_api_bp, url_prefix="/api/board")


def create_app(config_name: str | None = None, overrides: Mapping[str, Any] | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    if overrides:
        app.config.update(overrides)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass

    from blueprints.core.errors import register_error_handlers

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)
    register_blueprints(app)
    register_error_handlers(app)
    build_services(app)
    _seed_from_config(app)
    return app
