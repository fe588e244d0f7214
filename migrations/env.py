"""Alembic env для Flask-Migrate.

`flask db upgrade` уже держит контекст приложения; прямой вызов
`alembic` без него поднимает приложение сам (FLASK_CONFIG, без сида).
"""
import logging
import os
import sys
from logging.config import fileConfig

from alembic import context
from flask import current_app, has_app_context

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

config = context.config
log = logging.getLogger("alembic.env")

if not has_app_context():
    # внутри приложения логирование уже настроено (JSON на root), иначе берём alembic.ini
    if config.config_file_name and os.path.exists(config.config_file_name):
        fileConfig(config.config_file_name, disable_existing_loggers=False)
    from app import create_app
    create_app(os.getenv("FLASK_CONFIG"), overrides={"SEED_DEFAULT_ADMIN": False}).app_context().push()

import models  # noqa: E402,F401  таблицы должны попасть в metadata

db = current_app.extensions["migrate"].db
target_metadata = db.metadata


def _url() -> str:
    # '%' в пароле ломает ConfigParser
    return db.engine.url.render_as_string(hide_password=False).replace("%", "%%")


config.set_main_option("sqlalchemy.url", _url())


def _skip_empty(ctx, revision, directives):
    """autogenerate без изменений не создаёт пустую ревизию."""
    if getattr(config.cmd_opts, "autogenerate", False):
        script = directives[0]
        if script.upgrade_ops.is_empty():
            directives[:] = []
            log.info("no schema changes detected")


def _options(dialect_name: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": dialect_name == "sqlite",
        "process_revision_directives": _skip_empty,
    }


def run_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"},
                      **_options(db.engine.dialect.name))
    with context.begin_transaction():
        context.run_migrations()


def run_online():
    with db.engine.connect() as connection:
        context.configure(connection=connection, **_options(connection.dialect.name))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
