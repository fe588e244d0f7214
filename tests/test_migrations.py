from __future__ import annotations
from pathlib import Path

from flask_migrate import downgrade, upgrade
from sqlalchemy import inspect

from app import create_app
from extensions import db

MIGRATIONS = str(Path(__file__).resolve().parents[1] / "migrations")


def _tables(engine) -> set:
    return set(inspect(engine).get_table_names()) - {"alembic_version"}


def test_upgrade_matches_models_and_downgrade_cleans_up():
    app = create_app("testing")
    with app.app_context():
        upgrade(directory=MIGRATIONS)

        insp = inspect(db.engine)
        assert _tables(db.engine) == set(db.metadata.tables)
        for name, table in db.metadata.tables.items():
            cols = {c["name"] for c in insp.get_columns(name)}
            assert cols == set(table.columns.keys()), name
        # индекс для кулдауна доски
        assert "ix_post_author_created" in {ix["name"] for ix in insp.get_indexes("posts")}

        downgrade(directory=MIGRATIONS, revision="base")
        assert _tables(db.engine) == set()
