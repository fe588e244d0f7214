# scripts/dev_db_init.py
# Usage:
#   python scripts/dev_db_init.py          # создать таблицы + админ + демо-данные
#   python scripts/dev_db_init.py --reset  # дропнуть всё и пересоздать
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app import create_app  # noqa: E402
from extensions import db  # noqa: E402
from models import Account, Post, Role, Sheet, SheetTeacher  # noqa: E402

DEMO_TEACHERS = ("teacher1", "teacher2")


def _ensure_account(user_id: str, password: str, email: str, role: Role) -> Account:
    acc = Account.query.filter_by(user_id=user_id).first()
    if acc:
        return acc
    acc = Account(
        user_id=user_id,
        password_hash=generate_password_hash(password),
        email=email,
        role=role.value,
        registered_teachers=[],
    )
    db.session.add(acc)
    return acc


def seed_demo(admin_id: str) -> None:
    for tid in DEMO_TEACHERS:
        _ensure_account(tid, "teacher1234", f"{tid}@example.com", Role.USER)

    if not Sheet.query.filter_by(owner_id=admin_id, sheet_name="demo").first():
        sheet = Sheet(
            owner_id=admin_id,
            sheet_name="demo",
            title="Demo schedule",
            title_key="demo schedule",
            num_of_teachers=2,
            selected_days=["Mon", "Tue", "Wed"],
            start_time="09:00",
            end_time="18:00",
            interval="30",
            teacher_names=["Kim", "Lee"],
            teacher_user_ids=list(DEMO_TEACHERS),
            day_dates={},
            cell_texts={},
            merged_blocks=[],
            view_mode="byDay",
        )
        sheet.members = [SheetTeacher(position=i, user_id=t) for i, t in enumerate(DEMO_TEACHERS)]
        db.session.add(sheet)

    if not Post.query.filter_by(title="Welcome").first():
        db.session.add(Post(
            title="Welcome",
            content="First post on the board.",
            author_id=admin_id,
            author_email=f"{admin_id}@example.com",
            author_role=Role.ADMIN.value,
            is_notice=False,
        ))

    admin = Account.query.filter_by(user_id=admin_id).first()
    if admin is not None and not admin.registered_teachers:
        admin.registered_teachers = list(DEMO_TEACHERS)

    db.session.commit()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Dev DB bootstrap")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    args = parser.parse_args(argv)

    app = create_app("dev")
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        admin_cfg = app.config["DEFAULT_ADMIN"]
        _ensure_account(admin_cfg["user_id"], admin_cfg["password"], admin_cfg["email"], Role.ADMIN)
        db.session.flush()
        seed_demo(admin_cfg["user_id"])
        print("DB initialized and seeded")


if __name__ == "__main__":
    main()
