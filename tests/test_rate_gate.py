from __future__ import annotations
from datetime import datetime, timedelta

import pytest

from extensions import db
from models import Comment, Post, Role
from blueprints.auth.credentials import Principal
from blueprints.core.errors import RateLimitedError
from blueprints.core.rate_gate import RateGate

T0 = datetime(2026, 1, 10, 12, 0, 0)
BOB = Principal("bob", Role.USER)


@pytest.fixture()
def ctx(app):
    with app.app_context():
        db.session.add(Post(
            title="hello", content="world", author_id="bob", author_email="bob@example.com",
            author_role="user", is_notice=False, views=0, created_at=T0, updated_at=T0,
        ))
        db.session.commit()
        yield app


def _gate(at: datetime) -> RateGate:
    return RateGate(db.session, clock=lambda: at)


def test_inside_cooldown_blocks(ctx):
    with pytest.raises(RateLimitedError) as exc:
        _gate(T0 + timedelta(seconds=30)).check(BOB, Post, 60, "slow down")
    assert exc.value.status == 429
    assert exc.value.message == "slow down"


def test_after_cooldown_passes(ctx):
    _gate(T0 + timedelta(seconds=61)).check(BOB, Post, 60)


def test_uses_latest_write(ctx):
    db.session.add(Post(
        title="again", content="x", author_id="bob", author_email="", author_role="user",
        is_notice=False, views=0, created_at=T0 + timedelta(minutes=5), updated_at=T0,
    ))
    db.session.commit()
    assert _gate(T0).last_write("bob", Post) == T0 + timedelta(minutes=5)
    with pytest.raises(RateLimitedError):
        _gate(T0 + timedelta(minutes=5, seconds=10)).check(BOB, Post, 60)


def test_other_authors_and_collections_are_independent(ctx):
    gate = _gate(T0 + timedelta(seconds=1))
    gate.check(Principal("carol", Role.USER), Post, 60)
    # комментариев у bob ещё нет
    gate.check(BOB, Comment, 60)


def test_superadmin_and_zero_cooldown_skip(ctx):
    gate = _gate(T0)
    gate.check(Principal("bob", Role.SUPERADMIN), Post, 60)
    gate.check(BOB, Post, 0)
