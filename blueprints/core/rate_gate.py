# blueprints/core/rate_gate.py
from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select

from models import Role, utcnow
from blueprints.core.errors import RateLimitedError

log = logging.getLogger(__name__)


class RateGate:
    """Кулдаун между записями одного автора в одну коллекцию.

    Проверка и вставка не атомарны: два одновременных запроса могут
    оба пройти. Для защиты от случайного флуда этого достаточно.
    """

    def __init__(self, session, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    def last_write(self, actor_id: str, model) -> datetime | None:
        stmt = (select(model.created_at)
                .where(model.author_id == actor_id)
                .order_by(model.created_at.desc())
                .limit(1))
        return self.session.execute(stmt).scalar_one_or_none()

    def check(self, actor, model, cooldown: int | float, message: str | None = None) -> None:
        if actor.role is Role.SUPERADMIN or not cooldown:
            return
        last = self.last_write(actor.actor_id, model)
        if last is None:
            return
        elapsed = self.clock() - last
        if elapsed < timedelta(seconds=cooldown):
            log.warning("rate gate hit: %s on %s (%.1fs < %ss)",
                        actor.actor_id, model.__tablename__, elapsed.total_seconds(), cooldown)
            raise RateLimitedError(message)
