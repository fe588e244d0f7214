# blueprints/auth/credentials.py
"""Подписанные токены с ограниченным сроком жизни (actor_id + role)."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from flask_login import UserMixin
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from models import Role

log = logging.getLogger(__name__)

TOKEN_SALT = "timemate-auth"


@dataclass(frozen=True)
class Principal(UserMixin):
    """Проверенная личность запроса. В БД не хранится."""
    actor_id: str
    role: Role

    def get_id(self) -> str:
        return self.actor_id

    @property
    def is_superadmin(self) -> bool:
        return self.role is Role.SUPERADMIN


class CredentialService:
    def __init__(self, secret_key: str, max_age: int = 60 * 60 * 24):
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)

    def issue(self, actor_id: str, role: Role) -> str:
        return self._serializer.dumps({"userId": actor_id, "role": Role(role).value})

    def validate(self, token: str | None) -> Optional[Principal]:
        if not token:
            return None
        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            log.info("expired token rejected")
            return None
        except BadSignature:
            # сюда же попадает BadPayload / мусор вместо токена
            log.warning("token with bad signature rejected")
            return None
        if not isinstance(payload, dict):
            return None
        actor_id = payload.get("userId")
        role = Role.parse(payload.get("role"))
        if not isinstance(actor_id, str) or not actor_id or role is None:
            return None
        return Principal(actor_id=actor_id, role=role)


def bearer_token(header: str | None) -> str | None:
    if not header or not header.startswith("Bearer "):
        return None
    return header.split(" ", 1)[1].strip() or None
