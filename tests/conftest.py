from __future__ import annotations
import pytest

from app import create_app
from extensions import db

ROOT_ID = "root"
ROOT_PASSWORD = "rootpass"


@pytest.fixture()
def make_app():
    """Фабрика приложений: сервисы читают конфиг при сборке, поэтому
    нестандартные настройки передаём через overrides, а не config.update()."""
    def _make(**overrides):
        app = create_app("testing", overrides=overrides)
        with app.app_context():
            db.create_all()
        return app
    return _make


@pytest.fixture()
def app(make_app):
    return make_app()


@pytest.fixture()
def client(app):
    return app.test_client()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Api:
    """Обёртка над test_client: регистрация/логин в одну строку."""

    def __init__(self, client):
        self.client = client

    def register(self, user_id, password="pass1234", email=None, role=None):
        body = {"userId": user_id, "password": password, "email": email or f"{user_id}@example.com"}
        if role:
            body["role"] = role
        return self.client.post("/api/auth/register", json=body)

    def login(self, user_id, password="pass1234") -> str:
        r = self.client.post("/api/auth/login", json={"userId": user_id, "password": password})
        assert r.status_code == 200, r.get_json()
        return r.get_json()["token"]

    def account(self, user_id, role=None, password="pass1234") -> dict:
        """Регистрирует и сразу логинит, возвращает заголовки с токеном."""
        assert self.register(user_id, password=password, role=role).status_code == 201
        return bearer(self.login(user_id, password))

    def root(self) -> dict:
        return bearer(self.login(ROOT_ID, ROOT_PASSWORD))


@pytest.fixture()
def api(client):
    return Api(client)


@pytest.fixture()
def make_api():
    """Api поверх отдельного приложения (нестандартный конфиг)."""
    def _make(app):
        return Api(app.test_client())
    return _make
